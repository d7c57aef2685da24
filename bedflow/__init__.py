"""
bedflow - bed-management decision-support engine.

Tenant-scoped, feature-gated scoring engines for hospital bed assignment,
infection-control isolation, discharge readiness, ED transfer priority,
capacity forecasting and bed turnover tracking.
"""

__version__ = "1.0.0"

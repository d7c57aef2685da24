"""
Decision engines. Build them through ServiceFactory so they share one
session, clock and feature flag service.
"""

from bedflow.services.base.service_factory import ServiceFactory

__all__ = ["ServiceFactory"]

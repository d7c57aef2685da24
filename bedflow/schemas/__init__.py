"""
Pydantic result schemas returned by the engines.
"""

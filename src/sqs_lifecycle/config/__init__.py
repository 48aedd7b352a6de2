"""
Package: config
Description: Environment-driven settings for the SQS lifecycle helpers.
"""

from .settings import Settings, settings

__all__ = ["Settings", "settings"]

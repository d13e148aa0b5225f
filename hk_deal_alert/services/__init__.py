"""
Service layer for the HealthKart Deal Alert system.

This module contains the configuration manager, the alert use case and
the factory that wires components together.
"""

from .alert_service import AlertService
from .config_manager import ConfigurationManager
from .service_factory import ServiceFactory

__all__ = [
    "AlertService",
    "ConfigurationManager",
    "ServiceFactory",
]

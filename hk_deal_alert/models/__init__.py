"""
Data models for the HealthKart Deal Alert system.

This module contains all data classes used throughout the application
for representing catalog items, products, criteria, results and
configuration.
"""

from .alert import AlertExecutionResult, MonitoringResult, ProductSummary
from .catalog import AttributeGroup, CatalogAttribute, CatalogPage, RawCatalogItem
from .config import (
    AlertSettings,
    CatalogConfig,
    Configuration,
    LoggingConfig,
    SchedulerConfig,
    TelegramConfig,
)
from .delivery import DeliveryResult
from .filter import AlertCriteria, FilterCriteria
from .product import Product, ProductSpecifications
from .telegram import ConnectionTestResult, TelegramMessage

__all__ = [
    "RawCatalogItem",
    "AttributeGroup",
    "CatalogAttribute",
    "CatalogPage",
    "Product",
    "ProductSpecifications",
    "FilterCriteria",
    "AlertCriteria",
    "AlertExecutionResult",
    "MonitoringResult",
    "ProductSummary",
    "DeliveryResult",
    "TelegramMessage",
    "ConnectionTestResult",
    "Configuration",
    "CatalogConfig",
    "TelegramConfig",
    "AlertSettings",
    "SchedulerConfig",
    "LoggingConfig",
]

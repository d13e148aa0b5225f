"""
Core components for the HealthKart Deal Alert system.

This module contains the components that fetch catalog listings,
transform and filter products, format alerts and deliver them.
"""

from .alert_formatter import AlertFormatter
from .catalog_client import AiohttpCatalogTransport, CatalogClient, RetryingCatalogTransport
from .filter_engine import FilterEngine, RawItemFilter, filter_raw_items
from .telegram_notifier import TelegramNotifier
from .transform_service import TransformService

__all__ = [
    "CatalogClient",
    "AiohttpCatalogTransport",
    "RetryingCatalogTransport",
    "TransformService",
    "FilterEngine",
    "RawItemFilter",
    "filter_raw_items",
    "AlertFormatter",
    "TelegramNotifier",
]

"""
Configuration management system for the HealthKart Deal Alert.
"""

import json
import os
from typing import Any, Dict, List, Mapping, Optional

import yaml

from ..models.config import (
    CATEGORY_CODES,
    DEFAULT_BASE_URL,
    DEFAULT_BRANDS,
    AlertSettings,
    CatalogConfig,
    Configuration,
    LoggingConfig,
    SchedulerConfig,
    TelegramConfig,
)
from ..models.filter import FilterCriteria
from ..utils.error_handling import DealAlertError, configuration_error

CONFIG_SEARCH_PATHS = [
    "config/config.yaml",
    "config/config.yml",
    "config/config.json",
    "config.yaml",
    "config.yml",
    "config.json",
]


def _as_bool(value: Any, default: bool = False) -> bool:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def _as_list(value: Any) -> List[str]:
    """Accept a YAML list or a comma-separated string."""
    if value is None:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return [str(part).strip() for part in value if str(part).strip()]


def _as_optional_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    return float(value)


def _as_optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)


def _explicit(data: Mapping[str, Any], key: str, default: Any) -> Any:
    """Value of ``key`` when present, even if null; ``default`` when absent."""
    return data[key] if key in data else default


class ConfigurationManager:
    """Loads and validates system configuration from a file or the environment."""

    def __init__(
        self,
        config_path: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
    ):
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to a YAML or JSON file. If None, standard
                locations are searched and the environment is used when
                none exists.
            environ: Environment mapping (defaults to ``os.environ``)
        """
        self.environ = environ if environ is not None else os.environ
        self.config_path = config_path or self._find_config_file()
        self._config: Optional[Configuration] = None

    @staticmethod
    def _find_config_file() -> Optional[str]:
        for path in CONFIG_SEARCH_PATHS:
            if os.path.exists(path):
                return path
        return None

    def load_config(self) -> Configuration:
        """
        Load configuration.

        Raises:
            DealAlertError: CONFIGURATION if the file is missing, malformed
                or fails validation
        """
        try:
            if self.config_path:
                raw_config = self._read_file(self.config_path)
                raw_config = self._expand_env_vars(raw_config)
            else:
                raw_config = self._from_environment()

            config = self._parse_config(raw_config)
            config.validate()

        except DealAlertError:
            raise
        except (ValueError, TypeError) as e:
            raise configuration_error(f"Invalid configuration: {e}") from e

        self._config = config
        return config

    def get_config(self) -> Configuration:
        """Get current configuration, loading if necessary."""
        if self._config is None:
            return self.load_config()
        return self._config

    def _read_file(self, path: str) -> Dict[str, Any]:
        if not os.path.exists(path):
            raise configuration_error(f"Configuration file not found: {path}", config_key="config_path")

        try:
            with open(path, "r", encoding="utf-8") as f:
                if path.endswith(".json"):
                    data = json.load(f)
                else:
                    data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise configuration_error(f"Invalid YAML in configuration file: {e}") from e
        except json.JSONDecodeError as e:
            raise configuration_error(f"Invalid JSON in configuration file: {e}") from e

        if not isinstance(data, dict):
            raise configuration_error("Configuration file must contain a mapping")
        return data

    def _expand_env_vars(self, obj: Any) -> Any:
        """Recursively expand ${VAR_NAME} placeholders."""
        if isinstance(obj, dict):
            return {key: self._expand_env_vars(value) for key, value in obj.items()}
        if isinstance(obj, list):
            return [self._expand_env_vars(item) for item in obj]
        if isinstance(obj, str) and obj.startswith("${") and obj.endswith("}"):
            var_name = obj[2:-1]
            value = self.environ.get(var_name)
            if value is None:
                raise configuration_error(
                    f"Environment variable '{var_name}' not found", config_key=var_name
                )
            return value
        return obj

    def _from_environment(self) -> Dict[str, Any]:
        """Build a raw configuration dict from environment variables."""
        env = self.environ
        raw = {
            "catalog": {
                "base_url": env.get("HEALTHKART_BASE_URL"),
                "category_code": env.get("HEALTHKART_CATEGORY_CODE"),
                "request_delay": env.get("HEALTHKART_REQUEST_DELAY"),
                "max_retries": env.get("HEALTHKART_MAX_RETRIES"),
                "retry_delay": env.get("HEALTHKART_RETRY_DELAY"),
                "per_page": env.get("HEALTHKART_PER_PAGE"),
                "request_timeout": env.get("API_REQUEST_TIMEOUT"),
            },
            "filters": {
                "min_discount": env.get("PRODUCT_MIN_DISCOUNT"),
                "max_price": env.get("PRODUCT_MAX_PRICE"),
                "min_rating": env.get("PRODUCT_MIN_RATING"),
                "min_reviews": env.get("PRODUCT_MIN_REVIEWS"),
                "in_stock_only": env.get("PRODUCT_IN_STOCK_ONLY"),
                "brands": env.get("PRODUCT_BRANDS"),
                "categories": env.get("PRODUCT_CATEGORIES"),
                "flavors": env.get("PRODUCT_FLAVORS"),
            },
            "telegram": {
                "bot_token": env.get("TELEGRAM_BOT_TOKEN", ""),
                "chat_id": env.get("TELEGRAM_CHAT_ID", ""),
                "max_retries": env.get("TELEGRAM_MAX_RETRIES"),
                "retry_delay": env.get("TELEGRAM_RETRY_DELAY"),
            },
            "alerts": {
                "max_products_in_alert": env.get("API_MAX_PRODUCTS_IN_ALERT"),
                "dry_run": env.get("API_DRY_RUN"),
                "send_summary": env.get("API_SEND_SUMMARY"),
            },
            "scheduler": {
                "interval_minutes": env.get("SCHEDULER_INTERVAL_MINUTES"),
                "categories": env.get("SCHEDULER_CATEGORIES"),
                "api_url": env.get("SCHEDULER_API_URL"),
                "host": env.get("API_HOST"),
                "port": env.get("API_PORT") or env.get("PORT"),
                "environment": env.get("ENVIRONMENT"),
            },
            "logging": {
                "level": env.get("LOG_LEVEL"),
                "log_dir": env.get("LOG_DIR"),
            },
        }
        # Unset variables are absent keys, so defaults apply to them.
        return {
            name: {key: value for key, value in values.items() if value is not None}
            for name, values in raw.items()
        }

    def _parse_config(self, raw_config: Dict[str, Any]) -> Configuration:
        """Parse raw configuration dictionary into Configuration object."""

        def section(name: str) -> Dict[str, Any]:
            data = raw_config.get(name) or {}
            if not isinstance(data, dict):
                raise configuration_error(f"Section '{name}' must be a mapping", config_key=name)
            return {k: v for k, v in data.items() if v is not None and v != ""}

        catalog_data = section("catalog")
        categories = dict(CATEGORY_CODES)
        categories.update(catalog_data.get("categories") or {})
        catalog = CatalogConfig(
            base_url=catalog_data.get("base_url", DEFAULT_BASE_URL),
            category_code=catalog_data.get("category_code", CATEGORY_CODES["wheyProtein"]),
            categories=categories,
            request_delay=float(catalog_data.get("request_delay", 1.0)),
            max_retries=int(catalog_data.get("max_retries", 3)),
            retry_delay=float(catalog_data.get("retry_delay", 1.0)),
            per_page=int(catalog_data.get("per_page", 24)),
            request_timeout=float(catalog_data.get("request_timeout", 30.0)),
        )

        filter_data = section("filters")
        # An explicit null disables an optional threshold; a missing key keeps the default.
        thresholds = raw_config.get("filters") or {}
        filters = FilterCriteria(
            min_discount=float(filter_data.get("min_discount", 10)),
            max_price=_as_optional_float(_explicit(thresholds, "max_price", 10000)),
            min_rating=_as_optional_float(_explicit(thresholds, "min_rating", 3.5)),
            min_reviews=_as_optional_int(_explicit(thresholds, "min_reviews", 1)),
            in_stock_only=_as_bool(filter_data.get("in_stock_only"), default=True),
            brands=_as_list(filter_data.get("brands", DEFAULT_BRANDS)),
            categories=_as_list(filter_data.get("categories", ["whey protein"])),
            flavors=_as_list(filter_data.get("flavors")),
            weight_buckets=_as_list(filter_data.get("weight_buckets")),
        )

        telegram_data = section("telegram")
        telegram = TelegramConfig(
            bot_token=str(telegram_data.get("bot_token", "")),
            chat_id=str(telegram_data.get("chat_id", "")),
            max_retries=int(telegram_data.get("max_retries", 3)),
            retry_delay=float(telegram_data.get("retry_delay", 1.0)),
        )

        alert_data = section("alerts")
        alerts = AlertSettings(
            max_products_in_alert=int(alert_data.get("max_products_in_alert", 5)),
            dry_run=_as_bool(alert_data.get("dry_run"), default=False),
            send_summary=_as_bool(alert_data.get("send_summary"), default=False),
        )

        scheduler_data = section("scheduler")
        scheduler = SchedulerConfig(
            interval_minutes=float(scheduler_data.get("interval_minutes", 30)),
            categories=_as_list(scheduler_data.get("categories")),
            api_url=scheduler_data.get("api_url"),
            host=scheduler_data.get("host", "0.0.0.0"),
            port=int(scheduler_data.get("port", 8080)),
            environment=scheduler_data.get("environment", "development"),
        )

        logging_data = section("logging")
        logging_config = LoggingConfig(
            level=str(logging_data.get("level", "INFO")),
            log_dir=str(logging_data.get("log_dir", "logs")),
            log_to_file=_as_bool(logging_data.get("log_to_file"), default=True),
        )

        return Configuration(
            telegram=telegram,
            catalog=catalog,
            filters=filters,
            alerts=alerts,
            scheduler=scheduler,
            logging=logging_config,
        )

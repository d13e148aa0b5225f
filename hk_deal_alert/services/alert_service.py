"""
Alert service orchestrating fetch → transform → filter → notify.

Each stage failure is re-raised as a stage-specific error chained from
its cause. Finding no qualifying deals is not an error: the notify stage
is skipped and the result reports that nothing was sent.
"""

import asyncio
import time
import uuid
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..components.filter_engine import FilterEngine, filter_raw_items
from ..interfaces import ICatalogClient, INotifier, ITransformService
from ..models.alert import AlertExecutionResult, MonitoringResult, ProductSummary
from ..models.filter import FilterCriteria
from ..models.product import Product, sort_by_discount
from ..utils.error_handling import (
    catalog_error,
    notification_error,
    parsing_error,
    sanitize_error_message,
)
from ..utils.logging import get_logger


def generate_request_id() -> str:
    return f"req-{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}"


class AlertService:
    """Runs one deal-alert cycle per category."""

    def __init__(
        self,
        catalog_client: ICatalogClient,
        transform_service: ITransformService,
        notifier: INotifier,
        criteria: FilterCriteria,
        default_category: str,
        max_products_in_alert: int = 5,
        dry_run: bool = False,
        send_summary: bool = False,
    ):
        self.catalog_client = catalog_client
        self.transform_service = transform_service
        self.notifier = notifier
        self.criteria = criteria
        self.filter_engine = FilterEngine(criteria)
        self.default_category = default_category
        self.max_products_in_alert = max_products_in_alert
        self.dry_run = dry_run
        self.send_summary = send_summary
        self.logger = get_logger("alert.service")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self) -> None:
        await self.catalog_client.close()
        close_notifier = getattr(self.notifier, "close", None)
        if close_notifier is not None:
            await close_notifier()

    async def execute(
        self, category_code: Optional[str] = None, request_id: Optional[str] = None
    ) -> AlertExecutionResult:
        """
        Run one alert cycle for a category.

        Raises:
            DealAlertError: CATALOG_FETCH, DATA_PARSING or NOTIFICATION
                stage errors, chained from the underlying failure
        """
        result, _ = await self._run(category_code, request_id)
        return result

    async def _run(
        self, category_code: Optional[str], request_id: Optional[str]
    ) -> Tuple[AlertExecutionResult, List[Product]]:
        category_code = category_code or self.default_category
        request_id = request_id or generate_request_id()
        started = time.monotonic()
        log_context = {"request_id": request_id, "category": category_code}

        self.logger.info("Starting deal alert run", extra=log_context)

        raw_items = await self._fetch(category_code, log_context)
        qualifying = self._process(raw_items, log_context)

        telegram_sent = False
        if not qualifying:
            self.logger.info("No qualifying deals, skipping notification", extra=log_context)
        elif self.dry_run:
            self.logger.info(
                "Dry run enabled, skipping notification",
                extra={**log_context, "qualifying": len(qualifying)},
            )
        else:
            telegram_sent = await self._notify(qualifying, log_context)

        top_deals = sort_by_discount(qualifying, self.max_products_in_alert)
        result = AlertExecutionResult(
            category_code=category_code,
            total_products_fetched=len(raw_items),
            qualifying_deals=len(qualifying),
            telegram_sent=telegram_sent,
            deals=[ProductSummary.from_product(p) for p in top_deals],
            request_id=request_id,
            execution_time_ms=int((time.monotonic() - started) * 1000),
        )
        result.validate()

        self.logger.info(
            "Deal alert run completed",
            extra={
                **log_context,
                "total_products": result.total_products_fetched,
                "qualifying_deals": result.qualifying_deals,
                "telegram_sent": result.telegram_sent,
                "execution_time_ms": result.execution_time_ms,
            },
        )
        return result, qualifying

    async def _fetch(self, category_code: str, log_context: Dict[str, Any]):
        try:
            return await self.catalog_client.fetch_all_category_products(category_code)
        except Exception as e:
            self.logger.error(
                "Failed to fetch products",
                extra={**log_context, "error": sanitize_error_message(str(e))},
            )
            raise catalog_error(
                f"Failed to fetch products for {category_code}: {e}",
                endpoint=category_code,
                retryable=False,
            ) from e

    def _process(self, raw_items, log_context: Dict[str, Any]) -> List[Product]:
        try:
            candidates = filter_raw_items(raw_items, self.criteria)
            products = self.transform_service.transform_to_products(candidates)
            qualifying = self.filter_engine.filter_products(products)
        except Exception as e:
            self.logger.error(
                "Failed to process products",
                extra={**log_context, "error": sanitize_error_message(str(e))},
                exc_info=True,
            )
            raise parsing_error(f"Failed to process products: {e}") from e

        self.logger.info(
            "Processed products",
            extra={
                **log_context,
                "fetched": len(raw_items),
                "candidates": len(candidates),
                "transformed": len(products),
                "qualifying": len(qualifying),
            },
        )
        return qualifying

    async def _notify(self, qualifying: List[Product], log_context: Dict[str, Any]) -> bool:
        try:
            delivery = await self.notifier.send_deal_alerts(qualifying)
        except Exception as e:
            self.logger.error(
                "Failed to send deal alert",
                extra={**log_context, "error": sanitize_error_message(str(e))},
            )
            raise notification_error(
                f"Failed to send deal alert: {e}", retryable=False
            ) from e
        return bool(delivery and delivery.success)

    async def execute_multi_category(self, category_codes: Sequence[str]) -> MonitoringResult:
        """
        Run ``execute`` for several categories concurrently.

        Failures are collected per category and never abort other runs.
        The result carries match statistics and the flavor and weight
        distribution of every matching product. With ``send_summary`` on
        (and not a dry run) a monitoring summary follows the per-category
        alerts; a failed summary is logged and reported as not sent.
        """
        started = time.monotonic()
        outcomes = await asyncio.gather(
            *(self._run(code, None) for code in category_codes),
            return_exceptions=True,
        )

        monitoring = MonitoringResult()
        matching: List[Product] = []
        for code, outcome in zip(category_codes, outcomes):
            if isinstance(outcome, tuple):
                result, qualifying = outcome
                monitoring.results.append(result)
                matching.extend(qualifying)
            elif isinstance(outcome, Exception):
                monitoring.errors.append(
                    {"category": code, "error": sanitize_error_message(str(outcome))}
                )
            else:
                raise outcome

        monitoring.statistics = self.filter_engine.get_monitoring_stats(
            monitoring.total_products, matching
        )
        monitoring.distribution = self.filter_engine.analyze_product_distribution(matching)

        if self.send_summary and not self.dry_run:
            monitoring.summary_sent = await self._send_summary(monitoring, matching)

        monitoring.execution_time_ms = int((time.monotonic() - started) * 1000)
        self.logger.info(
            "Multi-category run completed",
            extra={
                "categories": len(category_codes),
                "total_products": monitoring.total_products,
                "matching_products": monitoring.matching_products,
                "match_rate": monitoring.statistics["match_rate"],
                "errors": len(monitoring.errors),
                "summary_sent": monitoring.summary_sent,
            },
        )
        return monitoring

    async def _send_summary(self, monitoring: MonitoringResult, matching: List[Product]) -> bool:
        errors = [f"{e['category']}: {e['error']}" for e in monitoring.errors]
        try:
            delivery = await self.notifier.send_monitoring_summary(
                monitoring.total_products,
                monitoring.matching_products,
                self.get_top_deals(matching, self.max_products_in_alert),
                errors=errors,
            )
        except Exception as e:
            self.logger.error(
                "Failed to send monitoring summary",
                extra={"error": sanitize_error_message(str(e))},
            )
            return False
        return bool(delivery and delivery.success)

    def get_top_deals(self, products: List[Product], limit: int = 10) -> List[Product]:
        return self.filter_engine.get_top_deals(products, limit)

    def analyze_deals(self, products: List[Product]) -> Dict[str, Any]:
        return self.filter_engine.analyze_deals(products, self.max_products_in_alert)

    def analyze_product_distribution(self, products: List[Product]) -> Dict[str, Any]:
        return self.filter_engine.analyze_product_distribution(products)

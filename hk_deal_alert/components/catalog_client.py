"""
Catalog API client for the HealthKart best-seller listing.

The client is split into a transport, which performs single GET requests
with aiohttp, a retrying transport that wraps any transport with timeout
and retry behaviour, and the client itself, which handles rate limiting,
envelope validation, pagination and filtering.
"""

import json
from typing import Any, Dict, List, Optional

import aiohttp
from aiohttp import ClientTimeout

from ..interfaces import ICatalogTransport
from ..models.catalog import CatalogPage, RawCatalogItem
from ..models.config import DEFAULT_BASE_URL
from ..models.filter import FilterCriteria
from ..utils.error_handling import (
    RetryConfig,
    catalog_error,
    with_retry,
    with_timeout,
)
from ..utils.logging import get_logger
from ..utils.rate_limiter import RequestRateLimiter
from .filter_engine import filter_raw_items

LISTING_ENDPOINT = "/veronica/catalog/best-seller/results"

DEFAULT_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "application/json, text/plain, */*",
    "Accept-Language": "en-US,en;q=0.9",
    "Cache-Control": "no-cache",
}

logger = get_logger("catalog.client")


def _positive_int(value: Any, fallback: int) -> int:
    """Envelope integer, or ``fallback`` when it is missing, malformed or not positive."""
    if isinstance(value, bool):
        return fallback
    try:
        number = int(value)
    except (TypeError, ValueError):
        return fallback
    return number if number > 0 else fallback


class AiohttpCatalogTransport:
    """Issues one GET request per call using a shared aiohttp session."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        headers: Optional[Dict[str, str]] = None,
    ):
        """
        Initialize transport.

        Args:
            base_url: Catalog API base URL
            timeout: Total request timeout in seconds
            headers: Headers sent with every request
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.headers = headers or dict(DEFAULT_HEADERS)
        self.session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(
                timeout=ClientTimeout(total=self.timeout),
                headers=self.headers,
            )
        return self.session

    async def get_json(self, path: str, params: Dict[str, Any]) -> Any:
        """
        Fetch ``path`` and decode its JSON body.

        Raises:
            DealAlertError: CATALOG_FETCH with the HTTP status when known
        """
        url = f"{self.base_url}{path}"
        session = await self._get_session()

        try:
            async with session.get(url, params=params) as response:
                if response.status >= 400:
                    body = await response.text()
                    raise catalog_error(
                        f"Catalog API returned HTTP {response.status}: {body[:200]}",
                        status_code=response.status,
                        endpoint=path,
                    )
                try:
                    return await response.json(content_type=None)
                except (json.JSONDecodeError, ValueError) as e:
                    raise catalog_error(
                        f"Catalog API returned invalid JSON: {e}",
                        status_code=response.status,
                        endpoint=path,
                        retryable=False,
                    ) from e

        except aiohttp.ClientResponseError as e:
            raise catalog_error(
                f"Catalog request failed: {e.message}",
                status_code=e.status,
                endpoint=path,
            ) from e
        except aiohttp.ClientError as e:
            raise catalog_error(
                f"Catalog request failed: {e}", status_code=None, endpoint=path
            ) from e

    async def close(self) -> None:
        if self.session is not None:
            await self.session.close()
            self.session = None


class RetryingCatalogTransport:
    """
    Transport wrapper adding a per-attempt timeout and bounded retries.

    Implements the same ``get_json``/``close`` capability as the wrapped
    transport and never modifies it.
    """

    def __init__(
        self,
        inner: ICatalogTransport,
        retry_config: Optional[RetryConfig] = None,
        timeout: float = 30.0,
    ):
        self.inner = inner
        self.retry_config = retry_config or RetryConfig()
        self.timeout = timeout

    async def get_json(self, path: str, params: Dict[str, Any]) -> Any:
        async def attempt():
            return await with_timeout(
                self.inner.get_json(path, params),
                self.timeout,
                operation_name=f"GET {path}",
            )

        return await with_retry(
            attempt, self.retry_config, operation_name=f"GET {path}"
        )

    async def close(self) -> None:
        await self.inner.close()


class CatalogClient:
    """Client for paginated category listings."""

    def __init__(
        self,
        transport: ICatalogTransport,
        rate_limiter: Optional[RequestRateLimiter] = None,
        per_page: int = 24,
    ):
        """
        Initialize catalog client.

        Args:
            transport: Transport used for HTTP calls
            rate_limiter: Limiter spacing out requests; pass one instance to
                several clients to share a budget
            per_page: Page size requested from the API
        """
        self.transport = transport
        self.rate_limiter = rate_limiter or RequestRateLimiter(1.0)
        self.per_page = per_page
        self.requests_made = 0

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self) -> None:
        await self.transport.close()

    async def fetch_category_page(
        self, category_code: str, page_no: int = 1, per_page: Optional[int] = None
    ) -> CatalogPage:
        """
        Fetch and validate one page of a category listing.

        Raises:
            DealAlertError: CATALOG_FETCH on HTTP or envelope failures,
                RETRY_EXHAUSTED when retries run out
        """
        per_page = per_page or self.per_page
        params = {
            "nKey": category_code,
            "pageNo": page_no,
            "perPage": per_page,
            "excludeOOS": "true",
            "plt": 1,
            "st": 1,
        }

        await self.rate_limiter.wait()
        self.requests_made += 1

        logger.debug(
            "Fetching catalog page",
            extra={"category": category_code, "page": page_no, "per_page": per_page},
        )
        body = await self.transport.get_json(LISTING_ENDPOINT, params)
        page = self._parse_page(body, category_code, page_no, per_page)

        if page.page_no != page_no:
            logger.warning(
                "Catalog returned a different page than requested",
                extra={"category": category_code, "requested": page_no, "returned": page.page_no},
            )

        logger.info(
            "Fetched catalog page",
            extra={
                "category": category_code,
                "page": page_no,
                "items": len(page.items),
                "total": page.total_count,
            },
        )
        return page

    async def fetch_all_category_products(self, category_code: str) -> List[RawCatalogItem]:
        """Fetch every page of a category and concatenate the items."""
        items: List[RawCatalogItem] = []
        page_no = 1
        total_pages = 1

        while page_no <= total_pages:
            page = await self.fetch_category_page(category_code, page_no)

            if not page.items:
                logger.info(
                    "Empty catalog page, stopping pagination",
                    extra={"category": category_code, "page": page_no},
                )
                break

            items.extend(page.items)
            total_pages = page.total_pages
            page_no += 1

        logger.info(
            "Fetched category listing",
            extra={"category": category_code, "items": len(items), "pages": page_no - 1},
        )
        return items

    async def fetch_filtered_products(
        self, category_code: str, criteria: FilterCriteria
    ) -> List[RawCatalogItem]:
        """Fetch a category and keep the items matching ``criteria``."""
        items = await self.fetch_all_category_products(category_code)
        return filter_raw_items(items, criteria)

    def _parse_page(
        self, body: Any, category_code: str, page_no: int, per_page: int
    ) -> CatalogPage:
        if not isinstance(body, dict) or not isinstance(body.get("results"), dict):
            raise catalog_error(
                "Invalid catalog response: missing results",
                status_code=body.get("statusCode") if isinstance(body, dict) else None,
                endpoint=LISTING_ENDPOINT,
                retryable=False,
            )

        results = body["results"]
        if results.get("exception"):
            raise catalog_error(
                "Catalog API reported an exception",
                status_code=body.get("statusCode"),
                endpoint=LISTING_ENDPOINT,
                retryable=False,
            )

        variants = results.get("variants")
        if not isinstance(variants, list):
            raise catalog_error(
                "Invalid catalog response: variants is not a list",
                status_code=body.get("statusCode"),
                endpoint=LISTING_ENDPOINT,
                retryable=False,
            )

        total = results.get("total_variants")
        if not isinstance(total, int) or total < 0:
            total = len(variants)

        return CatalogPage(
            category_code=category_code,
            page_no=_positive_int(results.get("pageNo"), page_no),
            per_page=_positive_int(results.get("perPage"), per_page),
            total_count=total,
            items=[RawCatalogItem.from_api(v) for v in variants if isinstance(v, dict)],
        )

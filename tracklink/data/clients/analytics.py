"""Analytics query endpoint client.

The endpoint accepts GraphQL queries posted as ``{"query": "..."}`` and
answers with an envelope ``{"status": "success", "data": {...}}`` or
``{"status": "error", "error_description": "..."}``. The fetch methods here
match the callables the safe facade and the path loader consume:

    page_fetch(skip, limit), key_fetch(imei), view_fetch(imei, view), count_fetch()
"""

from __future__ import annotations

import json
import logging
from typing import Any

from ..core.enums import ViewType
from ..core.exceptions import QueryError, TruncatedResponseError
from ..runtime.query import QueryOptimizer
from ..runtime.validation import detect_truncation
from .http import HTTPClient

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://127.0.0.1:8020"
QUERY_PATH = "/analytics/analytics-query"

RECORD_FIELDS = (
    "id topic imei interval geoid packet latitude longitude speed "
    "battery signal alert rawText timestampNormalized timestampIso "
    "timestamp receivedAtIst processedAt type createdAt"
)
LOCATION_FIELDS = (
    "id topic imei packet latitude longitude speed "
    "battery signal timestampNormalized timestampIso processedAt type createdAt"
)


class AnalyticsQueryClient:
    """Client for the analytics GraphQL endpoint."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        path: str = QUERY_PATH,
        timeout: float = 30.0,
        http: HTTPClient | None = None,
        optimizer: QueryOptimizer | None = None,
    ) -> None:
        self._http = http or HTTPClient(base_url=base_url, timeout=timeout)
        self._path = path
        self._optimizer = optimizer or QueryOptimizer()

    async def send_query(self, query: str) -> dict[str, Any]:
        """Execute ``query`` and return the envelope's ``data`` object.

        Raises:
            TruncatedResponseError: If the body fails to parse and looks cut off
            QueryError: On any other transport or API failure
        """
        status, body = await self._http.post_text(
            self._path,
            json={"query": query},
            headers={"Accept": "application/json"},
        )

        try:
            envelope = json.loads(body)
        except json.JSONDecodeError as e:
            check = detect_truncation(body)
            if check.is_truncated:
                logger.warning(
                    "query_response_truncated",
                    extra={"status_code": status, "body_size": len(body), "indicators": check.indicators},
                )
                raise TruncatedResponseError(
                    f"Analytics response was truncated ({len(body)} bytes)"
                ) from e
            raise QueryError(f"Invalid analytics response: {e}", status_code=status) from e

        if not isinstance(envelope, dict) or envelope.get("status") != "success":
            description = envelope.get("error_description") if isinstance(envelope, dict) else None
            raise QueryError(description or "Analytics API error", status_code=status)

        data = envelope.get("data")
        return data if isinstance(data, dict) else {}

    async def fetch_page(self, skip: int = 0, limit: int = 10) -> list[dict[str, Any]]:
        """Fetch one page of records (server-side pagination)."""
        query = f"{{ analyticsDataPaginated(skip: {int(skip)}, limit: {int(limit)}) {{ {RECORD_FIELDS} }} }}"
        data = await self.send_query(query)
        return data.get("analyticsDataPaginated") or []

    async def fetch_by_imei(
        self, imei: str, view: ViewType | str | None = None
    ) -> list[dict[str, Any]]:
        """Fetch the full, unpaginated history of one device.

        Args:
            imei: Device identifier
            view: When given, request only the fields selected for this view
                instead of LOCATION_FIELDS
        """
        fields = LOCATION_FIELDS if view is None else " ".join(self.fields_for(view))
        query = f"{{ analyticsDataByImei(imei: {json.dumps(str(imei))}) {{ {fields} }} }}"
        data = await self.send_query(query)
        return data.get("analyticsDataByImei") or []

    def fields_for(self, view: ViewType | str) -> tuple[str, ...]:
        """Fields requested for ``view``, with the size estimate logged."""
        fields = self._optimizer.select_fields(view)
        analysis = self._optimizer.analyze(fields)
        logger.info(
            "query_fields_selected",
            extra={
                "view": ViewType(view).value,
                "field_count": analysis.total_fields,
                "estimated_size": analysis.estimated_size,
            },
        )
        for recommendation in analysis.recommendations:
            logger.warning(
                "query_recommendation",
                extra={"view": ViewType(view).value, "advice": recommendation},
            )
        return fields

    async def fetch_count(self) -> int:
        """Return the total record count, 0 when the server reports nothing usable."""
        data = await self.send_query("{ analyticsDataCount }")
        count = data.get("analyticsDataCount")
        if isinstance(count, bool):
            return 0
        if isinstance(count, int | float):
            return int(count)
        try:
            return int(float(count))
        except (TypeError, ValueError):
            return 0

    async def fetch_all(self) -> list[dict[str, Any]]:
        """Fetch every record in one unpaginated query."""
        data = await self.send_query(f"{{ analyticsData {{ {RECORD_FIELDS} }} }}")
        return data.get("analyticsData") or []

    async def close(self) -> None:
        await self._http.close()

    async def __aenter__(self) -> AnalyticsQueryClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

"""Unit tests for the analytics query client."""

from __future__ import annotations

import json
import logging
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from tracklink.data.clients import AnalyticsQueryClient, HTTPClient
from tracklink.data.clients.analytics import LOCATION_FIELDS
from tracklink.data.core import QueryError, TruncatedResponseError, ViewType


def _client(status: int = 200, body: str | dict = "") -> tuple[AnalyticsQueryClient, MagicMock]:
    http = MagicMock(spec=HTTPClient)
    text = json.dumps(body) if isinstance(body, dict) else body
    http.post_text = AsyncMock(return_value=(status, text))
    http.close = AsyncMock()
    return AnalyticsQueryClient(http=http), http


def _success(data: dict) -> dict:
    return {"status": "success", "data": data}


class TestSendQuery:
    """Test AnalyticsQueryClient.send_query."""

    @pytest.mark.asyncio
    async def test_posts_query_and_returns_data(self):
        """Test the query is posted and the data object returned."""
        client, http = _client(body=_success({"analyticsDataCount": 3}))

        data = await client.send_query("{ analyticsDataCount }")

        assert data == {"analyticsDataCount": 3}
        args, kwargs = http.post_text.await_args
        assert args == ("/analytics/analytics-query",)
        assert kwargs["json"] == {"query": "{ analyticsDataCount }"}

    @pytest.mark.asyncio
    async def test_error_status_raises_query_error(self):
        """Test non-success envelopes raise with the error description."""
        client, _ = _client(status=400, body={"status": "error", "error_description": "bad query"})

        with pytest.raises(QueryError, match="bad query") as exc_info:
            await client.send_query("{ nope }")

        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_error_without_description(self):
        """Test a missing description falls back to a generic message."""
        client, _ = _client(body={"status": "error"})

        with pytest.raises(QueryError, match="Analytics API error"):
            await client.send_query("{ nope }")

    @pytest.mark.asyncio
    async def test_truncated_body_raises_truncation(self):
        """Test a cut-off body raises TruncatedResponseError."""
        body = json.dumps(_success({"analyticsData": [{"id": "1"}, {"id": "2"}]}))[:-15]
        client, _ = _client(body=body)

        with pytest.raises(TruncatedResponseError, match="truncated"):
            await client.send_query("{ analyticsData { id } }")

    @pytest.mark.asyncio
    async def test_unparseable_body_raises_query_error(self):
        """Test a non-JSON body that is not truncated raises QueryError."""
        client, _ = _client(status=502, body="<html>Bad Gateway</html>")

        with pytest.raises(QueryError) as exc_info:
            await client.send_query("{ analyticsDataCount }")

        assert exc_info.value.status_code == 502


class TestFetchMethods:
    """Test the typed fetch helpers."""

    @pytest.mark.asyncio
    async def test_fetch_page(self):
        """Test paginated fetch builds skip/limit arguments."""
        client, http = _client(body=_success({"analyticsDataPaginated": [{"id": "1"}]}))

        records = await client.fetch_page(20, 10)

        assert records == [{"id": "1"}]
        query = http.post_text.await_args.kwargs["json"]["query"]
        assert "analyticsDataPaginated(skip: 20, limit: 10)" in query

    @pytest.mark.asyncio
    async def test_fetch_by_imei_quotes_key(self):
        """Test the IMEI is embedded as a quoted string."""
        client, http = _client(body=_success({"analyticsDataByImei": None}))

        records = await client.fetch_by_imei("864000000000001")

        assert records == []
        query = http.post_text.await_args.kwargs["json"]["query"]
        assert 'analyticsDataByImei(imei: "864000000000001")' in query

    @pytest.mark.asyncio
    async def test_fetch_by_imei_with_view_requests_view_fields(self):
        """Test a view replaces the default field list with the view's selection."""
        client, http = _client(body=_success({"analyticsDataByImei": [{"id": "1"}]}))

        records = await client.fetch_by_imei("864000000000001", ViewType.MAP)

        assert records == [{"id": "1"}]
        query = http.post_text.await_args.kwargs["json"]["query"]
        assert "{ id imei latitude longitude timestampIso timestamp speed battery alert }" in query
        assert "rawText" not in query
        assert "topic" not in query

    @pytest.mark.asyncio
    async def test_fetch_by_imei_without_view_keeps_location_fields(self):
        """Test omitting the view requests the full location field list."""
        client, http = _client(body=_success({"analyticsDataByImei": []}))

        await client.fetch_by_imei("864000000000001")

        query = http.post_text.await_args.kwargs["json"]["query"]
        assert LOCATION_FIELDS in query

    def test_fields_for_logs_estimate(self, caplog):
        """Test selecting fields logs the size estimate for the view."""
        client, _ = _client()

        with caplog.at_level(logging.INFO, logger="tracklink.data.clients.analytics"):
            fields = client.fields_for("dashboard")

        record = caplog.records[-1]
        assert record.getMessage() == "query_fields_selected"
        assert record.view == "dashboard"
        assert record.field_count == len(fields)
        assert record.estimated_size > 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("value", "expected"), [(42, 42), ("17", 17), (None, 0), ({"n": 1}, 0)])
    async def test_fetch_count_coercion(self, value, expected):
        """Test counts are coerced to integers with 0 for unusable values."""
        client, _ = _client(body=_success({"analyticsDataCount": value}))

        assert await client.fetch_count() == expected

    @pytest.mark.asyncio
    async def test_fetch_all(self):
        """Test the unpaginated query."""
        client, _ = _client(body=_success({"analyticsData": [{"id": "1"}, {"id": "2"}]}))

        assert len(await client.fetch_all()) == 2

    @pytest.mark.asyncio
    async def test_context_manager_closes_transport(self):
        """Test leaving the context closes the HTTP client."""
        client, http = _client(body=_success({}))

        async with client:
            pass

        http.close.assert_awaited_once()


class TestHTTPClient:
    """Test HTTPClient session management."""

    def test_init_with_base_url(self):
        """Test trailing slashes are dropped from base_url."""
        client = HTTPClient(base_url="http://127.0.0.1:8020/", timeout=10.0)
        assert client.base_url == "http://127.0.0.1:8020"
        assert client.timeout.total == 10.0

    @pytest.mark.asyncio
    async def test_session_property_creates_session(self):
        """Test session property creates session when needed."""
        client = HTTPClient()
        session = client.session
        assert isinstance(session, aiohttp.ClientSession)
        assert client.session is session
        await client.close()
        assert session.closed

    @pytest.mark.asyncio
    async def test_close_idempotent(self):
        """Test close() can be called multiple times."""
        client = HTTPClient()
        await client.close()
        await client.close()

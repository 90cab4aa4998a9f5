"""Unit tests for the safe analytics facade."""

from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from tracklink.data.api import SafeAnalyticsAPI
from tracklink.data.core import (
    CheckStatus,
    FetchConfig,
    HealthStatus,
    ProgressStatus,
    QueryError,
    TruncatedResponseError,
    ViewType,
)

NOW = datetime(2024, 6, 1, tzinfo=UTC)


def _records(start: int, count: int) -> list[dict]:
    return [
        {
            "id": f"rec-{start + i}",
            "imei": "864000000000001",
            "latitude": 12.97,
            "longitude": 77.59,
            "speed": 20,
        }
        for i in range(count)
    ]


def _history(count: int, step: timedelta = timedelta(hours=2)) -> list[dict]:
    return [
        {"id": f"rec-{i}", "timestampIso": (NOW - i * step).isoformat()}
        for i in range(count)
    ]


def _api(**kwargs) -> SafeAnalyticsAPI:
    kwargs.setdefault("page_fetch", AsyncMock(return_value=[]))
    kwargs.setdefault("key_fetch", AsyncMock(return_value=[]))
    kwargs.setdefault("count_fetch", AsyncMock(return_value=0))
    kwargs.setdefault("config", FetchConfig(page_delay=0, retry_delay=0, chunk_delay=0))
    kwargs.setdefault("clock", lambda: NOW)
    return SafeAnalyticsAPI(**kwargs)


def _paged(total: int):
    async def page_fetch(skip: int, limit: int) -> list[dict]:
        return _records(skip, max(0, min(limit, total - skip)))

    return page_fetch


class TestGetAllSafe:
    """Test SafeAnalyticsAPI.get_all_safe."""

    @pytest.mark.asyncio
    async def test_fetches_all_pages(self):
        """Test pages are fetched until a short page with progress from the count."""
        page_fetch = AsyncMock(side_effect=_paged(250))
        reports = []
        api = _api(page_fetch=page_fetch, count_fetch=AsyncMock(return_value=250))

        results = await api.get_all_safe(page_size=100, on_progress=reports.append)

        assert [r["id"] for r in results] == [f"rec-{i}" for i in range(250)]
        assert page_fetch.await_count == 3
        assert [r.progress for r in reports[:3]] == [40, 80, 100]
        assert reports[0].estimated_total == 250
        assert reports[-1].status == ProgressStatus.COMPLETE
        assert reports[-1].total_items == 250

    @pytest.mark.asyncio
    async def test_count_failure_only_degrades_progress(self):
        """Test a failing count query does not fail the fetch."""
        reports = []
        api = _api(
            page_fetch=AsyncMock(side_effect=_paged(150)),
            count_fetch=AsyncMock(side_effect=QueryError("count unavailable")),
        )

        results = await api.get_all_safe(page_size=100, max_pages=10, on_progress=reports.append)

        assert len(results) == 150
        assert reports[0].progress == 10
        assert reports[-1].status == ProgressStatus.COMPLETE

    @pytest.mark.asyncio
    async def test_truncation_falls_back_to_smaller_pages(self):
        """Test truncation restarts once with the fallback page size."""
        paged = _paged(700)

        async def page_fetch(skip: int, limit: int):
            if limit > 500:
                raise TruncatedResponseError("Response was truncated")
            return await paged(skip, limit)

        fetch = AsyncMock(side_effect=page_fetch)
        api = _api(page_fetch=fetch)

        results = await api.get_all_safe(page_size=1000)

        assert len(results) == 700
        assert [call.args for call in fetch.await_args_list] == [(0, 1000), (0, 500), (500, 500)]

    @pytest.mark.asyncio
    async def test_truncated_text_falls_back(self):
        """Test a page validated as truncated triggers the fallback."""

        async def page_fetch(skip: int, limit: int):
            if limit > 500:
                return json.dumps(_records(0, 20))[:-30]
            return _records(skip, 3)

        results = await _api(page_fetch=AsyncMock(side_effect=page_fetch)).get_all_safe()

        assert len(results) == 3

    @pytest.mark.asyncio
    async def test_truncation_without_fallback_room_propagates(self):
        """Test truncation at or below the fallback size is raised."""
        reports = []
        api = _api(page_fetch=AsyncMock(side_effect=TruncatedResponseError()))

        with pytest.raises(TruncatedResponseError):
            await api.get_all_safe(page_size=500, on_progress=reports.append)

        assert reports[-1].status == ProgressStatus.ERROR

    @pytest.mark.asyncio
    async def test_persistent_truncation_propagates_after_one_fallback(self):
        """Test only one fallback is attempted."""
        fetch = AsyncMock(side_effect=TruncatedResponseError())

        with pytest.raises(TruncatedResponseError):
            await _api(page_fetch=fetch).get_all_safe(page_size=1000)

        assert fetch.await_count == 2

    @pytest.mark.asyncio
    async def test_other_errors_propagate_unchanged(self):
        """Test non-truncation errors are not retried with a smaller page."""
        error = QueryError("Analytics API error")
        fetch = AsyncMock(side_effect=error)

        with pytest.raises(QueryError) as exc_info:
            await _api(page_fetch=fetch).get_all_safe()

        assert exc_info.value is error
        assert fetch.await_count == 1


class TestGetByKeySafe:
    """Test SafeAnalyticsAPI.get_by_key_safe."""

    @pytest.mark.asyncio
    async def test_complete_response_returned(self):
        """Test a complete response is returned after one fetch."""
        data = _records(0, 10)
        key_fetch = AsyncMock(return_value=data)
        reports = []

        result = await _api(key_fetch=key_fetch).get_by_key_safe("imei-1", on_progress=reports.append)

        assert result == data
        key_fetch.assert_awaited_once_with("imei-1")
        assert reports[-1].status == ProgressStatus.COMPLETE

    @pytest.mark.asyncio
    async def test_always_truncated_returns_without_raising(self):
        """Test a key fetch that always reports truncation yields a list, not an error."""
        key_fetch = AsyncMock(side_effect=RuntimeError("Response was truncated"))
        reports = []

        result = await _api(key_fetch=key_fetch).get_by_key_safe("imei-1", on_progress=reports.append)

        assert result == []
        assert key_fetch.await_count == 2
        assert reports[-1].status == ProgressStatus.COMPLETE

    @pytest.mark.asyncio
    async def test_windowed_fallback_dedupes_and_sorts(self):
        """Test the windowed fallback keeps the window, drops duplicates and sorts newest first."""
        history = _history(1200)
        shuffled = history[::-1] + history[:50]
        key_fetch = AsyncMock(side_effect=[TruncatedResponseError()] + [shuffled] * 13)

        result = await _api(key_fetch=key_fetch).get_by_key_safe("imei-1")

        # 2-hour spacing puts records 0..1080 inside the 90-day window
        assert [r["id"] for r in result] == [f"rec-{i}" for i in range(1081)]
        assert key_fetch.await_count == 14

    @pytest.mark.asyncio
    async def test_windowed_fallback_small_dataset_short_circuits(self):
        """Test a small first window fetch is returned as fetched."""
        small = _history(5)[::-1]
        key_fetch = AsyncMock(side_effect=[TruncatedResponseError(), small])

        result = await _api(key_fetch=key_fetch).get_by_key_safe("imei-1")

        assert result == small
        assert key_fetch.await_count == 2

    @pytest.mark.asyncio
    async def test_validated_truncation_falls_back(self):
        """Test a response validated as truncated triggers the fallback."""
        small = _records(0, 3)
        key_fetch = AsyncMock(side_effect=['[{"id": "rec-0", "latitude": 12.9', small])

        result = await _api(key_fetch=key_fetch).get_by_key_safe("imei-1")

        assert result == small

    @pytest.mark.asyncio
    async def test_custom_window(self):
        """Test window_days and days_per_chunk set the number of windows."""
        history = _history(1200, step=timedelta(hours=1))
        key_fetch = AsyncMock(side_effect=[TruncatedResponseError()] + [history] * 10)
        reports = []

        result = await _api(key_fetch=key_fetch).get_by_key_safe(
            "imei-1", window_days=10, days_per_chunk=5, on_progress=reports.append
        )

        assert key_fetch.await_count == 3
        # Window ends are exclusive, so the record stamped exactly "now" falls outside
        assert len(result) == 240
        assert [r.chunks_loaded for r in reports if r.status == ProgressStatus.LOADING][1:] == [1, 2]

    @pytest.mark.asyncio
    async def test_non_truncation_error_propagates(self):
        """Test other errors from the first fetch propagate unchanged."""
        error = QueryError("Analytics API error")

        with pytest.raises(QueryError) as exc_info:
            await _api(key_fetch=AsyncMock(side_effect=error)).get_by_key_safe("imei-1")

        assert exc_info.value is error


class TestGetByKeyOptimized:
    """Test SafeAnalyticsAPI.get_by_key_optimized."""

    @pytest.mark.asyncio
    async def test_first_view_succeeds(self):
        """Test a complete response with the requested view is returned directly."""
        data = _records(0, 10)
        view_fetch = AsyncMock(return_value=data)
        reports = []

        result = await _api(view_fetch=view_fetch).get_by_key_optimized(
            "imei-1", on_progress=reports.append
        )

        assert result == data
        view_fetch.assert_awaited_once_with("imei-1", ViewType.MAP)
        assert reports[-1].status == ProgressStatus.COMPLETE
        assert "map fields" in reports[-1].message

    @pytest.mark.asyncio
    async def test_truncation_narrows_view(self):
        """Test each truncation retries with the next narrower view."""
        data = _records(0, 10)
        view_fetch = AsyncMock(
            side_effect=[TruncatedResponseError(), RuntimeError("Response was truncated"), data]
        )
        key_fetch = AsyncMock()

        result = await _api(view_fetch=view_fetch, key_fetch=key_fetch).get_by_key_optimized(
            "imei-1", view=ViewType.DETAILS
        )

        assert result == data
        assert [call.args[1] for call in view_fetch.await_args_list] == [
            ViewType.DETAILS,
            ViewType.DASHBOARD,
            ViewType.MAP,
        ]
        key_fetch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_validated_truncation_narrows_view(self):
        """Test a response validated as truncated counts as truncation."""
        data = _records(0, 10)
        view_fetch = AsyncMock(side_effect=['[{"id": "rec-0", "latitude": 12.9', data])

        result = await _api(view_fetch=view_fetch).get_by_key_optimized("imei-1", view="analytics")

        assert result == data
        assert [call.args[1] for call in view_fetch.await_args_list] == [
            ViewType.ANALYTICS,
            ViewType.MAP,
        ]

    @pytest.mark.asyncio
    async def test_truncated_map_view_falls_back_to_windows(self):
        """Test truncation at the narrowest view runs the windowed fallback with that view."""
        small = _history(5)[::-1]
        view_fetch = AsyncMock(side_effect=[TruncatedResponseError(), small])
        key_fetch = AsyncMock()
        reports = []

        result = await _api(view_fetch=view_fetch, key_fetch=key_fetch).get_by_key_optimized(
            "imei-1", on_progress=reports.append
        )

        assert result == small
        assert [call.args for call in view_fetch.await_args_list] == [
            ("imei-1", ViewType.MAP),
            ("imei-1", ViewType.MAP),
        ]
        key_fetch.assert_not_awaited()
        assert reports[-1].status == ProgressStatus.COMPLETE

    @pytest.mark.asyncio
    async def test_attempt_limit_falls_back_with_last_view(self):
        """Test running out of attempts starts the windowed fallback with the current view."""
        history = _history(1200)
        view_fetch = AsyncMock(side_effect=[TruncatedResponseError()] + [history] * 13)

        result = await _api(view_fetch=view_fetch).get_by_key_optimized(
            "imei-1", view=ViewType.DETAILS, max_attempts=1
        )

        assert len(result) == 1081
        assert {call.args[1] for call in view_fetch.await_args_list} == {ViewType.DETAILS}
        assert view_fetch.await_count == 14

    @pytest.mark.asyncio
    async def test_non_truncation_error_propagates(self):
        """Test other errors are raised unchanged without narrowing."""
        error = QueryError("Analytics API error")
        view_fetch = AsyncMock(side_effect=error)
        reports = []

        with pytest.raises(QueryError) as exc_info:
            await _api(view_fetch=view_fetch).get_by_key_optimized(
                "imei-1", view=ViewType.DETAILS, on_progress=reports.append
            )

        assert exc_info.value is error
        assert view_fetch.await_count == 1
        assert reports[-1].status == ProgressStatus.ERROR

    @pytest.mark.asyncio
    async def test_requires_view_fetch(self):
        """Test a facade without view_fetch rejects the call."""
        with pytest.raises(ValueError, match="view_fetch"):
            await _api().get_by_key_optimized("imei-1")


class TestTextPayloads:
    """Test fetch functions that hand back raw JSON text."""

    @pytest.mark.asyncio
    async def test_key_fetch_text_is_decoded(self):
        """Test a complete JSON text response yields its records."""
        data = _records(0, 5)

        result = await _api(key_fetch=AsyncMock(return_value=json.dumps(data))).get_by_key_safe("imei-1")

        assert result == data

    @pytest.mark.asyncio
    async def test_recent_text_is_decoded(self):
        """Test get_recent_safe decodes a complete JSON text page."""
        data = _records(0, 5)

        result = await _api(page_fetch=AsyncMock(return_value=json.dumps(data))).get_recent_safe(5)

        assert result == data

    @pytest.mark.asyncio
    async def test_health_counts_text_records(self):
        """Test the health check counts records of a text page."""
        page = json.dumps(_records(0, 5))

        report = await _api(page_fetch=AsyncMock(return_value=page)).health_check()

        assert report.tests["pagination"].record_count == 5


class TestGetRecentSafe:
    """Test SafeAnalyticsAPI.get_recent_safe."""

    @pytest.mark.asyncio
    async def test_returns_records(self):
        """Test a valid response is returned."""
        page_fetch = AsyncMock(return_value=_records(0, 10))

        result = await _api(page_fetch=page_fetch).get_recent_safe(10)

        assert len(result) == 10
        page_fetch.assert_awaited_once_with(0, 10)

    @pytest.mark.asyncio
    async def test_halves_limit_on_truncation(self):
        """Test truncation halves the limit before retrying."""
        page_fetch = AsyncMock(side_effect=[TruncatedResponseError(), _records(0, 5)])

        result = await _api(page_fetch=page_fetch).get_recent_safe(10)

        assert len(result) == 5
        assert [call.args for call in page_fetch.await_args_list] == [(0, 10), (0, 5)]

    @pytest.mark.asyncio
    async def test_persistent_truncation_raises(self):
        """Test truncation at the minimum limit is raised."""
        page_fetch = AsyncMock(return_value='[{"id": "rec-0", "latitude": 12.97, "longitude":')

        with pytest.raises(TruncatedResponseError):
            await _api(page_fetch=page_fetch).get_recent_safe(40)

        assert [call.args[1] for call in page_fetch.await_args_list] == [40, 20, 10, 5]

    @pytest.mark.asyncio
    async def test_other_errors_not_retried(self):
        """Test non-truncation errors propagate immediately."""
        page_fetch = AsyncMock(side_effect=ConnectionError("reset"))

        with pytest.raises(ConnectionError):
            await _api(page_fetch=page_fetch).get_recent_safe(10)

        assert page_fetch.await_count == 1


class TestHealthCheck:
    """Test SafeAnalyticsAPI.health_check."""

    @pytest.mark.asyncio
    async def test_healthy(self):
        """Test passing checks give a healthy report."""
        api = _api(
            page_fetch=AsyncMock(return_value=_records(0, 5)),
            count_fetch=AsyncMock(return_value=42),
        )

        report = await api.health_check()

        assert report.status == HealthStatus.HEALTHY
        assert report.is_healthy
        assert report.tests["count"].result == 42
        assert report.tests["pagination"].status == CheckStatus.PASS
        assert report.tests["pagination"].record_count == 5
        assert report.timestamp == NOW

    @pytest.mark.asyncio
    async def test_degraded_when_page_invalid(self):
        """Test an invalid check page degrades health."""
        report = await _api(page_fetch=AsyncMock(return_value=[])).health_check()

        assert report.status == HealthStatus.DEGRADED
        assert report.tests["pagination"].status == CheckStatus.FAIL

    @pytest.mark.asyncio
    async def test_unhealthy_on_error(self):
        """Test a raising check gives an unhealthy report with the message."""
        api = _api(count_fetch=AsyncMock(side_effect=QueryError("connection refused")))

        report = await api.health_check()

        assert report.status == HealthStatus.UNHEALTHY
        assert report.error == "connection refused"


class TestFromClient:
    """Test building the facade over a query client."""

    @pytest.mark.asyncio
    async def test_routes_to_client_methods(self):
        """Test the facade uses the client's fetch methods."""
        client = MagicMock()
        client.fetch_page = AsyncMock(return_value=_records(0, 10))
        client.fetch_by_imei = AsyncMock(return_value=_records(0, 10))
        client.fetch_count = AsyncMock(return_value=10)
        api = SafeAnalyticsAPI.from_client(client, clock=lambda: NOW)

        await api.get_recent_safe(10)
        await api.get_by_key_safe("imei-1")
        await api.health_check()

        client.fetch_page.assert_any_await(0, 10)
        client.fetch_by_imei.assert_awaited_once_with("imei-1")
        client.fetch_count.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_optimized_fetch_passes_view_to_client(self):
        """Test the view-aware fetch goes to the client's IMEI query with the view."""
        client = MagicMock()
        client.fetch_by_imei = AsyncMock(return_value=_records(0, 10))
        api = SafeAnalyticsAPI.from_client(client, clock=lambda: NOW)

        await api.get_by_key_optimized("imei-1", view=ViewType.DASHBOARD)

        client.fetch_by_imei.assert_awaited_once_with("imei-1", ViewType.DASHBOARD)

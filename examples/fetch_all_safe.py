#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio

from tracklink.data.api import SafeAnalyticsAPI
from tracklink.data.clients import AnalyticsQueryClient
from tracklink.data.models import ProgressReport


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Fetch every analytics record with truncation recovery")
    p.add_argument("--base-url", default="http://127.0.0.1:8020")
    p.add_argument("--page-size", type=int, default=1000)
    p.add_argument("--max-pages", type=int, default=50)
    return p.parse_args()


def show_progress(report: ProgressReport) -> None:
    print(f"[{report.status.value:8}] {report.progress:5.1f}% {report.message}")


async def main() -> None:
    args = parse_args()
    async with AnalyticsQueryClient(args.base_url) as client:
        api = SafeAnalyticsAPI.from_client(client)

        health = await api.health_check()
        print(f"Endpoint health: {health.status.value}")
        for name, test in health.tests.items():
            print(f"  {name:12} {test.status.value:5} {test.response_time_ms:8.1f} ms")
        if health.error:
            print(f"  error: {health.error}")
            return

        records = await api.get_all_safe(
            page_size=args.page_size, max_pages=args.max_pages, on_progress=show_progress
        )
        print(f"Fetched {len(records)} records")


if __name__ == "__main__":
    asyncio.run(main())

#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio

from tracklink.data.clients import AnalyticsQueryClient
from tracklink.data.geo import cluster_markers, normalize_location_points, simplify_path
from tracklink.data.loaders import ProgressivePathLoader


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Load a device path progressively and reduce it for display")
    p.add_argument("imei")
    p.add_argument("--base-url", default="http://127.0.0.1:8020")
    p.add_argument("--max-points", type=int, default=100)
    p.add_argument("--max-markers", type=int, default=20)
    return p.parse_args()


async def main() -> None:
    args = parse_args()
    loader = ProgressivePathLoader()
    async with AnalyticsQueryClient(args.base_url) as client:
        result = await loader.load(
            client.fetch_by_imei,
            args.imei,
            on_chunk=lambda chunk, index: print(f"chunk {index}: {len(chunk)} points"),
        )

    meta = result.metadata
    print(
        f"Loaded {meta.total_points} of {meta.original_points} points "
        f"in {meta.chunks_loaded} chunks ({meta.load_time_ms:.0f} ms, sampled={meta.sampled})"
    )

    points = normalize_location_points(result.data)
    path = simplify_path(points, max_points=args.max_points)
    markers = cluster_markers(path, max_markers=args.max_markers)
    print(f"Path: {len(points)} -> {len(path)} points, {len(markers)} markers")
    for marker in markers:
        label = marker.label or ""
        print(f"  {label:5} {marker.point.lat:10.5f} {marker.point.lng:10.5f} {marker.point.time or ''}")


if __name__ == "__main__":
    asyncio.run(main())

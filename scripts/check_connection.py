#!/usr/bin/env python3
"""
Check that a metadata server is reachable and serving windows.

Exits 0 when health, window list and (optionally) one window fetch succeed.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Add the parent directory to sys.path to import our modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from adui.core.config import get_metadata_base_url
from adui.core.errors import AduiError
from adui.providers.external import ExternalMetadataProvider


async def run_checks(base_url: str, window_id: str) -> int:
    provider = ExternalMetadataProvider(base_url=base_url)
    try:
        print(f"Testing metadata server at: {provider.base_url}")

        result = await provider.test_connection()
        if not result["connected"]:
            print(f"FAILED: server not reachable ({result['error']}, {result['response_time_ms']}ms)")
            return 1
        print(f"OK: health check ({result['response_time_ms']}ms)")

        try:
            windows = await provider.get_available_windows()
            print(f"OK: {len(windows)} windows available: {[w.id for w in windows]}")

            if window_id:
                window = await provider.get_window_definition(window_id)
                print(f"OK: loaded '{window.name}' with {len(window.tabs)} tabs")
                print(json.dumps(provider.embedded_reference_info(), indent=2))
        except AduiError as e:
            print(f"FAILED: {e}")
            return 1

        return 0
    finally:
        await provider.aclose()


def main():
    parser = argparse.ArgumentParser(description='Test the connection to an ADUI metadata server')
    parser.add_argument('--url', default=None,
                        help='Server base URL (default: ADUI_METADATA_BASE_URL)')
    parser.add_argument('--window', default='EQUIP_INSPECTION',
                        help='Window id to fetch; pass an empty string to skip')
    args = parser.parse_args()

    sys.exit(asyncio.run(run_checks(args.url or get_metadata_base_url(), args.window)))


if __name__ == "__main__":
    main()

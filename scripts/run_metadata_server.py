#!/usr/bin/env python3
"""
Run the development metadata server that the external provider talks to.
"""

import argparse
import sys
from pathlib import Path

# Add the parent directory to sys.path to import our modules
sys.path.insert(0, str(Path(__file__).parent.parent))

import uvicorn

from adui.core.config import DEBUG, SERVER_PORT


def main():
    parser = argparse.ArgumentParser(description='Serve ADUI window templates over HTTP')
    parser.add_argument('--host', default='0.0.0.0',
                        help='Interface to bind (default: all interfaces, so devices on the LAN can connect)')
    parser.add_argument('--port', type=int, default=SERVER_PORT,
                        help=f'Port to listen on (default: {SERVER_PORT})')
    parser.add_argument('--reload', action='store_true', help='Reload on code changes')
    args = parser.parse_args()

    print(f"Starting metadata server on http://{args.host}:{args.port}")
    print(f"Health check: http://localhost:{args.port}/health")

    uvicorn.run(
        "adui.api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level="debug" if DEBUG else "info"
    )


if __name__ == "__main__":
    main()

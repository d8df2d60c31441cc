#!/usr/bin/env python
"""
Server Entry Point

Starts the reporting API.
Usage:
    Development:  python run_server.py --dev
    Production:   python run_server.py

    Or with Gunicorn:
    gunicorn sales_analytics.main:app -c gunicorn.conf.py
"""

import argparse
import os


def run_dev_server():
    """Run development server with auto-reload."""
    import uvicorn

    uvicorn.run(
        "sales_analytics.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        reload_dirs=["sales_analytics"],
        log_level="debug",
        access_log=True,
    )


def run_prod_server():
    """Run production server with Uvicorn directly."""
    import uvicorn

    uvicorn.run(
        "sales_analytics.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", 8000)),
        workers=int(os.getenv("WORKERS", 2)),
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
        access_log=True,
    )


def main():
    parser = argparse.ArgumentParser(description="Sales Warehouse Analytics API server")
    parser.add_argument("--dev", action="store_true", help="Run with auto-reload")
    args = parser.parse_args()

    if args.dev:
        run_dev_server()
    else:
        run_prod_server()


if __name__ == "__main__":
    main()

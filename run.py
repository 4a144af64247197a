"""Entry point for the Daily Care Admin API.

Applies pending migrations and serves the FastAPI app with Uvicorn.
Host and port are read from ``HOST`` and ``PORT`` (defaults
``0.0.0.0`` and ``8000``).  Other configuration comes from the
environment, see ``daily_care_api/app/core/config.py``.

Usage:
    python run.py
"""
import asyncio
import logging
import os

from uvicorn import Config, Server

from daily_care_api.app.main import app


async def main() -> None:
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    config = Config(app=app, host=host, port=port, reload=False, log_level="info")
    server = Server(config)
    await server.serve()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, SystemExit):
        logging.getLogger(__name__).info("Server stopped")

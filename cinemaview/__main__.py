"""Run the CinemaView API with ``python -m cinemaview``."""

from __future__ import annotations

import uvicorn

from app.config import settings


def main() -> None:
    """Serve ``app.main:app``; auto-reload only while developing."""

    development = settings.environment == "development"
    uvicorn.run(
        "app.main:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=development,
        reload_dirs=["app"] if development else None,
        log_level="debug" if development else "info",
    )


if __name__ == "__main__":  # pragma: no cover - runtime entrypoint
    main()

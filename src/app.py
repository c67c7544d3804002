from __future__ import annotations

from fastapi import FastAPI

from config import configure_logging, load_env_file
from web.routes import results


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    load_env_file()
    configure_logging()

    app = FastAPI(
        title="Parallel Benchmark Results API",
        version="0.1.0",
        description="Append and query results of parallel benchmark scenario runs.",
    )

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(results.router)

    return app


app = create_app()

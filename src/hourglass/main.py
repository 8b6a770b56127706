"""FastAPI application factory."""

import logging

from fastapi import FastAPI

from hourglass.api.game import router as game_router
from hourglass.config import Settings

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the Hourglass FastAPI application."""
    settings = settings or Settings()

    logging.basicConfig(
        level=getattr(logging, settings.hourglass_log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="Hourglass",
        version="0.1.0",
        description="Table-side controller for a time-currency card auction game",
        docs_url="/docs" if settings.hourglass_env != "production" else None,
    )
    app.state.settings = settings
    app.state.engine = None
    app.state.catalog = None

    app.include_router(game_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok", "env": settings.hourglass_env}

    logger.info(
        "app_created env=%s players=%s",
        settings.hourglass_env,
        ",".join(settings.hourglass_player_ids),
    )
    return app


app = create_app()

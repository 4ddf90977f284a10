"""Influence graph cache composition root.

Configures structured logging from settings and opens the SQLite-backed
influence graph provider.  Tool handlers receive the returned provider
(typed as ``IInfluenceGraphProvider``) rather than constructing one.
"""

from __future__ import annotations

from pathlib import Path

import structlog

from src.config.loader import load_config
from src.config.settings import Settings
from src.interfaces.influence_graph_provider import IInfluenceGraphProvider
from src.providers.influence_graph.sqlite_influence_graph_provider import (
    SQLiteInfluenceGraphProvider,
)
from src.utils.logging import configure_logging, get_logger


async def build_influence_graph(
    custom_settings: Settings | None = None,
    config_path: str = "config/config.yaml",
) -> IInfluenceGraphProvider:
    """Configure logging and return a ready influence graph provider.

    Settings values (``INFLUENCE_DB_PATH``, ``LOG_LEVEL``, ``APP_ENV``) are
    merged over ``config/config.yaml`` by :func:`load_config`.
    """
    app_settings = custom_settings or Settings()
    config = load_config(config_path, settings=app_settings)

    configure_logging(log_level=app_settings.log_level, app_env=app_settings.app_env)
    logger: structlog.BoundLogger = get_logger(__name__)

    db_path = Path(config["influence"]["db_path"])
    provider = await SQLiteInfluenceGraphProvider.open(db_path)
    logger.info("influence_graph_ready", provider=provider.get_provider_name(), path=str(db_path))
    return provider

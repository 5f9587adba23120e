from __future__ import annotations

import logging

from globetrotter.config import Settings
from globetrotter.destinations.singleton import init_store

logger = logging.getLogger(__name__)


def init_store_for_app(settings: Settings) -> None:
    store = init_store(path=settings.data_path, strict=settings.strict_data)
    logger.info("Loaded %d destinations", len(store))

"""
CloudPrism state stores - where the IaC engine keeps stack state.
"""

import logging

from cloudprism.engine import PulumiEngine
from cloudprism.errors import ConfigurationError
from cloudprism.naming import store_name
from cloudprism.settings import CloudPrismSettings, get_settings

from .base import StateStore
from .local import LocalStateStore
from .s3 import S3StateStore

logger = logging.getLogger(__name__)


def get_state_store(
    settings: CloudPrismSettings | None = None,
    engine: PulumiEngine | None = None,
) -> StateStore:
    """
    Build the state store selected by the settings.

    Args:
        settings: Settings to use (defaults to the global settings)
        engine: Engine shared with the store

    Returns:
        LocalStateStore or S3StateStore

    Raises:
        ConfigurationError: If the configured backend is unknown
    """
    settings = settings or get_settings()

    if settings.state_backend == "local":
        return LocalStateStore(
            path=settings.state_path, name=settings.state_name, engine=engine
        )

    if settings.state_backend == "s3":
        base_name = store_name(settings.application, settings.environment)
        logger.debug(f"Using S3 state store for {base_name}")
        return S3StateStore(
            base_name, tags=settings.bucket_tags, engine=engine
        )

    raise ConfigurationError(f"Unknown state backend: {settings.state_backend}")


__all__ = [
    "LocalStateStore",
    "S3StateStore",
    "StateStore",
    "get_state_store",
]

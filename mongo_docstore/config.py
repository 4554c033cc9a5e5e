"""Defaults used when a ``MongoStore`` is not told where or how long to query.

Values come from ``MONGO_URI``, ``MONGO_DB_NAME`` and ``MONGO_QUERY_TIMEOUT``.
``connect()`` without a URL reads ``config.settings.mongo_url`` at call time, so
tests and scripts can swap ``config.settings`` for another ``StoreSettings``.
``MongoStore.from_settings`` takes the database name and timeout from it too.
A URL or timeout passed directly to the store is used as given.
"""

import os

from loguru import logger
from pydantic import BaseModel, Field

# Local mongodb server address.
DEFAULT_MONGO_URL = "mongodb://localhost:27017"
DEFAULT_DB_NAME = "mondb"
# Seconds each query may take before the driver aborts it.
DEFAULT_QUERY_TIMEOUT = 5


class StoreSettings(BaseModel):
    """Connection defaults for ``MongoStore``."""

    mongo_url: str = Field(
        default_factory=lambda: os.getenv("MONGO_URI", DEFAULT_MONGO_URL)
    )
    db_name: str = Field(
        default_factory=lambda: os.getenv("MONGO_DB_NAME", DEFAULT_DB_NAME)
    )
    query_timeout: float = Field(
        default_factory=lambda: float(
            os.getenv("MONGO_QUERY_TIMEOUT", str(DEFAULT_QUERY_TIMEOUT))
        ),
        gt=0,
        validate_default=True,
    )


def _default_settings() -> StoreSettings:
    return StoreSettings()


settings: StoreSettings = _default_settings()
logger.info(
    "StoreSettings initialized with mongo_url={url} db_name={db} query_timeout={timeout}",
    url=settings.mongo_url,
    db=settings.db_name,
    timeout=settings.query_timeout,
)

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Sequence

from cassandra.cluster import Cluster, Session
from cassandra.query import dict_factory

from settings import get_settings

logger = logging.getLogger(__name__)


def connect(contact_points: Sequence[str], port: int = 9042) -> Session:
    """Open a session whose rows come back as column-name mappings."""
    cluster = Cluster(contact_points=list(contact_points), port=port)
    logger.info(
        "Connecting to cluster",
        extra={"contact_points": ",".join(contact_points)},
    )
    session = cluster.connect()
    session.row_factory = dict_factory
    return session


@lru_cache
def build_default_session() -> Session:
    settings = get_settings()
    return connect(settings.contact_points, settings.port)


def shutdown_default_session() -> None:
    """Close the cached session's cluster, if one was ever opened."""
    if build_default_session.cache_info().currsize:
        build_default_session().cluster.shutdown()
    build_default_session.cache_clear()

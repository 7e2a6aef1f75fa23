"""Application root: wires the list cache services into one registry."""

import logging

from listkeeper.config import (
    CACHE_DB_PATH,
    LIST_COUNTS_CACHE_TTL,
    MAILCHIMP_API_KEY,
    MAILCHIMP_BASE_URL,
    REMOTE_TIMEOUT,
)
from listkeeper.container import Container, Factory, Value
from listkeeper.filters import Filters

logger = logging.getLogger(__name__)


def build_container(
    *,
    api_key: str = MAILCHIMP_API_KEY,
    cache_db_path: str = CACHE_DB_PATH,
    counts_cache_ttl: int = LIST_COUNTS_CACHE_TTL,
) -> Container:
    """Register the default services.

    Services are built lazily on first resolve:

    - ``filters``: shared ``Filters`` instance
    - ``cache``: ``SQLiteCacheStore`` at ``cache_db_path``
    - ``api``: ``MailchimpClient`` for ``api_key``
    - ``lists``: ``ListRepository``
    - ``counts``: ``SubscriberCounter``
    """
    from listkeeper.cache.store import SQLiteCacheStore
    from listkeeper.counts import SubscriberCounter
    from listkeeper.integrations.mailchimp import MailchimpClient
    from listkeeper.lists import ListRepository

    container = Container()
    container.register("filters", Value(Filters()))
    container.register("cache", Factory(lambda: SQLiteCacheStore(cache_db_path)))
    container.register(
        "api",
        Factory(lambda: MailchimpClient(api_key, base_url=MAILCHIMP_BASE_URL or None, timeout=REMOTE_TIMEOUT)),
    )
    container.register(
        "lists",
        Factory(lambda: ListRepository(container.resolve("cache"), container.resolve("api"))),
    )
    container.register(
        "counts",
        Factory(
            lambda: SubscriberCounter(
                container.resolve("cache"),
                container.resolve("api"),
                filters=container.resolve("filters"),
                cache_ttl=counts_cache_ttl,
            )
        ),
    )
    logger.debug("Registered services: filters, cache, api, lists, counts")
    return container

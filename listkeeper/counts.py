"""Cached subscriber counts across lists.

Counts are cached separately from the full list data: they are cheaper to
build and go stale faster, so they get their own, shorter lifetime.
"""

import logging
from typing import Any

from pydantic import TypeAdapter, ValidationError

from listkeeper.cache.keys import (
    LIST_COUNTS_CACHE_KEY,
    LIST_COUNTS_CACHE_TTL,
    LIST_COUNTS_FALLBACK_CACHE_KEY,
    LIST_COUNTS_FALLBACK_CACHE_TTL,
)
from listkeeper.cache.store import CacheStore
from listkeeper.filters import LIST_COUNTS_CACHE_TTL_FILTER, SUBSCRIBER_COUNT_FILTER, Filters
from listkeeper.integrations.mailchimp import ListsClient
from listkeeper.lists import fetch_remote_lists, read_cache, write_cache

logger = logging.getLogger(__name__)

_COUNTS_ADAPTER = TypeAdapter(dict[str, int])


class SubscriberCounter:
    """Sums subscriber counts for a set of lists.

    Usage::

        counter = SubscriberCounter(cache_store, mailchimp_client)
        total = counter.get_subscriber_count(["a1b2c3", "d4e5f6"])
    """

    def __init__(
        self,
        store: CacheStore,
        api: ListsClient,
        *,
        filters: Filters | None = None,
        cache_ttl: int = LIST_COUNTS_CACHE_TTL,
    ) -> None:
        self._store = store
        self._api = api
        self._filters = filters or Filters()
        self._cache_ttl = cache_ttl

    def get_subscriber_count(self, list_ids: Any) -> int:
        """Return the combined subscriber count of ``list_ids``.

        Unknown ids count as zero. Returns 0 without touching the cache when
        ``list_ids`` is empty or not a list, tuple or set.
        """
        if not isinstance(list_ids, (list, tuple, set, frozenset)) or not list_ids:
            return 0

        counts = self._get_counts()
        if counts is None:
            return 0

        total = sum(counts.get(str(list_id), 0) for list_id in list_ids)
        return self._filters.apply(SUBSCRIBER_COUNT_FILTER, total)

    def _read_counts(self, key: str) -> dict[str, int] | None:
        cached = read_cache(self._store, key)
        if cached is None:
            return None
        try:
            return _COUNTS_ADAPTER.validate_python(cached)
        except ValidationError as exc:
            logger.warning("Ignoring malformed cache entry %s: %s", key, exc)
            return None

    def _get_counts(self) -> dict[str, int] | None:
        cached = self._read_counts(LIST_COUNTS_CACHE_KEY)
        if cached is not None:
            logger.debug("Cache hit for %s", LIST_COUNTS_CACHE_KEY)
            return cached

        raw_lists = fetch_remote_lists(self._api, allow_empty=True)
        if raw_lists is None:
            fallback = self._read_counts(LIST_COUNTS_FALLBACK_CACHE_KEY)
            if fallback is not None:
                logger.warning("Mailchimp unavailable, using fallback subscriber counts")
                return fallback
            logger.warning("Mailchimp unavailable and no fallback subscriber counts cached")
            return None

        counts = {raw.id: raw.stats.member_count for raw in raw_lists}
        ttl = self._filters.apply(LIST_COUNTS_CACHE_TTL_FILTER, self._cache_ttl)
        write_cache(self._store, LIST_COUNTS_CACHE_KEY, counts, ttl)
        write_cache(self._store, LIST_COUNTS_FALLBACK_CACHE_KEY, counts, LIST_COUNTS_FALLBACK_CACHE_TTL)
        logger.info("Cached subscriber counts for %d list(s)", len(counts))
        return counts

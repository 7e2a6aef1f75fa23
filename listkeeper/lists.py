"""Tiered cache accessor for Mailchimp lists.

Lists are read from a short-lived primary cache entry. On a miss they are
fetched from the API, normalized and written to both the primary entry and
a long-lived fallback entry. When the API is unavailable the fallback entry
is served instead, and nothing is written.
"""

import logging
from collections.abc import Callable, Mapping
from typing import Any

from pydantic import TypeAdapter, ValidationError

from listkeeper.cache.keys import (
    ALL_CACHE_KEYS,
    LISTS_CACHE_KEY,
    LISTS_CACHE_TTL,
    LISTS_FALLBACK_CACHE_KEY,
    LISTS_FALLBACK_CACHE_TTL,
)
from listkeeper.cache.store import CacheStore, CacheUnavailable
from listkeeper.fields import FIELD_TRANSFORMS, FieldTransform, normalize
from listkeeper.integrations.mailchimp import ListsClient, RemoteUnavailable
from listkeeper.schemas.lists import Group, Grouping, ListSummary
from listkeeper.schemas.mailchimp import RawGrouping, RawList, RawListWithMergeVars

logger = logging.getLogger(__name__)

DEFAULT_FIELD_LABELS: dict[str, str] = {
    "EMAIL": "Email address",
    "OPTIN_IP": "IP Address",
}

_LISTS_ADAPTER = TypeAdapter(dict[str, ListSummary])


def call_remote(fn: Callable[..., Any], *args: Any) -> Any:
    """Call a remote client method, turning ``RemoteUnavailable`` into None."""
    try:
        return fn(*args)
    except RemoteUnavailable as exc:
        logger.warning("Remote call %s failed: %s", getattr(fn, "__name__", fn), exc)
        return None


def fetch_remote_lists(api: ListsClient, *, allow_empty: bool = False) -> list[RawList] | None:
    """Fetch all lists from the remote client.

    Returns None when the call fails, yields something other than a list,
    or returns lists that do not validate. An empty list also counts as a
    failure unless ``allow_empty`` is set.
    """
    data = call_remote(api.get_lists)
    if not isinstance(data, list) or not (data or allow_empty):
        return None
    try:
        return [RawList.model_validate(item) for item in data]
    except ValidationError as exc:
        logger.warning("Discarding malformed list data: %s", exc)
        return None


def read_cache(store: CacheStore, key: str) -> Any | None:
    """Read a cache entry. A failing backend reads as a miss."""
    try:
        return store.get(key)
    except CacheUnavailable as exc:
        logger.warning("Cache read failed for %s, treating as miss: %s", key, exc)
        return None


def write_cache(store: CacheStore, key: str, value: Any, ttl_seconds: int) -> None:
    try:
        store.set(key, value, ttl_seconds)
    except CacheUnavailable as exc:
        logger.warning("Cache write failed for %s: %s", key, exc)


def empty_caches(store: CacheStore) -> None:
    """Delete every list and list-count cache entry."""
    for key in ALL_CACHE_KEYS:
        try:
            store.delete(key)
        except CacheUnavailable as exc:
            logger.warning("Cache delete failed for %s: %s", key, exc)
    logger.info("List caches emptied")


def strip_group(group: Any) -> Group:
    return Group(name=group.name)


def strip_grouping(grouping: RawGrouping) -> Grouping:
    """Keep only the grouping properties the cache stores."""
    return Grouping(
        id=grouping.id,
        name=grouping.name,
        groups=[strip_group(g) for g in grouping.groups],
        form_field=grouping.form_field,
    )


class ListRepository:
    """Read access to Mailchimp lists through the two-tier cache.

    Usage::

        repo = ListRepository(cache_store, mailchimp_client)
        for list_id, summary in repo.get_lists().items():
            print(list_id, summary.name, summary.subscriber_count)
    """

    def __init__(
        self,
        store: CacheStore,
        api: ListsClient,
        *,
        field_labels: Mapping[str, str] | None = None,
        transforms: Mapping[str, FieldTransform] | None = None,
    ) -> None:
        self._store = store
        self._api = api
        self._field_labels = dict(DEFAULT_FIELD_LABELS if field_labels is None else field_labels)
        self._transforms = FIELD_TRANSFORMS if transforms is None else transforms

    # ------------------------------------------------------------------
    # Cache
    # ------------------------------------------------------------------

    def empty_cache(self) -> None:
        """Delete every list and list-count cache entry."""
        empty_caches(self._store)

    def _read_lists(self, key: str) -> dict[str, ListSummary] | None:
        cached = read_cache(self._store, key)
        if not isinstance(cached, dict):
            return None
        try:
            return _LISTS_ADAPTER.validate_python(cached)
        except ValidationError as exc:
            logger.warning("Ignoring malformed cache entry %s: %s", key, exc)
            return None

    def _write_lists(self, lists: dict[str, ListSummary]) -> None:
        payload = {list_id: summary.model_dump(exclude_none=True) for list_id, summary in lists.items()}
        write_cache(self._store, LISTS_CACHE_KEY, payload, LISTS_CACHE_TTL)
        write_cache(self._store, LISTS_FALLBACK_CACHE_KEY, payload, LISTS_FALLBACK_CACHE_TTL)

    # ------------------------------------------------------------------
    # Lists
    # ------------------------------------------------------------------

    def get_lists(self, force_fallback: bool = False) -> dict[str, ListSummary]:
        """Return all lists keyed by id.

        Tries the primary cache entry (or the fallback entry when
        ``force_fallback`` is set), then the API, then the fallback entry.
        Returns an empty dict if all of them come up empty.
        """
        key = LISTS_FALLBACK_CACHE_KEY if force_fallback else LISTS_CACHE_KEY
        cached = self._read_lists(key)
        if cached is not None:
            logger.debug("Cache hit for %s (%d list(s))", key, len(cached))
            return cached

        logger.debug("Cache miss for %s, fetching lists from Mailchimp", key)
        raw_lists = fetch_remote_lists(self._api)
        if raw_lists is None:
            fallback = self._read_lists(LISTS_FALLBACK_CACHE_KEY)
            if fallback is not None:
                logger.warning("Mailchimp unavailable, serving %d list(s) from fallback cache", len(fallback))
                return fallback
            logger.warning("Mailchimp unavailable and fallback cache is empty")
            return {}

        lists = self._build_lists(raw_lists)
        self._write_lists(lists)
        logger.info("Cached %d list(s)", len(lists))
        return lists

    def _build_lists(self, raw_lists: list[RawList]) -> dict[str, ListSummary]:
        lists: dict[str, ListSummary] = {}
        for raw in raw_lists:
            summary = ListSummary(
                id=raw.id,
                name=raw.name,
                subscriber_count=raw.stats.member_count,
            )
            if raw.stats.grouping_count > 0:
                summary.interest_groupings = self._fetch_groupings(raw.id)
            lists[raw.id] = summary

        # Merge vars for every list in a single call.
        merge_vars_data = call_remote(self._api.get_lists_with_merge_vars, list(lists))
        for item in merge_vars_data or []:
            try:
                entry = RawListWithMergeVars.model_validate(item)
                summary = lists.get(entry.id)
                if summary is None:
                    logger.debug("Merge vars returned for unknown list %s", entry.id)
                    continue
                summary.merge_vars = normalize(entry.merge_vars, self._transforms)
            except ValidationError as exc:
                logger.warning("Skipping malformed merge vars entry: %s", exc)

        return lists

    def _fetch_groupings(self, list_id: str) -> list[Grouping]:
        groupings = call_remote(self._api.get_list_groupings, list_id)
        if not groupings:
            return []
        try:
            return [strip_grouping(RawGrouping.model_validate(g)) for g in groupings]
        except ValidationError as exc:
            logger.warning("Skipping malformed groupings for list %s: %s", list_id, exc)
            return []

    def get_list(self, list_id: str, force_fallback: bool = False) -> ListSummary | None:
        return self.get_lists(force_fallback).get(list_id)

    def get_list_name(self, list_id: str) -> str:
        list_ = self.get_list(list_id)
        if list_ is None:
            return ""
        return list_.name or ""

    # ------------------------------------------------------------------
    # Interest groupings
    # ------------------------------------------------------------------

    def get_list_grouping(self, list_id: str, grouping_id: str) -> Grouping | None:
        """Return the grouping with ``grouping_id`` in a list, first match wins."""
        list_ = self.get_list(list_id)
        if list_ is None:
            return None
        for grouping in list_.interest_groupings:
            if grouping.id == grouping_id:
                return grouping
        return None

    def get_list_grouping_name(self, list_id: str, grouping_id: str) -> str:
        grouping = self.get_list_grouping(list_id, grouping_id)
        if grouping is None:
            return ""
        return grouping.name

    def get_list_grouping_group(
        self, list_id: str, grouping_id: str, group_id_or_name: str | int
    ) -> Group | None:
        """Find a group by id (compared as strings) or by exact name."""
        grouping = self.get_list_grouping(list_id, grouping_id)
        if grouping is None:
            return None
        for group in grouping.groups:
            if group.id is not None and group.id == str(group_id_or_name):
                return group
            if group.name == group_id_or_name:
                return group
        return None

    # ------------------------------------------------------------------
    # Fields
    # ------------------------------------------------------------------

    def get_list_field_name_by_tag(self, list_id: str, tag: str) -> str:
        """Return the display name of the field with ``tag``.

        Built-in tags resolve from the label map without reading the cache.
        """
        if tag in self._field_labels:
            return self._field_labels[tag]

        list_ = self.get_list(list_id)
        if list_ is None:
            return ""
        for field in list_.merge_vars:
            if field.tag == tag:
                return field.name
        return ""

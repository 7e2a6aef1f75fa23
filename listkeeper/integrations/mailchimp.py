"""Client for the Mailchimp 2.0 JSON API (list metadata endpoints only)."""

import logging
import time
from collections.abc import Iterable
from typing import Any, Protocol

import httpx
from httpx import RemoteProtocolError
from pydantic import ValidationError

from listkeeper.schemas.mailchimp import RawGrouping, RawList, RawListWithMergeVars

logger = logging.getLogger(__name__)

MAX_RETRIES = 2
RETRY_DELAY = 1.0
LISTS_PAGE_SIZE = 100


class RemoteUnavailable(Exception):
    """Raised when the Mailchimp API cannot be reached or returns an error."""


class ListsClient(Protocol):
    """What the list cache needs from a remote client."""

    def get_lists(self) -> list[RawList] | None: ...

    def get_list_groupings(self, list_id: str) -> list[RawGrouping] | None: ...

    def get_lists_with_merge_vars(self, list_ids: list[str]) -> list[RawListWithMergeVars] | None: ...


def _retry_on_disconnect(fn, *args, **kwargs):
    """Retry a call on ``RemoteProtocolError`` (server disconnect).

    Retries up to ``MAX_RETRIES`` times with a fixed delay between attempts.
    """
    for attempt in range(MAX_RETRIES + 1):
        try:
            return fn(*args, **kwargs)
        except RemoteProtocolError:
            if attempt == MAX_RETRIES:
                raise
            logger.warning(
                "Connection dropped (attempt %d/%d), retrying...",
                attempt + 1,
                MAX_RETRIES,
            )
            time.sleep(RETRY_DELAY)


def datacenter_from_api_key(api_key: str) -> str:
    """Return the data center suffix of an API key (``...-us6`` -> ``us6``)."""
    if "-" not in api_key:
        raise ValueError("Mailchimp API key has no data center suffix")
    return api_key.rsplit("-", 1)[1]


class MailchimpClient:
    """Synchronous HTTP client for the Mailchimp 2.0 list endpoints.

    Every method raises ``RemoteUnavailable`` on transport errors, HTTP
    error statuses, API error payloads and malformed responses.

    Usage::

        with MailchimpClient(api_key) as client:
            lists = client.get_lists()
    """

    def __init__(self, api_key: str, *, base_url: str | None = None, timeout: float = 30.0) -> None:
        self._api_key = api_key
        if not base_url:
            base_url = f"https://{datacenter_from_api_key(api_key)}.api.mailchimp.com/2.0/"
        self._base_url = base_url.rstrip("/") + "/"
        self._client = httpx.Client(
            base_url=self._base_url,
            headers={"Accept": "application/json"},
            timeout=timeout,
        )

    def __enter__(self) -> "MailchimpClient":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    # ------------------------------------------------------------------
    # Generic helpers
    # ------------------------------------------------------------------

    def _call(self, method: str, payload: dict | None = None) -> Any:
        """POST an API method. Retries on connection drop."""
        try:
            return _retry_on_disconnect(self._call_raw, method, payload or {})
        except httpx.HTTPError as exc:
            raise RemoteUnavailable(f"Mailchimp {method} failed: {exc}") from exc

    def _call_raw(self, method: str, payload: dict) -> Any:
        response = self._client.post(f"{method}.json", json={"apikey": self._api_key, **payload})
        try:
            data = response.json()
        except ValueError:
            data = None
        # Error payloads come back as HTTP 500 with a JSON body.
        if isinstance(data, dict) and data.get("status") == "error":
            raise RemoteUnavailable(
                f"Mailchimp {method} error {data.get('code')}: {data.get('error', '')}"
            )
        response.raise_for_status()
        return data

    # ------------------------------------------------------------------
    # Lists
    # ------------------------------------------------------------------

    def get_lists(self) -> list[RawList]:
        """Fetch every list on the account (all pages)."""
        lists: list[RawList] = []
        page = 0
        while True:
            data = self._call("lists/list", {"start": page, "limit": LISTS_PAGE_SIZE})
            if not isinstance(data, dict):
                raise RemoteUnavailable("Mailchimp lists/list returned an unexpected payload")
            batch = data.get("data") or []
            try:
                lists.extend(RawList.model_validate(r) for r in batch)
            except ValidationError as exc:
                raise RemoteUnavailable(f"Malformed list in lists/list: {exc}") from exc
            if not batch or len(lists) >= int(data.get("total", 0)):
                break
            page += 1

        logger.info("Fetched %d list(s) from Mailchimp", len(lists))
        return lists

    def get_list_groupings(self, list_id: str) -> list[RawGrouping]:
        """Fetch the interest groupings of one list."""
        data = self._call("lists/interest-groupings", {"id": list_id})
        if not isinstance(data, list):
            raise RemoteUnavailable(
                f"Mailchimp lists/interest-groupings returned an unexpected payload for {list_id}"
            )
        try:
            return [RawGrouping.model_validate(g) for g in data]
        except ValidationError as exc:
            raise RemoteUnavailable(f"Malformed grouping for list {list_id}: {exc}") from exc

    def get_lists_with_merge_vars(self, list_ids: Iterable[str]) -> list[RawListWithMergeVars]:
        """Fetch the merge vars of several lists in one call."""
        ids = list(list_ids)
        data = self._call("lists/merge-vars", {"id": ids})
        if not isinstance(data, dict):
            raise RemoteUnavailable("Mailchimp lists/merge-vars returned an unexpected payload")
        for error in data.get("errors") or []:
            logger.warning("Merge vars unavailable for list %s: %s", error.get("id"), error.get("error"))
        try:
            return [RawListWithMergeVars.model_validate(r) for r in data.get("data") or []]
        except ValidationError as exc:
            raise RemoteUnavailable(f"Malformed merge vars in lists/merge-vars: {exc}") from exc

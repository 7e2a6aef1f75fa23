"""Shared fixtures for listkeeper tests."""

import copy

import pytest

from listkeeper.integrations.mailchimp import RemoteUnavailable
from listkeeper.lists import ListRepository


class FakeCacheStore:
    """Dict-backed cache store that records every call."""

    def __init__(self) -> None:
        self.data: dict = {}
        self.ttls: dict[str, int] = {}
        self.calls: list[tuple[str, str]] = []

    def get(self, key):
        self.calls.append(("get", key))
        return copy.deepcopy(self.data.get(key))

    def set(self, key, value, ttl_seconds):
        self.calls.append(("set", key))
        self.data[key] = copy.deepcopy(value)
        self.ttls[key] = ttl_seconds

    def delete(self, key):
        self.calls.append(("delete", key))
        self.data.pop(key, None)
        self.ttls.pop(key, None)

    @property
    def writes(self) -> list[str]:
        return [key for op, key in self.calls if op == "set"]


class FakeMailchimp:
    """In-memory stand-in for MailchimpClient.

    Set ``fail`` to make ``get_lists`` raise, or ``fail_merge_vars`` /
    ``fail_groupings`` to break the secondary calls.
    """

    def __init__(self, lists, groupings, merge_vars) -> None:
        self.lists = lists
        self.groupings = groupings
        self.merge_vars = merge_vars
        self.fail = False
        self.fail_groupings = False
        self.fail_merge_vars = False
        self.calls: list[tuple] = []

    def get_lists(self):
        self.calls.append(("get_lists",))
        if self.fail:
            raise RemoteUnavailable("Mailchimp is down")
        return self.lists

    def get_list_groupings(self, list_id):
        self.calls.append(("get_list_groupings", list_id))
        if self.fail_groupings:
            raise RemoteUnavailable("groupings unavailable")
        return self.groupings.get(list_id)

    def get_lists_with_merge_vars(self, list_ids):
        self.calls.append(("get_lists_with_merge_vars", list(list_ids)))
        if self.fail_merge_vars:
            raise RemoteUnavailable("merge vars unavailable")
        return [
            {"id": list_id, "name": "ignored", "merge_vars": self.merge_vars[list_id]}
            for list_id in list_ids
            if list_id in self.merge_vars
        ]

    def count(self, method: str) -> int:
        return sum(1 for call in self.calls if call[0] == method)


def sample_lists() -> list[dict]:
    return [
        {
            "id": "a1",
            "name": "Newsletter",
            "web_id": 101,
            "stats": {"member_count": 120, "unsubscribe_count": 3, "grouping_count": 1},
        },
        {
            "id": "b2",
            "name": "Customers",
            "web_id": 102,
            "stats": {"member_count": 30, "unsubscribe_count": 0, "grouping_count": 0},
        },
    ]


def sample_groupings() -> dict[str, list[dict]]:
    return {
        "a1": [
            {
                "id": 7,
                "name": "Interests",
                "form_field": "checkboxes",
                "display_order": "0",
                "groups": [
                    {"bit": "1", "name": "Books", "display_order": "1", "subscribers": 4},
                    {"bit": "2", "name": "Music", "display_order": "2", "subscribers": 9},
                ],
            }
        ],
        "b2": [{"id": 99, "name": "Should not be fetched", "groups": []}],
    }


def sample_merge_vars() -> dict[str, list[dict]]:
    return {
        "a1": [
            {"name": "Email Address", "field_type": "email", "req": True, "tag": "EMAIL", "public": True},
            {"name": "First Name", "field_type": "text", "req": False, "tag": "FNAME", "size": "25"},
            {"name": "Mailing Address", "field_type": "address", "req": True, "tag": "ADDRESS"},
        ],
        "b2": [
            {"name": "Email Address", "field_type": "email", "req": True, "tag": "EMAIL"},
            {
                "name": "Favourite Colour",
                "field_type": "dropdown",
                "req": False,
                "tag": "COLOR",
                "choices": ["Red", "Blue"],
            },
        ],
    }


@pytest.fixture()
def store():
    return FakeCacheStore()


@pytest.fixture()
def api():
    return FakeMailchimp(sample_lists(), sample_groupings(), sample_merge_vars())


@pytest.fixture()
def repo(store, api):
    return ListRepository(store, api)

"""Tests for the listkeeper CLI entry point."""

from unittest.mock import patch

import click.testing
import pytest

from listkeeper.cache.keys import LIST_COUNTS_CACHE_KEY, LISTS_CACHE_KEY, LISTS_FALLBACK_CACHE_KEY
from listkeeper.cli import cli
from listkeeper.container import Container, Value
from listkeeper.counts import SubscriberCounter
from listkeeper.lists import ListRepository

API_KEY = "0123456789abcdef-us6"


@pytest.fixture()
def container(store, api):
    c = Container()
    c.register("cache", Value(store))
    c.register("lists", Value(ListRepository(store, api)))
    c.register("counts", Value(SubscriberCounter(store, api)))
    return c


@pytest.fixture()
def run(container):
    """Invoke the CLI with the fake container and a configured API key."""
    runner = click.testing.CliRunner()

    def _run(*args: str, api_key: str = API_KEY):
        with (
            patch("listkeeper.cli.build_container", return_value=container),
            patch("listkeeper.cli.MAILCHIMP_API_KEY", api_key),
        ):
            return runner.invoke(cli, list(args))

    return _run


class TestLists:
    def test_prints_table(self, run):
        result = run("lists")
        assert result.exit_code == 0
        assert "Newsletter" in result.output
        assert "Customers" in result.output
        assert "2 list(s)" in result.output

    def test_no_lists(self, run, api):
        api.fail = True
        result = run("lists")
        assert result.exit_code == 0
        assert "No lists available." in result.output

    def test_fallback_flag(self, run, store, api):
        store.data[LISTS_CACHE_KEY] = {}
        store.data[LISTS_FALLBACK_CACHE_KEY] = {
            "old": {"id": "old", "name": "Archived", "subscriber_count": 1},
        }
        result = run("lists", "--fallback")
        assert "Archived" in result.output
        assert api.calls == []

    def test_missing_api_key_exits(self, run, api):
        result = run("lists", api_key="")
        assert result.exit_code == 1
        assert "MAILCHIMP_API_KEY" in result.output
        assert api.calls == []


class TestShow:
    def test_shows_fields_and_groupings(self, run):
        result = run("show", "a1")
        assert result.exit_code == 0
        assert "ADDRESS[zip]" in result.output
        assert "Interests" in result.output
        assert "- Books" in result.output

    def test_shows_choices(self, run):
        result = run("show", "b2")
        assert "Red, Blue" in result.output

    def test_unknown_list(self, run):
        result = run("show", "nope")
        assert result.exit_code == 1
        assert "No list with id nope" in result.output


class TestCount:
    def test_sums_counts(self, run):
        result = run("count", "a1", "b2", "unknown")
        assert result.exit_code == 0
        assert result.output.strip() == "150"

    def test_uses_cached_counts(self, run, store, api):
        store.data[LIST_COUNTS_CACHE_KEY] = {"1": 5}
        result = run("count", "1", "2")
        assert result.output.strip() == "5"
        assert api.calls == []

    def test_requires_list_ids(self, run):
        result = run("count")
        assert result.exit_code != 0


class TestFieldName:
    def test_builtin_tag(self, run):
        result = run("field-name", "a1", "OPTIN_IP")
        assert result.output.strip() == "IP Address"

    def test_list_field(self, run):
        result = run("field-name", "a1", "FNAME")
        assert result.output.strip() == "First Name"

    def test_unknown_tag(self, run):
        result = run("field-name", "a1", "NOPE")
        assert result.exit_code == 1


class TestFlush:
    def test_empties_caches(self, run, store):
        run("lists")
        assert store.data
        result = run("flush", api_key="")
        assert result.exit_code == 0
        assert "List caches emptied." in result.output
        assert store.data == {}

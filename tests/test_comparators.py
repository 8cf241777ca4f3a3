from __future__ import annotations

import re

import pytest

from webchain.core.comparators import (
    check_url_part,
    contains,
    ends_with,
    equals,
    matches,
    parse_url,
    starts_with,
)
from webchain.core.exceptions import MatchError, UrlParseError


@pytest.mark.parametrize(
    ("matcher", "actual", "passes"),
    [
        (equals("Home"), "Home", True),
        (equals("Home"), "Home ", False),
        (contains("ome"), "Home", True),
        (contains("omx"), "Home", False),
        (starts_with("Ho"), "Home", True),
        (starts_with("me"), "Home", False),
        (ends_with("me"), "Home", True),
        (ends_with("Ho"), "Home", False),
        (matches(r"^H\w+e$"), "Home", True),
        (matches(re.compile(r"\d")), "Home", False),
    ],
)
def test_matchers(matcher, actual, passes):
    if passes:
        matcher.check("Subject", actual)
    else:
        with pytest.raises(MatchError):
            matcher.check("Subject", actual)


def test_edits_outside_matched_region_do_not_change_result():
    contains("needle").check("Subject", "hay needle stack")
    contains("needle").check("Subject", "hax needle stack")
    starts_with("abc").check("Subject", "abcdef")
    starts_with("abc").check("Subject", "abcdeX")
    ends_with("def").check("Subject", "abcdef")
    ends_with("def").check("Subject", "Xbcdef")


def test_failure_message_names_expected_and_actual():
    with pytest.raises(MatchError, match=r"The page's title does not start with 'Foo'\. Got 'Bar'"):
        starts_with("Foo").check("The page's title", "Bar")


def test_regexp_uses_search_semantics():
    matches("ample").check("Subject", "Example page")
    assert matches(re.compile("x+")).expected == "x+"


def test_none_is_compared_as_empty_string():
    equals("").check("Subject", None)


def test_query_values_are_matched_in_any_position():
    parsed = parse_url("https://x/y?k=a&k=b&empty=#frag")
    check_url_part(parsed, "query", equals("a"), key="k")
    check_url_part(parsed, "query", equals("b"), key="k")
    check_url_part(parsed, "query", equals(""), key="empty")
    with pytest.raises(MatchError, match="Values: \\['a', 'b'\\]"):
        check_url_part(parsed, "query", equals("c"), key="k")


def test_absent_query_key_always_fails():
    parsed = parse_url("https://x/y")
    with pytest.raises(MatchError, match="query key 'k'"):
        check_url_part(parsed, "query", equals(""), key="k")


def test_path_and_fragment():
    parsed = parse_url("https://x/a/b#section-2")
    check_url_part(parsed, "path", equals("/a/b"))
    check_url_part(parsed, "fragment", equals("section-2"))
    with pytest.raises(MatchError, match="URL's fragment"):
        check_url_part(parsed, "fragment", equals("section-3"))


def test_unparseable_url():
    with pytest.raises(UrlParseError):
        parse_url("http://[::1")

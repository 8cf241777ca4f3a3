from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable
from urllib.parse import parse_qs, urlsplit

from webchain.core.errors import caller
from webchain.core.exceptions import MatchError, UrlParseError


@dataclass(frozen=True, slots=True)
class Matcher:
    """One string comparison: its display name, target and predicate."""

    name: str
    expected: str
    phrase: str
    predicate: Callable[[str], bool]

    def check(self, subject: str, actual: str | None) -> None:
        value = actual or ""
        if not self.predicate(value):
            raise MatchError(f"{subject} {self.phrase} '{self.expected}'. Got '{value}'")


def equals(expected: str) -> Matcher:
    return Matcher("Equals", expected, "does not equal", lambda actual: actual == expected)


def contains(expected: str) -> Matcher:
    return Matcher("Contains", expected, "does not contain", lambda actual: expected in actual)


def starts_with(expected: str) -> Matcher:
    return Matcher("Starts With", expected, "does not start with", lambda actual: actual.startswith(expected))


def ends_with(expected: str) -> Matcher:
    return Matcher("Ends With", expected, "does not end with", lambda actual: actual.endswith(expected))


def matches(pattern: str | re.Pattern[str]) -> Matcher:
    compiled = re.compile(pattern) if isinstance(pattern, str) else pattern
    return Matcher(
        "Matches RegExp",
        compiled.pattern,
        "does not match the regular expression",
        lambda actual: compiled.search(actual) is not None,
    )


class MatcherFacade:
    """Exposes the five matchers over a single ``_apply`` hook."""

    def equals(self, match: str):
        return self._apply(equals(match), caller())

    def contains(self, match: str):
        return self._apply(contains(match), caller())

    def starts_with(self, match: str):
        return self._apply(starts_with(match), caller())

    def ends_with(self, match: str):
        return self._apply(ends_with(match), caller())

    def regexp(self, pattern: str | re.Pattern[str]):
        return self._apply(matches(pattern), caller())

    def _apply(self, matcher: Matcher, call_site: str):
        raise NotImplementedError


def parse_url(raw: str):
    try:
        return urlsplit(raw)
    except ValueError as exc:
        raise UrlParseError(f"Unable to parse URL '{raw}': {exc}") from exc


def check_url_part(parsed, part: str, matcher: Matcher, key: str | None = None) -> None:
    """Applies ``matcher`` to one part of an already parsed URL."""

    if part == "path":
        matcher.check("URL's path", parsed.path)
    elif part == "fragment":
        matcher.check("URL's fragment", parsed.fragment)
    elif part == "query":
        values = parse_qs(parsed.query, keep_blank_values=True).get(key)
        if values is None:
            raise MatchError(f"URL does not contain the query key '{key}'. URL: {parsed.geturl()}")
        for value in values:
            if matcher.predicate(value):
                return
        raise MatchError(
            f"URL does not contain the value '{matcher.expected}' for the key '{key}'. Values: {values}"
        )
    else:
        raise ValueError(f"Unknown URL part: {part}")

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from webchain.core.comparators import Matcher


class Quantifier(Enum):
    SINGLE = "single"
    ANY = "any"
    ALL = "all"


@dataclass(frozen=True, slots=True)
class Navigate:
    url: str
    call_site: str = ""


@dataclass(frozen=True, slots=True)
class History:
    action: str
    call_site: str = ""

    @property
    def stage(self) -> str:
        return self.action.capitalize()


@dataclass(frozen=True, slots=True)
class PageTest:
    name: str
    fn: Callable[[Any], Any]
    call_site: str = ""


@dataclass(frozen=True, slots=True)
class TitleCheck:
    matcher: Matcher
    call_site: str = ""

    @property
    def stage(self) -> str:
        return f"Title {self.matcher.name}"


@dataclass(frozen=True, slots=True)
class UrlCheck:
    part: str
    matcher: Matcher
    key: str | None = None
    call_site: str = ""

    @property
    def stage(self) -> str:
        label = "Query Value" if self.part == "query" else self.part.capitalize()
        return f"URL {label} Matches"


@dataclass(frozen=True, slots=True)
class Select:
    """Re-runnable element lookup; ``scope`` is the parent selection for children."""

    selector: str
    scope: Any = None
    call_site: str = ""

    @property
    def stage(self) -> str:
        return "Elements" if self.scope is None else "Find Children"


@dataclass(frozen=True, slots=True)
class ElementTest:
    name: str
    fn: Callable[[Any], Any]
    quantifier: Quantifier = Quantifier.SINGLE
    call_site: str = ""

    @property
    def stage(self) -> str:
        return f"{self.name} Test"


@dataclass(frozen=True, slots=True)
class CountCheck:
    count: int
    call_site: str = ""


@dataclass(frozen=True, slots=True)
class ReplaySelection:
    """Lets a page-level retry re-run the step last executed on a selection."""

    selection: Any

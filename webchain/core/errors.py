from __future__ import annotations

import sys
from pathlib import Path

from selenium.common.exceptions import WebDriverException

SUMMARY_TEXT_LIMIT = 25


def caller(skip: int = 0) -> str:
    """Returns ``file.py:line`` of the code that called the current function.

    ``caller()`` inside a public method names the user's line that invoked
    that method. Each public entry point captures this once and passes it
    down, so the depth never depends on internal helpers.
    """

    try:
        frame = sys._getframe(skip + 2)
    except ValueError:
        return ""
    return f"{Path(frame.f_code.co_filename).name}:{frame.f_lineno}"


def element_summary(element) -> str:
    if element is None:
        return ""
    try:
        element_id = element.get_attribute("id")
    except WebDriverException:
        element_id = None
    if element_id:
        return f"#{element_id}"
    try:
        tag = element.tag_name
        text = element.text or ""
    except WebDriverException:
        return repr(element)
    return f"<{tag}>{text[:SUMMARY_TEXT_LIMIT]}</{tag}>"


class ChainError(Exception):
    """The failure attached to a chain: where it happened, on what, and why."""

    def __init__(self, stage: str, cause: BaseException, call_site: str = "", element=None) -> None:
        self._stage = stage
        self._cause = cause
        self._call_site = call_site
        self._element = element
        super().__init__(stage, cause)

    @property
    def stage(self) -> str:
        return self._stage

    @property
    def cause(self) -> BaseException:
        return self._cause

    @property
    def call_site(self) -> str:
        return self._call_site

    @property
    def element(self):
        return self._element

    def at(self, call_site: str) -> ChainError:
        """Returns a copy attributed to another call site."""

        return ChainError(self._stage, self._cause, call_site=call_site, element=self._element)

    def __str__(self) -> str:
        if self._element is not None:
            return (
                f"An error occurred at {self._call_site} during {self._stage} "
                f"on element {element_summary(self._element)}: {self._cause}"
            )
        return f"An error occurred at {self._call_site} during {self._stage}: {self._cause}"

    def __repr__(self) -> str:
        return f"ChainError(stage={self._stage!r}, call_site={self._call_site!r}, cause={self._cause!r})"

from __future__ import annotations

import logging
import time
from enum import Enum
from pathlib import Path
from typing import Any, Callable

import pytest
from selenium.common.exceptions import WebDriverException

from webchain.config.schema import ChainSettings
from webchain.core.comparators import Matcher, MatcherFacade, check_url_part, equals, parse_url
from webchain.core.errors import ChainError, caller
from webchain.core.exceptions import ActionError, DiagnosticsError, MatchError, UrlParseError, wrap
from webchain.core.retry import poll_until
from webchain.core.selection import Selection
from webchain.core.steps import History, Navigate, PageTest, ReplaySelection, Select, TitleCheck, UrlCheck

logger = logging.getLogger(__name__)

ErrorCallback = Callable[[ChainError, "Chain"], Any]


class ChainState(Enum):
    CLEAN = "clean"
    FAILED = "failed"


class Chain:
    """Page-level fluent handle that carries the first failure through every call.

    Every step checks for an existing error and becomes a no-op once one is
    attached. The last executed step is kept as a replayable description so
    ``eventually`` can run it again against the live page.
    """

    def __init__(self, driver, settings: ChainSettings | None = None, artifacts=None) -> None:
        settings = settings or ChainSettings()
        self._driver = driver
        self.poll_interval = settings.poll_interval_seconds
        self.poll_timeout = settings.poll_timeout_seconds
        self.artifacts = artifacts
        self.last = None
        self._error: ChainError | None = None
        self._origin = None
        self._on_error: ErrorCallback | None = None
        self._reported = False
        self._handlers = {
            Navigate: self._navigate,
            History: self._history,
            PageTest: self._page_test,
            TitleCheck: self._title_check,
            UrlCheck: self._url_check,
            ReplaySelection: self._replay_selection,
        }

    @property
    def driver(self):
        return self._driver

    @property
    def error(self) -> ChainError | None:
        return self._error

    @property
    def state(self) -> ChainState:
        return ChainState.CLEAN if self._error is None else ChainState.FAILED

    @property
    def origin(self):
        """The replayable step that produced the current error, if any."""

        return self._origin

    def fail(self, error: ChainError) -> None:
        """Attaches ``error`` unless the chain already carries one."""

        if self._error is not None:
            return
        logger.debug("Chain failed: %s", error)
        self._error = error
        self._origin = None

    def claim(self, step) -> None:
        """Marks ``step`` as the origin of a failure it has just attached."""

        if self._error is not None and self._origin is None:
            self._origin = step

    def reset(self) -> None:
        self._error = None
        self._origin = None

    def blame(self, call_site: str) -> None:
        if self._error is not None:
            self._error = self._error.at(call_site)

    def run(self, step) -> Chain:
        if self._error is not None:
            return self
        self.last = step
        self._handlers[type(step)](step)
        self.claim(step)
        return self

    def isolated(self) -> Chain:
        """Returns a fresh chain on the same driver with no error and no history."""

        chain = Chain(self._driver, artifacts=self.artifacts)
        chain.poll_interval = self.poll_interval
        chain.poll_timeout = self.poll_timeout
        return chain

    def get(self, url: str) -> Chain:
        return self.run(Navigate(url, caller()))

    def back(self) -> Chain:
        return self.run(History("back", caller()))

    def forward(self) -> Chain:
        return self.run(History("forward", caller()))

    def refresh(self) -> Chain:
        return self.run(History("refresh", caller()))

    def test(self, name: str, fn: Callable[[Any], Any]) -> Chain:
        """Runs ``fn(driver)``; any exception it raises fails the chain."""

        return self.run(PageTest(name, fn, caller()))

    def title(self) -> TitleMatch:
        return TitleMatch(self)

    def url(self) -> UrlMatch:
        return UrlMatch(self)

    def find(self, selector: str) -> Selection:
        """Selects elements by CSS selector.

        Without ``any()`` or ``all()`` the selection must hold exactly one
        element when tested.
        """

        return self._find(selector, caller())

    def _find(self, selector: str, call_site: str) -> Selection:
        selection = Selection(self, selector, source=Select(selector, call_site=call_site))
        if self._error is not None:
            return selection
        return selection.run(selection.source)

    def wait(self, seconds: float) -> Chain:
        if self._error is not None:
            return self
        time.sleep(seconds)
        return self

    def debug(self) -> Chain:
        """Logs the page title, URL and source. Runs even when the chain has failed."""

        call_site = caller()
        try:
            source = self._driver.page_source
        except WebDriverException as exc:
            self._diagnostic_failure("Debug Source", exc, call_site)
            return self
        try:
            title = self._driver.title
        except WebDriverException as exc:
            self._diagnostic_failure("Debug Title", exc, call_site)
            return self
        try:
            current_url = self._driver.current_url
        except WebDriverException as exc:
            self._diagnostic_failure("Debug URL", exc, call_site)
            return self
        logger.info("%s - (%s)\n%s", title, current_url, source)
        if self.artifacts is not None:
            path = self.artifacts.write_dom_snapshot("debug", source)
            logger.info("DOM snapshot written to %s", path)
        return self

    def screenshot(self, filename: str | Path) -> Chain:
        """Saves a PNG of the current page. Runs even when the chain has failed."""

        call_site = caller()
        try:
            png = self._driver.get_screenshot_as_png()
        except WebDriverException as exc:
            self._diagnostic_failure("Screenshot", exc, call_site)
            return self
        try:
            Path(filename).write_bytes(png)
        except OSError as exc:
            self._diagnostic_failure("Screenshot Writing File", exc, call_site)
        return self

    def on_error(self, fn: ErrorCallback) -> Chain:
        """Registers ``fn(error, chain)`` to run once when a failed chain ends."""

        self._on_error = fn
        return self

    def eventually(self) -> Chain:
        """Retries the last step until it passes or ``poll_timeout`` elapses.

        Does nothing unless the current error came from that step. Failures
        of ``debug()`` and ``screenshot()`` are never retried.
        """

        call_site = caller()
        if self._error is None or self.last is None or self._origin is not self.last:
            return self
        if not poll_until(self._driver, self._retry_attempt, self.poll_timeout, self.poll_interval):
            self.blame(call_site)
        return self

    def end(self) -> ChainError | None:
        if self._error is not None:
            self._report()
        return self._error

    def ok(self) -> None:
        """Fails the running pytest test immediately if the chain has failed."""

        if self._error is None:
            return
        self._report()
        logger.error("Sequence failed: %s", self._error)
        pytest.fail(f"Sequence failed: {self._error}", pytrace=False)

    def _report(self) -> None:
        if self._on_error is None or self._reported:
            return
        self._reported = True
        self._on_error(self._error, self)

    def _retry_attempt(self) -> bool:
        self.reset()
        self._handlers[type(self.last)](self.last)
        self.claim(self.last)
        return self._error is None

    def _diagnostic_failure(self, stage: str, exc: Exception, call_site: str) -> None:
        if self._error is not None:
            logger.warning("%s failed after the chain had already failed: %s", stage, exc)
            return
        cause = wrap(DiagnosticsError, f"{stage} failed: {exc}", exc)
        self.fail(ChainError(stage, cause, call_site=call_site))

    def _navigate(self, step: Navigate) -> None:
        try:
            self._driver.get(step.url)
        except WebDriverException as exc:
            cause = wrap(ActionError, f"Unable to load '{step.url}': {exc}", exc)
            self.fail(ChainError("Get", cause, call_site=step.call_site))

    def _history(self, step: History) -> None:
        try:
            getattr(self._driver, step.action)()
        except WebDriverException as exc:
            cause = wrap(ActionError, f"Unable to {step.action} the page: {exc}", exc)
            self.fail(ChainError(step.stage, cause, call_site=step.call_site))

    def _page_test(self, step: PageTest) -> None:
        try:
            step.fn(self._driver)
        except Exception as exc:  # noqa: BLE001 - any failure of a user test is recorded, not raised.
            self.fail(ChainError(step.name, exc, call_site=step.call_site))

    def _title_check(self, step: TitleCheck) -> None:
        try:
            step.matcher.check("The page's title", self._driver.title)
        except (WebDriverException, MatchError) as exc:
            self.fail(ChainError(step.stage, exc, call_site=step.call_site))

    def _url_check(self, step: UrlCheck) -> None:
        try:
            parsed = parse_url(self._driver.current_url)
            check_url_part(parsed, step.part, step.matcher, step.key)
        except (WebDriverException, UrlParseError, MatchError) as exc:
            self.fail(ChainError(step.stage, exc, call_site=step.call_site))

    def _replay_selection(self, step: ReplaySelection) -> None:
        step.selection.retry_attempt()


class TitleMatch(MatcherFacade):
    """Matchers against the page title, read fresh on every evaluation."""

    def __init__(self, chain: Chain) -> None:
        self.chain = chain

    def _apply(self, matcher: Matcher, call_site: str) -> Chain:
        return self.chain.run(TitleCheck(matcher, call_site))


class UrlMatch:
    """Matchers against parts of the current URL."""

    def __init__(self, chain: Chain) -> None:
        self.chain = chain

    def path(self, match: str) -> Chain:
        return self.chain.run(UrlCheck("path", equals(match), call_site=caller()))

    def fragment(self, match: str) -> Chain:
        return self.chain.run(UrlCheck("fragment", equals(match), call_site=caller()))

    def query_value(self, key: str, value: str) -> Chain:
        """Passes if ``value`` is any of the values given for ``key``."""

        return self.chain.run(UrlCheck("query", equals(value), key=key, call_site=caller()))


def start(driver, settings: ChainSettings | None = None, artifacts=None) -> Chain:
    """Starts a new chain on a live WebDriver."""

    return Chain(driver, settings, artifacts)

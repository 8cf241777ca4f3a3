from __future__ import annotations

import logging
import time
from typing import Any, Callable

from selenium.common.exceptions import WebDriverException
from selenium.webdriver.common.by import By

from webchain.core.comparators import Matcher, MatcherFacade
from webchain.core.errors import ChainError, caller
from webchain.core.exceptions import ActionError, MatchError, SelectionError, wrap
from webchain.core.quantifier import run_quantified
from webchain.core.retry import poll_until
from webchain.core.steps import CountCheck, ElementTest, Quantifier, ReplaySelection, Select

logger = logging.getLogger(__name__)


class Selection:
    """The elements matched by a selector, plus how to fetch them again.

    Tests run through the quantifier engine: a single element is tested
    directly, several elements need ``any()`` or ``all()``.
    """

    def __init__(self, chain, selector: str = "", source: Select | None = None, elements=None) -> None:
        self.chain = chain
        self.selector = selector
        self.source = source
        self.elements: list[Any] = list(elements or [])
        self.quantifier = Quantifier.SINGLE
        self.last = None
        self._replay = ReplaySelection(self)
        self._handlers = {
            Select: self._select,
            ElementTest: self._element_test,
            CountCheck: self._count_check,
        }

    def run(self, step) -> Selection:
        if self.chain.error is not None:
            return self
        self.last = step
        self.chain.last = self._replay
        self._handlers[type(step)](step)
        self.chain.claim(self._replay)
        return self

    def retry_attempt(self) -> bool:
        """Clears the chain error, re-selects and replays the last step once."""

        self.chain.reset()
        if self.source is not None:
            self._select(self.source)
        if self.chain.error is None and self.last is not None and self.last is not self.source:
            self._handlers[type(self.last)](self.last)
        self.chain.claim(self._replay)
        return self.chain.error is None

    def eventually(self) -> Selection:
        """Re-selects and retries the last test until it passes or the chain's timeout elapses.

        Does nothing when the chain's error came from somewhere else.
        """

        call_site = caller()
        chain = self.chain
        if chain.error is None or self.source is None or self.last is None or chain.origin is not self._replay:
            return self
        if not poll_until(chain.driver, self.retry_attempt, chain.poll_timeout, chain.poll_interval):
            chain.blame(call_site)
        return self

    def any(self) -> Selection:
        """Following tests pass if they pass for at least one element."""

        self.quantifier = Quantifier.ANY
        return self

    def all(self) -> Selection:
        """Following tests pass only if they pass for every element."""

        self.quantifier = Quantifier.ALL
        return self

    def and_(self):
        return self.chain

    def find(self, selector: str) -> Selection:
        return self.chain._find(selector, caller())

    def find_children(self, selector: str) -> Selection:
        """Selects the elements matching ``selector`` under every element held here."""

        call_site = caller()
        child = Selection(self.chain, selector, source=Select(selector, scope=self, call_site=call_site))
        if self.chain.error is not None:
            return child
        return child.run(child.source)

    def test(self, name: str, fn: Callable[[Any], Any]) -> Selection:
        """Runs ``fn(element)`` under the current quantifier; raising fails the chain."""

        return self._test(name, fn, caller())

    def _test(self, name: str, fn: Callable[[Any], Any], call_site: str) -> Selection:
        return self.run(ElementTest(name, fn, self.quantifier, call_site))

    def count(self, count: int) -> Selection:
        return self.run(CountCheck(count, caller()))

    def visible(self) -> Selection:
        return self._test("Visible", _expect("is_displayed", True, "Element was not visible"), caller())

    def hidden(self) -> Selection:
        return self._test("Hidden", _expect("is_displayed", False, "Element was visible"), caller())

    def enabled(self) -> Selection:
        return self._test("Enabled", _expect("is_enabled", True, "Element was not enabled"), caller())

    def disabled(self) -> Selection:
        return self._test("Disabled", _expect("is_enabled", False, "Element was not disabled"), caller())

    def selected(self) -> Selection:
        return self._test("Selected", _expect("is_selected", True, "Element was not selected"), caller())

    def unselected(self) -> Selection:
        return self._test("Unselected", _expect("is_selected", False, "Element was selected"), caller())

    def click(self) -> Selection:
        return self._test("Click", _act("click"), caller())

    def send_keys(self, keys: str) -> Selection:
        return self._test("SendKeys", _act("send_keys", keys), caller())

    def submit(self) -> Selection:
        return self._test("Submit", _act("submit"), caller())

    def clear(self) -> Selection:
        return self._test("Clear", _act("clear"), caller())

    def text(self) -> StringMatch:
        return StringMatch(self, "Text", lambda element: element.text)

    def tag_name(self) -> StringMatch:
        return StringMatch(self, "TagName", lambda element: element.tag_name)

    def attribute(self, name: str) -> StringMatch:
        return StringMatch(self, f"{name} Attribute", lambda element: element.get_attribute(name))

    def css_property(self, name: str) -> StringMatch:
        return StringMatch(self, f"{name} CSS Property", lambda element: element.value_of_css_property(name))

    def filter(self, fn: Callable[[Selection], Any]) -> Selection:
        """Keeps the elements for which ``fn`` passes on an isolated one-element selection.

        Useful for matching on text content, which CSS selectors cannot
        express. The predicate runs on a separate chain, so its failures
        never reach this one. It still drives the same browser.

        An element is dropped when ``fn`` raises, returns ``False`` or an
        exception, or leaves its isolated chain failed.
        """

        if self.chain.error is not None:
            return self
        kept = []
        for element in self.elements:
            isolated = Selection(self.chain.isolated(), self.selector, elements=[element])
            if _passes(fn, isolated):
                kept.append(element)
        logger.debug("Filter kept %d of %d elements for '%s'", len(kept), len(self.elements), self.selector)
        self.elements = kept
        return self

    def wait(self, seconds: float) -> Selection:
        if self.chain.error is not None:
            return self
        time.sleep(seconds)
        return self

    def end(self) -> ChainError | None:
        return self.chain.end()

    def ok(self) -> None:
        self.chain.ok()

    def _select(self, step: Select) -> None:
        try:
            self.elements = self._lookup(step)
        except ChainError as error:
            self.elements = []
            self.chain.fail(error)

    def _lookup(self, step: Select) -> list[Any]:
        if step.scope is None:
            try:
                return list(self.chain.driver.find_elements(By.CSS_SELECTOR, step.selector))
            except WebDriverException as exc:
                cause = wrap(SelectionError, f"Unable to find elements for '{step.selector}': {exc}", exc)
                raise ChainError(step.stage, cause, call_site=step.call_site) from exc

        found: list[Any] = []
        succeeded = False
        last_error: WebDriverException | None = None
        last_element = None
        for parent in step.scope.elements:
            try:
                found.extend(parent.find_elements(By.CSS_SELECTOR, step.selector))
            except WebDriverException as exc:
                last_error = exc
                last_element = parent
                continue
            succeeded = True
        if succeeded:
            return found
        if last_error is None:
            cause = SelectionError(f"No parent elements to search for children matching '{step.selector}'")
        else:
            cause = wrap(SelectionError, f"Unable to find children matching '{step.selector}': {last_error}", last_error)
        raise ChainError(step.stage, cause, call_site=step.call_site, element=last_element)

    def _element_test(self, step: ElementTest) -> None:
        error = run_quantified(
            self.elements,
            step.quantifier,
            step.fn,
            stage=step.stage,
            selector=self.selector,
            call_site=step.call_site,
        )
        if error is not None:
            self.chain.fail(error)

    def _count_check(self, step: CountCheck) -> None:
        if len(self.elements) == step.count:
            return
        cause = SelectionError(
            f"Invalid count for selector {self.selector} wanted {step.count} got {len(self.elements)}"
        )
        self.chain.fail(ChainError("Count", cause, call_site=step.call_site))


class StringMatch(MatcherFacade):
    """Matchers against a string read from each element under test."""

    def __init__(self, selection: Selection, name: str, extract: Callable[[Any], str | None]) -> None:
        self.selection = selection
        self.name = name
        self.extract = extract

    def _apply(self, matcher: Matcher, call_site: str) -> Selection:
        subject = f"The element's {self.name}"

        def check(element) -> None:
            matcher.check(subject, self.extract(element))

        return self.selection._test(f"{self.name} {matcher.name}", check, call_site)


def _expect(method: str, wanted: bool, message: str) -> Callable[[Any], None]:
    def check(element) -> None:
        if bool(getattr(element, method)()) != wanted:
            raise MatchError(message)

    return check


def _act(action: str, *args) -> Callable[[Any], None]:
    def perform(element) -> None:
        try:
            getattr(element, action)(*args)
        except WebDriverException as exc:
            raise ActionError(f"Unable to {action.replace('_', ' ')} element: {exc}") from exc

    return perform


def _passes(fn: Callable[[Selection], Any], isolated: Selection) -> bool:
    try:
        outcome = fn(isolated)
    except Exception:  # noqa: BLE001 - a raising predicate only drops the element.
        return False
    if outcome is False or isinstance(outcome, BaseException):
        return False
    return isolated.chain.error is None

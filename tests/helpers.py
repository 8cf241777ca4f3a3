from __future__ import annotations

import os
from collections import Counter
from contextlib import contextmanager
from typing import Iterator

import pytest
from selenium import webdriver
from selenium.common.exceptions import WebDriverException
from selenium.webdriver import ChromeOptions, FirefoxOptions

from webchain.config.schema import BrowserSettings


class FakeElement:
    """In-memory stand-in for a Selenium WebElement."""

    def __init__(
        self,
        tag: str = "div",
        text: str = "",
        attributes: dict[str, str] | None = None,
        css: dict[str, str] | None = None,
        displayed: bool = True,
        enabled: bool = True,
        selected: bool = False,
        children: dict[str, list[FakeElement]] | None = None,
        fail: set[str] | None = None,
    ) -> None:
        self._tag = tag
        self._text = text
        self.attributes = attributes or {}
        self.css = css or {}
        self.displayed = displayed
        self.enabled = enabled
        self.selected = selected
        self.children = children or {}
        self.fail = set(fail or ())
        self.calls: Counter[str] = Counter()
        self.typed: list[str] = []

    def _call(self, name: str) -> None:
        self.calls[name] += 1
        if name in self.fail:
            raise WebDriverException(f"{name} failed")

    @property
    def text(self) -> str:
        self._call("text")
        return self._text

    @property
    def tag_name(self) -> str:
        self._call("tag_name")
        return self._tag

    def get_attribute(self, name: str) -> str | None:
        self._call("get_attribute")
        return self.attributes.get(name)

    def value_of_css_property(self, name: str) -> str:
        self._call("value_of_css_property")
        return self.css.get(name, "")

    def is_displayed(self) -> bool:
        self._call("is_displayed")
        return self.displayed

    def is_enabled(self) -> bool:
        self._call("is_enabled")
        return self.enabled

    def is_selected(self) -> bool:
        self._call("is_selected")
        return self.selected

    def click(self) -> None:
        self._call("click")

    def submit(self) -> None:
        self._call("submit")

    def clear(self) -> None:
        self._call("clear")
        self.typed.clear()

    def send_keys(self, keys: str) -> None:
        self._call("send_keys")
        self.typed.append(keys)

    def find_elements(self, by, value: str) -> list[FakeElement]:
        self._call("find_elements")
        return list(self.children.get(value, []))

    def __repr__(self) -> str:
        return f"FakeElement({self._tag!r}, {self._text!r})"


class FakeDriver:
    """In-memory stand-in for a Selenium WebDriver.

    ``elements`` maps a CSS selector to a list of elements, or to a
    zero-argument callable returning one so a page can change between polls.
    """

    def __init__(
        self,
        url: str = "about:blank",
        title: str = "",
        page_source: str = "<html></html>",
        elements: dict | None = None,
        fail: set[str] | None = None,
    ) -> None:
        self._url = url
        self._title = title
        self._page_source = page_source
        self.elements = elements or {}
        self.fail = set(fail or ())
        self.calls: Counter[str] = Counter()
        self.visited: list[str] = []

    def _call(self, name: str) -> None:
        self.calls[name] += 1
        if name in self.fail:
            raise WebDriverException(f"{name} failed")

    @property
    def current_url(self) -> str:
        self._call("current_url")
        return self._url

    @current_url.setter
    def current_url(self, value: str) -> None:
        self._url = value

    @property
    def title(self) -> str:
        self._call("title")
        return self._title

    @title.setter
    def title(self, value: str) -> None:
        self._title = value

    @property
    def page_source(self) -> str:
        self._call("page_source")
        return self._page_source

    def get(self, url: str) -> None:
        self._call("get")
        self.visited.append(url)
        self._url = url

    def back(self) -> None:
        self._call("back")

    def forward(self) -> None:
        self._call("forward")

    def refresh(self) -> None:
        self._call("refresh")

    def find_elements(self, by, value: str) -> list[FakeElement]:
        self._call("find_elements")
        entry = self.elements.get(value, [])
        return list(entry() if callable(entry) else entry)

    def get_screenshot_as_png(self) -> bytes:
        self._call("get_screenshot_as_png")
        return b"\x89PNG\r\n\x1a\nfake"


def require_browser_opt_in() -> None:
    if os.getenv("WEBCHAIN_BROWSER_TESTS") != "1":
        pytest.skip("Set WEBCHAIN_BROWSER_TESTS=1 to run tests against a real browser")


@contextmanager
def managed_driver(browser: BrowserSettings) -> Iterator[object]:
    if browser.name == "chrome":
        options = ChromeOptions()
        if browser.headless:
            options.add_argument("--headless=new")
        options.add_argument("--window-size=1280,1024")
        factory = webdriver.Chrome
    else:
        options = FirefoxOptions()
        if browser.headless:
            options.add_argument("-headless")
        factory = webdriver.Firefox
    try:
        driver = factory(options=options)
    except WebDriverException as exc:
        pytest.skip(f"WebDriver could not start for {browser.name}: {exc}")
    driver.set_page_load_timeout(browser.page_load_timeout_seconds)
    driver.implicitly_wait(0)
    try:
        yield driver
    finally:
        driver.quit()

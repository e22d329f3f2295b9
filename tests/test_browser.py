"""Browser lifecycle and surface-wait tests with Playwright replaced by fakes."""

import asyncio
import time

import pytest
from playwright.async_api import Error as PWError, TimeoutError as PWTimeout

from chartsnap import browser
from chartsnap.browser import PlaywrightPage, open_page, wait_for_surfaces

from conftest import make_settings


class FakePWPage:
    def __init__(self, goto_error=None, selector_waits=None):
        self.goto_error = goto_error
        self.goto_calls = []
        # selector -> "ready" | "hang" | an exception to raise
        self.selector_waits = selector_waits or {}
        self.cancelled = []

    async def goto(self, url, wait_until=None, timeout=None):
        self.goto_calls.append((url, wait_until, timeout))
        if self.goto_error is not None:
            raise self.goto_error

    async def wait_for_selector(self, selector, timeout=None):
        how = self.selector_waits.get(selector, "ready")
        if isinstance(how, Exception):
            raise how
        if how == "hang":
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                self.cancelled.append(selector)
                raise
        return object()


class FakeContext:
    def __init__(self, page):
        self.page = page

    async def new_page(self):
        return self.page


class FakeBrowser:
    def __init__(self, page):
        self.page = page
        self.context_args = None
        self.closed = 0

    async def new_context(self, **kw):
        self.context_args = kw
        return FakeContext(self.page)

    async def close(self):
        self.closed += 1


class FakeChromium:
    def __init__(self, browser_):
        self.browser = browser_
        self.launch_args = None

    async def launch(self, **kw):
        self.launch_args = kw
        return self.browser


class FakePlaywright:
    def __init__(self, browser_):
        self.chromium = FakeChromium(browser_)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


@pytest.fixture
def fake_pw(monkeypatch):
    def install(page):
        b = FakeBrowser(page)
        monkeypatch.setattr(browser, "async_playwright", lambda: FakePlaywright(b))
        return b
    return install


@pytest.fixture
def fast_sleep(monkeypatch):
    real_sleep = asyncio.sleep
    delays = []

    async def sleep(delay, *a, **kw):
        delays.append(delay)
        await real_sleep(0)

    monkeypatch.setattr(asyncio, "sleep", sleep)
    return delays


def test_open_page_yields_adapter_and_closes(fake_pw, tmp_path):
    pw_page = FakePWPage()
    b = fake_pw(pw_page)
    s = make_settings(tmp_path)

    async def scenario():
        async with open_page(s) as page:
            assert isinstance(page, PlaywrightPage)
            assert page.page is pw_page
            assert b.closed == 0

    asyncio.run(scenario())
    assert b.closed == 1
    assert b.context_args == {"viewport": {"width": 1600, "height": 2000}, "device_scale_factor": 2}
    assert pw_page.goto_calls == [("https://example.test/etf-flow/", "networkidle", 45_000)]


def test_browser_closed_when_navigation_keeps_failing(fake_pw, fast_sleep, tmp_path):
    pw_page = FakePWPage(goto_error=PWError("net::ERR_CONNECTION_REFUSED"))
    b = fake_pw(pw_page)

    async def scenario():
        async with open_page(make_settings(tmp_path)):
            pytest.fail("page should not be yielded")

    with pytest.raises(PWError):
        asyncio.run(scenario())
    assert len(pw_page.goto_calls) == 3
    assert fast_sleep == [2, 4]
    assert b.closed == 1


def test_browser_closed_when_body_raises(fake_pw, tmp_path):
    b = fake_pw(FakePWPage())

    async def scenario():
        async with open_page(make_settings(tmp_path)):
            raise RuntimeError("capture blew up")

    with pytest.raises(RuntimeError, match="capture blew up"):
        asyncio.run(scenario())
    assert b.closed == 1


def test_surface_wait_returns_when_a_canvas_appears():
    pw_page = FakePWPage(selector_waits={"canvas": "ready", browser.CHART_HOST_SELECTOR: "hang"})
    start = time.monotonic()
    asyncio.run(wait_for_surfaces(pw_page, "canvas", timeout=15, grace_ms=5000))
    assert time.monotonic() - start < 2
    assert pw_page.cancelled == [browser.CHART_HOST_SELECTOR]


def test_surface_wait_gives_up_after_grace_period():
    pw_page = FakePWPage(selector_waits={"canvas": "hang", browser.CHART_HOST_SELECTOR: "hang"})
    start = time.monotonic()
    asyncio.run(wait_for_surfaces(pw_page, "canvas", timeout=15, grace_ms=200))
    assert time.monotonic() - start >= 0.2
    assert sorted(pw_page.cancelled) == sorted(["canvas", browser.CHART_HOST_SELECTOR])


def test_surface_wait_ignores_selector_timeouts():
    pw_page = FakePWPage(selector_waits={"canvas": PWTimeout("Timeout 15000ms exceeded"),
                                         browser.CHART_HOST_SELECTOR: "hang"})
    asyncio.run(wait_for_surfaces(pw_page, "canvas", timeout=15, grace_ms=5000))
    assert pw_page.cancelled == [browser.CHART_HOST_SELECTOR]

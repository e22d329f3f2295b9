# chartsnap/browser.py
from __future__ import annotations
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

from playwright.async_api import Error as PWError, Page, async_playwright

from .config import Settings
from .geometry import ClipRegion, PageMetrics
from .util import aretry

logger = logging.getLogger("chart_snap.browser")

# chart libraries mount their canvas inside a host element that may appear first
CHART_HOST_SELECTOR = "[data-echarts-instance], .echarts"
SURFACE_GRACE_MS = 5000

_METRICS_JS = """() => {
  const d = document.documentElement, b = document.body;
  return {
    doc_width: Math.max(d.scrollWidth, b ? b.scrollWidth : 0),
    doc_height: Math.max(d.scrollHeight, b ? b.scrollHeight : 0),
    viewport_width: window.innerWidth,
    viewport_height: window.innerHeight,
    scroll_x: window.scrollX,
    scroll_y: window.scrollY,
  };
}"""


class PlaywrightPage:
    """RenderedPage over a Playwright page. Element handles are ElementHandle objects."""

    def __init__(self, page: Page):
        self.page = page

    async def query_all(self, selector: str, root: Any = None) -> List[Any]:
        scope = root if root is not None else self.page
        return await scope.query_selector_all(selector)

    async def text_of(self, el) -> str:
        return (await el.text_content()) or ""

    async def tag_of(self, el) -> str:
        return await el.evaluate("e => e.tagName.toLowerCase()")

    async def parent_of(self, el) -> Optional[Any]:
        handle = await el.evaluate_handle("e => e.parentElement")
        return handle.as_element()

    async def is_visible(self, el) -> bool:
        return await el.is_visible()

    async def matches(self, el, selector: str) -> bool:
        return await el.evaluate("(e, sel) => e.matches(sel)", selector)

    async def box_of(self, el) -> Optional[Dict[str, float]]:
        return await el.bounding_box()

    async def elements_at(self, x: float, y: float) -> List[Any]:
        handle = await self.page.evaluate_handle("([x, y]) => document.elementsFromPoint(x, y)", [x, y])
        try:
            props = await handle.get_properties()
            items = sorted(((int(k), v) for k, v in props.items() if k.isdigit()), key=lambda kv: kv[0])
            return [el for el in (v.as_element() for _, v in items) if el is not None]
        finally:
            await handle.dispose()

    async def metrics(self) -> PageMetrics:
        return PageMetrics(**(await self.page.evaluate(_METRICS_JS)))

    async def scroll_to_top(self) -> None:
        await self.page.evaluate("() => window.scrollTo(0, 0)")

    async def scroll_into_view(self, el) -> None:
        await el.scroll_into_view_if_needed()

    async def pause(self, ms: float) -> None:
        await self.page.wait_for_timeout(ms)

    async def capture_region(self, clip: ClipRegion, path: str, image_format: str) -> bytes:
        # full_page makes Playwright read the clip in page coordinates
        return await self.page.screenshot(path=path, clip=clip.as_dict(), full_page=True, type=image_format)

    async def capture_element(self, el, path: str, image_format: str) -> bytes:
        return await el.screenshot(path=path, type=image_format)


async def wait_for_surfaces(page: Page, selector: str, timeout: float, grace_ms: int = SURFACE_GRACE_MS) -> None:
    """Best effort: return once a chart surface shows up or the grace period ends, whichever is first."""
    waits = [asyncio.ensure_future(page.wait_for_selector(sel, timeout=timeout * 1000))
             for sel in (selector, CHART_HOST_SELECTOR)]
    waits.append(asyncio.ensure_future(asyncio.sleep(grace_ms / 1000)))
    done, pending = await asyncio.wait(waits, return_when=asyncio.FIRST_COMPLETED)
    for t in pending:
        t.cancel()
    await asyncio.gather(*pending, return_exceptions=True)
    for t in done:
        if t.exception() is not None:
            logger.debug("Surface wait ended early: %s", t.exception())


@aretry(backoffs=(2, 4), exceptions=(PWError,))
async def _goto(page: Page, url: str, timeout: float) -> None:
    logger.info("Navigating to %s", url)
    await page.goto(url, wait_until="networkidle", timeout=timeout * 1000)


@asynccontextmanager
async def open_page(settings: Settings) -> AsyncIterator[PlaywrightPage]:
    """Launch Chromium, load the target page, and always tear the browser down on exit."""
    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=settings.headless)
        try:
            context = await browser.new_context(
                viewport={"width": settings.viewport_width, "height": settings.viewport_height},
                device_scale_factor=settings.device_scale_factor,
            )
            page = await context.new_page()
            await _goto(page, settings.target_url, settings.nav_timeout)
            await wait_for_surfaces(page, settings.surface_selector, settings.surface_timeout)
            yield PlaywrightPage(page)
        finally:
            await browser.close()
            logger.info("Browser closed")

from __future__ import annotations
import asyncio
import logging
import re
from typing import Any, Optional, Tuple

from .candidates import HeadingMatch
from .errors import HeadingNotFound
from .page import RenderedPage, page_rect

logger = logging.getLogger("chart_snap.locate")

HEADING_SELECTOR = "h1, h2, h3, h4, h5, h6"
CARD_TAGS = ("div", "section")
POLL_INTERVAL = 0.25

_ws_re = re.compile(r"\s+")


def normalize_text(text: Optional[str]) -> str:
    return _ws_re.sub(" ", text or "").strip()


async def _first_heading(page: RenderedPage, label: str) -> Optional[Tuple[Any, str]]:
    for el in await page.query_all(HEADING_SELECTOR):
        text = normalize_text(await page.text_of(el))
        if label in text:
            return el, text
    return None


async def locate_heading(page: RenderedPage, label: str, timeout: float = 15.0) -> HeadingMatch:
    """
    First h1-h6 (document order) whose whitespace-collapsed text contains `label`.
    Polls until that heading is visible; raises HeadingNotFound once `timeout`
    seconds have passed without one.
    """
    if not label:
        raise ValueError("label must be a non-empty string")

    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while True:
        found = await _first_heading(page, label)
        if found is not None:
            el, text = found
            if await page.is_visible(el):
                rect = await page_rect(page, el)
                if rect is not None:
                    logger.info("Heading for %r: %r at top=%.0f bottom=%.0f", label, text, rect.top, rect.bottom)
                    return HeadingMatch(label=label, element=el, text=text, rect=rect)

        remaining = deadline - loop.time()
        if remaining <= 0:
            raise HeadingNotFound(label, timeout)
        await asyncio.sleep(min(POLL_INTERVAL, remaining))


async def ascend_to_card(page: RenderedPage, heading: Any) -> Any:
    """Nearest div/section ancestor of `heading`; the heading itself if there is none."""
    cur = await page.parent_of(heading)
    while cur is not None:
        if await page.tag_of(cur) in CARD_TAGS:
            return cur
        cur = await page.parent_of(cur)
    logger.debug("No card container above heading; using the heading itself")
    return heading

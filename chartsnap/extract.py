from __future__ import annotations
import logging
from typing import Any, Awaitable, Callable, Iterable, List, Sequence

from .candidates import CandidateSurface, HeadingProbe
from .page import RenderedPage, page_rect

logger = logging.getLogger("chart_snap.extract")

SURFACE_SELECTOR = "canvas"
HIT_OFFSET = 4          # px below the heading's bottom edge
TOP_EPSILON = -2.0      # tolerate sub-pixel rounding between heading and chart

Strategy = Callable[[RenderedPage, HeadingProbe], Awaitable[List[CandidateSurface]]]


async def _surfaces(page: RenderedPage, probe: HeadingProbe, elements: Iterable[Any], tier: str) -> List[CandidateSurface]:
    out: List[CandidateSurface] = []
    for el in elements:
        rect = await page_rect(page, el, probe.metrics)
        if rect is None:  # not rendered
            continue
        out.append(CandidateSurface(element=el, rect=rect, tier=tier))
    return out


def within_card(selector: str = SURFACE_SELECTOR) -> Strategy:
    async def strategy(page: RenderedPage, probe: HeadingProbe) -> List[CandidateSurface]:
        return await _surfaces(page, probe, await page.query_all(selector, root=probe.card), "within_card")
    strategy.__name__ = "within_card"
    return strategy


def below_heading_point(selector: str = SURFACE_SELECTOR, offset: float = HIT_OFFSET) -> Strategy:
    """Surfaces under a point just below the heading: catches charts that are visual, not DOM, siblings."""
    async def strategy(page: RenderedPage, probe: HeadingProbe) -> List[CandidateSurface]:
        m = probe.metrics
        x = m.viewport_width / 2
        y = probe.heading.rect.bottom - m.scroll_y + offset
        hits = [el for el in await page.elements_at(x, y) if await page.matches(el, selector)]
        return await _surfaces(page, probe, hits, "below_heading_point")
    strategy.__name__ = "below_heading_point"
    return strategy


def anywhere_on_page(selector: str = SURFACE_SELECTOR) -> Strategy:
    async def strategy(page: RenderedPage, probe: HeadingProbe) -> List[CandidateSurface]:
        return await _surfaces(page, probe, await page.query_all(selector), "anywhere_on_page")
    strategy.__name__ = "anywhere_on_page"
    return strategy


def below_heading_within(max_distance: float, selector: str = SURFACE_SELECTOR,
                         epsilon: float = TOP_EPSILON) -> Strategy:
    """
    Page-wide surfaces whose top edge sits below the heading's bottom edge and no
    more than `max_distance` px further down. Keeps a chart that belongs to a later
    heading from being attributed to this one.
    """
    async def strategy(page: RenderedPage, probe: HeadingProbe) -> List[CandidateSurface]:
        bottom = probe.heading.rect.bottom
        found = await _surfaces(page, probe, await page.query_all(selector), "below_heading_within")
        return [c for c in found if epsilon <= c.rect.top - bottom <= max_distance]
    strategy.__name__ = "below_heading_within"
    return strategy


def default_strategies(strict: bool = True, max_distance: float = 2000,
                       selector: str = SURFACE_SELECTOR) -> List[Strategy]:
    first = below_heading_within(max_distance, selector) if strict else within_card(selector)
    return [first, below_heading_point(selector), anywhere_on_page(selector)]


async def collect_candidates(page: RenderedPage, probe: HeadingProbe,
                             strategies: Sequence[Strategy]) -> List[CandidateSurface]:
    """Run `strategies` in order and return the first non-empty result ([] if all are empty)."""
    for strategy in strategies:
        found = await strategy(page, probe)
        logger.debug("%s: %d candidate(s) for %r", strategy.__name__, len(found), probe.heading.label)
        if found:
            return found
    logger.info("No rendering surface found for %r", probe.heading.label)
    return []

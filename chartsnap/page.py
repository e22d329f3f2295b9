from __future__ import annotations
from typing import Any, Dict, List, Optional, Protocol

from .geometry import ClipRegion, PageMetrics, PageRect


class RenderedPage(Protocol):
    """Read-only queries over a live rendered document, plus pixel capture.

    Element handles are opaque; only the page that produced them can answer
    questions about them. Boxes are viewport coordinates, everything else in
    the package works in page coordinates (see `page_rect`).
    """

    async def query_all(self, selector: str, root: Any = None) -> List[Any]: ...
    async def text_of(self, el: Any) -> str: ...
    async def tag_of(self, el: Any) -> str: ...
    async def parent_of(self, el: Any) -> Optional[Any]: ...
    async def is_visible(self, el: Any) -> bool: ...
    async def matches(self, el: Any, selector: str) -> bool: ...
    async def box_of(self, el: Any) -> Optional[Dict[str, float]]: ...
    async def elements_at(self, x: float, y: float) -> List[Any]: ...
    async def metrics(self) -> PageMetrics: ...
    async def scroll_to_top(self) -> None: ...
    async def scroll_into_view(self, el: Any) -> None: ...
    async def pause(self, ms: float) -> None: ...
    async def capture_region(self, clip: ClipRegion, path: str, image_format: str) -> bytes: ...
    async def capture_element(self, el: Any, path: str, image_format: str) -> bytes: ...


async def page_rect(page: RenderedPage, el: Any, metrics: Optional[PageMetrics] = None) -> Optional[PageRect]:
    """Element geometry in page coordinates, or None when it has no layout box."""
    box = await page.box_of(el)
    if box is None:
        return None
    if metrics is None:
        metrics = await page.metrics()
    return PageRect.from_box(box, metrics.scroll_x, metrics.scroll_y)

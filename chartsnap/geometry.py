from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Optional


@dataclass(frozen=True)
class PageRect:
    """Axis-aligned rectangle in page (document) coordinates.

    Page coordinates are viewport coordinates plus the scroll offset, so a
    PageRect does not change when the page is scrolled.
    """
    left: float
    top: float
    right: float
    bottom: float

    def __post_init__(self):
        if self.right < self.left or self.bottom < self.top:
            raise ValueError(f"inverted rectangle: {self}")

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    @property
    def area(self) -> float:
        return max(0.0, self.width) * max(0.0, self.height)

    @classmethod
    def from_box(cls, box: Dict[str, float], scroll_x: float = 0, scroll_y: float = 0) -> "PageRect":
        # box is {x, y, width, height} in viewport coordinates
        left = box["x"] + scroll_x
        top = box["y"] + scroll_y
        return cls(left, top, left + max(0.0, box["width"]), top + max(0.0, box["height"]))

    def contains(self, other: "PageRect") -> bool:
        return (self.left <= other.left and self.top <= other.top
                and self.right >= other.right and self.bottom >= other.bottom)


@dataclass(frozen=True)
class Padding:
    top: float = 0
    right: float = 0
    bottom: float = 0
    left: float = 0

    @classmethod
    def parse(cls, value: str) -> "Padding":
        """Parse CSS shorthand order: "t,r,b,l" (also "all" or "v,h")."""
        parts = [float(p) for p in value.replace(" ", "").split(",") if p]
        if len(parts) == 1:
            parts = parts * 4
        elif len(parts) == 2:
            parts = [parts[0], parts[1], parts[0], parts[1]]
        if len(parts) != 4:
            raise ValueError(f"padding needs 1, 2 or 4 values, got {value!r}")
        if any(p < 0 for p in parts):
            raise ValueError(f"padding must be non-negative, got {value!r}")
        return cls(*parts)


@dataclass(frozen=True)
class ClipRegion:
    x: float
    y: float
    width: float
    height: float

    @property
    def is_degenerate(self) -> bool:
        return self.width * self.height <= 0

    def as_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass(frozen=True)
class PageMetrics:
    doc_width: float
    doc_height: float
    viewport_width: float
    viewport_height: float
    scroll_x: float = 0
    scroll_y: float = 0

    # content can be taller than the viewport and vice versa
    @property
    def page_width(self) -> float:
        return max(self.doc_width, self.viewport_width)

    @property
    def page_height(self) -> float:
        return max(self.doc_height, self.viewport_height)


def union(a: PageRect, b: Optional[PageRect]) -> PageRect:
    if b is None:
        return a
    return PageRect(min(a.left, b.left), min(a.top, b.top),
                    max(a.right, b.right), max(a.bottom, b.bottom))


def pad(r: PageRect, p: Padding) -> PageRect:
    return PageRect(r.left - p.left, r.top - p.top, r.right + p.right, r.bottom + p.bottom)


def _clip_range(v: float, lo: float, hi: float) -> float:
    return max(lo, min(v, hi))


def clamp(r: PageRect, page_width: float, page_height: float) -> ClipRegion:
    x = _clip_range(r.left, 0, page_width)
    y = _clip_range(r.top, 0, page_height)
    w = max(0.0, min(r.right, page_width) - x)
    h = max(0.0, min(r.bottom, page_height) - y)
    return ClipRegion(x, y, w, h)

from __future__ import annotations
from typing import Optional

from .candidates import CandidateSurface
from .geometry import ClipRegion, Padding, PageMetrics, PageRect, clamp, pad, union


def expand_region(heading: PageRect, cand: Optional[CandidateSurface],
                  fallback_height: float = 900, padding: Padding = Padding()) -> PageRect:
    """Heading plus its chart, padded. Without a chart, assume one fills `fallback_height` below the heading."""
    if cand is not None:
        r = union(heading, cand.rect)
    else:
        r = PageRect(heading.left, heading.top, heading.right, heading.bottom + fallback_height)
    return pad(r, padding)


def compute_clip(heading: PageRect, cand: Optional[CandidateSurface], metrics: PageMetrics,
                 fallback_height: float = 900, padding: Padding = Padding()) -> ClipRegion:
    r = expand_region(heading, cand, fallback_height, padding)
    return clamp(r, metrics.page_width, metrics.page_height)

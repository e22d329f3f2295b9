from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .geometry import ClipRegion, PageMetrics, PageRect


@dataclass
class HeadingMatch:
    label: str
    element: Any            # opaque page element handle
    text: str               # normalized heading text
    rect: PageRect


@dataclass
class HeadingProbe:
    heading: HeadingMatch
    card: Any               # enclosing container, or the heading element itself
    metrics: PageMetrics


@dataclass
class CandidateSurface:
    element: Any
    rect: PageRect
    tier: str               # "within_card" | "below_heading_within" | "below_heading_point" | "anywhere_on_page"


@dataclass(frozen=True)
class Target:
    key: str                # filename prefix, e.g. "BTC"
    label: str              # heading text to match, e.g. "Bitcoin ETF Flow"


@dataclass
class CaptureResult:
    target: Target
    path: Optional[str] = None
    clip: Optional[Dict[str, float]] = None
    candidate: Optional[CandidateSurface] = None
    width: Optional[int] = None             # decoded image size in pixels
    height: Optional[int] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class LocatedClip:
    heading: HeadingMatch
    clip: ClipRegion
    best: Optional[CandidateSurface]
    candidates: List[CandidateSurface]

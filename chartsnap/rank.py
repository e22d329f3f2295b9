from __future__ import annotations
from typing import Optional, Sequence

from .candidates import CandidateSurface


def select_largest(cands: Sequence[CandidateSurface]) -> Optional[CandidateSurface]:
    # strictly greater keeps the first of equal areas
    best: Optional[CandidateSurface] = None
    best_area = -1.0
    for c in cands:
        if c.rect.area > best_area:
            best, best_area = c, c.rect.area
    return best

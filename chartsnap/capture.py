from __future__ import annotations
import io
import logging
from typing import Iterable, List, Optional, Sequence, Tuple

from PIL import Image

from .candidates import CaptureResult, HeadingProbe, LocatedClip, Target
from .config import Settings
from .crop import compute_clip
from .errors import CaptureError, CaptureIOFailure, DegenerateClip
from .extract import Strategy, collect_candidates, default_strategies
from .locate import ascend_to_card, locate_heading
from .page import RenderedPage
from .rank import select_largest
from .util import artifact_path

logger = logging.getLogger("chart_snap.capture")


async def _reset_scroll(page: RenderedPage, settings: Settings) -> None:
    # sticky headers skew geometry when scrolled
    await page.scroll_to_top()
    await page.pause(settings.settle_ms)


async def locate_clip(page: RenderedPage, label: str, settings: Settings,
                      strategies: Optional[Sequence[Strategy]] = None,
                      ) -> LocatedClip:
    """Heading -> card -> candidates -> largest -> clip, all in page coordinates."""
    heading = await locate_heading(page, label, settings.heading_timeout)
    metrics = await page.metrics()
    # strict spatial mode does not rely on the card
    card = heading.element if settings.strict else await ascend_to_card(page, heading.element)
    if strategies is None:
        strategies = default_strategies(settings.strict, settings.max_distance, settings.surface_selector)

    cands = await collect_candidates(page, HeadingProbe(heading, card, metrics), strategies)
    best = select_largest(cands)
    clip = compute_clip(heading.rect, best, metrics, settings.fallback_height, settings.padding)
    if best is None:
        logger.warning("No chart surface near %r; using %gpx fallback region", label, settings.fallback_height)
    logger.info("Clip for %r: %s (tier=%s, %d candidate(s))",
                label, clip.as_dict(), best.tier if best else "fallback", len(cands))
    return LocatedClip(heading=heading, clip=clip, best=best, candidates=cands)


def _decode(data: bytes) -> Tuple[int, int]:
    with Image.open(io.BytesIO(data)) as img:
        return img.size


async def capture_target(page: RenderedPage, target: Target, settings: Settings,
                         stamp: Tuple[str, str]) -> CaptureResult:
    """Locate and capture one target. Raises a CaptureError subclass on failure."""
    path = artifact_path(settings.output_dir, target.key, stamp,
                         "jpg" if settings.image_format == "jpeg" else "png")
    result = CaptureResult(target=target, path=path.as_posix())

    await _reset_scroll(page, settings)

    card = clip = None
    if settings.capture_mode == "card":
        heading = await locate_heading(page, target.label, settings.heading_timeout)
        card = await ascend_to_card(page, heading.element)
        await page.scroll_into_view(card)
        await page.pause(settings.settle_ms)
    else:
        located = await locate_clip(page, target.label, settings)
        clip = located.clip
        result.clip, result.candidate = clip.as_dict(), located.best
        if clip.is_degenerate:
            raise DegenerateClip(target.label, clip)

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        if card is not None:
            data = await page.capture_element(card, path.as_posix(), settings.image_format)
        else:
            data = await page.capture_region(clip, path.as_posix(), settings.image_format)
        result.width, result.height = _decode(data)
    except Exception as e:
        # OSError, undecodable bytes, or a browser-side error raised by the page
        raise CaptureIOFailure(target.label, path.as_posix(), str(e)) from e

    logger.info("Saved %s (%dx%d)", result.path, result.width, result.height)
    return result


async def capture_all(page: RenderedPage, targets: Iterable[Target], settings: Settings,
                      stamp: Tuple[str, str]) -> List[CaptureResult]:
    """Capture targets one after another; a failed target never stops the rest."""
    results: List[CaptureResult] = []
    for target in targets:
        try:
            results.append(await capture_target(page, target, settings, stamp))
        except CaptureIOFailure as e:
            logger.exception("%s", e)
            results.append(CaptureResult(target=target, path=e.path, error=str(e)))
        except CaptureError as e:
            logger.error("%s", e)
            res = CaptureResult(target=target, error=str(e))
            if isinstance(e, DegenerateClip):
                res.clip = e.clip.as_dict()
            results.append(res)
        except Exception as e:
            # anything else from the page is still scoped to this target
            logger.exception("Capture of %r failed", target.label)
            results.append(CaptureResult(target=target, error=str(e) or type(e).__name__))
    return results

from typing import Optional

from .geometry import ClipRegion


class CaptureError(Exception):
    """A failure scoped to one label; other labels in the run are unaffected."""

    def __init__(self, label: str, message: str):
        super().__init__(message)
        self.label = label


class HeadingNotFound(CaptureError):
    def __init__(self, label: str, timeout: float):
        super().__init__(label, f"No h1-h6 heading containing {label!r} became visible within {timeout:g}s")
        self.timeout = timeout


class DegenerateClip(CaptureError):
    def __init__(self, label: str, clip: ClipRegion):
        super().__init__(label, f"Clip for {label!r} has no area after clamping: {clip}")
        self.clip = clip


class CaptureIOFailure(CaptureError):
    def __init__(self, label: str, path: str, reason: Optional[str] = None):
        msg = f"Capture of {label!r} to {path} failed"
        if reason:
            msg += f": {reason}"
        super().__init__(label, msg)
        self.path = path


__all__ = ["CaptureError", "HeadingNotFound", "DegenerateClip", "CaptureIOFailure"]

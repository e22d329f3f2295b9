from dataclasses import dataclass, field
import os
from pathlib import Path
from typing import List, Optional, Tuple
from dotenv import load_dotenv, find_dotenv
load_dotenv(find_dotenv(filename=".env", usecwd=True))

from .candidates import Target
from .geometry import Padding
from .util import slugify

DEFAULT_TARGETS = "BTC=Bitcoin ETF Flow;ETH=Ethereum ETF Flow"
CAPTURE_MODES = ("clip", "card")
IMAGE_FORMATS = ("png", "jpeg")


@dataclass(frozen=True)
class Settings:
    target_url: str
    targets: Tuple[Target, ...]
    output_dir: str
    timezone: str
    viewport_width: int
    viewport_height: int
    device_scale_factor: float
    headless: bool
    nav_timeout: float
    heading_timeout: float
    surface_timeout: float
    settle_ms: int
    surface_selector: str
    padding: Padding
    fallback_height: float
    max_distance: float
    strict: bool
    capture_mode: str
    image_format: str
    interval: float = field(default=3600)


def parse_targets(value: str) -> Tuple[Target, ...]:
    """"BTC=Bitcoin ETF Flow;ETH=Ethereum ETF Flow" -> targets. A bare label gets a key derived from it."""
    out: List[Target] = []
    for item in value.split(";"):
        item = item.strip()
        if not item:
            continue
        key, sep, label = item.partition("=")
        if not sep:
            key, label = slugify(item).upper(), item
        key, label = key.strip(), label.strip()
        if not key or not label:
            raise ValueError(f"Bad target {item!r}; expected KEY=Heading label")
        out.append(Target(key=key, label=label))
    return tuple(out)


def _flag(v: str) -> bool:
    return v.strip().lower() in ("1", "true", "yes", "on")


def load_settings(target_url: Optional[str] = None) -> Settings:
    missing = []
    def need(k):
        v = os.getenv(k)
        if not v: missing.append(k)
        return v
    s = Settings(
        target_url = target_url or need("TARGET_URL"),
        targets = parse_targets(os.getenv("TARGETS", DEFAULT_TARGETS)),
        output_dir = os.getenv("OUTPUT_DIR", "./captures"),
        timezone = os.getenv("TIMEZONE", "Asia/Seoul"),
        viewport_width = int(os.getenv("VIEWPORT_WIDTH", "1600")),
        viewport_height = int(os.getenv("VIEWPORT_HEIGHT", "2000")),
        device_scale_factor = float(os.getenv("DEVICE_SCALE_FACTOR", "2")),
        headless = _flag(os.getenv("HEADLESS", "true")),
        nav_timeout = float(os.getenv("NAV_TIMEOUT", "45")),
        heading_timeout = float(os.getenv("HEADING_TIMEOUT", "15")),
        surface_timeout = float(os.getenv("SURFACE_TIMEOUT", "15")),
        settle_ms = int(os.getenv("SETTLE_MS", "300")),
        surface_selector = os.getenv("SURFACE_SELECTOR", "canvas"),
        padding = Padding.parse(os.getenv("PADDING", "12,12,24,12")),
        fallback_height = float(os.getenv("FALLBACK_HEIGHT", "900")),
        max_distance = float(os.getenv("MAX_DISTANCE", "2000")),
        strict = _flag(os.getenv("STRICT", "true")),
        capture_mode = os.getenv("CAPTURE_MODE", "clip").lower(),
        image_format = os.getenv("IMAGE_FORMAT", "png").lower(),
        interval = float(os.getenv("INTERVAL", "3600")),
    )
    if missing:
        raise RuntimeError(f"Missing required env vars: {', '.join(missing)}")
    if s.capture_mode not in CAPTURE_MODES:
        raise RuntimeError(f"CAPTURE_MODE must be one of {CAPTURE_MODES}, got {s.capture_mode!r}")
    if s.image_format not in IMAGE_FORMATS:
        raise RuntimeError(f"IMAGE_FORMAT must be one of {IMAGE_FORMATS}, got {s.image_format!r}")
    if not s.targets:
        raise RuntimeError("TARGETS is empty")
    Path(s.output_dir).mkdir(parents=True, exist_ok=True)
    return s

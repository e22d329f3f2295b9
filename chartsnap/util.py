import asyncio
import re
from datetime import datetime
from functools import wraps
from pathlib import Path
from typing import Optional, Tuple

import pytz

_slug_re = re.compile(r"[^a-z0-9]+")
def slugify(value: str) -> str:
    v = value.strip().lower()
    v = _slug_re.sub("-", v)
    v = v.strip("-")
    return v[:120] or "chart"

def capture_stamp(tz_name: str, now: Optional[datetime] = None) -> Tuple[str, str]:
    """("YYYY-MM-DD", "HHMMSS") in `tz_name`. Naive `now` values are taken as UTC."""
    tz = pytz.timezone(tz_name)
    if now is None:
        local = datetime.now(tz)
    else:
        if now.tzinfo is None:
            now = pytz.utc.localize(now)
        local = now.astimezone(tz)
    return local.strftime("%Y-%m-%d"), local.strftime("%H%M%S")

def artifact_path(out_dir: str, key: str, stamp: Tuple[str, str], ext: str = "png") -> Path:
    date, time_ = stamp
    return Path(out_dir) / date / f"{key}_{date}_{time_}.{ext}"

def aretry(backoffs=(1, 2, 4, 8), exceptions=(Exception,)):
    def deco(fn):
        @wraps(fn)
        async def wrap(*a, **kw):
            last = None
            for delay in (0,)+tuple(backoffs):
                try:
                    if delay: await asyncio.sleep(delay)
                    return await fn(*a, **kw)
                except exceptions as e:
                    last = e
            raise last
        return wrap
    return deco

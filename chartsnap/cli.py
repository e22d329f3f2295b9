# chartsnap/cli.py
import asyncio
import dataclasses
import logging
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table
from rich import box
from rich.markup import escape

from .browser import open_page
from .capture import capture_all, locate_clip
from .config import CAPTURE_MODES, Settings, load_settings, parse_targets
from .errors import CaptureError
from .util import capture_stamp


app = typer.Typer(add_completion=False, help="Timestamped snapshots of named charts on a web page")
console = Console()

logger = logging.getLogger("chart_snap.cli")


def _settings(url: Optional[str], target: Optional[List[str]], out: Optional[str],
              strict: Optional[bool], mode: Optional[str]) -> Settings:
    s = load_settings(target_url=url)
    changes = {}
    if target:
        changes["targets"] = parse_targets(";".join(target))
    if out:
        changes["output_dir"] = out
    if strict is not None:
        changes["strict"] = strict
    if mode:
        if mode not in CAPTURE_MODES:
            raise typer.BadParameter(f"--mode must be one of {CAPTURE_MODES}")
        changes["capture_mode"] = mode
    return dataclasses.replace(s, **changes) if changes else s


async def _run_once(s: Settings):
    stamp = capture_stamp(s.timezone)
    logger.info("Capture run %s %s (%s) for %d target(s)", stamp[0], stamp[1], s.timezone, len(s.targets))
    async with open_page(s) as page:
        return await capture_all(page, s.targets, s, stamp)


def _report(results) -> int:
    table = Table(title="Captured Charts", box=box.SIMPLE_HEAVY)
    table.add_column("Key")
    table.add_column("Heading")
    table.add_column("Source")
    table.add_column("Size")
    table.add_column("File / Error")
    failed = 0
    for r in results:
        if r.ok:
            source = r.candidate.tier if r.candidate else ("fallback" if r.clip else "card")
            table.add_row(r.target.key, r.target.label, source, f"{r.width}x{r.height}", r.path)
        else:
            failed += 1
            table.add_row(r.target.key, r.target.label, "-", "-", f"[red]{r.error}[/red]")
    console.print(table)
    return failed


# Options shared by every command
URL_OPT = typer.Option(None, "--url", help="Override TARGET_URL")
TARGET_OPT = typer.Option(None, "--target", "-t", help="KEY=Heading label (repeatable); overrides TARGETS")
OUT_OPT = typer.Option(None, "--out", help="Override OUTPUT_DIR")
STRICT_OPT = typer.Option(None, "--strict/--loose", help="Spatial-only candidate search instead of card containment")
MODE_OPT = typer.Option(None, "--mode", help="clip: heading+chart region; card: whole container element")


@app.command("capture")
def capture(url: Optional[str] = URL_OPT, target: Optional[List[str]] = TARGET_OPT, out: Optional[str] = OUT_OPT,
            strict: Optional[bool] = STRICT_OPT, mode: Optional[str] = MODE_OPT):
    """Capture every configured chart once."""
    console.print("[cyan]Loading settings...[/cyan]")
    s = _settings(url, target, out, strict, mode)
    console.print(f"[cyan]Capturing {len(s.targets)} chart(s) from {s.target_url}...[/cyan]")
    results = asyncio.run(_run_once(s))
    failed = _report(results)
    if failed:
        console.print(f"[red]{failed} of {len(results)} capture(s) failed.[/red]")
        raise typer.Exit(code=1)
    console.print(f"[green]Done: {len(results)} file(s) in {s.output_dir}.[/green]")


@app.command("watch")
def watch(every: Optional[float] = typer.Option(None, "--every", help="Seconds between runs (default INTERVAL)"),
          runs: int = typer.Option(0, "--runs", help="Stop after N runs; 0 runs forever"),
          url: Optional[str] = URL_OPT, target: Optional[List[str]] = TARGET_OPT, out: Optional[str] = OUT_OPT,
          strict: Optional[bool] = STRICT_OPT, mode: Optional[str] = MODE_OPT):
    """Capture on a fixed interval, with a fresh browser each run."""
    s = _settings(url, target, out, strict, mode)
    interval = every if every is not None else s.interval

    async def loop():
        n = 0
        while True:
            n += 1
            console.print(f"[cyan]Run {n}...[/cyan]")
            try:
                _report(await _run_once(s))
            except Exception:
                # a broken run (navigation, browser crash) must not end the schedule
                logger.exception("Run %d failed", n)
            if runs and n >= runs:
                return
            logger.info("Next run in %gs", interval)
            await asyncio.sleep(interval)

    asyncio.run(loop())


@app.command("locate")
def locate(url: Optional[str] = URL_OPT, target: Optional[List[str]] = TARGET_OPT, strict: Optional[bool] = STRICT_OPT):
    """Print the computed clip for each chart without writing images."""
    s = _settings(url, target, None, strict, None)

    async def run():
        rows = []
        async with open_page(s) as page:
            for t in s.targets:
                await page.scroll_to_top()
                await page.pause(s.settle_ms)
                try:
                    rows.append((t, await locate_clip(page, t.label, s), None))
                except CaptureError as e:
                    rows.append((t, None, str(e)))
                except Exception as e:
                    # page errors stay scoped to the target, as in capture_all
                    logger.exception("Locating %r failed", t.label)
                    rows.append((t, None, str(e) or type(e).__name__))
        return rows

    table = Table(title="Located Charts", box=box.SIMPLE_HEAVY)
    for col in ("Key", "Heading", "Heading rect (l, t, r, b)", "Tier", "Candidates", "Clip (x, y, w, h)"):
        table.add_column(col)
    for t, located, err in asyncio.run(run()):
        if err:
            table.add_row(t.key, "-", "-", "-", "-", f"[red]{escape(err)}[/red]")
            continue
        h, clip = located.heading, located.clip
        tier = located.best.tier if located.best else "fallback"
        table.add_row(t.key, escape(h.text),
                      f"{h.rect.left:.0f}, {h.rect.top:.0f}, {h.rect.right:.0f}, {h.rect.bottom:.0f}",
                      tier, str(len(located.candidates)),
                      f"{clip.x:.0f}, {clip.y:.0f}, {clip.width:.0f}, {clip.height:.0f}")
    console.print(table)


def main():
    app()

if __name__ == "__main__":
    main()

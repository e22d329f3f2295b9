"""Shared test fixtures: an in-memory page implementing RenderedPage."""

from __future__ import annotations

import io
from pathlib import Path
from typing import List, Optional, Tuple

import pytest
from PIL import Image

from chartsnap.candidates import Target
from chartsnap.config import Settings
from chartsnap.geometry import ClipRegion, Padding, PageMetrics


class Node:
    """A DOM-ish element. `box` is (x, y, width, height) in page coordinates."""

    def __init__(self, tag: str, text: str = "", box: Optional[Tuple[float, float, float, float]] = None,
                 children: Tuple["Node", ...] = (), visible: bool = True):
        self.tag = tag
        self.own_text = text
        self.box = box
        self.visible = visible
        self.parent: Optional[Node] = None
        self.children: List[Node] = []
        for c in children:
            self.append(c)

    def append(self, child: "Node") -> "Node":
        child.parent = self
        self.children.append(child)
        return child

    def walk(self):
        yield self
        for c in self.children:
            yield from c.walk()

    @property
    def text(self) -> str:
        return " ".join([self.own_text] + [c.text for c in self.children])

    def __repr__(self):
        return f"<{self.tag} {self.own_text!r} {self.box}>"


def el(tag, *children, text="", box=None, visible=True) -> Node:
    return Node(tag, text=text, box=box, children=children, visible=visible)


def _tags(selector: str):
    return {s.strip().lower() for s in selector.split(",")}


def png_bytes(width: float, height: float) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (max(1, int(width)), max(1, int(height))), "white").save(buf, format="PNG")
    return buf.getvalue()


class FakePage:
    def __init__(self, root: Node, doc_width: float = 1600, doc_height: float = 4000,
                 viewport_width: float = 1600, viewport_height: float = 2000, scroll_y: float = 0):
        self.root = root
        self.doc_width, self.doc_height = doc_width, doc_height
        self.viewport_width, self.viewport_height = viewport_width, viewport_height
        self.scroll_x, self.scroll_y = 0, scroll_y
        self.calls: List[str] = []
        self.captured: List[ClipRegion] = []
        self.fail_capture = False

    async def query_all(self, selector, root=None):
        tags = _tags(selector)
        nodes = root.walk() if root is not None else self.root.walk()
        return [n for n in nodes if n is not root and n.tag in tags]

    async def text_of(self, node):
        return node.text

    async def tag_of(self, node):
        return node.tag

    async def parent_of(self, node):
        return node.parent

    async def is_visible(self, node):
        return node.visible and node.box is not None

    async def matches(self, node, selector):
        return node.tag in _tags(selector)

    async def box_of(self, node):
        if node.box is None:
            return None
        x, y, w, h = node.box
        return {"x": x - self.scroll_x, "y": y - self.scroll_y, "width": w, "height": h}

    async def elements_at(self, x, y):
        px, py = x + self.scroll_x, y + self.scroll_y
        hits = [n for n in self.root.walk()
                if n.box and n.box[0] <= px <= n.box[0] + n.box[2] and n.box[1] <= py <= n.box[1] + n.box[3]]
        return list(reversed(hits))

    async def metrics(self):
        return PageMetrics(self.doc_width, self.doc_height, self.viewport_width, self.viewport_height,
                           self.scroll_x, self.scroll_y)

    async def scroll_to_top(self):
        self.calls.append("scroll_to_top")
        self.scroll_x = self.scroll_y = 0

    async def scroll_into_view(self, node):
        self.calls.append("scroll_into_view")

    async def pause(self, ms):
        self.calls.append("pause")

    def _write(self, path, width, height):
        if self.fail_capture:
            raise OSError("disk full")
        data = png_bytes(width, height)
        Path(path).write_bytes(data)
        return data

    async def capture_region(self, clip, path, image_format):
        self.calls.append("capture_region")
        self.captured.append(clip)
        return self._write(path, clip.width, clip.height)

    async def capture_element(self, node, path, image_format):
        self.calls.append("capture_element")
        return self._write(path, node.box[2], node.box[3])


def etf_page(**kw) -> FakePage:
    """Two cards, each a heading with its chart canvas right below it."""
    root = el("html", el("body",
        el("div",
            el("h2", text="Bitcoin ETF Flow (US$m)", box=(100, 500, 600, 40)),
            el("canvas", box=(80, 560, 820, 540)),
            box=(60, 480, 860, 640)),
        el("section",
            el("h2", text="Ethereum ETF Flow (US$m)", box=(100, 1600, 600, 40)),
            el("canvas", box=(80, 1650, 820, 540)),
            box=(60, 1580, 860, 640)),
        box=(0, 0, 1600, 4000)))
    return FakePage(root, **kw)


def make_settings(tmp_path, **overrides) -> Settings:
    values = dict(
        target_url="https://example.test/etf-flow/",
        targets=(Target("BTC", "Bitcoin ETF Flow"), Target("ETH", "Ethereum ETF Flow")),
        output_dir=str(tmp_path / "captures"),
        timezone="Asia/Seoul",
        viewport_width=1600,
        viewport_height=2000,
        device_scale_factor=2,
        headless=True,
        nav_timeout=45,
        heading_timeout=0.3,
        surface_timeout=1,
        settle_ms=0,
        surface_selector="canvas",
        padding=Padding(12, 12, 24, 12),
        fallback_height=900,
        max_distance=2000,
        strict=True,
        capture_mode="clip",
        image_format="png",
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def page() -> FakePage:
    return etf_page()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return make_settings(tmp_path)

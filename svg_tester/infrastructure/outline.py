"""Outline augmentation for SVG icons.

The visual report shows every icon with a contour drawn behind it so
that light-coloured shapes stay visible on a light page.  The default
implementation works on the parsed element tree: it copies the drawable
content into a leading ``<g id="outline">`` group and restyles the copy
as a thick round-joined stroke, leaving the original artwork on top.
"""
from __future__ import annotations

import copy
import xml.etree.ElementTree as ET
from typing import Protocol

from svg_tester.core.errors import TransformError

SVG_NS = "http://www.w3.org/2000/svg"
XLINK_NS = "http://www.w3.org/1999/xlink"
OUTLINE_ID = "outline"

NON_DRAWABLE = {"defs", "title", "desc", "metadata", "style", "script", "symbol", "clipPath", "mask"}

ET.register_namespace("", SVG_NS)
ET.register_namespace("xlink", XLINK_NS)


class OutlineTransformer(Protocol):
    """Contract for outline implementations."""

    def add_outline(self, svg: str) -> str:
        """Return the SVG markup with an outline added; raise TransformError on failure."""


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _namespace(tag: str) -> str:
    return tag[1:].split("}", 1)[0] if tag.startswith("{") else ""


class StrokeOutlineTransformer:
    def __init__(self, stroke: str = "#ffffff", stroke_width: float = 6) -> None:
        self._stroke = stroke
        self._stroke_width = stroke_width

    def _restyle(self, element: ET.Element) -> None:
        for node in element.iter():
            node.attrib.pop("id", None)
            node.attrib.pop("style", None)
            if _local_name(node.tag) in {"g", "a"}:
                continue
            node.set("fill", self._stroke)
            node.set("stroke", self._stroke)
            node.set("stroke-width", f"{self._stroke_width:g}")
            node.set("stroke-linejoin", "round")
            node.set("stroke-linecap", "round")

    def add_outline(self, svg: str) -> str:
        try:
            root = ET.fromstring(svg)
        except ET.ParseError as exc:
            raise TransformError(f"SVG is not well-formed: {exc}") from exc

        if _local_name(root.tag) != "svg":
            raise TransformError(f"root element is <{_local_name(root.tag)}>, expected <svg>")

        children = list(root)
        if any(child.get("id") == OUTLINE_ID for child in children):
            return svg

        drawable = [child for child in children if _local_name(child.tag) not in NON_DRAWABLE]
        if not drawable:
            raise TransformError("SVG has no drawable content to outline")

        namespace = _namespace(root.tag)
        group_tag = f"{{{namespace}}}g" if namespace else "g"
        group = ET.Element(group_tag, {"id": OUTLINE_ID})
        for child in drawable:
            outline = copy.deepcopy(child)
            self._restyle(outline)
            group.append(outline)

        root.insert(children.index(drawable[0]), group)
        return ET.tostring(root, encoding="unicode")

"""
SVG recoloring.

The parse/serialize/data-URI backend sits behind VectorCodec so the resolver
does not depend on a particular XML library. LxmlVectorCodec is the default.
"""
from __future__ import annotations

import base64
import logging
import re
from typing import Protocol

from lxml import etree

from avatarkit.core.errors import MalformedVectorError

logger = logging.getLogger(__name__)

SVG_MIME = "image/svg+xml"

# Elements recolored in addition to the root <svg>
PATH_LIKE_TAGS = frozenset({
    "path",
    "circle",
    "ellipse",
    "line",
    "polygon",
    "polyline",
    "rect",
})

PAINT_PROPERTIES = ("fill", "stroke")

# Text is already decoded, so a declared encoding no longer applies
_XML_DECLARATION_RE = re.compile(r"\A\ufeff?\s*<\?xml\b[^>]*\?>")


class VectorCodec(Protocol):
    """Backend for turning SVG text into a mutable tree and back."""

    def parse_vector(self, text: str) -> etree._Element:
        ...

    def serialize_vector(self, root: etree._Element) -> str:
        ...

    def text_to_data_uri(self, text: str) -> str:
        ...


class LxmlVectorCodec:
    """lxml-backed codec. Entity expansion and network access are disabled."""

    def __init__(self):
        self._parser = etree.XMLParser(
            resolve_entities=False,
            no_network=True,
            huge_tree=False,
        )

    def parse_vector(self, text: str) -> etree._Element:
        markup = _XML_DECLARATION_RE.sub("", text, count=1)
        try:
            root = etree.fromstring(markup.encode("utf-8"), self._parser)
        except etree.XMLSyntaxError as e:
            raise MalformedVectorError(f"Invalid SVG markup: {e}") from e

        if local_name(root) != "svg":
            raise MalformedVectorError(f"Expected <svg> root element, got <{local_name(root)}>")
        return root

    def serialize_vector(self, root: etree._Element) -> str:
        return etree.tostring(root, encoding="unicode")

    def text_to_data_uri(self, text: str) -> str:
        encoded = base64.b64encode(text.encode("utf-8")).decode("ascii")
        return f"data:{SVG_MIME};base64,{encoded}"


def local_name(element: etree._Element) -> str:
    tag = element.tag
    if not isinstance(tag, str):
        # Comments and processing instructions
        return ""
    return etree.QName(tag).localname


# ------------------------------------------------------------
# Inline style handling
# ------------------------------------------------------------

def recolor_style(style: str, color: str) -> str:
    """
    Replace non-empty ``fill``/``stroke`` declarations in an inline style.

    Other declarations are kept. The string is returned untouched when it
    has no paint declaration to replace.
    """
    declarations = []
    changed = False
    for chunk in style.split(";"):
        if not chunk.strip():
            continue
        name, sep, value = chunk.partition(":")
        if sep and name.strip().lower() in PAINT_PROPERTIES and value.strip():
            declarations.append(f"{name.strip()}: {color}")
            changed = True
        else:
            declarations.append(chunk.strip())

    if not changed:
        return style
    return "; ".join(declarations)


def recolor_element(element: etree._Element, color: str) -> bool:
    """
    Overwrite existing fill/stroke on one element.

    Returns:
        bool: True if anything was rewritten
    """
    changed = False
    for prop in PAINT_PROPERTIES:
        if element.get(prop):
            element.set(prop, color)
            changed = True

    style = element.get("style")
    if style:
        new_style = recolor_style(style, color)
        if new_style != style:
            element.set("style", new_style)
            changed = True
    return changed


def recolor_document(root: etree._Element, color: str) -> int:
    """
    Apply ``color`` to the root and every path-like descendant in place.

    Attributes that are absent stay absent.

    Returns:
        int: Number of elements rewritten
    """
    targets = [root]
    targets.extend(el for el in root.iterdescendants() if local_name(el) in PATH_LIKE_TAGS)
    return sum(1 for el in targets if recolor_element(el, color))


def recolor_svg(text: str, color: str, codec: VectorCodec) -> str:
    """Parse, recolor and encode SVG text as a data URI."""
    root = codec.parse_vector(text)
    changed = recolor_document(root, color)
    logger.debug(f"Recolored {changed} SVG element(s) to {color}")
    return codec.text_to_data_uri(codec.serialize_vector(root))

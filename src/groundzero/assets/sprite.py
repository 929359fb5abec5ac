"""
Aggregate SVG icons into a single hidden sprite fragment.

Each ``<name>.svg`` becomes ``<symbol id="icon-<name>">`` inside one ``<svg>``
wrapper that pages include once and reference with ``<use href="#icon-...">``.
The sprite is only rewritten when its content changes, so an unrelated icon
save does not ripple into a page rebuild.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional
from xml.etree import ElementTree as ET

from ..util import slugify, write_text_if_changed

logger = logging.getLogger(__name__)

SVG_NAMESPACE = "http://www.w3.org/2000/svg"
XLINK_HREF = "{http://www.w3.org/1999/xlink}href"

# Sizing comes from CSS and the id from the file name.
_ROOT_DROPPED = frozenset({"width", "height", "id"})
# Paint is inherited from the page so icons can be coloured with CSS.
_PAINT_ATTRIBUTES = frozenset({"fill", "stroke"})

SPRITE_OPEN = (
    '<svg class="svg_sprite" aria-hidden="true" focusable="false" '
    'style="position:absolute;width:0;height:0;overflow:hidden">'
)


def symbol_id(file_name: str) -> str:
    """``Arrow Left.svg`` -> ``icon-arrow-left``."""
    stem = file_name[:-4] if file_name.lower().endswith(".svg") else file_name
    return f"icon-{slugify(stem)}"


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _is_foreign(tag: str) -> bool:
    return tag.startswith("{") and not tag.startswith(f"{{{SVG_NAMESPACE}}}")


def _clean_element(element: ET.Element) -> None:
    """
    Normalise an element tree in place.

    Namespaces are stripped from tags, ``xlink:href`` becomes ``href``, paint and
    editor-namespaced attributes are dropped, foreign elements are removed and
    whitespace-only text is cleared so the symbol serialises on one line.
    """
    element.tag = _local_name(element.tag)
    for name in list(element.attrib):
        value = element.attrib.pop(name)
        if name == XLINK_HREF:
            element.set("href", value)
        elif not name.startswith("{") and name not in _PAINT_ATTRIBUTES:
            element.set(name, value)
    if element.text is not None and not element.text.strip():
        element.text = None
    if element.tail is not None and not element.tail.strip():
        element.tail = None
    for child in list(element):
        if _is_foreign(child.tag):
            element.remove(child)
        else:
            _clean_element(child)


def svg_to_symbol(symbol: str, source: str | bytes) -> Optional[str]:
    """
    Convert SVG markup into a one-line ``<symbol>`` element.

    Returns None when the source is not well-formed XML or its root is not ``<svg>``.
    """
    try:
        root = ET.fromstring(source)
    except ET.ParseError as exc:
        logger.warning("Unable to parse SVG for %s: %s", symbol, exc)
        return None
    if _is_foreign(root.tag) or _local_name(root.tag) != "svg":
        return None

    _clean_element(root)
    element = ET.Element("symbol", {"id": symbol})
    for name, value in root.attrib.items():
        if name not in _ROOT_DROPPED:
            element.set(name, value)
    element.text = root.text
    element.extend(list(root))
    return ET.tostring(element, encoding="unicode")


def build_sprite(symbols: List[str]) -> str:
    body = "\n".join(symbols)
    return f"{SPRITE_OPEN}\n{body}\n</svg>\n"


def generate_svg_sprite(icons_dir: Path | str, output_file: Path | str) -> bool:
    """
    Write the sprite for every ``*.svg`` directly inside icons_dir.

    A missing icons directory yields an empty sprite so that pages including it
    still render. Returns True when the sprite file was (re)written.
    """
    icons_root = Path(icons_dir)
    symbols: List[str] = []
    if icons_root.is_dir():
        icon_files = sorted(
            (entry for entry in icons_root.iterdir() if entry.is_file() and entry.suffix.lower() == ".svg"),
            key=lambda entry: entry.name,
        )
        for icon in icon_files:
            symbol = svg_to_symbol(symbol_id(icon.name), icon.read_bytes())
            if symbol is None:
                logger.warning("Skipping %s: not an <svg> document", icon)
                continue
            symbols.append(symbol)
    else:
        logger.debug("Icons directory %s does not exist; writing an empty sprite", icons_root)

    written = write_text_if_changed(output_file, build_sprite(symbols))
    if written:
        logger.info("Sprite regenerated with %d icon(s): %s", len(symbols), output_file)
    return written

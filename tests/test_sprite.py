import os
from pathlib import Path

from groundzero.assets import generate_svg_sprite, svg_to_symbol, symbol_id
from groundzero.assets.sprite import SPRITE_OPEN, build_sprite


ARROW = """<?xml version="1.0"?>
<svg xmlns="http://www.w3.org/2000/svg" width="24" height="24" viewBox="0 0 24 24">
  <path d="M0 0h24v24H0z"/>
</svg>
"""


def test_symbol_id_uses_slugged_file_name() -> None:
    assert symbol_id("Arrow Left.svg") == "icon-arrow-left"
    assert symbol_id("close.SVG") == "icon-close"


def test_svg_becomes_single_line_symbol() -> None:
    symbol = svg_to_symbol("icon-arrow", ARROW)

    assert symbol == '<symbol id="icon-arrow" viewBox="0 0 24 24"><path d="M0 0h24v24H0z" /></symbol>'


def test_paint_attributes_are_removed_everywhere() -> None:
    source = (
        '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 24 24" fill="none">'
        '<g stroke="#000"><path stroke="#000" fill="red" stroke-width="2" d="M0 0"/></g></svg>'
    )

    symbol = svg_to_symbol("icon-x", source)

    assert symbol == '<symbol id="icon-x" viewBox="0 0 24 24"><g><path stroke-width="2" d="M0 0" /></g></symbol>'


def test_xlink_href_becomes_plain_href() -> None:
    source = (
        '<svg xmlns="http://www.w3.org/2000/svg" xmlns:xlink="http://www.w3.org/1999/xlink" viewBox="0 0 1 1">'
        '<use xlink:href="#dot"/></svg>'
    )

    assert svg_to_symbol("icon-x", source) == '<symbol id="icon-x" viewBox="0 0 1 1"><use href="#dot" /></symbol>'


def test_editor_metadata_is_dropped() -> None:
    source = (
        '<svg xmlns="http://www.w3.org/2000/svg" '
        'xmlns:sodipodi="http://sodipodi.sourceforge.net/DTD/sodipodi-0.dtd" '
        'sodipodi:docname="dot.svg" id="svg8" viewBox="0 0 1 1">'
        '<!-- exported --><sodipodi:namedview id="base"/><circle r="1"/></svg>'
    )

    assert svg_to_symbol("icon-dot", source) == '<symbol id="icon-dot" viewBox="0 0 1 1"><circle r="1" /></symbol>'


def test_source_without_svg_root_is_skipped() -> None:
    assert svg_to_symbol("icon-x", "<p>not an icon</p>") is None


def test_malformed_svg_is_skipped() -> None:
    assert svg_to_symbol("icon-x", "<svg><path></svg>") is None


def test_sprite_contains_symbols_in_name_order(tmp_path: Path) -> None:
    icons = tmp_path / "icons"
    icons.mkdir()
    (icons / "b.svg").write_text(ARROW, encoding="utf-8")
    (icons / "a.svg").write_text(ARROW, encoding="utf-8")
    (icons / "readme.txt").write_text("ignored", encoding="utf-8")
    output = tmp_path / "partials" / "svg-sprite.ejs"

    assert generate_svg_sprite(icons, output) is True

    sprite = output.read_text(encoding="utf-8")
    assert sprite.startswith(SPRITE_OPEN)
    assert sprite.index('id="icon-a"') < sprite.index('id="icon-b"')
    assert "readme" not in sprite


def test_unchanged_sprite_is_not_rewritten(tmp_path: Path) -> None:
    icons = tmp_path / "icons"
    icons.mkdir()
    (icons / "a.svg").write_text(ARROW, encoding="utf-8")
    output = tmp_path / "svg-sprite.ejs"
    generate_svg_sprite(icons, output)
    old = 1_000_000_000
    os.utime(output, (old, old))

    assert generate_svg_sprite(icons, output) is False
    assert output.stat().st_mtime == old


def test_missing_icons_directory_writes_empty_sprite(tmp_path: Path) -> None:
    output = tmp_path / "svg-sprite.ejs"

    assert generate_svg_sprite(tmp_path / "no-icons", output) is True
    assert output.read_text(encoding="utf-8") == build_sprite([])

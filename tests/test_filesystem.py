import os
from pathlib import Path

import pytest

from groundzero.util import walk_files, write_text_file, write_text_if_changed


def test_walk_files_is_recursive_sorted_and_filtered(tmp_path: Path) -> None:
    for name in ("b.ejs", "a.ejs", "nested/c.ejs", "nested/skip.html"):
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("", encoding="utf-8")

    assert walk_files(tmp_path, ".ejs") == [tmp_path / "a.ejs", tmp_path / "b.ejs", tmp_path / "nested" / "c.ejs"]


def test_walk_files_of_missing_root_is_empty(tmp_path: Path) -> None:
    assert walk_files(tmp_path / "missing", ".ejs") == []


def test_write_text_file_creates_parents_without_temp_leftovers(tmp_path: Path) -> None:
    target = tmp_path / "out" / "deep" / "page.html"

    write_text_file(target, "<p>x</p>\n", lock=False)

    assert target.read_text(encoding="utf-8") == "<p>x</p>\n"
    assert sorted(p.name for p in target.parent.iterdir()) == ["page.html"]


def test_write_text_if_changed_skips_identical_content(tmp_path: Path) -> None:
    target = tmp_path / "sprite.ejs"

    assert write_text_if_changed(target, "one") is True
    old = 1_000_000_000
    os.utime(target, (old, old))
    assert write_text_if_changed(target, "one") is False
    assert target.stat().st_mtime == old
    assert write_text_if_changed(target, "two") is True
    assert target.read_text(encoding="utf-8") == "two"


def test_walk_files_propagates_listing_errors(tmp_path: Path, monkeypatch) -> None:
    def denied_walk(top, onerror=None):
        onerror(PermissionError(13, "Permission denied", str(top)))
        return iter(())

    monkeypatch.setattr("groundzero.util.filesystem.os.walk", denied_walk)

    with pytest.raises(PermissionError):
        walk_files(tmp_path, ".ejs")


def test_walk_files_tolerates_directory_vanishing_mid_walk(tmp_path: Path, monkeypatch) -> None:
    def vanished_walk(top, onerror=None):
        onerror(FileNotFoundError(2, "No such file or directory", str(top)))
        return iter(())

    monkeypatch.setattr("groundzero.util.filesystem.os.walk", vanished_walk)

    assert walk_files(tmp_path, ".ejs") == []

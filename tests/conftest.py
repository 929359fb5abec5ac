from pathlib import Path
import textwrap

import pytest
from typer.testing import CliRunner

from groundzero.config import SiteConfig


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def write_template(path: Path, body: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(body).lstrip("\n"), encoding="utf-8")
    return path


@pytest.fixture
def site(tmp_path: Path) -> SiteConfig:
    """
    Lay out a small project and return its configuration.

    Pages ``a`` (includes ``nav``) and ``b`` (no includes); ``nav`` includes ``logo``.
    """
    pages = tmp_path / "src" / "pages"
    partials = tmp_path / "src" / "partials"
    write_template(
        pages / "a.ejs",
        """
        <!DOCTYPE html>
        <title>A</title>
        <% include("../partials/nav") %>
        <script type="module" src="<%= module_entry %>"></script>
        """,
    )
    write_template(pages / "b.ejs", "<p>B</p>\n")
    write_template(partials / "nav.ejs", '<nav><% include("logo") %></nav>\n')
    write_template(partials / "logo.ejs", '<img alt="logo">\n')
    return SiteConfig(project_root=tmp_path, module_entry="/src/assets/js/main.js")

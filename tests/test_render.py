from pathlib import Path

import pytest

from groundzero.config import SiteConfig
from groundzero.render import (
    RenderError,
    compile_all,
    compile_page,
    compile_pages,
    output_path_for,
    read_partials,
    render_document,
)

from conftest import write_template


def test_output_path_mirrors_pages_tree(site: SiteConfig) -> None:
    document = site.pages_root / "blog" / "post.ejs"

    assert output_path_for(document, site) == site.out_root / "blog" / "post.html"


def test_output_path_outside_pages_root_is_rejected(site: SiteConfig) -> None:
    with pytest.raises(RenderError):
        output_path_for(site.partials_root / "nav.ejs", site)


def test_compile_page_writes_rendered_includes(site: SiteConfig) -> None:
    target = compile_page(site.pages_root / "a.ejs", site)

    assert target == site.out_root / "a.html"
    html = target.read_text(encoding="utf-8")
    assert "<title>A</title>" in html
    assert '<nav><img alt="logo">' in html
    assert '<script type="module" src="/src/assets/js/main.js"></script>' in html


def test_compile_page_creates_nested_output_directories(site: SiteConfig) -> None:
    write_template(site.pages_root / "blog" / "2024" / "post.ejs", "<p>post</p>\n")

    target = compile_page(site.pages_root / "blog" / "2024" / "post.ejs", site)

    assert target == site.out_root / "blog" / "2024" / "post.html"
    assert target.read_text(encoding="utf-8") == "<p>post</p>\n"


def test_rendering_is_deterministic(site: SiteConfig) -> None:
    first = render_document(site.pages_root / "a.ejs", site)
    second = render_document(site.pages_root / "a.ejs", site)

    assert first == second


def test_missing_document_returns_none(site: SiteConfig) -> None:
    assert render_document(site.pages_root / "gone.ejs", site) is None
    assert compile_page(site.pages_root / "gone.ejs", site) is None
    assert not (site.out_root / "gone.html").exists()


def test_include_call_form_is_not_escaped(site: SiteConfig) -> None:
    write_template(site.pages_root / "c.ejs", '<main><%= include("../partials/logo") %></main>\n')

    html = render_document(site.pages_root / "c.ejs", site)

    assert html == '<main><img alt="logo">\n</main>\n'


def test_expressions_are_escaped(site: SiteConfig) -> None:
    write_template(site.pages_root / "c.ejs", '<%= "<b>" %>\n')

    assert render_document(site.pages_root / "c.ejs", site) == "&lt;b&gt;\n"


def test_commented_out_include_is_ignored(site: SiteConfig) -> None:
    write_template(site.pages_root / "c.ejs", '<p>c</p><%# <% include("../partials/ghost") %> %>\n')

    assert render_document(site.pages_root / "c.ejs", site) == "<p>c</p>\n"


def test_partials_map_exposes_raw_fragment_sources(site: SiteConfig) -> None:
    write_template(site.partials_root / "layout" / "footer.ejs", "<footer><%# note %>end</footer>\n")
    write_template(site.pages_root / "c.ejs", '<%= partials["layout/footer"] %><%= partials["nav"] %>\n')

    partials = read_partials(site)
    html = render_document(site.pages_root / "c.ejs", site)

    assert sorted(partials) == ["layout/footer", "logo", "nav"]
    assert partials["layout/footer"] == "<footer>end</footer>\n"
    assert html == '<footer>end</footer>\n<nav><% include("logo") %></nav>\n\n'


def test_module_entry_defaults_to_dev_server_path(tmp_path: Path) -> None:
    config = SiteConfig(project_root=tmp_path)
    write_template(config.pages_root / "index.ejs", "<%= module_entry %>")

    html = render_document(config.pages_root / "index.ejs", config)

    assert html.startswith("/@fs/")
    assert html.endswith("src/assets/js/main.js")


def test_missing_include_raises_render_error(site: SiteConfig) -> None:
    write_template(site.pages_root / "c.ejs", '<% include("../partials/ghost") %>\n')

    with pytest.raises(RenderError):
        render_document(site.pages_root / "c.ejs", site)


def test_undefined_name_raises_render_error(site: SiteConfig) -> None:
    write_template(site.pages_root / "c.ejs", "<%= missing_value %>\n")

    with pytest.raises(RenderError):
        render_document(site.pages_root / "c.ejs", site)


def test_syntax_error_reports_location(site: SiteConfig) -> None:
    write_template(site.pages_root / "c.ejs", "<p>\n<% if %>\n")

    with pytest.raises(RenderError) as exc:
        render_document(site.pages_root / "c.ejs", site)

    assert ":2:" in str(exc.value)


def test_lenient_batch_records_failures_and_continues(site: SiteConfig) -> None:
    broken = write_template(site.pages_root / "c.ejs", '<% include("../partials/ghost") %>\n')
    documents = [site.pages_root / "a.ejs", site.pages_root / "b.ejs", broken, site.pages_root / "gone.ejs"]

    report = compile_pages(documents, site, strict=False)

    assert report.written == [site.out_root / "a.html", site.out_root / "b.html"]
    assert list(report.failures) == [broken]
    assert report.missing == [site.pages_root / "gone.ejs"]
    assert not report.ok


def test_compile_all_builds_every_page(site: SiteConfig) -> None:
    report = compile_all(site)

    assert report.ok
    assert sorted(report.written) == [site.out_root / "a.html", site.out_root / "b.html"]
    assert (site.out_root / "b.html").read_text(encoding="utf-8") == "<p>B</p>\n"


def test_compile_all_stops_on_first_failure(site: SiteConfig) -> None:
    write_template(site.pages_root / "0-broken.ejs", "<%= nope %>\n")

    with pytest.raises(RenderError):
        compile_all(site)


def test_escaped_opener_renders_literal_tag(site: SiteConfig) -> None:
    write_template(site.pages_root / "c.ejs", "<p><%% raw %></p>\n")

    assert render_document(site.pages_root / "c.ejs", site) == "<p><% raw %></p>\n"


def test_commented_escaped_opener_leaves_no_trace(site: SiteConfig) -> None:
    write_template(site.pages_root / "c.ejs", "<p>x</p><%# swap for <%% tags %>\n")

    assert render_document(site.pages_root / "c.ejs", site) == "<p>x</p>\n"


def test_dash_tag_trims_whitespace_and_is_not_an_output_tag(site: SiteConfig) -> None:
    write_template(site.pages_root / "c.ejs", '<p>\n  <%- include("../partials/logo") %></p>\n')
    write_template(site.pages_root / "d.ejs", '<%- partials["nav"] %>\n')

    assert render_document(site.pages_root / "c.ejs", site) == '<p><img alt="logo">\n</p>\n'
    with pytest.raises(RenderError):
        render_document(site.pages_root / "d.ejs", site)

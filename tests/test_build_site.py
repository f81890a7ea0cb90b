"""Tests for the static page build."""

from datetime import datetime

import pytest

from vaxeff import build_site
from vaxeff.build_site import build, footer_text, render_page


def test_render_page_has_social_meta_tags() -> None:
    html = render_page(["<svg>a</svg>", "<svg>b</svg>"])
    assert html.startswith("<html><head>")
    assert '<meta name="twitter:card" content="summary_large_image" />' in html
    assert 'property="og:image"' in html
    assert "<svg>a</svg><br /><svg>b</svg>" in html


def test_footer_text() -> None:
    assert footer_text(datetime(2022, 1, 5, 9, 30)) == (
        "Updated @ 09:30 05 Jan 2022  ·  "
        "Source: ourworldindata.org, github.com/janole/vaxeff"
    )


def test_build_writes_page_and_screenshots(tmp_path, owid_dataset, deaths_spec, countries) -> None:
    written = build(
        owid_dataset,
        output_dir=tmp_path,
        countries=countries,
        stats=[deaths_spec],
        now=datetime(2022, 1, 5, 9, 30),
    )

    assert [path.name for path in written] == [
        "index.html", "screenshot00.png", "screenshot01.png",
    ]
    html = (tmp_path / "index.html").read_text(encoding="utf-8")
    assert html.count("<svg") == 2
    assert "Alphaland" in html
    assert "Updated @ 09:30 05 Jan 2022" in html


def test_build_without_screenshots_is_repeatable(tmp_path, owid_dataset, deaths_spec, countries) -> None:
    kwargs = dict(
        output_dir=tmp_path, screenshots=False,
        countries=countries, stats=[deaths_spec],
        now=datetime(2022, 1, 5, 9, 30),
    )
    written = build(owid_dataset, **kwargs)
    assert [path.name for path in written] == ["index.html"]
    first = (tmp_path / "index.html").read_text(encoding="utf-8")

    build(owid_dataset, **kwargs)
    assert (tmp_path / "index.html").read_text(encoding="utf-8") == first


def test_main_exits_without_dataset(monkeypatch, tmp_path) -> None:
    monkeypatch.setattr(build_site, "load_dataset", lambda force_refresh=False: None)
    with pytest.raises(SystemExit) as excinfo:
        build_site.main(["--output-dir", str(tmp_path)])
    assert excinfo.value.code == 1


def test_main_builds_from_loaded_dataset(monkeypatch, tmp_path, owid_dataset) -> None:
    monkeypatch.setattr(build_site, "load_dataset", lambda force_refresh=False: owid_dataset)
    build_site.main(["--output-dir", str(tmp_path), "--no-screenshots"])

    html = (tmp_path / "index.html").read_text(encoding="utf-8")
    # two charts for every published metric pair
    assert html.count("<svg") == 2 * len(build_site.STATS)

"""
vaxeff/build_site.py
====================
Build the static "COVID-19 Stats" page: two charts per metric pair, inlined
as SVG into docs/index.html, plus a PNG screenshot of every chart.

For each pair in vaxeff.metrics.STATS:
    chart A  countries ordered by the left metric, lowest first
    chart B  countries ordered by the right metric, highest first

Usage:
    python -m vaxeff.build_site                        # cache-or-fetch, then build
    python -m vaxeff.build_site --refresh              # force a fresh download
    python -m vaxeff.build_site --max-date 2022-01-01  # chart an earlier state
    python -m vaxeff.build_site --no-screenshots

Output:
    docs/index.html
    docs/screenshot00.png … screenshotNN.png  (1024 px wide)
"""

import sys
import argparse
from datetime import datetime
from pathlib import Path

import matplotlib.pyplot as plt
from jinja2 import Template

from vaxeff.chart_rows import DEFAULT_MAX_DATE, build_chart_data, describe_rows
from vaxeff.fetch_data import load_dataset
from vaxeff.metrics import STATS, MetricSpec
from vaxeff.visualize import rasterize, render_chart, to_svg


# ─────────────────────────────────────────────────────────────────────────────
# Paths
# ─────────────────────────────────────────────────────────────────────────────
PROJECT_ROOT = Path(__file__).resolve().parent.parent
DOCS_DIR     = PROJECT_ROOT / "docs"

# ─────────────────────────────────────────────────────────────────────────────
# Constants
# ─────────────────────────────────────────────────────────────────────────────
COUNTRIES = [
    "GRC", "NOR", "SWE", "FIN", "DNK",
    "DEU", "CHE", "POL", "AUT", "HUN",
    "IRL", "GBR", "FRA", "NLD", "BEL",
    "PRT", "ESP", "ITA",
]

WIDTH      = 1024
ROW_HEIGHT = 30      # pixels per country band

# Each metric pair is charted twice
VARIANTS = [
    {"reverse": True},
    {"sort": "right"},
]

SITE = {
    "title":        "COVID-19 Stats",
    "twitter_site": "@janole",
    "image":        "https://janole.github.io/vaxeff/screenshot00.png",
    "source":       "ourworldindata.org",
    "repository":   "github.com/janole/vaxeff",
}

PAGE_TEMPLATE = Template(
    "<html><head>"
    '<meta name="viewport" content="width=device-width, initial-scale=1" />'
    '<meta name="twitter:card" content="summary_large_image" />'
    '<meta name="twitter:title" content="{{ site.title }}" />'
    '<meta name="twitter:site" content="{{ site.twitter_site }}" />'
    '<meta name="twitter:image" content="{{ site.image }}" />'
    '<meta property="og:image" content="{{ site.image }}" />'
    "<title>{{ site.title }}</title>"
    "</head><body>"
    "{{ charts | join('<br />') }}"
    "</body></html>"
)


# ─────────────────────────────────────────────────────────────────────────────
# Charts
# ─────────────────────────────────────────────────────────────────────────────

def footer_text(now: datetime) -> str:
    return (f"Updated @ {now:%H:%M %d %b %Y}  ·  "
            f"Source: {SITE['source']}, {SITE['repository']}")


def make_chart(
    dataset: dict,
    spec: MetricSpec,
    countries: list[str],
    width: int,
    height: int,
    footer: str,
    sort: str | None = None,
    reverse: bool = False,
    max_date: str = DEFAULT_MAX_DATE,
):
    """Rows + figure for one chart."""
    data = build_chart_data(
        dataset, spec, countries,
        sort=sort, reverse=reverse, max_date=max_date,
    )
    fig = render_chart(
        data.rows,
        x_domain=data.x_domain,
        x_format=data.format_tick,
        labels=(spec.label_left, "vs.", spec.label_right),
        width=width,
        height=height,
        footer=footer,
    )
    return data, fig


def render_page(charts: list[str]) -> str:
    return PAGE_TEMPLATE.render(site=SITE, charts=charts)


def build(
    dataset: dict,
    output_dir: Path = DOCS_DIR,
    screenshots: bool = True,
    max_date: str = DEFAULT_MAX_DATE,
    countries: list[str] | None = None,
    stats: list[MetricSpec] | None = None,
    now: datetime | None = None,
) -> list[Path]:
    """
    Render every chart, write index.html and (optionally) the screenshots.

    Returns the paths written, index.html first.
    """
    countries = list(dict.fromkeys(countries or COUNTRIES))
    stats = STATS if stats is None else stats
    width, height = WIDTH, ROW_HEIGHT * len(countries)
    footer = footer_text(now or datetime.now())

    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    figures, charts = [], []
    for spec in stats:
        for variant in VARIANTS:
            data, fig = make_chart(
                dataset, spec, countries, width, height, footer,
                max_date=max_date, **variant,
            )
            print(f"[chart] {spec.label_right} ({len(data.rows) // 2} countries, "
                  f"axis ±{data.scale.max_right:g})")
            figures.append(fig)
            charts.append(to_svg(fig))

    index = output_dir / "index.html"
    index.write_text(render_page(charts), encoding="utf-8")
    print(f"[done]  Page saved → {index}")
    written = [index]

    try:
        if screenshots:
            for i, fig in enumerate(figures):
                path = output_dir / f"screenshot{i:02d}.png"
                path.write_bytes(rasterize(fig, width, height))
                written.append(path)
            print(f"[done]  {len(figures)} screenshots saved → {output_dir}")
    finally:
        for fig in figures:
            plt.close(fig)

    return written


# ─────────────────────────────────────────────────────────────────────────────
# MAIN
# ─────────────────────────────────────────────────────────────────────────────

def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        description="Build the COVID-19 comparison charts page.",
    )
    parser.add_argument("--refresh", action="store_true",
                        help="Force re-download even if the cached dataset is fresh.")
    parser.add_argument("--output-dir", type=Path, default=DOCS_DIR,
                        help="Where to write index.html and the screenshots.")
    parser.add_argument("--max-date", default=DEFAULT_MAX_DATE,
                        help="Only use records dated before this day (YYYY-MM-DD).")
    parser.add_argument("--no-screenshots", action="store_true",
                        help="Skip the PNG screenshots.")
    args = parser.parse_args(argv)

    print("=" * 58)
    print("  COVID-19 Stats · Site build")
    print("=" * 58)

    dataset = load_dataset(force_refresh=args.refresh)
    if dataset is None:
        print(
            "\n[error] No dataset available.\n"
            "        Run 'python -m vaxeff.fetch_data --refresh' to diagnose."
        )
        sys.exit(1)

    # Quick look at the first chart's content
    data = build_chart_data(dataset, STATS[0], COUNTRIES, reverse=True,
                            max_date=args.max_date)
    print(f"\n[info]  {STATS[0].label_right}:")
    print(describe_rows(data).to_string(index=False))
    print()

    build(
        dataset,
        output_dir=args.output_dir,
        screenshots=not args.no_screenshots,
        max_date=args.max_date,
    )


if __name__ == "__main__":
    main()

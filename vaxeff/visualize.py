"""
vaxeff/visualize.py
===================
Draw a diverging horizontal bar chart from chart rows.

Every country gets one band.  Its LEFT row (negative value) grows to the
left of the zero line, its RIGHT row to the right.  Rows of the same sign
that share a band are stacked.

Layout (pixels, top to bottom):
    label_left ······· "vs." ······· label_right     ← header
    tick labels (formatted by x_format)              ← top axis
    one band per country, in order of first appearance
    footer (right aligned)

Output:
    to_svg()     → SVG markup to embed in HTML
    rasterize()  → PNG bytes of exactly width × height pixels
"""

import io
from collections import defaultdict
from typing import Callable, Sequence

import matplotlib

# Non-interactive backend, renders to files and buffers only
matplotlib.use("Agg")

import matplotlib.pyplot as plt
import matplotlib.ticker as mticker
from matplotlib.figure import Figure
from PIL import Image


# ─────────────────────────────────────────────────────────────────────────────
# Design system
# ─────────────────────────────────────────────────────────────────────────────
DPI = 100

PAL = {
    "bg":      "#FFFFFF",
    "grid":    "#E4E4E4",
    "zero":    "#1E2832",
    "text":    "#1E2832",
    "subtext": "#5E6E7E",
    "title":   "#FFFFFF",   # bar titles sit inside the bars
}

# d3.schemeTableau10: colours are handed out per row type, in order of
# first appearance
SERIES_COLORS = [
    "#4e79a7", "#f28e2c", "#e15759", "#76b7b2", "#59a14f",
    "#edc949", "#af7aa1", "#ff9da7", "#9c755f", "#bab0ab",
]

# Margins in pixels
MARGIN_TOP    = 60
MARGIN_BOTTOM = 30
MARGIN_LEFT   = 130
MARGIN_RIGHT  = 30

plt.rcParams.update({
    "font.family":       "sans-serif",
    "font.sans-serif":   ["Helvetica Neue", "Helvetica", "Arial",
                          "Liberation Sans", "DejaVu Sans"],
    "figure.facecolor":  PAL["bg"],
    "axes.facecolor":    PAL["bg"],
    "text.color":        PAL["text"],
    "xtick.color":       PAL["subtext"],
    "ytick.color":       PAL["text"],
    "axes.spines.top":    False,
    "axes.spines.right":  False,
    "axes.spines.bottom": False,
    "axes.spines.left":   False,
    # keep text as <text> elements and element ids stable between runs
    "svg.fonttype":      "none",
    "svg.hashsalt":      "vaxeff",
})


# ─────────────────────────────────────────────────────────────────────────────
# Chart
# ─────────────────────────────────────────────────────────────────────────────

def series_colors(rows: Sequence) -> dict:
    """Row type → colour, in order of first appearance."""
    types = list(dict.fromkeys(row.type for row in rows))
    return {z: SERIES_COLORS[i % len(SERIES_COLORS)] for i, z in enumerate(types)}


def render_chart(
    rows: Sequence,
    x_domain: tuple[float, float],
    x_format: Callable[[float], str],
    labels: tuple[str, str, str],
    width: int = 1024,
    height: int = 768,
    footer: str | None = None,
) -> Figure:
    """
    Build the figure for one chart.

    ``labels`` is (left, centre, right).  The caller owns the returned figure
    and should pass it to plt.close() once exported.
    """
    fig = plt.figure(figsize=(width / DPI, height / DPI), dpi=DPI, facecolor=PAL["bg"])
    ax = fig.add_axes([
        MARGIN_LEFT / width,
        MARGIN_BOTTOM / height,
        1 - (MARGIN_LEFT + MARGIN_RIGHT) / width,
        1 - (MARGIN_TOP + MARGIN_BOTTOM) / height,
    ])

    ids = list(dict.fromkeys(row.id for row in rows))
    band_of = {name: i for i, name in enumerate(ids)}
    colors = series_colors(rows)

    # ── Bars, stacked away from zero ─────────────────────────────────────────
    positive = defaultdict(float)
    negative = defaultdict(float)
    for row in rows:
        offsets = negative if row.value < 0 else positive
        start = offsets[row.id]
        offsets[row.id] = start + row.value

        ax.barh(
            band_of[row.id], row.value,
            left=start, height=0.8,
            color=colors[row.type],
            zorder=2,
        )
        if row.title:
            ax.text(
                start + row.value, band_of[row.id], f" {row.title}",
                color=PAL["title"], fontsize=7,
                ha="left", va="center",
                clip_on=True, zorder=3,
            )

    # ── Axes ─────────────────────────────────────────────────────────────────
    ax.set_xlim(*x_domain)
    # first band at the top
    ax.set_ylim(max(len(ids), 1) - 0.5, -0.5)
    ax.set_yticks(range(len(ids)))
    ax.set_yticklabels(ids, fontsize=9)
    ax.tick_params(axis="y", length=0)

    ax.xaxis.tick_top()
    ax.xaxis.set_major_locator(mticker.MaxNLocator(nbins=10, symmetric=True))
    ax.xaxis.set_major_formatter(mticker.FuncFormatter(lambda v, _pos: x_format(v)))
    ax.tick_params(axis="x", labelsize=8, length=0)

    ax.grid(axis="x", color=PAL["grid"], linewidth=0.6, zorder=0)
    ax.grid(axis="y", visible=False)
    ax.axvline(0, color=PAL["zero"], linewidth=0.8, zorder=4)

    # ── Header ───────────────────────────────────────────────────────────────
    label_left, label_centre, label_right = labels
    header_y = 1 - 12 / height
    fig.text(MARGIN_LEFT / width, header_y, label_left,
             fontsize=10, fontweight="bold", ha="left", va="top")
    fig.text(
        (MARGIN_LEFT + (width - MARGIN_LEFT - MARGIN_RIGHT) / 2) / width, header_y,
        label_centre, fontsize=10, color=PAL["subtext"], ha="center", va="top",
    )
    fig.text(1 - MARGIN_RIGHT / width, header_y, label_right,
             fontsize=10, fontweight="bold", ha="right", va="top")

    # ── Footer ───────────────────────────────────────────────────────────────
    if footer:
        fig.text(1 - MARGIN_RIGHT / width, 6 / height, footer,
                 fontsize=7, color=PAL["subtext"], ha="right", va="bottom")

    return fig


# ─────────────────────────────────────────────────────────────────────────────
# Export
# ─────────────────────────────────────────────────────────────────────────────

def to_svg(fig: Figure) -> str:
    """SVG markup of the figure, without XML prolog, ready to inline in HTML."""
    buf = io.StringIO()
    # Date=None drops the timestamp so unchanged charts give identical markup
    fig.savefig(buf, format="svg", facecolor=PAL["bg"], metadata={"Date": None})
    markup = buf.getvalue()
    return markup[markup.index("<svg"):]


def rasterize(fig: Figure, width: int, height: int) -> bytes:
    """PNG bytes of exactly ``width`` × ``height`` pixels."""
    buf = io.BytesIO()
    fig.savefig(buf, format="png", dpi=DPI, facecolor=PAL["bg"], edgecolor="none")
    buf.seek(0)

    rendered = Image.open(buf)
    # figsize × DPI can be off by a pixel after float rounding
    if rendered.size != (width, height):
        rendered = rendered.resize((width, height), Image.LANCZOS)

    out = io.BytesIO()
    rendered.save(out, format="PNG", dpi=(DPI, DPI))
    return out.getvalue()

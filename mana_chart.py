"""
Mana Base Crafter - Chart Builder
=================================

Turns aggregated mana symbol counts into a QuickChart pie chart.

Only the five colors are charted. Generic, colorless, hybrid and phyrexian
symbols are dropped. Slices always come out in WUBRG order so the same
deck gives the same chart every time.
"""

import json
import logging
from typing import Any, Dict, Mapping, NamedTuple, Tuple

import httpx

from config import QUICKCHART_API
from errors import RenderError
from models import ChartSlice, ChartSpec

logger = logging.getLogger(__name__)


class ManaColor(NamedTuple):
    symbol: str
    name: str
    hex_color: str


# Fixed table, in canonical WUBRG order
MANA_PALETTE: Tuple[ManaColor, ...] = (
    ManaColor("W", "White", "#f8e7b9"),
    ManaColor("U", "Blue", "#0e68ab"),
    ManaColor("B", "Black", "#160b00"),
    ManaColor("R", "Red", "#d31f2a"),
    ManaColor("G", "Green", "#00743f"),
)

CHART_TYPE = "outlabeledPie"


def build_chart_spec(mana_counts: Mapping[str, int]) -> ChartSpec:
    """
    Keep the five colored symbols, attach name and color, and work out
    each color's share of the colored pips.

    Args:
        mana_counts: Symbol -> weighted count, e.g. ``{"W": 6, "2": 3}``

    Returns:
        ChartSpec with one slice per color present (possibly none)
    """
    present = [(color, mana_counts.get(color.symbol, 0)) for color in MANA_PALETTE]
    present = [(color, count) for color, count in present if count > 0]
    total = sum(count for _, count in present)

    slices = tuple(
        ChartSlice(
            symbol=color.symbol,
            label=color.name,
            value=count,
            color=color.hex_color,
            percentage=count * 100.0 / total,
        )
        for color, count in present
    )
    return ChartSpec(chart_type=CHART_TYPE, slices=slices)


def outlabel_text(chart_slice: ChartSlice) -> str:
    return f"{chart_slice.label} ({chart_slice.percentage:.1f}%, {chart_slice.value} symbols)"


def chart_config(spec: ChartSpec) -> Dict[str, Any]:
    """The Chart.js configuration QuickChart expects, with outlabels."""
    return {
        "type": spec.chart_type,
        "data": {
            "labels": spec.labels,
            "datasets": [{
                "data": spec.values,
                "backgroundColor": spec.colors,
            }],
        },
        "options": {
            "plugins": {
                "legend": False,
                "outlabels": {
                    "text": [outlabel_text(s) for s in spec.slices],
                    "backgroundColor": "white",
                    "borderColor": "black",
                    "borderRadius": 5,
                    "borderWidth": 1,
                    "color": "black",
                    "stretch": 35,
                    "font": {
                        "resizable": True,
                        "minSize": 12,
                        "maxSize": 18,
                        "weight": "bold",
                    },
                },
            },
        },
    }


def serialize_chart(spec: ChartSpec) -> str:
    """
    JSON for the chart configuration.

    Raises:
        RenderError: the chart has no slices or cannot be serialized
    """
    if not spec.slices:
        raise RenderError("chart has no slices")
    try:
        return json.dumps(chart_config(spec), separators=(",", ":"), allow_nan=False)
    except (TypeError, ValueError) as e:
        raise RenderError(f"could not serialize chart: {e}") from e


def build_chart_url(spec: ChartSpec) -> str:
    """Fully encoded ``/chart?c=...`` URL that renders the chart as an image."""
    chart_json = serialize_chart(spec)
    return str(httpx.URL(f"{QUICKCHART_API}/chart", params={"c": chart_json}))

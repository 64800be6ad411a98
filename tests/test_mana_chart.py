import json

import httpx
import pytest

import mana_chart
from errors import RenderError
from mana_chart import MANA_PALETTE, build_chart_spec, build_chart_url, chart_config, outlabel_text


def test_only_the_five_colors_are_charted():
    spec = build_chart_spec({"2": 10, "C": 3, "W/U": 2, "X": 1, "G": 4, "W": 4})
    assert spec.labels == ["White", "Green"]
    assert spec.values == [4, 4]
    assert spec.total == 8


def test_slices_follow_wubrg_order_not_input_order():
    spec = build_chart_spec({"G": 1, "R": 2, "B": 3, "U": 4, "W": 5})
    assert [s.symbol for s in spec.slices] == ["W", "U", "B", "R", "G"]
    assert spec.colors == [color.hex_color for color in MANA_PALETTE]


def test_percentages_are_shares_of_colored_pips():
    spec = build_chart_spec({"U": 30, "R": 10, "1": 50})
    assert spec.percentages == [75.0, 25.0]
    assert outlabel_text(spec.slices[0]) == "Blue (75.0%, 30 symbols)"


def test_identical_counts_give_identical_charts():
    first = build_chart_spec({"R": 7, "W": 3, "U": 5})
    second = build_chart_spec(dict(reversed(list({"R": 7, "W": 3, "U": 5}.items()))))
    assert first == second
    assert build_chart_url(first) == build_chart_url(second)


def test_no_colored_symbols_gives_an_empty_chart():
    spec = build_chart_spec({"2": 4, "C": 1})
    assert spec.slices == ()
    with pytest.raises(RenderError):
        build_chart_url(spec)


def test_chart_config_uses_outlabeled_pie():
    config = chart_config(build_chart_spec({"B": 1, "R": 3}))
    assert config["type"] == "outlabeledPie"
    assert config["data"]["labels"] == ["Black", "Red"]
    assert config["data"]["datasets"][0] == {"data": [1, 3], "backgroundColor": ["#160b00", "#d31f2a"]}
    assert config["options"]["plugins"]["legend"] is False
    assert config["options"]["plugins"]["outlabels"]["text"] == [
        "Black (25.0%, 1 symbols)",
        "Red (75.0%, 3 symbols)",
    ]


def test_chart_url_encodes_the_config():
    spec = build_chart_spec({"W": 2, "U": 2})
    url = build_chart_url(spec)

    assert url.startswith("https://quickchart.io/chart?c=")
    assert " " not in url and '"' not in url
    assert json.loads(httpx.URL(url).params["c"]) == chart_config(spec)


def test_unserializable_config_is_a_render_error(monkeypatch):
    monkeypatch.setattr(mana_chart, "chart_config", lambda spec: {"type": object()})
    with pytest.raises(RenderError):
        build_chart_url(build_chart_spec({"W": 1}))

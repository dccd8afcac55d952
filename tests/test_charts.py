import pytest

from conftest import make_rows
from sheetcharts.charts import PALETTE, ChartOptions, from_series, infer_date_unit, to_vega_spec
from sheetcharts.errors import BadInput
from sheetcharts.series import Point, Series, build_series
from sheetcharts.values import number, string


def _many_series(n: int):
    return [Series(name=f"s{i}", points=[Point(x=string("a"), y=i)]) for i in range(n)]


def test_palette_cycles_by_dataset_index():
    spec = from_series(_many_series(10), "category")
    colors = [ds["borderColor"] for ds in spec.rendering_options["datasets"]]
    assert colors[:8] == PALETTE
    assert colors[8:] == PALETTE[:2]


def test_identical_inputs_give_identical_specs(sales_rows):
    result = build_series(sales_rows, "region", ["sales"], "sum")
    first = from_series(result, result.x_type, ChartOptions(title="t"))
    second = from_series(result, result.x_type, ChartOptions(title="t"))
    assert first.rendering_options == second.rendering_options
    assert first.to_config() == second.to_config()


def test_category_config_uses_labels(sales_rows):
    result = build_series(sales_rows, "region", ["sales"], "sum")
    config = from_series(result, options={"title": "Sales", "x_label": "region"}).to_config()
    assert config["type"] == "line"
    assert config["data"]["labels"] == ["east", "west"]
    assert config["data"]["datasets"][0]["data"] == [30, 5]
    assert config["data"]["datasets"][0]["label"] == "sales"
    assert config["options"]["plugins"]["title"] == {"display": True, "text": "Sales"}
    assert config["options"]["scales"]["x"]["type"] == "category"
    assert config["options"]["scales"]["y"]["beginAtZero"] is True


def test_number_axis_uses_points():
    rows = make_rows([{"x": "1", "y": "2"}, {"x": "3", "y": "4"}])
    result = build_series(rows, "x", ["y"], "sum", grouped=False)
    config = from_series(result).to_config()
    assert config["options"]["scales"]["x"]["type"] == "linear"
    assert "labels" not in config["data"]
    assert config["data"]["datasets"][0]["data"] == [{"x": 1, "y": 2}, {"x": 3, "y": 4}]


def test_date_axis_carries_unit_and_tooltip_format():
    rows = make_rows([{"d": "2024-01-01", "v": "1"}, {"d": "2024-06-01", "v": "2"}])
    spec = from_series(build_series(rows, "d", ["v"], "sum"))
    x_axis = spec.rendering_options["xAxis"]
    assert spec.x_axis_type == "date"
    assert x_axis["type"] == "time"
    assert x_axis["time"]["unit"] == "month"
    assert x_axis["time"]["tooltipFormat"] == "YYYY-MM-DD"
    assert x_axis["time"]["displayFormats"] == {"month": "YYYY-MM"}


def test_date_unit_override():
    rows = make_rows([{"d": "2024-01-01", "v": "1"}, {"d": "2024-06-01", "v": "2"}])
    spec = from_series(build_series(rows, "d", ["v"], "sum"), options=ChartOptions(date_unit="year"))
    assert spec.rendering_options["xAxis"]["time"]["unit"] == "year"


def test_infer_date_unit_spans():
    def series_for(*days):
        rows = make_rows([{"d": d, "v": 1} for d in days])
        return build_series(rows, "d", ["v"], "sum").series

    assert infer_date_unit(series_for("2024-01-01", "2024-01-20")) == "day"
    assert infer_date_unit(series_for("2024-01-01", "2024-05-01")) == "month"
    assert infer_date_unit(series_for("2019-01-01", "2024-05-01")) == "year"
    assert infer_date_unit(series_for("2024-01-01")) == "day"


def test_negative_values_disable_begin_at_zero():
    series = [Series(name="delta", points=[Point(x=string("a"), y=-3), Point(x=string("b"), y=number(2))])]
    spec = from_series(series, "category")
    assert spec.rendering_options["yAxis"]["beginAtZero"] is False


def test_area_charts_fill():
    spec = from_series(_many_series(1), "category", ChartOptions(chart_type="area"))
    config = spec.to_config()
    assert config["type"] == "line"
    assert config["data"]["datasets"][0]["fill"] is True


def test_unknown_chart_type_rejected():
    with pytest.raises(BadInput):
        from_series(_many_series(1), "category", {"chart_type": "pie"})


def test_vega_spec_encodes_axis_type_and_palette(sales_rows):
    result = build_series(sales_rows, "region", ["sales"], "sum")
    vega = to_vega_spec(from_series(result, options=ChartOptions(chart_type="bar", title="Sales")))
    assert vega["mark"]["type"] == "bar"
    assert vega["encoding"]["x"]["type"] == "nominal"
    assert vega["encoding"]["y"]["type"] == "quantitative"
    assert vega["encoding"]["color"]["scale"]["range"] == PALETTE[:1]
    assert vega["title"] == "Sales"


def test_vega_spec_for_dates_is_temporal():
    rows = make_rows([{"d": "2024-01-01", "v": "1"}, {"d": "2024-01-02", "v": "2"}])
    vega = to_vega_spec(from_series(build_series(rows, "d", ["v"], "sum")))
    assert vega["encoding"]["x"]["type"] == "temporal"

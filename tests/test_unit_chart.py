import pytest

from quake_dashboard.chart import ChartView, POINT_COLOR

from conftest import make_quake

def test_default_axes_and_points():
    chart = ChartView()
    assert (chart.x_key, chart.y_key) == ("longitude", "latitude")
    recs = [make_quake("a", longitude=-120.5, latitude=35.0, place="A", mag=2.0)]
    (p,) = chart.points(recs)
    assert (p.x, p.y, p.id, p.place, p.mag) == (-120.5, 35.0, "a", "A", 2.0)

def test_missing_axis_values_plot_at_zero():
    chart = ChartView("gap", "rms")
    (p,) = chart.points([make_quake("a", gap=None, rms=0.3)])
    assert (p.x, p.y) == (0.0, 0.3)

def test_only_numeric_fields_are_axes():
    chart = ChartView()
    with pytest.raises(ValueError):
        chart.set_axes("place", "mag")
    with pytest.raises(ValueError):
        ChartView("mag", "id")
    assert (chart.x_key, chart.y_key) == ("longitude", "latitude")
    chart.set_axes("depth", "mag")
    assert (chart.x_key, chart.y_key) == ("depth", "mag")

def test_figure_traces_and_selection_highlight():
    chart = ChartView("depth", "mag")
    recs = [make_quake("a", depth=1.0, mag=2.0), make_quake("b", depth=3.0, mag=4.0)]

    fig = chart.figure(recs)
    assert len(fig.data) == 1
    assert list(fig.data[0].customdata) == ["a", "b"]
    assert list(fig.data[0].x) == [1.0, 3.0]
    assert fig.data[0].marker.color == POINT_COLOR
    assert list(fig.data[0].text) == ["id: a", "id: b"]
    assert fig.layout.xaxis.title.text == "depth"
    assert fig.layout.yaxis.title.text == "mag"

    fig = chart.figure(recs, selected=recs[1])
    assert len(fig.data) == 2
    assert list(fig.data[1].customdata) == ["b"]
    assert list(fig.data[1].y) == [4.0]

    # a stale selection that is not in the data adds no highlight
    fig = chart.figure(recs, selected=make_quake("gone"))
    assert len(fig.data) == 1

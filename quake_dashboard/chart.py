# quake_dashboard/chart.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, List, Optional

import plotly.graph_objects as go

from quake_dashboard.records import NUMERIC_FIELDS, Quake, parse_number

POINT_COLOR = "#1976d2"
SELECTED_COLOR = "#ff9800"

@dataclass(frozen=True)
class ChartPoint:
    x: float
    y: float
    id: str
    place: Optional[str]
    mag: float

def axis_value(quake: Quake, key: str) -> float:
    # missing values are plotted at 0
    return parse_number(getattr(quake, key)) or 0.0

class ChartView:
    def __init__(self, x_key: str = "longitude", y_key: str = "latitude"):
        self.x_key = x_key
        self.y_key = y_key
        self.set_axes(x_key, y_key)

    def set_axes(self, x_key: str, y_key: str) -> None:
        for key in (x_key, y_key):
            if key not in NUMERIC_FIELDS:
                raise ValueError(f"{key!r} is not a numeric field")
        self.x_key = x_key
        self.y_key = y_key

    def points(self, records: Iterable[Quake]) -> List[ChartPoint]:
        return [
            ChartPoint(
                x=axis_value(q, self.x_key),
                y=axis_value(q, self.y_key),
                id=q.id,
                place=q.place,
                mag=q.mag,
            )
            for q in records
        ]

    def figure(self, records: Iterable[Quake], selected: Optional[Quake] = None) -> go.Figure:
        pts = self.points(records)
        fig = go.Figure()
        fig.add_trace(
            go.Scattergl(
                x=[p.x for p in pts],
                y=[p.y for p in pts],
                mode="markers",
                name="quakes",
                customdata=[p.id for p in pts],
                text=[f"id: {p.id}" for p in pts],
                hovertemplate="%{text}<br>%{x}, %{y}<extra></extra>",
                marker=dict(color=POINT_COLOR, size=6),
            )
        )
        if selected is not None:
            hit = [p for p in pts if p.id == selected.id]
            if hit:
                fig.add_trace(
                    go.Scatter(
                        x=[hit[0].x],
                        y=[hit[0].y],
                        mode="markers",
                        name="selected",
                        customdata=[hit[0].id],
                        text=[f"id: {hit[0].id}"],
                        hovertemplate="%{text}<extra></extra>",
                        marker=dict(
                            color=SELECTED_COLOR, size=14,
                            line=dict(color="#ffffff", width=2),
                        ),
                    )
                )
        fig.update_layout(
            showlegend=False,
            margin=dict(l=50, r=10, t=10, b=40),
            height=400,
            hovermode="closest",
            xaxis=dict(title=dict(text=self.x_key), gridcolor="#dddddd"),
            yaxis=dict(title=dict(text=self.y_key), gridcolor="#dddddd"),
        )
        return fig

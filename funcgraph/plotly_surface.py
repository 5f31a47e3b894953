"""Plotly rendering surface for :class:`~funcgraph.frame.RenderFrame`.

The surface draws in screen space: the x axis spans ``[0, width]`` and the y
axis is reversed to ``[height, 0]`` so pixel rows grow downward exactly as in
the frame. It performs no numeric work of its own.

Curve segments become one ``Scatter`` trace per equation with ``None``
separators between segments, and ``connectgaps=False`` so Plotly never bridges
a segment break.

Examples
--------
>>> from funcgraph import GraphSession, Equation
>>> from funcgraph.plotly_surface import PlotlySurface
>>> session = GraphSession()  # doctest: +SKIP
>>> surface = PlotlySurface()  # doctest: +SKIP
>>> session.subscribe(surface.draw)  # doctest: +SKIP
>>> session.equations.add(Equation("f", "x^2"))  # doctest: +SKIP
>>> surface.figure.show()  # doctest: +SKIP
"""

from __future__ import annotations

from typing import Optional

import plotly.graph_objects as go

from .frame import CurveDrawing, Marker, MarkerRole, RenderFrame
from .ticks import Orientation

GRID_COLOR = "#eee"
AXIS_COLOR = "#888"
LABEL_COLOR = "#888"


def curve_trace(drawing: CurveDrawing) -> go.Scatter:
    """Return a line trace for one curve, breaking at segment boundaries."""
    xs: list[Optional[float]] = []
    ys: list[Optional[float]] = []
    for index, segment in enumerate(drawing.segments):
        if index:
            xs.append(None)
            ys.append(None)
        for sx, sy in segment:
            xs.append(sx)
            ys.append(sy)
    return go.Scatter(
        x=xs,
        y=ys,
        mode="lines",
        name=drawing.equation_id,
        line={"color": drawing.style.color, "width": drawing.style.line_width},
        connectgaps=False,
        hoverinfo="skip",
    )


def marker_trace(markers: list[Marker], role: MarkerRole) -> go.Scatter:
    return go.Scatter(
        x=[m.sx for m in markers],
        y=[m.sy for m in markers],
        mode="markers",
        name=role.value,
        marker={
            "size": [2 * m.radius for m in markers],
            "color": [m.color for m in markers],
        },
        hoverinfo="skip",
    )


def _grid_shapes(frame: RenderFrame) -> tuple[list[dict], list[dict]]:
    shapes: list[dict] = []
    annotations: list[dict] = []
    for line in frame.grid:
        if line.orientation is Orientation.VERTICAL:
            shapes.append(_line(line.position, 0, line.position, frame.height, GRID_COLOR, 1))
            if line.tick is not None:
                shapes.append(_line(line.position, line.tick[0], line.position, line.tick[1], GRID_COLOR, 1))
                if line.label:
                    annotations.append(_text(line.label, line.position, line.tick[1] + 2, "center", "top"))
        else:
            shapes.append(_line(0, line.position, frame.width, line.position, GRID_COLOR, 1))
            if line.tick is not None:
                shapes.append(_line(line.tick[0], line.position, line.tick[1], line.position, GRID_COLOR, 1))
                if line.label:
                    annotations.append(_text(line.label, line.tick[0] - 2, line.position, "right", "middle"))
    for axis in frame.axes:
        if axis.orientation is Orientation.VERTICAL:
            shapes.append(_line(axis.position, 0, axis.position, frame.height, AXIS_COLOR, 2))
        else:
            shapes.append(_line(0, axis.position, frame.width, axis.position, AXIS_COLOR, 2))
    return shapes, annotations


def _line(x0: float, y0: float, x1: float, y1: float, color: str, width: float) -> dict:
    return {
        "type": "line",
        "xref": "x",
        "yref": "y",
        "x0": x0,
        "y0": y0,
        "x1": x1,
        "y1": y1,
        "line": {"color": color, "width": width},
        "layer": "below",
    }


def _text(text: str, x: float, y: float, xanchor: str, yanchor: str) -> dict:
    return {
        "text": text,
        "x": x,
        "y": y,
        "xref": "x",
        "yref": "y",
        "showarrow": False,
        "xanchor": xanchor,
        "yanchor": yanchor,
        "font": {"family": "monospace", "size": 12, "color": LABEL_COLOR},
    }


def figure_from_frame(frame: RenderFrame) -> go.Figure:
    """Build a standalone Plotly figure for ``frame``."""
    fig = go.Figure()
    _populate(fig, frame)
    return fig


def _populate(fig: go.Figure, frame: RenderFrame) -> None:
    traces: list[go.Scatter] = [curve_trace(drawing) for drawing in frame.curves]
    for role in (MarkerRole.INTERSECTION, MarkerRole.EXTREMUM):
        markers = [m for m in frame.markers if m.role is role]
        if markers:
            traces.append(marker_trace(markers, role))
    fig.add_traces(traces)

    shapes, annotations = _grid_shapes(frame)
    if frame.label is not None:
        annotations.append(
            {
                "text": frame.label.text,
                "x": frame.label.sx,
                "y": frame.label.sy,
                "xref": "x",
                "yref": "y",
                "showarrow": False,
                "xanchor": "left",
                "yanchor": "top",
            }
        )
    fig.update_layout(
        width=frame.width,
        height=frame.height,
        margin={"l": 0, "r": 0, "t": 0, "b": 0},
        showlegend=False,
        plot_bgcolor="white",
        dragmode=False,
        shapes=shapes,
        annotations=annotations,
        xaxis={"range": [0, frame.width], "visible": False, "fixedrange": True},
        yaxis={"range": [frame.height, 0], "visible": False, "fixedrange": True},
    )


class PlotlySurface:
    """Keep one Plotly figure in sync with the frames it is given."""

    def __init__(self, figure: Optional[go.Figure] = None) -> None:
        self.figure = figure if figure is not None else go.Figure()
        self.frames_drawn = 0

    def draw(self, frame: RenderFrame) -> None:
        """Replace the figure contents with ``frame``."""
        self.figure.data = ()
        self.figure.layout.shapes = ()
        self.figure.layout.annotations = ()
        _populate(self.figure, frame)
        self.frames_drawn += 1


__all__ = ["PlotlySurface", "curve_trace", "figure_from_frame", "marker_trace"]

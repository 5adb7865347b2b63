"""Shared types and path-data helpers for edge routing."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from circuit_layout.layout.constants import FLATTEN_SEGMENTS
from circuit_layout.layout.geometry import (
    angle_of,
    cubic_point,
    cubic_tangent,
    quadratic_point,
    quadratic_tangent,
    sub,
)
from circuit_layout.parser.model import ArrowPoint, Point


@dataclass(frozen=True)
class PathGeometry:
    """One drawing segment: a line (no controls), quadratic (1) or cubic (2)."""

    start: Point
    end: Point
    controls: tuple[Point, ...] = ()

    @property
    def is_curved(self) -> bool:
        return bool(self.controls)

    def point_at(self, t: float) -> Point:
        if len(self.controls) == 1:
            return quadratic_point(self.start, self.controls[0], self.end, t)
        if len(self.controls) == 2:
            return cubic_point(self.start, *self.controls, self.end, t)
        return Point(
            self.start.x + (self.end.x - self.start.x) * t,
            self.start.y + (self.end.y - self.start.y) * t,
        )

    def tangent_at(self, t: float) -> Point:
        if len(self.controls) == 1:
            return quadratic_tangent(self.start, self.controls[0], self.end, t)
        if len(self.controls) == 2:
            return cubic_tangent(self.start, *self.controls, self.end, t)
        return sub(self.end, self.start)

    def flatten(self, segments: int | None = None) -> list[Point]:
        """Approximate the segment by ``segments`` straight pieces.

        By default a line stays a single piece and a curve is split into
        FLATTEN_SEGMENTS.
        """
        if segments is None:
            segments = FLATTEN_SEGMENTS if self.controls else 1
        return [self.point_at(i / segments) for i in range(segments + 1)]

    def arrow(self) -> ArrowPoint:
        """Arrow anchor at t = 0.5 pointing along the tangent."""
        p = self.point_at(0.5)
        return ArrowPoint(p.x, p.y, angle_of(self.tangent_at(0.5)))

    def translated(self, dx: float, dy: float) -> PathGeometry:
        return PathGeometry(
            start=Point(self.start.x + dx, self.start.y + dy),
            end=Point(self.end.x + dx, self.end.y + dy),
            controls=tuple(Point(c.x + dx, c.y + dy) for c in self.controls),
        )

    def to_path_data(self) -> str:
        parts = [f"M {_fmt(self.start.x)} {_fmt(self.start.y)}"]
        if len(self.controls) == 1:
            c = self.controls[0]
            parts.append(f"Q {_fmt(c.x)} {_fmt(c.y)} {_fmt(self.end.x)} {_fmt(self.end.y)}")
        elif len(self.controls) == 2:
            c1, c2 = self.controls
            parts.append(
                f"C {_fmt(c1.x)} {_fmt(c1.y)} {_fmt(c2.x)} {_fmt(c2.y)} "
                f"{_fmt(self.end.x)} {_fmt(self.end.y)}"
            )
        else:
            parts.append(f"L {_fmt(self.end.x)} {_fmt(self.end.y)}")
        return " ".join(parts)


@dataclass
class RoutedPath:
    """A routed branch between two placed nodes."""

    branch_id: str
    source_id: str
    target_id: str
    geometry: PathGeometry
    # Signed perpendicular offset of the control point from the canonical chord
    offset: float = 0.0
    score: float = 0.0
    points: list[Point] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.points:
            self.points = self.geometry.flatten()

    @property
    def path(self) -> str:
        return self.geometry.to_path_data()

    @property
    def is_curved(self) -> bool:
        return self.geometry.is_curved

    @property
    def arrow_point(self) -> ArrowPoint:
        return self.geometry.arrow()

    def translated(self, dx: float, dy: float) -> RoutedPath:
        return RoutedPath(
            branch_id=self.branch_id,
            source_id=self.source_id,
            target_id=self.target_id,
            geometry=self.geometry.translated(dx, dy),
            offset=self.offset,
            score=self.score,
        )


def _fmt(value: float) -> str:
    """Compact number formatting for path data (at most 2 decimals)."""
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


# ---------------------------------------------------------------------------
# Path data parsing
# ---------------------------------------------------------------------------

_TOKEN_RE = re.compile(r"[MLQCZmlqcz]|[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")
_ARITY = {"M": 2, "L": 2, "Q": 4, "C": 6}


def parse_path_data(path: str) -> list[PathGeometry]:
    """Parse absolute M/L/Q/C path data into drawing segments.

    Raises ValueError on anything else, including relative commands, a
    path that does not start with a move, or a wrong number of
    coordinates.
    """
    tokens = _TOKEN_RE.findall(path)
    if "".join(tokens).replace(" ", "") != re.sub(r"[\s,]+", "", path):
        raise ValueError(f"Unexpected characters in path data: {path!r}")
    if not tokens or tokens[0] != "M":
        raise ValueError(f"Path data must start with a move command: {path!r}")

    segments: list[PathGeometry] = []
    current: Point | None = None
    i = 0
    while i < len(tokens):
        command = tokens[i]
        if command not in _ARITY:
            raise ValueError(f"Unsupported path command {command!r} in {path!r}")
        arity = _ARITY[command]
        raw = tokens[i + 1:i + 1 + arity]
        if len(raw) != arity or any(t in _ARITY or t.lower() in "mlqcz" for t in raw):
            raise ValueError(f"Command {command} expects {arity} numbers in {path!r}")
        values = [float(t) for t in raw]
        pts = [Point(values[k], values[k + 1]) for k in range(0, arity, 2)]
        i += 1 + arity

        if command == "M":
            current = pts[0]
            continue
        if current is None:
            raise ValueError(f"Drawing command before move in {path!r}")
        segments.append(PathGeometry(start=current, end=pts[-1], controls=tuple(pts[:-1])))
        current = pts[-1]
    return segments


def path_points(path: str, segments: int | None = None) -> list[Point]:
    """Flatten path data to a single polyline."""
    points: list[Point] = []
    for geometry in parse_path_data(path):
        flat = geometry.flatten(segments)
        points.extend(flat if not points else flat[1:])
    return points

# Licensed under the Apache License, Version 2.0
"""
Backend-agnostic path descriptors.

A path is an ordered tuple of drawing commands with explicit coordinates, so
any 2-D surface (SVG, canvas, Qt painter paths) can replay it directly.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Iterable, Tuple, Union


@dataclass(frozen=True)
class MoveTo:
    command: ClassVar[str] = "M"
    x: float
    y: float

    @property
    def args(self) -> Tuple[float, ...]:
        return (self.x, self.y)


@dataclass(frozen=True)
class LineTo:
    command: ClassVar[str] = "L"
    x: float
    y: float

    @property
    def args(self) -> Tuple[float, ...]:
        return (self.x, self.y)


@dataclass(frozen=True)
class QuadTo:
    command: ClassVar[str] = "Q"
    cx: float
    cy: float
    x: float
    y: float

    @property
    def args(self) -> Tuple[float, ...]:
        return (self.cx, self.cy, self.x, self.y)


@dataclass(frozen=True)
class CubicTo:
    command: ClassVar[str] = "C"
    c1x: float
    c1y: float
    c2x: float
    c2y: float
    x: float
    y: float

    @property
    def args(self) -> Tuple[float, ...]:
        return (self.c1x, self.c1y, self.c2x, self.c2y, self.x, self.y)


PathCommand = Union[MoveTo, LineTo, QuadTo, CubicTo]


def is_curved(path: Iterable[PathCommand]) -> bool:
    return any(isinstance(cmd, (QuadTo, CubicTo)) for cmd in path)


def _fmt(value: float) -> str:
    # 2.0 -> "2", 0.25 -> "0.25"
    return f"{value:g}"


def to_svg_path(path: Iterable[PathCommand]) -> str:
    """Render a path as an SVG `d` attribute, e.g. 'M 0 0 Q 1 -0.1 2 0'."""
    parts = []
    for cmd in path:
        parts.append(" ".join([cmd.command, *(_fmt(a) for a in cmd.args)]))
    return " ".join(parts)

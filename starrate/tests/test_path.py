from math import isclose, pi

import pytest

from starrate.path import (
    PathType,
    SliderPath,
    get_center,
    split_at_dupes,
)
from starrate.position import Position


def test_linear():
    path = SliderPath(PathType.linear, [Position(0, 0), Position(100, 0)])
    assert isclose(path.length, 100)
    assert path.expected_distance == path.length
    assert path.position_at(0.5).almost_equals(Position(50, 0))
    assert path.point_at(25).almost_equals(Position(25, 0))

    # distances are clamped to the path
    assert path.point_at(-10).almost_equals(Position(0, 0))
    assert path.point_at(1000).almost_equals(Position(100, 0))


def test_truncated():
    path = SliderPath(
        PathType.linear,
        [Position(0, 0), Position(100, 0), Position(100, 100)],
        150,
    )
    assert isclose(path.length, 150)
    assert path.position_at(1).almost_equals(Position(100, 50))


def test_extended():
    path = SliderPath(PathType.linear, [Position(0, 0), Position(0, 100)], 150)
    assert isclose(path.length, 150)
    assert path.position_at(1).almost_equals(Position(0, 150))


def test_degenerate():
    path = SliderPath(PathType.bezier, [Position(0, 0)], 100)
    assert path.position_at(0.5) == Position(0, 0)
    assert path.position_at(1) == Position(0, 0)

    path = SliderPath(PathType.bezier, [])
    assert path.length == 0
    assert path.position_at(0.5) == Position(0, 0)


def test_perfect_curve():
    path = SliderPath(
        PathType.perfect_curve,
        [Position(0, 0), Position(50, 50), Position(100, 0)],
    )
    assert isclose(path.length, pi * 50, rel_tol=1e-3)
    assert path.position_at(0.5).almost_equals(Position(50, 50), epsilon=0.5)
    assert path.position_at(1).almost_equals(Position(100, 0))


def test_collinear_perfect_curve():
    path = SliderPath(
        PathType.perfect_curve,
        [Position(0, 0), Position(50, 0), Position(100, 0)],
    )
    assert isclose(path.length, 100)


def test_bezier():
    path = SliderPath(
        PathType.bezier,
        [Position(0, 0), Position(50, 100), Position(100, 0)],
    )
    # symmetric about the middle control point
    assert path.position_at(0.5).almost_equals(Position(50, 50), epsilon=0.5)
    assert path.length > 100


def test_segments():
    assert split_at_dupes([
        Position(0, 0),
        Position(100, 0),
        Position(100, 0),
        Position(100, 100),
    ]) == [
        [Position(0, 0), Position(100, 0)],
        [Position(100, 0), Position(100, 100)],
    ]

    path = SliderPath(
        PathType.bezier,
        [
            Position(0, 0),
            Position(100, 0),
            Position(100, 0),
            Position(100, 100),
        ],
    )
    assert isclose(path.length, 200)
    assert path.position_at(0.75).almost_equals(Position(100, 50))


def test_get_center():
    center = get_center(Position(0, 0), Position(50, 50), Position(100, 0))
    assert center.almost_equals(Position(50, 0))

    with pytest.raises(ValueError):
        get_center(Position(0, 0), Position(1, 1), Position(2, 2))

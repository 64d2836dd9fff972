from math import isclose, sqrt

import pytest

from starrate.interpolation import (
    clamp,
    lerp,
    ms_to_bpm,
    reverse_lerp,
    sign,
    smootherstep,
    smoothstep,
)
from starrate.root_finding import (
    ExpansionExhausted,
    find_root,
    find_root_expand,
)


def test_lerp():
    assert lerp(0, 10, 0.5) == 5
    assert lerp(0, 10, 0) == 0
    assert lerp(0, 10, 1) == 10
    assert lerp(10, 0, 0.25) == 7.5

    # extrapolates outside of [0, 1]
    assert lerp(0, 10, 2) == 20


def test_reverse_lerp():
    assert reverse_lerp(5, 0, 10) == 0.5
    assert reverse_lerp(-5, 0, 10) == 0
    assert reverse_lerp(15, 0, 10) == 1
    assert reverse_lerp(7.5, 10, 0) == 0.25

    # a single point range is a step
    assert reverse_lerp(4, 5, 5) == 0
    assert reverse_lerp(5, 5, 5) == 1
    assert reverse_lerp(6, 5, 5) == 1


def test_smoothstep():
    assert smoothstep(0, 0, 1) == 0
    assert smoothstep(1, 0, 1) == 1
    assert smoothstep(0.5, 0, 1) == 0.5
    assert smoothstep(0.25, 0, 1) < 0.25

    assert smootherstep(0.5, 0, 1) == 0.5
    assert smootherstep(0.25, 0, 1) < smoothstep(0.25, 0, 1)


def test_misc():
    assert clamp(5, 0, 1) == 1
    assert clamp(-5, 0, 1) == 0
    assert clamp(0.5, 0, 1) == 0.5

    assert sign(-3) == -1
    assert sign(3) == 1
    assert sign(0) == 0

    assert ms_to_bpm(75) == 200
    assert ms_to_bpm(300, delimiter=1) == 200


def test_find_root():
    root = find_root(lambda x: x * x - 2, 0, 2, accuracy=1e-12)
    assert isclose(root, sqrt(2), rel_tol=1e-9)

    root = find_root(lambda x: x - 1, 0, 3)
    assert isclose(root, 1, abs_tol=1e-6)

    with pytest.raises(ValueError):
        find_root(lambda x: x * x + 1, -1, 1)


def test_find_root_expand():
    root = find_root_expand(lambda x: x - 100, 0, 1, accuracy=1e-12)
    assert isclose(root, 100, rel_tol=1e-9)

    with pytest.raises(ExpansionExhausted):
        find_root_expand(lambda x: 1, 0, 1, max_expansions=4)

    # exhausted expansions are still a value error
    with pytest.raises(ValueError):
        find_root_expand(lambda x: 1, 0, 1, max_expansions=4)


def test_find_root_out_of_iterations():
    root = find_root(lambda x: x * x - 2, 0, 2, max_iterations=1)
    assert 0 <= root <= 2

import math


def lerp(start, end, t):
    """Linearly interpolate between two values.

    Parameters
    ----------
    start : float
        The value at ``t = 0``.
    end : float
        The value at ``t = 1``.
    t : float
        The interpolation amount. Values outside of [0, 1] extrapolate.

    Returns
    -------
    value : float
        ``start + (end - start) * t``
    """
    return start + (end - start) * t


def reverse_lerp(x, start, end):
    """Find the interpolation amount that produces ``x`` between ``start`` and
    ``end``.

    Parameters
    ----------
    x : float
        The value to locate.
    start : float
        The value mapped to 0.
    end : float
        The value mapped to 1.

    Returns
    -------
    t : float
        The interpolation amount clamped to [0, 1].

    Notes
    -----
    When ``start == end`` the range is a single point and the result is a
    step: 1 when ``x >= end`` and 0 otherwise.
    """
    if start == end:
        return 1.0 if x >= end else 0.0

    return clamp((x - start) / (end - start), 0.0, 1.0)


def clamp(value, low, high):
    return max(low, min(value, high))


def smoothstep(x, start, end):
    """Hermite interpolation of ``x`` over [start, end].
    """
    x = reverse_lerp(x, start, end)
    return x * x * (3 - 2 * x)


def smootherstep(x, start, end):
    """Perlin's quintic smoothstep of ``x`` over [start, end].
    """
    x = reverse_lerp(x, start, end)
    return x * x * x * (x * (6 * x - 15) + 10)


def almost_equal(a, b, epsilon=1e-3):
    return abs(a - b) <= epsilon


def ms_to_bpm(ms, delimiter=4):
    """Convert a time between beats to beats per minute.

    Parameters
    ----------
    ms : float
        The milliseconds between two notes.
    delimiter : int, optional
        The beat division that ``ms`` represents, 4 for 1/4 notes.

    Returns
    -------
    bpm : float
        The beats per minute.
    """
    return 60000 / (ms * delimiter)


def sign(value):
    return math.copysign(1, value) if value else 0

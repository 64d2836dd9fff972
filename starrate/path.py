import bisect
from enum import Enum, unique
import math

import numpy as np

from .interpolation import almost_equal, clamp
from .position import Position


@unique
class PathType(Enum):
    """The curve families a slider path may use.

    The values are the single letter codes used by the osu! file format.
    """
    linear = 'L'
    perfect_curve = 'P'
    catmull = 'C'
    bezier = 'B'


# maximum second difference of a flat bezier segment
bezier_tolerance = 0.25

# maximum distance between a circular arc and its chords
circular_arc_tolerance = 0.1

catmull_detail = 50


class SliderPath:
    """A slider's path, approximated as a polyline and parameterized by arc
    length.

    Parameters
    ----------
    path_type : PathType
        The curve family.
    control_points : list[Position]
        The control points relative to the slider's head. A repeated point
        starts a new segment.
    expected_distance : float, optional
        The length the path should have. The final segment is truncated or
        extended along its direction to match. Defaults to the length of the
        approximated curve.
    """
    def __init__(self, path_type, control_points, expected_distance=None):
        self.path_type = PathType(path_type)
        self.control_points = [Position(*p) for p in control_points]

        self.calculated_path = self._calculate_path()
        self.cumulative_length = self._calculate_cumulative_length(
            expected_distance,
        )

        if expected_distance is None:
            expected_distance = self.length
        self.expected_distance = expected_distance

    def __repr__(self):
        return (
            f'<{type(self).__qualname__}: {self.path_type.name},'
            f' {len(self.control_points)} points, {self.length:g}px>'
        )

    @property
    def length(self):
        """The total arc length of the path.
        """
        if not self.cumulative_length:
            return 0.0
        return self.cumulative_length[-1]

    def point_at(self, distance):
        """Compute the position at a given distance along the path.

        Parameters
        ----------
        distance : float
            The arc length from the start of the path. This is clamped to
            [0, length].

        Returns
        -------
        position : Position
            The position relative to the slider's head.
        """
        distance = clamp(distance, 0, self.length)
        return self._interpolate_vertices(
            bisect.bisect_left(self.cumulative_length, distance),
            distance,
        )

    def position_at(self, progress):
        """Compute the position at a fraction of the expected distance.

        Parameters
        ----------
        progress : float
            The progress along the path in the range [0, 1].

        Returns
        -------
        position : Position
            The position relative to the slider's head.
        """
        distance = clamp(progress, 0, 1) * self.expected_distance
        return self._interpolate_vertices(
            bisect.bisect_left(self.cumulative_length, distance),
            distance,
        )

    def _interpolate_vertices(self, ix, distance):
        path = self.calculated_path
        if not path:
            return Position(0, 0)

        if ix <= 0:
            return path[0]
        if ix >= len(path):
            return path[-1]

        p0 = path[ix - 1]
        p1 = path[ix]

        d0 = self.cumulative_length[ix - 1]
        d1 = self.cumulative_length[ix]

        if almost_equal(d0, d1):
            return p0

        return p0 + (p1 - p0).scale((distance - d0) / (d1 - d0))

    def _calculate_path(self):
        path = []
        for segment in split_at_dupes(self.control_points):
            for point in self._approximate_segment(segment):
                if not path or path[-1] != point:
                    path.append(point)
        return path

    def _approximate_segment(self, points):
        path_type = self.path_type
        if path_type is PathType.linear:
            return approximate_linear(points)

        if path_type is PathType.perfect_curve and len(points) == 3:
            arc = approximate_circular_arc(points)
            if arc:
                return arc

        if path_type is PathType.catmull:
            return approximate_catmull(points)

        return approximate_bezier(points)

    def _calculate_cumulative_length(self, expected_distance):
        path = self.calculated_path
        if not path:
            return []

        coordinates = np.array(path, dtype=float)
        segment_lengths = np.hypot(*np.diff(coordinates, axis=0).T)
        cumulative_length = [0.0]
        cumulative_length.extend(np.cumsum(segment_lengths).tolist())
        calculated_length = cumulative_length[-1]

        if expected_distance is None or calculated_length == expected_distance:
            return cumulative_length

        control_points = self.control_points
        if (len(control_points) >= 2 and
                control_points[-1] == control_points[-2] and
                expected_distance > calculated_length):
            # a path ending in a repeated control point is never extended
            return cumulative_length

        # the final length is replaced below
        cumulative_length.pop()
        path_end_ix = len(path) - 1

        if calculated_length > expected_distance:
            while (cumulative_length and
                   cumulative_length[-1] >= expected_distance):
                cumulative_length.pop()
                del path[path_end_ix]
                path_end_ix -= 1

        if path_end_ix <= 0:
            # zero or negative expected distance
            cumulative_length.append(0.0)
            return cumulative_length

        direction = (path[path_end_ix] - path[path_end_ix - 1]).normalize()
        path[path_end_ix] = path[path_end_ix - 1] + direction.scale(
            expected_distance - cumulative_length[-1],
        )
        cumulative_length.append(float(expected_distance))
        return cumulative_length


def approximate_linear(points):
    return list(points)


def approximate_circular_arc(points):
    """Approximate a circular arc through three points.

    Parameters
    ----------
    points : list[Position]
        The start, a point on the arc, and the end.

    Returns
    -------
    path : list[Position]
        The approximated arc, or an empty list when the points are collinear.
    """
    a, b, c = points

    if almost_equal(0, (b.y - a.y) * (c.x - a.x) - (b.x - a.x) * (c.y - a.y)):
        return []

    try:
        center = get_center(a, b, c)
    except ValueError:
        return []

    d_a = a - center
    d_c = c - center

    radius = d_a.length

    theta_start = math.atan2(d_a.y, d_a.x)
    theta_end = math.atan2(d_c.y, d_c.x)
    while theta_end < theta_start:
        theta_end += 2 * math.pi

    direction = 1
    theta_range = theta_end - theta_start

    # switch the direction if b is on the other side of a -> c
    a_to_c = c - a
    ortho_a_to_c = Position(a_to_c.y, -a_to_c.x)
    if ortho_a_to_c.dot(b - a) < 0:
        direction = -direction
        theta_range = 2 * math.pi - theta_range

    if 2 * radius <= circular_arc_tolerance:
        amount_points = 2
    else:
        amount_points = max(
            2,
            math.ceil(
                theta_range /
                (2 * math.acos(1 - circular_arc_tolerance / radius)),
            ),
        )

    thetas = theta_start + direction * np.linspace(0, 1, amount_points) * (
        theta_range
    )
    return [
        Position(center.x + radius * math.cos(theta),
                 center.y + radius * math.sin(theta))
        for theta in thetas
    ]


def approximate_catmull(points):
    """Approximate a centripetal Catmull-Rom spline.

    Parameters
    ----------
    points : list[Position]
        The control points.

    Returns
    -------
    path : list[Position]
        The approximated spline with ``2 * catmull_detail`` vertices per
        control segment.
    """
    out = []
    count = len(points)
    for n in range(count - 1):
        v1 = points[n - 1] if n > 0 else points[n]
        v2 = points[n]
        v3 = points[n + 1] if n < count - 1 else v2 + v2 - v1
        v4 = points[n + 2] if n < count - 2 else v3 + v3 - v2

        for c in range(catmull_detail):
            out.append(_catmull_point(v1, v2, v3, v4, c / catmull_detail))
            out.append(
                _catmull_point(v1, v2, v3, v4, (c + 1) / catmull_detail),
            )

    return out


def _catmull_point(v1, v2, v3, v4, t):
    t2 = t * t
    t3 = t * t2

    def axis(p1, p2, p3, p4):
        return 0.5 * (
            2 * p2 +
            (-p1 + p3) * t +
            (2 * p1 - 5 * p2 + 4 * p3 - p4) * t2 +
            (-p1 + 3 * p2 - 3 * p3 + p4) * t3
        )

    return Position(
        axis(v1.x, v2.x, v3.x, v4.x),
        axis(v1.y, v2.y, v3.y, v4.y),
    )


def approximate_bezier(points):
    """Approximate a bezier curve by adaptive subdivision.

    Parameters
    ----------
    points : list[Position]
        The control points.

    Returns
    -------
    path : list[Position]
        The approximated curve.
    """
    if not points:
        return []

    out = []
    to_flatten = [np.array(points, dtype=float)]
    while to_flatten:
        parent = to_flatten.pop()
        if _is_flat_enough(parent):
            _approximate_flat(parent, out)
            continue

        left, right = _subdivide(parent)
        to_flatten.append(right)
        to_flatten.append(left)

    out.append(Position(*points[-1]))
    return out


def _is_flat_enough(points):
    second_difference = points[:-2] - 2 * points[1:-1] + points[2:]
    return not (
        np.sum(np.square(second_difference), axis=1) >
        bezier_tolerance ** 2 * 4
    ).any()


def _subdivide(points):
    """Split a bezier curve in half with de Casteljau's algorithm.
    """
    count = len(points)
    midpoints = points.copy()
    left = np.empty_like(points)
    right = np.empty_like(points)

    for n in range(count):
        left[n] = midpoints[0]
        right[count - n - 1] = midpoints[count - n - 1]
        midpoints[:count - n - 1] = (
            midpoints[:count - n - 1] + midpoints[1:count - n]
        ) / 2

    return left, right


def _approximate_flat(points, out):
    count = len(points)
    left, right = _subdivide(points)

    # join the two halves; they share their middle point
    joined = np.concatenate([left, right[1:]])

    out.append(Position(*points[0]))
    for n in range(1, count - 1):
        ix = 2 * n
        p = (joined[ix - 1] + 2 * joined[ix] + joined[ix + 1]) * 0.25
        out.append(Position(*p))


def get_center(a, b, c):
    """Returns the Position of the center of the circle described by the 3
    points

    Parameters
    ----------
    a, b, c : Position
        The three positions.

    Returns
    -------
    center : Position
        The center of the three points.

    Raises
    ------
    ValueError
        Raised when the points do not describe a circle.
    """
    a, b, c = np.array([a, b, c], dtype=float)

    a_squared = np.sum(np.square(b - c))
    b_squared = np.sum(np.square(a - c))
    c_squared = np.sum(np.square(a - b))

    if np.isclose([a_squared, b_squared, c_squared], 0).any():
        raise ValueError('points must be distinct')

    s = a_squared * (b_squared + c_squared - a_squared)
    t = b_squared * (a_squared + c_squared - b_squared)
    u = c_squared * (a_squared + b_squared - c_squared)

    sum_ = s + t + u

    if np.isclose(sum_, 0):
        raise ValueError('points are collinear')

    return Position(*((s * a + t * b + u * c) / sum_).tolist())


def split_at_dupes(inp):
    """Split control points into segments at repeated points.

    Parameters
    ----------
    inp : list[Position]
        The control points.

    Returns
    -------
    segments : list[list[Position]]
        The segments. A repeated point ends one segment and starts the next.
    """
    out = []
    oldi = 0
    for i in range(1, len(inp)):
        if inp[i] == inp[i - 1]:
            out.append(inp[oldi:i])
            oldi = i
    out.append(inp[oldi:])
    return [segment for segment in out if segment]

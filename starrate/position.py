from collections import namedtuple
import math


class Position(namedtuple('Position', 'x y')):
    """A position on the osu! playfield.

    Parameters
    ----------
    x : int or float
        The x coordinate.
    y : int or float
        The y coordinate.

    Notes
    -----
    The visible region of the playfield is [0, 512] by [0, 384]. Positions may
    fall outside of this range for slider control points.
    """
    x_max = 512
    y_max = 384

    def __eq__(self, other):
        return self.x == other.x and self.y == other.y

    def __ne__(self, other):
        return not self == other

    __hash__ = tuple.__hash__

    def __add__(self, other):
        return Position(self.x + other.x, self.y + other.y)

    def __sub__(self, other):
        return Position(self.x - other.x, self.y - other.y)

    def scale(self, factor):
        return Position(self.x * factor, self.y * factor)

    def dot(self, other):
        return self.x * other.x + self.y * other.y

    @property
    def length(self):
        return math.hypot(self.x, self.y)

    def normalize(self):
        """The unit vector in the direction of this position.

        Returns
        -------
        normalized : Position
            The normalized vector, or the zero vector if this position is the
            origin.
        """
        length = self.length
        if length == 0:
            return Position(0, 0)
        return Position(self.x / length, self.y / length)

    def almost_equals(self, other, epsilon=1e-3):
        return (
            abs(self.x - other.x) <= epsilon and
            abs(self.y - other.y) <= epsilon
        )


def distance(start, end):
    return math.hypot(start.x - end.x, start.y - end.y)

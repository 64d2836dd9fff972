from collections import namedtuple


class lazyval:
    """Decorator to lazily compute and cache a value.
    """
    def __init__(self, fget):
        self._fget = fget
        self._name = None
        self.__doc__ = fget.__doc__

    def __set_name__(self, owner, name):
        self._name = name

    def __get__(self, instance, owner):
        if instance is None:
            return self

        # a data descriptor is consulted before the instance dict
        try:
            return vars(instance)[self._name]
        except KeyError:
            value = vars(instance)[self._name] = self._fget(instance)
            return value

    def __set__(self, instance, value):
        vars(instance)[self._name] = value


class HitCounts(namedtuple(
        'HitCounts',
        'count_300 count_100 count_50 count_miss')):
    """The judgement breakdown of a play.

    Parameters
    ----------
    count_300 : float
        The number of 300s.
    count_100 : float
        The number of 100s.
    count_50 : float
        The number of 50s.
    count_miss : float
        The number of misses.
    """
    @property
    def total(self):
        return sum(self)

    def accuracy(self, object_count=None):
        """The accuracy of these hit counts.

        Parameters
        ----------
        object_count : float, optional
            The number of objects to compute the accuracy over. The 300s are
            adjusted so the counts sum to this. Defaults to ``total``.

        Returns
        -------
        accuracy : float
            The accuracy in the range [0, 1].
        """
        count_300 = self.count_300
        if object_count is None:
            object_count = self.total
        else:
            count_300 = (
                object_count -
                self.count_100 -
                self.count_50 -
                self.count_miss
            )

        if object_count <= 0:
            return 0.0

        return max(
            0.0,
            accuracy(count_300, self.count_100, self.count_50, self.count_miss,
                     total_hits=object_count),
        )


def accuracy(count_300, count_100, count_50, count_miss, total_hits=None):
    """Calculate osu! standard accuracy from discrete hit counts.

    Parameters
    ----------
    count_300 : int
        The number of 300's hit.
    count_100 : int
        The number of 100's hit.
    count_50 : int
        The number of 50's hit.
    count_miss : int
        The number of misses
    total_hits : int, optional
        The number of hits to divide by. Defaults to the sum of the counts.

    Returns
    -------
    accuracy : float
        The accuracy in the range [0, 1]
    """
    points_of_hits = count_300 * 300 + count_100 * 100 + count_50 * 50
    if total_hits is None:
        total_hits = count_300 + count_100 + count_50 + count_miss
    return points_of_hits / (total_hits * 300)


def round_hit_counts(accuracy, object_count, count_miss=0):
    """Round an accuracy to the nearest hit counts.

    Parameters
    ----------
    accuracy : float
        The accuracy to round in the range [0, 1].
    object_count : int
        The number of objects in the beatmap.
    count_miss : int, optional
        The number of misses.

    Returns
    -------
    counts : HitCounts
        The hit counts closest to ``accuracy``.
    """
    count_miss = min(count_miss, object_count)
    max_300 = object_count - count_miss

    if object_count == 0:
        return HitCounts(0, 0, 0, count_miss)

    accuracy = max(
        0.0,
        min(
            calculate_max_accuracy(max_300, count_miss) * 100,
            accuracy * 100,
        ),
    )

    count_50 = 0
    count_100 = round(
        -3.0 * ((accuracy * 0.01 - 1.0) * object_count + count_miss) * 0.5,
    )

    if count_100 > max_300:
        count_100 = 0
        count_50 = round(
            -6.0 * ((accuracy * 0.01 - 1.0) * object_count + count_miss) * 0.2,
        )
        count_50 = min(max_300, count_50)
    else:
        count_100 = min(max_300, count_100)

    count_300 = object_count - count_100 - count_50 - count_miss
    return HitCounts(count_300, count_100, count_50, count_miss)


def calculate_max_accuracy(count_300, count_miss):
    if count_300 + count_miss == 0:
        return 0.0
    return accuracy(count_300, 0, 0, count_miss)

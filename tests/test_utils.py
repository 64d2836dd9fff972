from math import isclose

import starrate.utils
from starrate.utils import HitCounts, lazyval, round_hit_counts


def test_accuracy():
    assert starrate.utils.accuracy(1, 0, 0, 0) == 1.0
    assert round(starrate.utils.accuracy(0, 1, 0, 0), 4) == 0.3333
    assert round(starrate.utils.accuracy(0, 0, 1, 0), 4) == 0.1667
    assert starrate.utils.accuracy(0, 0, 0, 1) == 0.0
    assert round(starrate.utils.accuracy(982, 100, 43, 14), 4) == 0.8977


def test_hit_counts_accuracy():
    counts = HitCounts(98, 2, 0, 0)
    assert counts.total == 100
    assert isclose(counts.accuracy(), (98 * 300 + 2 * 100) / 30000)

    # the 300s are recomputed to fill the object count
    assert isclose(counts.accuracy(10), (8 * 300 + 2 * 100) / 3000)

    # never negative
    assert HitCounts(0, 0, 0, 5).accuracy(2) == 0.0
    assert HitCounts(0, 0, 0, 0).accuracy(0) == 0.0


def test_round_hit_counts():
    counts = round_hit_counts(1.0, 100)
    assert counts == HitCounts(100, 0, 0, 0)

    counts = round_hit_counts(1.0, 100, count_miss=3)
    assert counts == HitCounts(97, 0, 0, 3)

    counts = round_hit_counts(0.98, 500)
    assert counts.total == 500
    assert counts.count_50 == 0
    assert isclose(counts.accuracy(), 0.98, abs_tol=1 / 500)

    # too low for 100s alone
    counts = round_hit_counts(0.3, 100)
    assert counts.count_100 == 0
    assert counts.count_50 > 0
    assert counts.total == 100

    assert round_hit_counts(0.9, 0) == HitCounts(0, 0, 0, 0)


def test_lazyval():
    calls = []

    class C:
        @lazyval
        def value(self):
            """The value.
            """
            calls.append(self)
            return 1

    assert C.value.__doc__.strip() == 'The value.'

    c = C()
    assert c.value == 1
    assert c.value == 1
    assert calls == [c]

    c.value = 2
    assert c.value == 2

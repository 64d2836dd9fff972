from math import isfinite

from hypothesis import HealthCheck, given, settings
from hypothesis.strategies import floats, integers

from starrate import (
    DroidDifficultyCalculator,
    DroidPerformanceCalculator,
    OsuDifficultyCalculator,
    OsuPerformanceCalculator,
    ScoreStatistics,
)
from starrate.strategies import beatmaps, mod_sets, slider_paths


slow = settings(
    max_examples=25,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow],
)


def assert_finite(values):
    values = list(values)
    for value in values:
        if isinstance(value, float):
            assert isfinite(value), values


@slow
@given(beatmaps(), mod_sets())
def test_osu_finite(beatmap, mods):
    attributes = OsuDifficultyCalculator().calculate(beatmap, mods)
    assert_finite(attributes)
    assert attributes.star_rating >= 0
    assert attributes.object_count == beatmap.hit_object_count

    performance = OsuPerformanceCalculator(attributes).calculate()
    assert_finite(performance)


@slow
@given(beatmaps(), mod_sets())
def test_droid_finite(beatmap, mods):
    attributes = DroidDifficultyCalculator().calculate(beatmap, mods)
    assert_finite(
        value for value in attributes
        if not isinstance(value, tuple)
    )
    for section in attributes.possible_three_fingered_sections:
        assert section.first_index <= section.last_index

    performance = DroidPerformanceCalculator(attributes).calculate()
    assert_finite(performance)


@slow
@given(
    beatmaps(min_objects=2),
    floats(0, 100),
    integers(0, 10),
)
def test_imperfect_plays(beatmap, accuracy, misses):
    attributes = OsuDifficultyCalculator().calculate(beatmap)
    calculator = OsuPerformanceCalculator(attributes)

    perfect = calculator.calculate()
    play = calculator.calculate(ScoreStatistics(
        accuracy=accuracy,
        misses=misses,
    ))
    assert_finite(perfect)
    assert_finite(play)
    assert play.effective_miss_count >= min(misses, beatmap.hit_object_count)


@given(slider_paths())
def test_slider_paths_are_finite(path):
    assert isfinite(path.length)
    end = path.position_at(1)
    assert isfinite(end.x) and isfinite(end.y)

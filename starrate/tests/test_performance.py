from math import isclose
import re

import pytest

from starrate import (
    Beatmap,
    DroidDifficultyCalculator,
    DroidPerformanceCalculator,
    ModSet,
    OsuDifficultyCalculator,
    OsuPerformanceCalculator,
    Penalties,
    ScoreStatistics,
)
from starrate.example_data import jumps, mixed, spinners
from starrate.utils import HitCounts


def osu(beatmap, mods=''):
    return OsuPerformanceCalculator(
        OsuDifficultyCalculator().calculate(beatmap, ModSet.parse(mods)),
    )


def droid(beatmap, mods=''):
    return DroidPerformanceCalculator(
        DroidDifficultyCalculator().calculate(beatmap, ModSet.parse(mods)),
    )


@pytest.fixture(scope='module')
def osu_mixed():
    return osu(mixed())


@pytest.fixture(scope='module')
def droid_mixed():
    return droid(mixed())


def test_score_statistics():
    statistics = ScoreStatistics()
    assert statistics.classic
    assert statistics.hit_counts(10) == HitCounts(10, 0, 0, 0)

    statistics = ScoreStatistics(n100=2, misses=1)
    assert statistics.hit_counts(10) == HitCounts(7, 2, 0, 1)

    statistics = ScoreStatistics(n300=5, n100=2)
    assert statistics.hit_counts(10) == HitCounts(5, 2, 0, 0)

    # accuracy overrides the explicit counts
    statistics = ScoreStatistics(n100=50, accuracy=100, misses=2)
    assert statistics.hit_counts(10) == HitCounts(8, 0, 0, 2)

    statistics = ScoreStatistics(slider_ends_dropped=0, slider_ticks_missed=0)
    assert not statistics.classic
    assert ScoreStatistics(slider_ends_dropped=0).classic


@pytest.mark.parametrize('kwargs', [
    {'accuracy': 101},
    {'accuracy': -1},
    {'n100': -1},
    {'n50': -1},
    {'misses': -1},
])
def test_invalid_score_statistics(kwargs):
    with pytest.raises(ValueError):
        ScoreStatistics(**kwargs)


@pytest.mark.parametrize('kwargs', [
    {'tap': 0},
    {'tap': -1},
    {'aim_slider_cheese': 0.5},
    {'flashlight_slider_cheese': 0},
    {'visual_slider_cheese': 0.99},
])
def test_invalid_penalties(kwargs):
    with pytest.raises(ValueError):
        Penalties(**kwargs)


def test_empty_beatmap():
    beatmap = Beatmap(circle_size=4, approach_rate=9, overall_difficulty=8)
    assert all(value == 0 for value in osu(beatmap).calculate())
    assert all(value == 0 for value in droid(beatmap).calculate())


def test_perfect_play(osu_mixed, droid_mixed):
    performance = osu_mixed.calculate()
    assert performance.total > 0
    assert performance.aim > 0
    assert performance.speed > 0
    assert performance.accuracy > 0
    assert performance.flashlight == 0
    assert performance.effective_miss_count == 0

    performance = droid_mixed.calculate()
    assert performance.total > 0
    assert performance.tap > 0
    assert performance.visual > 0
    assert performance.flashlight == 0
    assert performance.effective_miss_count == 0


@pytest.mark.parametrize('name', ['osu_mixed', 'droid_mixed'])
def test_misses(request, name):
    calculator = request.getfixturevalue(name)
    perfect = calculator.calculate()
    missed = calculator.calculate(ScoreStatistics(misses=5))

    assert missed.effective_miss_count >= 5
    assert missed.total < perfect.total
    assert missed.aim < perfect.aim

    more = calculator.calculate(ScoreStatistics(misses=20))
    assert more.total < missed.total


@pytest.mark.parametrize('name', ['osu_mixed', 'droid_mixed'])
def test_combo(request, name):
    calculator = request.getfixturevalue(name)
    max_combo = calculator.attributes.max_combo
    perfect = calculator.calculate()
    broken = calculator.calculate(ScoreStatistics(combo=max_combo // 2))

    assert broken.total < perfect.total
    # without imperfect hits the break is not counted as a miss
    assert broken.effective_miss_count == 0

    # combo can't exceed the beatmap's max combo
    assert calculator.calculate(
        ScoreStatistics(combo=max_combo * 2),
    ) == perfect


@pytest.mark.parametrize('name', ['osu_mixed', 'droid_mixed'])
def test_accuracy(request, name):
    calculator = request.getfixturevalue(name)
    perfect = calculator.calculate()
    inaccurate = calculator.calculate(ScoreStatistics(accuracy=95))

    assert inaccurate.accuracy < perfect.accuracy
    assert inaccurate.total < perfect.total


def test_slider_judgements(osu_mixed):
    max_combo = osu_mixed.attributes.max_combo
    perfect = osu_mixed.calculate(
        ScoreStatistics(slider_ends_dropped=0, slider_ticks_missed=0),
    )
    assert perfect.effective_miss_count == 0

    broken = osu_mixed.calculate(ScoreStatistics(
        combo=max_combo // 2,
        slider_ends_dropped=0,
        slider_ticks_missed=2,
    ))
    assert 0 < broken.effective_miss_count <= 2


def test_overall_difficulty_scaling():
    attributes = DroidDifficultyCalculator().calculate(
        jumps(),
        ModSet.parse('FL'),
    )
    easy = DroidPerformanceCalculator(
        attributes._replace(overall_difficulty=-1),
    ).calculate()
    hard = DroidPerformanceCalculator(
        attributes._replace(overall_difficulty=1),
    ).calculate()

    assert easy.aim < hard.aim
    assert easy.tap < hard.tap
    assert easy.flashlight < hard.flashlight
    assert easy.visual < hard.visual

    attributes = OsuDifficultyCalculator().calculate(
        jumps(),
        ModSet.parse('FL'),
    )
    easy = OsuPerformanceCalculator(
        attributes._replace(overall_difficulty=-1),
    ).calculate()
    hard = OsuPerformanceCalculator(
        attributes._replace(overall_difficulty=1),
    ).calculate()

    assert easy.aim < hard.aim
    assert easy.speed < hard.speed
    assert easy.flashlight < hard.flashlight


def test_spinners_have_no_accuracy():
    assert osu(spinners()).calculate().accuracy == 0
    assert droid(spinners()).calculate().accuracy == 0


def test_flashlight():
    assert osu(jumps()).calculate().flashlight == 0
    assert osu(jumps(), 'FL').calculate().flashlight > 0
    assert droid(jumps()).calculate().flashlight == 0
    assert droid(jumps(), 'FL').calculate().flashlight > 0


def test_tap_penalty(droid_mixed):
    unpenalized = droid_mixed.calculate()
    assert droid_mixed.calculate(penalties=Penalties(tap=1.0)) == unpenalized

    penalized = droid_mixed.calculate(penalties=Penalties(tap=1.5))
    assert isclose(penalized.tap, unpenalized.tap / 1.5)
    assert penalized.aim == unpenalized.aim
    assert penalized.total < unpenalized.total


def test_slider_cheese_penalties(droid_mixed):
    unpenalized = droid_mixed.calculate()
    penalized = droid_mixed.calculate(penalties=Penalties(
        aim_slider_cheese=2,
        visual_slider_cheese=1.25,
    ))
    assert isclose(penalized.aim, unpenalized.aim / 2)
    assert isclose(penalized.visual, unpenalized.visual / 1.25)
    assert penalized.tap == unpenalized.tap


def test_no_fail():
    attributes = OsuDifficultyCalculator().calculate(jumps())
    statistics = ScoreStatistics(misses=3)

    nomod = OsuPerformanceCalculator(attributes).calculate(statistics)
    no_fail = OsuPerformanceCalculator(
        attributes._replace(mods=ModSet.parse('NF')),
    ).calculate(statistics)

    assert isclose(no_fail.total, nomod.total * 0.94)


def test_spun_out(osu_mixed):
    attributes = osu_mixed.attributes
    nomod = osu_mixed.calculate()
    spun_out = OsuPerformanceCalculator(
        attributes._replace(mods=ModSet.parse('SO')),
    ).calculate()

    expected = 1 - (1 / attributes.object_count) ** 0.85
    assert isclose(spun_out.total, nomod.total * expected)


def test_relax():
    calculator = osu(jumps(), 'RX')
    performance = calculator.calculate()
    assert performance.speed == 0
    assert performance.accuracy == 0
    assert performance.aim > 0

    # 100s count towards the misses
    assert calculator.calculate(
        ScoreStatistics(n100=10),
    ).effective_miss_count > 0

    calculator = droid(jumps(), 'RX')
    performance = calculator.calculate()
    assert performance.tap < 1e-3
    assert performance.accuracy == 0
    assert calculator.calculate(
        ScoreStatistics(n100=10),
    ).effective_miss_count > 0


def test_str(osu_mixed, droid_mixed):
    assert re.fullmatch(
        r'\d+\.\d\d pp \(\d+\.\d\d aim, \d+\.\d\d speed, \d+\.\d\d acc,'
        r' 0\.00 flashlight\)',
        str(osu_mixed.calculate()),
    )
    assert re.fullmatch(
        r'\d+\.\d\d pp \(\d+\.\d\d aim, \d+\.\d\d tap, \d+\.\d\d acc,'
        r' 0\.00 flashlight, \d+\.\d\d visual\)',
        str(droid_mixed.calculate()),
    )

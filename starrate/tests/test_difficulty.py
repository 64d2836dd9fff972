from collections import namedtuple
from math import isclose
import re

import pytest

from starrate import (
    Beatmap,
    Circle,
    DroidDifficultyCalculator,
    ModSet,
    OsuDifficultyCalculator,
    Position,
    Slider,
)
from starrate.difficulty import HighStrainSection
from starrate.example_data import jumps, mixed, spinners, stream


@pytest.fixture(params=[OsuDifficultyCalculator, DroidDifficultyCalculator])
def calculator(request):
    return request.param()


def test_empty_beatmap(calculator):
    beatmap = Beatmap(circle_size=4, approach_rate=9, overall_difficulty=8)
    attributes = calculator.calculate(beatmap)

    assert attributes.star_rating == 0
    assert attributes.aim == 0
    assert attributes.flashlight == 0
    assert attributes.max_combo == 0
    assert attributes.object_count == 0


def test_counts(calculator):
    beatmap = mixed()
    attributes = calculator.calculate(beatmap)

    assert attributes.hit_circle_count == beatmap.circle_count
    assert attributes.slider_count == 20
    assert attributes.spinner_count == 1
    assert attributes.object_count == beatmap.hit_object_count
    assert attributes.max_combo == beatmap.max_combo
    assert attributes.star_rating > 0


def test_spinners_have_no_aim(calculator):
    attributes = calculator.calculate(spinners())
    assert attributes.aim == 0
    assert attributes.spinner_count == 5


def test_osu_skills():
    calculator = OsuDifficultyCalculator()
    jump_attributes = calculator.calculate(jumps())
    stream_attributes = calculator.calculate(stream())

    assert jump_attributes.aim > 0
    assert stream_attributes.speed > jump_attributes.speed
    assert jump_attributes.flashlight == 0

    # no sliders to nerf
    assert jump_attributes.slider_factor == 1
    assert jump_attributes.aim_difficult_slider_count == 0


def test_droid_skills():
    calculator = DroidDifficultyCalculator()
    jump_attributes = calculator.calculate(jumps())
    stream_attributes = calculator.calculate(stream())

    assert jump_attributes.aim > 0
    assert stream_attributes.tap > jump_attributes.tap
    assert stream_attributes.speed_note_count > 0
    assert isclose(
        stream_attributes.average_speed_delta_time,
        75,
        rel_tol=1e-3,
    )
    assert jump_attributes.visual > 0
    assert jump_attributes.flashlight == 0


def test_double_time(calculator):
    beatmap = mixed()
    nomod = calculator.calculate(beatmap)
    double_time = calculator.calculate(beatmap, ModSet.parse('DT'))

    assert double_time.clock_rate == 1.5
    assert double_time.star_rating > nomod.star_rating
    assert double_time.aim > nomod.aim
    assert double_time.approach_rate > nomod.approach_rate
    assert double_time.overall_difficulty > nomod.overall_difficulty

    half_time = calculator.calculate(beatmap, ModSet.parse('HT'))
    assert half_time.star_rating < nomod.star_rating


def test_double_time_tap():
    beatmap = stream()
    calculator = DroidDifficultyCalculator()
    assert (calculator.calculate(beatmap, ModSet.parse('DT')).tap >
            calculator.calculate(beatmap).tap)

    calculator = OsuDifficultyCalculator()
    assert (calculator.calculate(beatmap, ModSet.parse('DT')).speed >
            calculator.calculate(beatmap).speed)


def test_flashlight(calculator):
    beatmap = jumps()
    assert calculator.calculate(beatmap).flashlight == 0

    attributes = calculator.calculate(beatmap, ModSet.parse('FL'))
    assert attributes.flashlight > 0
    assert attributes.star_rating > calculator.calculate(beatmap).star_rating


def test_droid_overall_difficulty():
    calculator = DroidDifficultyCalculator()
    beatmap = jumps(overall_difficulty=5)

    # the droid 300 window at OD 5 is 75ms
    assert isclose(calculator.calculate(beatmap).overall_difficulty, 0.75)
    assert (calculator.calculate(beatmap, ModSet.parse('PR'))
            .overall_difficulty > 0.75)


def test_recalculate_same_mods(calculator):
    beatmap = mixed()
    attributes = calculator.calculate(beatmap)
    for component in calculator.components:
        recalculated = calculator.recalculate(attributes, component, beatmap)
        assert isclose(recalculated.star_rating, attributes.star_rating)


def test_recalculate_relax():
    beatmap = stream()
    calculator = DroidDifficultyCalculator()
    attributes = calculator.calculate(beatmap)
    assert attributes.tap > 0
    assert attributes.rhythm >= 0

    relax = ModSet.parse('RX')
    recalculated = calculator.recalculate(attributes, 'tap', beatmap, relax)
    recalculated = calculator.recalculate(recalculated, 'rhythm', beatmap)

    assert recalculated.mods == relax
    assert recalculated.tap == 0
    assert recalculated.rhythm == 0
    assert recalculated.aim == attributes.aim
    assert recalculated.star_rating < attributes.star_rating

    calculator = OsuDifficultyCalculator()
    attributes = calculator.calculate(beatmap)
    recalculated = calculator.recalculate(attributes, 'speed', beatmap, relax)
    assert recalculated.speed == 0
    assert recalculated.speed_difficulty_value == 0


def test_recalculate_unknown_component(calculator):
    beatmap = jumps(count=10)
    attributes = calculator.calculate(beatmap)
    with pytest.raises(ValueError):
        calculator.recalculate(attributes, 'reading', beatmap)


def test_str():
    attributes = OsuDifficultyCalculator().calculate(jumps())
    assert re.fullmatch(
        r'\d+\.\d\d stars \(\d+\.\d\d aim, \d+\.\d\d speed,'
        r' 0\.00 flashlight\)',
        str(attributes),
    )

    attributes = DroidDifficultyCalculator().calculate(jumps())
    assert re.fullmatch(
        r'\d+\.\d\d stars \(\d+\.\d\d aim, \d+\.\d\d tap,'
        r' \d+\.\d\d rhythm, 0\.00 flashlight, \d+\.\d\d visual\)',
        str(attributes),
    )


def test_difficult_sliders():
    beatmap = mixed()
    attributes = DroidDifficultyCalculator().calculate(beatmap)
    hit_objects = beatmap.hit_objects()

    # the top 15% of 20 sliders
    assert len(attributes.difficult_sliders) == 3
    difficulties = [s.difficulty for s in attributes.difficult_sliders]
    assert difficulties == sorted(difficulties, reverse=True)
    for slider in attributes.difficult_sliders:
        assert isinstance(hit_objects[slider.index], Slider)
        assert slider.difficulty > 0.02


FakeObject = namedtuple('FakeObject', 'index delta_time')


def sections(strains, delta_times=None):
    if delta_times is None:
        delta_times = [50] * len(strains)
    objects = [
        FakeObject(ix + 1, delta_time)
        for ix, delta_time in enumerate(delta_times)
    ]
    return DroidDifficultyCalculator()._three_fingered_sections(
        objects,
        strains,
    )


def assert_sections_equal(actual, expected):
    assert len(actual) == len(expected)
    for a, b in zip(actual, expected):
        assert (a.first_index, a.last_index) == (b.first_index, b.last_index)
        assert isclose(a.sum_strain, b.sum_strain)


def test_three_fingered_sections():
    assert sections([0] * 10) == ()

    strains = [0, 200, 200, 200, 200, 200, 200, 0, 0, 0]
    assert_sections_equal(sections(strains), [
        HighStrainSection(2, 7, (6 * 200 / 175) ** 0.75),
    ])

    # too short
    assert sections([0, 200, 200, 200, 0, 0, 0]) == ()

    # runs until the end of the beatmap
    strains = [0] + [200] * 9
    assert_sections_equal(sections(strains), [
        HighStrainSection(2, 10, (9 * 200 / 175) ** 0.75),
    ])


def test_three_fingered_sections_end_on_slowdown():
    strains = [0] + [200] * 6 + [0] * 3
    delta_times = [50] * 6 + [150] + [50] * 3
    assert_sections_equal(sections(strains, delta_times), [
        HighStrainSection(2, 6, (5 * 200 / 175) ** 0.75),
    ])


def back_and_forth():
    # two positions 200px apart at 270ms, so every angle is 0 and the
    # velocity and rhythm never change
    return Beatmap(
        circle_size=4,
        approach_rate=9,
        overall_difficulty=8,
        hit_objects=[
            Circle(Position(x, 192), time)
            for x, time in (
                (156, 1000),
                (356, 1270),
                (156, 1540),
                (356, 1810),
            )
        ],
    )


@pytest.mark.parametrize('mods,expected', [
    ('', {
        'star_rating': 0.537678195740203,
        'aim': 0.304869743025863,
        'speed': 0.0127041715621653,
        'flashlight': 0,
        'aim_difficulty_value': 20.3237694931774,
        'speed_difficulty_value': 0.0346123980781068,
        'approach_rate': 9,
        'overall_difficulty': 8,
    }),
    ('DT', {
        'star_rating': 0.656498661387488,
        'aim': 0.375037985678269,
        'speed': 0.0163357496635419,
        'flashlight': 0,
        'aim_difficulty_value': 30.4856542397661,
        'speed_difficulty_value': 0.0557167170556292,
        'approach_rate': 10.3333333333333,
        'overall_difficulty': 9.75,
    }),
])
def test_osu_recorded_values(mods, expected):
    attributes = OsuDifficultyCalculator().calculate(
        back_and_forth(),
        ModSet.parse(mods),
    )

    for name, value in expected.items():
        assert isclose(getattr(attributes, name), value, rel_tol=1e-6), name
    assert attributes.slider_factor == 1


@pytest.mark.parametrize('mods,expected', [
    ('', {
        'star_rating': 2.24550846664335,
        'aim': 1.37173587605196,
        'tap': 0.0169565896013567,
        'rhythm': 0,
        'flashlight': 0,
        'visual': 0.256184148788186,
        'approach_rate': 9,
        'overall_difficulty': 3.25,
    }),
    ('DT', {
        'star_rating': 2.83235397215611,
        'aim': 1.73402839615394,
        'tap': 0.0213446623615592,
        'rhythm': 0,
        'flashlight': 0,
        'visual': 0.264198890491013,
        'approach_rate': 10.3333333333333,
        'overall_difficulty': 6.58333333333333,
    }),
])
def test_droid_recorded_values(mods, expected):
    attributes = DroidDifficultyCalculator().calculate(
        back_and_forth(),
        ModSet.parse(mods),
    )

    for name, value in expected.items():
        assert isclose(getattr(attributes, name), value, rel_tol=1e-6), name
    assert attributes.slider_factor == 1
    assert attributes.vibro_factor == 1

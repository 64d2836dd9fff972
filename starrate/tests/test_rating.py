from math import isclose

from starrate import ModSet
from starrate.rating import (
    DroidRatingCalculator,
    OsuRatingCalculator,
    calculate_flashlight_length_bonus,
    calculate_length_bonus,
    calculate_rating_total,
    calculate_visibility_bonus,
    difficulty_to_performance,
    difficulty_to_rating,
)


def test_difficulty_to_rating():
    assert difficulty_to_rating(4, 0.5) == 1
    assert difficulty_to_rating(0, 0.5) == 0

    # ratings below the floor all have the same base performance
    assert difficulty_to_performance(0) == difficulty_to_performance(0.01)
    assert difficulty_to_performance(3) > difficulty_to_performance(2)


def test_rating_total():
    assert calculate_rating_total([]) == 0

    base = calculate_rating_total([2, 1])
    assert calculate_rating_total([3, 1]) > base
    assert calculate_rating_total([2, 1.5]) > base
    assert calculate_rating_total([2, 1, 0.5]) >= base
    assert isclose(calculate_rating_total([2, 1], multiplier=2), base * 2)

    # order does not matter
    assert isclose(calculate_rating_total([1, 2]), base)


def test_length_bonus():
    assert calculate_length_bonus(0) == 0.95
    assert isclose(calculate_length_bonus(1000), 1.15)
    assert isclose(calculate_length_bonus(2000), 1.35)
    assert isclose(calculate_length_bonus(20000), 1.85)


def test_flashlight_length_bonus():
    assert calculate_flashlight_length_bonus(0) == 0.7
    assert isclose(calculate_flashlight_length_bonus(200), 0.8)
    assert isclose(calculate_flashlight_length_bonus(300), 0.9)
    assert isclose(calculate_flashlight_length_bonus(400), 1.0)
    assert isclose(calculate_flashlight_length_bonus(5000), 1.0)


def test_visibility_bonus():
    mods = ModSet.parse('HD')
    assert calculate_visibility_bonus(mods, 12) == 0
    assert isclose(calculate_visibility_bonus(mods, 10), 0.08)
    assert (calculate_visibility_bonus(mods, 5) >
            calculate_visibility_bonus(mods, 7))
    assert (calculate_visibility_bonus(mods, -5) >
            calculate_visibility_bonus(mods, 0))

    partial = ModSet.parse('HD', hidden_only_fade_approach_circles=True)
    assert (calculate_visibility_bonus(partial, 8) <
            calculate_visibility_bonus(mods, 8))


def osu_rating(mods, approach_rate=9, overall_difficulty=8):
    return OsuRatingCalculator(
        mods=ModSet.parse(mods),
        total_hits=500,
        approach_rate=approach_rate,
        overall_difficulty=overall_difficulty,
        mechanical_difficulty_rating=5,
        slider_factor=1,
    )


def test_osu_rating_mods():
    nomod = osu_rating('')
    assert nomod.compute_flashlight_rating(100) == 0
    assert osu_rating('FL').compute_flashlight_rating(100) > 0

    assert osu_rating('AP').compute_aim_rating(100) == 0
    assert osu_rating('RX').compute_speed_rating(100) == 0
    assert (osu_rating('AP').compute_speed_rating(100) <
            nomod.compute_speed_rating(100))

    assert (osu_rating('HD').compute_aim_rating(100) >
            nomod.compute_aim_rating(100))
    assert (osu_rating('', approach_rate=11).compute_aim_rating(100) >
            nomod.compute_aim_rating(100))
    assert (osu_rating('', overall_difficulty=10).compute_speed_rating(100) >
            nomod.compute_speed_rating(100))


def test_droid_rating_mods():
    def droid(mods):
        return DroidRatingCalculator(ModSet.parse(mods), 500, 9, 8)

    assert isclose(droid('').compute_aim_rating(100), 1.8)
    assert isclose(droid('').compute_tap_rating(100), 1.8)
    assert droid('RX').compute_tap_rating(100) == 0
    assert droid('RX').compute_rhythm_rating(100) == 0
    assert droid('AP').compute_aim_rating(100) == 0
    assert droid('').compute_flashlight_rating(100) == 0
    assert isclose(droid('FL').compute_flashlight_rating(100), 1.8)
    assert isclose(droid('FLRX').compute_flashlight_rating(100), 1.8 * 0.7)
    # length and overall difficulty only scale the performance value
    assert isclose(
        DroidRatingCalculator(ModSet.parse('FL'), 10, 5, -2)
        .compute_flashlight_rating(100),
        1.8,
    )
    assert isclose(
        droid('RX').compute_visual_rating(100),
        droid('').compute_visual_rating(100) * 0.7,
    )

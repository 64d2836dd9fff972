from math import isclose

import pytest

from starrate.mod import (
    Mod,
    ModSet,
    ar_to_ms,
    circle_radius,
    droid_hit_windows,
    ms_300_to_od,
    ms_to_ar,
    od_to_ms,
    od_to_ms_300,
)


def test_parse():
    assert Mod.parse('') == 0
    assert Mod.parse('HDDT') == Mod.hidden | Mod.double_time
    assert Mod.parse('hddt') == Mod.parse('DTHD')

    with pytest.raises(ValueError):
        Mod.parse('HDD')

    with pytest.raises(ValueError):
        Mod.parse('XX')


def test_mod_set():
    mods = ModSet.parse('HDDT')
    assert Mod.hidden in mods
    assert Mod.hard_rock not in mods
    assert len(mods) == 2
    assert mods.acronyms == 'HDDT'
    assert mods == ModSet([Mod.double_time, Mod.hidden])
    assert mods != ModSet([Mod.double_time, Mod.hidden], speed_multiplier=2)

    assert mods.without(Mod.hidden) == ModSet([Mod.double_time])
    assert ModSet(Mod.hidden | Mod.flashlight) == ModSet.parse('FLHD')
    assert ModSet.parse('FLHD').bitmask == Mod.hidden | Mod.flashlight
    assert ModSet().bitmask == 0


def test_clock_rate():
    assert ModSet().clock_rate == 1
    assert ModSet.parse('DT').clock_rate == 1.5
    assert ModSet.parse('NCDT').clock_rate == 1.5
    assert ModSet.parse('HT').clock_rate == 0.75
    assert ModSet.parse('DT', speed_multiplier=1.25).clock_rate == 1.875


def test_difficulty_adjustments():
    hard_rock = ModSet.parse('HR')
    assert isclose(hard_rock.circle_size(4), 5.2)
    assert hard_rock.circle_size(9) == 10
    assert isclose(hard_rock.approach_rate(9), 10)
    assert isclose(hard_rock.overall_difficulty(5), 7)

    easy = ModSet.parse('EZ')
    assert easy.circle_size(4) == 2
    assert easy.approach_rate(9) == 4.5

    assert ModSet().approach_rate(9) == 9


def test_effective_settings():
    assert isclose(ModSet.parse('DT').effective_approach_rate(9), 10.33,
                   abs_tol=0.01)
    assert isclose(ModSet.parse('HT').effective_approach_rate(9), 7.67,
                   abs_tol=0.01)
    assert isclose(ModSet().effective_approach_rate(9), 9)

    assert ModSet.parse('DT').effective_overall_difficulty(8) > 8
    assert ModSet.parse('HT').effective_overall_difficulty(8) < 8
    assert isclose(ModSet().effective_overall_difficulty(8), 8)


def test_partially_hidden():
    assert not ModSet.parse('HD').partially_hidden
    assert ModSet.parse(
        'HD',
        hidden_only_fade_approach_circles=True,
    ).partially_hidden
    assert ModSet.parse('TC').partially_hidden


def test_conversions():
    assert ar_to_ms(5) == 1200
    assert ar_to_ms(10) == 450
    assert ar_to_ms(0) == 1800

    for ar in (0, 2.5, 5, 7.5, 10, 11):
        assert isclose(ms_to_ar(ar_to_ms(ar)), ar)

    for od in (-2, 0, 5, 10):
        assert isclose(ms_300_to_od(od_to_ms_300(od)), od, abs_tol=1e-9)
        assert isclose(od_to_ms(od).hit_300, od_to_ms_300(od))

    windows = od_to_ms(5)
    assert windows.hit_300 < windows.hit_100 < windows.hit_50
    assert isclose(windows.scale(1.5).hit_300, windows.hit_300 / 1.5)

    assert circle_radius(5) == 32
    assert circle_radius(7) < circle_radius(5) < circle_radius(3)


def test_droid_hit_windows():
    windows = droid_hit_windows(5)
    assert windows.hit_300 == 75

    precise = droid_hit_windows(5, precise=True)
    assert precise.hit_300 < windows.hit_300
    assert precise.hit_100 < windows.hit_100
    assert precise.hit_50 < windows.hit_50

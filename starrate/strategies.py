from hypothesis.strategies import (
    booleans,
    composite,
    floats as _floats,
    integers,
    lists,
    one_of,
    sampled_from,
)

from starrate import Beatmap, Circle, Mod, ModSet, Position, Slider, Spinner
from starrate.path import PathType, SliderPath


def floats(*args, **kwargs):
    return _floats(*args, allow_nan=False, allow_infinity=False, **kwargs)


@composite
def positions(draw, *, reasonable=True):
    if reasonable:
        return Position(
            x=draw(integers(0, 512)),
            y=draw(integers(0, 384)),
        )
    return Position(x=draw(floats(-1e4, 1e4)), y=draw(floats(-1e4, 1e4)))


@composite
def slider_paths(draw):
    kind = draw(sampled_from(list(PathType)))

    # a perfect curve needs exactly three points, the others at least two
    min_points = max_points = 3
    if kind is not PathType.perfect_curve:
        min_points, max_points = 2, 6

    points = draw(lists(
        positions(),
        min_size=min_points - 1,
        max_size=max_points - 1,
    ))
    return SliderPath(
        kind,
        [Position(0, 0)] + [Position(p.x - 256, p.y - 192) for p in points],
        draw(floats(10, 400)),
    )


def _circles(time):
    return positions().map(lambda p: Circle(p, time))


@composite
def _sliders(draw, time):
    return Slider(
        draw(positions()),
        time,
        draw(slider_paths()),
        repeat_count=draw(integers(0, 3)),
        ms_per_beat=draw(floats(200, 1000)),
        slider_velocity=draw(floats(0.5, 2)),
    )


@composite
def _spinners(draw, time):
    return Spinner(
        Position(256, 192),
        time,
        time + draw(floats(100, 3000)),
    )


@composite
def hit_objects(draw, *, min_size=1, max_size=50, with_sliders=True):
    """Draw hit objects in time order that do not overlap in time.
    """
    count = draw(integers(min_size, max_size))
    out = []
    time = draw(floats(0, 2000))
    for _ in range(count):
        kinds = [_circles(time), _spinners(time)]
        if with_sliders:
            kinds.append(_sliders(time))
        obj = draw(one_of(kinds))
        out.append(obj)
        time = obj.end_time + draw(floats(10, 1000))
    return out


@composite
def beatmaps(draw, *, min_objects=1, max_objects=50, with_sliders=True):
    return Beatmap(
        circle_size=draw(floats(0, 10)),
        approach_rate=draw(floats(0, 10)),
        overall_difficulty=draw(floats(0, 10)),
        hp_drain_rate=draw(floats(0, 10)),
        # at least the default so sliders end before the next object
        slider_multiplier=draw(floats(Slider.slider_multiplier, 3.6)),
        slider_tick_rate=draw(sampled_from([0.5, 1, 2, 3, 4])),
        hit_objects=draw(hit_objects(
            min_size=min_objects,
            max_size=max_objects,
            with_sliders=with_sliders,
        )),
    )


_combinable_mods = [
    Mod.no_fail,
    Mod.hidden,
    Mod.flashlight,
    Mod.spun_out,
    Mod.touch_device,
    Mod.score_v2,
]


@composite
def mod_sets(draw):
    mods = set(draw(lists(sampled_from(_combinable_mods), unique=True)))
    mods.add(draw(sampled_from([None, Mod.easy, Mod.hard_rock])))
    mods.add(draw(sampled_from([None, Mod.double_time, Mod.half_time])))
    mods.add(draw(sampled_from([None, Mod.relax, Mod.auto_pilot])))
    mods.discard(None)
    return ModSet(
        mods,
        speed_multiplier=draw(sampled_from([0.5, 1.0, 1.25, 2.0])),
        hidden_only_fade_approach_circles=draw(booleans()),
    )

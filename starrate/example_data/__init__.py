from starrate import Beatmap, Circle, Slider, Spinner, Position
from starrate.path import PathType, SliderPath


def _beatmap(hit_objects, **kwargs):
    settings = {
        'circle_size': 4,
        'approach_rate': 9,
        'overall_difficulty': 8,
        'hp_drain_rate': 5,
    }
    settings.update(kwargs)
    return Beatmap(hit_objects=hit_objects, **settings)


def jumps(count=200, spacing=300, ms_per_note=300, **kwargs):
    """A beatmap of circles jumping back and forth across the playfield.

    Parameters
    ----------
    count : int, optional
        The number of circles.
    spacing : float, optional
        The distance between consecutive circles in osu! pixels.
    ms_per_note : float, optional
        The time between consecutive circles.
    **kwargs
        Difficulty settings forwarded to :class:`~starrate.Beatmap`.

    Returns
    -------
    beatmap : Beatmap
        The beatmap.
    """
    left = 256 - spacing / 2
    return _beatmap(
        [
            Circle(
                Position(left + spacing * (n % 2), 192 + 40 * (n % 3 - 1)),
                1000 + n * ms_per_note,
            )
            for n in range(count)
        ],
        **kwargs,
    )


def stream(count=300, ms_per_note=75, **kwargs):
    """A beatmap of tightly spaced circles at 1/4 of 200 BPM.
    """
    return _beatmap(
        [
            Circle(
                Position(100 + (n % 20) * 15, 150 + (n // 20 % 2) * 60),
                1000 + n * ms_per_note,
            )
            for n in range(count)
        ],
        **kwargs,
    )


def sliders(count=100, ms_per_beat=400, **kwargs):
    """A beatmap alternating between circles and one beat long sliders.
    """
    velocity = 100 * Slider.slider_multiplier / ms_per_beat
    length = velocity * ms_per_beat

    hit_objects = []
    time = 1000
    for n in range(count):
        x = 100 if n % 2 else 300
        if n % 2:
            hit_objects.append(Circle(Position(x, 200), time))
            time += ms_per_beat / 2
        else:
            hit_objects.append(Slider(
                Position(x, 200),
                time,
                SliderPath(
                    PathType.bezier,
                    [Position(0, 0), Position(length / 2, -60),
                     Position(length, 0)],
                    length,
                ),
                ms_per_beat=ms_per_beat,
            ))
            time += ms_per_beat * 1.5

    return _beatmap(hit_objects, **kwargs)


def spinners(count=5, duration=2000, **kwargs):
    """A beatmap with only spinners.
    """
    return _beatmap(
        [
            Spinner(Position(256, 192), 1000 + n * (duration + 500),
                    1000 + n * (duration + 500) + duration)
            for n in range(count)
        ],
        **kwargs,
    )


def mixed(**kwargs):
    """A beatmap with jumps, a stream, sliders and a spinner.
    """
    parts = [jumps(count=60), stream(count=80), sliders(count=40)]

    hit_objects = []
    offset = 0
    for part in parts:
        objects = part.hit_objects()
        for obj in objects:
            hit_objects.append(_shift(obj, offset))
        offset = hit_objects[-1].end_time

    hit_objects.append(Spinner(Position(256, 192), offset + 1000,
                               offset + 3000))
    return _beatmap(hit_objects, **kwargs)


def _shift(obj, offset):
    if isinstance(obj, Slider):
        return Slider(
            obj.position,
            obj.time + offset,
            obj.path,
            repeat_count=obj.repeat_count,
            ms_per_beat=obj.ms_per_beat,
            slider_velocity=obj.slider_velocity,
        )
    if isinstance(obj, Spinner):
        return Spinner(obj.position, obj.time + offset, obj.end_time + offset)
    return Circle(obj.position, obj.time + offset)

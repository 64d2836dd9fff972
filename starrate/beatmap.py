import copy
import json

from .mod import (
    Mod,
    ar_to_ms,
    circle_radius,
    fade_in_ms,
    hidden_fade_in_multiplier,
)
from .path import PathType, SliderPath
from .position import Position
from .utils import lazyval


class HitObject:
    """An abstract hit element for osu! standard.

    Parameters
    ----------
    position : Position
        Where this element appears on the screen.
    time : float
        When this element appears in the map in milliseconds.

    Notes
    -----
    The attributes that depend on the beatmap difficulty (``radius``,
    ``time_preempt`` and ``time_fade_in``) are filled in by
    :meth:`Beatmap.hit_objects`.
    """
    type_code = None

    radius = circle_radius(5)
    time_preempt = ar_to_ms(5)
    time_fade_in = fade_in_ms(ar_to_ms(5))

    def __init__(self, position, time):
        self.position = Position(*position)
        self.time = time

    def __repr__(self):
        return (
            f'<{type(self).__qualname__}: {self.position}, {self.time:g}ms>'
        )

    @property
    def end_time(self):
        return self.time

    @property
    def end_position(self):
        return self.position

    # stacking is not applied, objects are hit where they are placed
    @property
    def stacked_position(self):
        return self.position

    @property
    def stacked_end_position(self):
        return self.end_position

    def _apply_difficulty(self, radius, preempt, fade_in, hard_rock):
        """Create a copy of this object with difficulty dependent attributes.

        Parameters
        ----------
        radius : float
            The circle radius in osu! pixels.
        preempt : float
            The approach time in milliseconds.
        fade_in : float
            The fade in time in milliseconds.
        hard_rock : bool
            Flip the object vertically.

        Returns
        -------
        prepared : HitObject
            The prepared hit object.
        """
        obj = copy.copy(self)
        vars(obj).pop('nested_objects', None)
        obj.radius = radius
        obj.time_preempt = preempt
        obj.time_fade_in = fade_in
        if hard_rock:
            obj.position = Position(
                obj.position.x,
                Position.y_max - obj.position.y,
            )
        return obj


class Circle(HitObject):
    """A circle hit element.

    Parameters
    ----------
    position : Position
        Where this circle appears on the screen.
    time : float
        When this circle appears in the map in milliseconds.
    """
    type_code = 1


class Spinner(HitObject):
    """A spinner hit element

    Parameters
    ----------
    position : Position
        Where this spinner appears on the screen.
    time : float
        When this spinner appears in the map in milliseconds.
    end_time : float
        When this spinner ends in the map in milliseconds.
    """
    type_code = 8

    def __init__(self, position, time, end_time):
        super().__init__(position, time)
        if end_time < time:
            raise ValueError(
                f'spinner ends before it starts: {end_time} < {time}',
            )
        self._end_time = end_time

    @property
    def end_time(self):
        return self._end_time

    @property
    def duration(self):
        return self._end_time - self.time


class SliderNestedObject:
    """A point a slider's cursor must pass through.

    Parameters
    ----------
    position : Position
        The absolute position.
    time : float
        The time in milliseconds.
    """
    def __init__(self, position, time):
        self.position = position
        self.time = time

    def __repr__(self):
        return (
            f'<{type(self).__qualname__}: {self.position}, {self.time:g}ms>'
        )


class SliderHead(SliderNestedObject):
    pass


class SliderTick(SliderNestedObject):
    pass


class SliderRepeat(SliderNestedObject):
    pass


class SliderTail(SliderNestedObject):
    pass


class Slider(HitObject):
    """A slider hit element.

    Parameters
    ----------
    position : Position
        Where this slider appears on the screen.
    time : float
        When this slider appears in the map in milliseconds.
    path : SliderPath
        The slider's path relative to ``position``.
    repeat_count : int, optional
        The number of times the slider reverses.
    ms_per_beat : float, optional
        The uninherited beat length at the slider's time.
    slider_velocity : float, optional
        The inherited timing point's velocity multiplier.
    """
    type_code = 2

    # the tail is judged earlier than the slider's true end
    legacy_last_tick_offset = 36

    slider_multiplier = 1.4
    tick_rate = 1

    def __init__(self,
                 position,
                 time,
                 path,
                 repeat_count=0,
                 ms_per_beat=500.0,
                 slider_velocity=1.0):
        super().__init__(position, time)
        if repeat_count < 0:
            raise ValueError(f'repeat_count must be >= 0, got {repeat_count}')
        if ms_per_beat <= 0:
            raise ValueError(f'ms_per_beat must be > 0, got {ms_per_beat}')
        if slider_velocity <= 0:
            raise ValueError(
                f'slider_velocity must be > 0, got {slider_velocity}',
            )

        self.path = path
        self.repeat_count = repeat_count
        self.ms_per_beat = ms_per_beat
        self.slider_velocity = slider_velocity

    @property
    def span_count(self):
        return self.repeat_count + 1

    @property
    def scoring_distance(self):
        return 100 * self.slider_multiplier * self.slider_velocity

    @property
    def velocity(self):
        """The slider ball's speed in osu! pixels per millisecond.
        """
        return self.scoring_distance / self.ms_per_beat

    @property
    def tick_distance(self):
        return self.scoring_distance / self.tick_rate

    @property
    def span_duration(self):
        return self.path.expected_distance / self.velocity

    @property
    def duration(self):
        return self.span_count * self.span_duration

    @property
    def end_time(self):
        return self.time + self.duration

    @property
    def end_position(self):
        return self.position + self.path.position_at(self.span_count % 2)

    def curve_position_at(self, progress):
        """The slider ball's position relative to the head, accounting for
        repeats.

        Parameters
        ----------
        progress : float
            The progress through the whole slider in the range [0, 1].

        Returns
        -------
        position : Position
            The position relative to the slider's head.
        """
        span_progress = progress * self.span_count
        span = int(span_progress)
        local = span_progress - span
        if span % 2 == 1:
            local = 1 - local
        return self.path.position_at(local)

    @lazyval
    def nested_objects(self):
        """The head, ticks, repeats and tail of the slider in time order.
        """
        path = self.path
        length = path.expected_distance
        span_duration = self.span_duration
        position = self.position

        out = [SliderHead(position, self.time)]

        tick_distance = min(self.tick_distance, length)
        # ticks too close to the end of a span are skipped
        min_distance_from_end = self.velocity * 10

        tick_distances = []
        if tick_distance > 0:
            distance = tick_distance
            while distance < length - min_distance_from_end:
                tick_distances.append(distance)
                distance += tick_distance

        for span in range(self.span_count):
            span_start = self.time + span * span_duration
            reversed_span = span % 2 == 1

            distances = (
                reversed(tick_distances) if reversed_span else tick_distances
            )
            for distance in distances:
                progress = distance / length
                time_progress = 1 - progress if reversed_span else progress
                out.append(SliderTick(
                    position + path.position_at(progress),
                    span_start + time_progress * span_duration,
                ))

            if span < self.span_count - 1:
                out.append(SliderRepeat(
                    position + path.position_at(0 if reversed_span else 1),
                    span_start + span_duration,
                ))

        out.append(SliderTail(
            self.end_position,
            max(
                self.time + self.duration / 2,
                self.end_time - self.legacy_last_tick_offset,
            ),
        ))
        return out

    def _apply_difficulty(self,
                          radius,
                          preempt,
                          fade_in,
                          hard_rock,
                          slider_multiplier=1.4,
                          tick_rate=1):
        obj = super()._apply_difficulty(radius, preempt, fade_in, hard_rock)
        obj.slider_multiplier = slider_multiplier
        obj.tick_rate = tick_rate
        if hard_rock:
            obj.path = SliderPath(
                self.path.path_type,
                [Position(p.x, -p.y) for p in self.path.control_points],
                self.path.expected_distance,
            )
        return obj


class Beatmap:
    """A decoded beatmap: its difficulty settings and hit objects.

    Parameters
    ----------
    circle_size : float
        The circle size.
    approach_rate : float
        The approach rate.
    overall_difficulty : float
        The overall difficulty.
    hp_drain_rate : float
        The HP drain rate.
    slider_multiplier : float
        The base slider velocity in hundreds of osu! pixels per beat.
    slider_tick_rate : float
        The number of slider ticks per beat.
    hit_objects : list[HitObject]
        The hit objects in time order.
    """
    def __init__(self,
                 circle_size,
                 approach_rate,
                 overall_difficulty,
                 hp_drain_rate=5,
                 slider_multiplier=1.4,
                 slider_tick_rate=1,
                 hit_objects=()):
        self.circle_size = circle_size
        self.approach_rate = approach_rate
        self.overall_difficulty = overall_difficulty
        self.hp_drain_rate = hp_drain_rate
        self.slider_multiplier = slider_multiplier
        self.slider_tick_rate = slider_tick_rate
        self._hit_objects = tuple(sorted(hit_objects, key=lambda o: o.time))

    def __repr__(self):
        return (
            f'<{type(self).__qualname__}: CS{self.circle_size:g}'
            f' AR{self.approach_rate:g} OD{self.overall_difficulty:g},'
            f' {len(self._hit_objects)} objects>'
        )

    def hit_objects(self, mods=None):
        """Retrieve the hit objects prepared for a set of mods.

        Parameters
        ----------
        mods : ModSet, optional
            The active mods. Easy and hard rock change the circle size and
            approach rate; hard rock also flips the playfield; hidden shortens
            the fade in.

        Returns
        -------
        hit_objects : list[HitObject]
            The prepared hit objects. Times are not scaled by the clock rate.
        """
        hard_rock = mods is not None and Mod.hard_rock in mods
        cs = self.circle_size if mods is None else mods.circle_size(
            self.circle_size,
        )
        ar = self.approach_rate if mods is None else mods.approach_rate(
            self.approach_rate,
        )

        radius = circle_radius(cs)
        preempt = ar_to_ms(ar)
        if mods is not None and Mod.hidden in mods:
            fade_in = preempt * hidden_fade_in_multiplier
        else:
            fade_in = fade_in_ms(preempt)

        out = []
        for hit_object in self._hit_objects:
            if isinstance(hit_object, Slider):
                prepared = hit_object._apply_difficulty(
                    radius,
                    preempt,
                    fade_in,
                    hard_rock,
                    self.slider_multiplier,
                    self.slider_tick_rate,
                )
            else:
                prepared = hit_object._apply_difficulty(
                    radius,
                    preempt,
                    fade_in,
                    hard_rock,
                )
            out.append(prepared)
        return out

    @property
    def hit_object_count(self):
        return len(self._hit_objects)

    @lazyval
    def circle_count(self):
        return sum(isinstance(o, Circle) for o in self._hit_objects)

    @lazyval
    def slider_count(self):
        return sum(isinstance(o, Slider) for o in self._hit_objects)

    @lazyval
    def spinner_count(self):
        return sum(isinstance(o, Spinner) for o in self._hit_objects)

    @lazyval
    def max_combo(self):
        """The highest combo that can be achieved on this beatmap.
        """
        max_combo = 0
        for hit_object in self.hit_objects():
            if isinstance(hit_object, Slider):
                max_combo += len(hit_object.nested_objects)
            else:
                max_combo += 1
        return max_combo

    @classmethod
    def from_dict(cls, data):
        """Build a beatmap from an already decoded mapping.

        Parameters
        ----------
        data : dict
            A mapping with the difficulty settings and a ``hit_objects``
            list. Each hit object has a ``type`` of ``circle``, ``slider`` or
            ``spinner``, an ``x``, a ``y`` and a ``time``. Sliders also have
            ``path_type``, ``control_points`` (relative to the head), and
            optionally ``length``, ``repeat_count``, ``ms_per_beat`` and
            ``slider_velocity``. Spinners have an ``end_time``.

        Returns
        -------
        beatmap : Beatmap
            The beatmap.
        """
        hit_objects = []
        for n, entry in enumerate(data.get('hit_objects', ())):
            try:
                kind = entry['type']
                position = Position(entry['x'], entry['y'])
                time = entry['time']
            except KeyError as e:
                raise ValueError(f'hit object {n} is missing {e}')

            if kind == 'circle':
                hit_objects.append(Circle(position, time))
            elif kind == 'spinner':
                hit_objects.append(
                    Spinner(position, time, entry.get('end_time', time)),
                )
            elif kind == 'slider':
                path = SliderPath(
                    PathType(entry.get('path_type', 'B')),
                    [Position(0, 0)] + [
                        Position(*p) for p in entry['control_points']
                    ],
                    entry.get('length'),
                )
                hit_objects.append(Slider(
                    position,
                    time,
                    path,
                    repeat_count=entry.get('repeat_count', 0),
                    ms_per_beat=entry.get('ms_per_beat', 500.0),
                    slider_velocity=entry.get('slider_velocity', 1.0),
                ))
            else:
                raise ValueError(f'unknown hit object type: {kind!r}')

        try:
            return cls(
                circle_size=data['circle_size'],
                approach_rate=data.get(
                    'approach_rate',
                    data['overall_difficulty'],
                ),
                overall_difficulty=data['overall_difficulty'],
                hp_drain_rate=data.get('hp_drain_rate', 5),
                slider_multiplier=data.get('slider_multiplier', 1.4),
                slider_tick_rate=data.get('slider_tick_rate', 1),
                hit_objects=hit_objects,
            )
        except KeyError as e:
            raise ValueError(f'beatmap is missing {e}')

    @classmethod
    def from_path(cls, path):
        """Read a beatmap from a JSON file.

        Parameters
        ----------
        path : str or pathlib.Path
            The path to a JSON document in the format accepted by
            :meth:`from_dict`.

        Returns
        -------
        beatmap : Beatmap
            The beatmap.
        """
        with open(path) as f:
            return cls.from_dict(json.load(f))

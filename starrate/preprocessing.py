from collections import namedtuple
from enum import Enum, unique
import math

from .beatmap import Circle, Slider, SliderRepeat, SliderTick, Spinner
from .interpolation import almost_equal, clamp
from .mod import Mod, droid_hit_windows, hidden_fade_out_multiplier, od_to_ms
from .position import Position, distance


@unique
class Ruleset(Enum):
    """The rulesets difficulty can be calculated for.
    """
    osu = 'osu'
    droid = 'droid'


class RhythmRatio(namedtuple(
        'RhythmRatio',
        'numerator denominator difficulty')):
    """A musically meaningful ratio between two consecutive strain times.

    Parameters
    ----------
    numerator : int
        The numerator of the ratio of the current to the previous strain time.
    denominator : int
        The denominator of the ratio.
    difficulty : float
        How hard the rhythm change is to play, used by the rhythm evaluators.
    """
    @property
    def ratio(self):
        return self.numerator / self.denominator


rhythm_ratios = (
    RhythmRatio(1, 1, 0.0),
    RhythmRatio(2, 1, 0.3),
    RhythmRatio(1, 2, 0.5),
    RhythmRatio(3, 1, 0.3),
    RhythmRatio(1, 3, 0.35),
    RhythmRatio(3, 2, 0.6),
    RhythmRatio(2, 3, 0.4),
    RhythmRatio(5, 4, 0.5),
    RhythmRatio(4, 5, 0.7),
)


def snap_rhythm(ratio):
    """Snap a strain time ratio to the closest entry of ``rhythm_ratios``.

    Parameters
    ----------
    ratio : float
        The current strain time divided by the previous strain time.

    Returns
    -------
    rhythm : RhythmRatio
        The closest ratio. Ties go to the smaller denominator.
    """
    return min(
        rhythm_ratios,
        key=lambda r: (abs(r.ratio - ratio), r.denominator),
    )


class LazySlider(namedtuple('LazySlider', 'end_position distance time')):
    """How a slider is followed with as little movement as possible.

    Parameters
    ----------
    end_position : Position
        Where the cursor ends up.
    distance : float
        The normalized distance the cursor travels.
    time : float
        The time spent following the slider, before clock rate adjustment.
    """


class DifficultyHitObject:
    """A hit object with the derived values used by the skills.

    Parameters
    ----------
    hit_object : HitObject
        The prepared hit object to wrap.
    last_object : HitObject or None
        The hit object before ``hit_object``.
    last_last_object : HitObject or None
        The hit object before ``last_object``.
    objects : list[DifficultyHitObject]
        The sequence this object belongs to. It is appended to by
        :func:`create_difficulty_hit_objects`.
    index : int
        The position of this object in ``objects``. The first object only
        provides history: evaluators never score it, and their history
        windows stop before it.
    clock_rate : float
        The rate the beatmap is played at.
    great_window : float
        The 300 hit window in milliseconds, before clock rate adjustment.
    lazy_sliders : dict[int, LazySlider]
        Cache of lazy slider movement shared by the sequence.
    """
    ruleset = None

    normalized_radius = 50
    normalized_diameter = normalized_radius * 2
    min_delta_time = 25

    maximum_slider_radius = normalized_radius * 2.4
    assumed_slider_radius = normalized_radius * 1.8

    def __init__(self,
                 hit_object,
                 last_object,
                 last_last_object,
                 objects,
                 index,
                 clock_rate,
                 great_window,
                 lazy_sliders):
        self.object = hit_object
        self._last_object = last_object
        self._last_last_object = last_last_object
        self._objects = objects
        self._lazy_sliders = lazy_sliders
        self.index = index
        self.clock_rate = clock_rate

        self.start_time = hit_object.time / clock_rate
        self.end_time = hit_object.end_time / clock_rate
        self.time_preempt = hit_object.time_preempt / clock_rate
        self.time_fade_in = hit_object.time_fade_in / clock_rate
        self.full_great_window = great_window * 2 / clock_rate

        if last_object is None:
            self.delta_time = 0
        else:
            self.delta_time = self.start_time - last_object.time / clock_rate
        self.strain_time = max(self.delta_time, self.min_delta_time)

        self.lazy_jump_distance = 0
        self.minimum_jump_distance = 0
        self.minimum_jump_time = 0
        self.travel_distance = 0
        self.travel_time = 0
        self.angle = None
        self.rhythm = rhythm_ratios[0]

        self._set_distances()

    def __repr__(self):
        return (
            f'<{type(self).__qualname__}: {self.index},'
            f' {self.start_time:g}ms, {type(self.object).__name__}>'
        )

    def previous(self, lag=0):
        """The object ``lag + 1`` positions before this one.

        Parameters
        ----------
        lag : int, optional
            How many additional objects to skip.

        Returns
        -------
        previous : DifficultyHitObject or None
            The previous object, or None before the start of the sequence.
        """
        ix = self.index - lag - 1
        if ix < 0:
            return None
        return self._objects[ix]

    def next(self, lag=0):
        """The object ``lag + 1`` positions after this one.

        Parameters
        ----------
        lag : int, optional
            How many additional objects to skip.

        Returns
        -------
        next : DifficultyHitObject or None
            The next object, or None after the end of the sequence.
        """
        ix = self.index + lag + 1
        if ix >= len(self._objects):
            return None
        return self._objects[ix]

    @property
    def scaling_factor(self):
        """Scale applied to distances so that every circle size is treated
        like a circle of ``normalized_radius``.
        """
        radius = self.object.radius
        scaling_factor = self.normalized_radius / radius

        # small circle bonus
        if radius < 30:
            scaling_factor *= 1 + min(30 - radius, 5) / 50

        return scaling_factor

    @property
    def lazy_travel_distance(self):
        if not isinstance(self.object, Slider):
            return 0
        return self._lazy_slider(self.object).distance

    def opacity_at(self, time, mods):
        """How visible this object is at a point in time.

        Parameters
        ----------
        time : float
            The time in milliseconds, adjusted for the clock rate.
        mods : ModSet
            The active mods.

        Returns
        -------
        opacity : float
            The opacity in the range [0, 1].
        """
        if time > self.start_time:
            # treat the object as gone once its hit time has passed
            return 0.0

        fade_in_start = self.start_time - self.time_preempt
        fade_in = clamp((time - fade_in_start) / self.time_fade_in, 0, 1)

        if Mod.hidden in mods and not mods.hidden_only_fade_approach_circles:
            fade_out_start = fade_in_start + self.time_fade_in
            fade_out_duration = self.time_preempt * hidden_fade_out_multiplier
            return min(
                fade_in,
                1 - clamp((time - fade_out_start) / fade_out_duration, 0, 1),
            )

        return fade_in

    @property
    def doubletapness(self):
        """How easily this object and the next one can be hit with a single
        press, in the range [0, 1].
        """
        next_ = self.next()
        if next_ is None:
            return 0

        current_delta_time = max(1, self.delta_time)
        next_delta_time = max(1, next_.delta_time)
        delta_difference = abs(next_delta_time - current_delta_time)
        speed_ratio = current_delta_time / max(
            current_delta_time,
            delta_difference,
        )
        window_ratio = min(
            1,
            current_delta_time / self.full_great_window,
        ) ** 2
        return 1 - speed_ratio ** (1 - window_ratio)

    def is_overlapping(self, consider_distance):
        """Whether this object and the previous one can be hit with a single
        tap. Only the droid ruleset merges such objects.
        """
        return False

    def _set_distances(self):
        hit_object = self.object
        clock_rate = self.clock_rate

        if isinstance(hit_object, Slider):
            lazy = self._lazy_slider(hit_object)
            # bonus for repeat sliders
            self.travel_distance = lazy.distance * self._repeat_bonus(
                hit_object.repeat_count,
            )
            self.travel_time = max(
                lazy.time / clock_rate,
                self.min_delta_time,
            )

        last_object = self._last_object
        if (last_object is None or
                isinstance(hit_object, Spinner) or
                isinstance(last_object, Spinner)):
            return

        previous = self.previous()
        if previous is not None and previous.previous() is not None:
            self.rhythm = snap_rhythm(
                self.strain_time / previous.strain_time,
            )

        scaling_factor = self.scaling_factor
        last_cursor_position = self._end_cursor_position(last_object)

        self.lazy_jump_distance = distance(
            hit_object.stacked_position,
            last_cursor_position,
        ) * scaling_factor
        self.minimum_jump_time = self.strain_time
        self.minimum_jump_distance = self.lazy_jump_distance

        if isinstance(last_object, Slider):
            last_travel_time = max(
                self._lazy_slider(last_object).time / clock_rate,
                self.min_delta_time,
            )
            self.minimum_jump_time = max(
                self.strain_time - last_travel_time,
                self.min_delta_time,
            )

            # the cursor may cut the slider short, or follow it to the tail
            # and flow into this object; assume the shorter movement
            tail_jump_distance = distance(
                last_object.nested_objects[-1].position,
                hit_object.stacked_position,
            ) * scaling_factor

            self.minimum_jump_distance = max(
                0,
                min(
                    self.lazy_jump_distance - (
                        self.maximum_slider_radius -
                        self.assumed_slider_radius
                    ),
                    tail_jump_distance - self.maximum_slider_radius,
                ),
            )

        last_last_object = self._last_last_object
        if (last_last_object is not None and
                not isinstance(last_last_object, Spinner)):
            last_last_cursor_position = self._end_cursor_position(
                last_last_object,
            )

            v1 = last_last_cursor_position - last_object.stacked_position
            v2 = hit_object.stacked_position - last_cursor_position

            dot = v1.dot(v2)
            det = v1.x * v2.y - v1.y * v2.x

            self.angle = abs(math.atan2(det, dot))

    def _repeat_bonus(self, repeat_count):
        return (1 + repeat_count / 2.5) ** (1 / 2.5)

    def _end_cursor_position(self, hit_object):
        if isinstance(hit_object, Slider):
            return self._lazy_slider(hit_object).end_position
        return hit_object.stacked_position

    def _lazy_slider(self, slider):
        try:
            return self._lazy_sliders[id(slider)]
        except KeyError:
            lazy = self._lazy_sliders[id(slider)] = self._follow_slider(slider)
            return lazy

    def _tracking(self, slider):
        """The time the cursor stops tracking the slider and the nested
        objects it follows.
        """
        nested_objects = slider.nested_objects
        tracking_end_time = max(
            slider.end_time - slider.legacy_last_tick_offset,
            slider.time + slider.duration / 2,
        )

        last_real_tick = None
        for nested in reversed(nested_objects[1:-1]):
            if isinstance(nested, SliderTick):
                last_real_tick = nested
                break
            if isinstance(nested, SliderRepeat):
                break

        if (last_real_tick is not None and
                last_real_tick.time > tracking_end_time):
            tracking_end_time = last_real_tick.time

            # the late tick is followed after the tail
            nested_objects = [
                n for n in nested_objects if n is not last_real_tick
            ]
            nested_objects.append(last_real_tick)

        return tracking_end_time, nested_objects

    def _follow_slider(self, slider):
        """Follow a slider with the least movement that keeps the cursor inside
        the follow circle.

        Parameters
        ----------
        slider : Slider
            The slider to follow.

        Returns
        -------
        lazy : LazySlider
            The end position, travelled distance and time.
        """
        tracking_end_time, nested_objects = self._tracking(slider)
        if tracking_end_time is None:
            return LazySlider(slider.stacked_position, 0, 0)

        travel_time = tracking_end_time - slider.time

        span_duration = slider.span_duration
        if span_duration > 0:
            end_time_min = travel_time / span_duration
            if end_time_min % 2 >= 1:
                end_time_min = 1 - end_time_min % 1
            else:
                end_time_min %= 1
        else:
            end_time_min = 0

        lazy_end_position = (
            slider.stacked_position + slider.path.position_at(end_time_min)
        )

        cursor_position = slider.stacked_position
        scaling_factor = self.normalized_radius / slider.radius
        travel_distance = 0

        last_ix = len(nested_objects) - 1
        for ix, nested in enumerate(nested_objects[1:], 1):
            movement = nested.position - cursor_position
            movement_length = scaling_factor * movement.length

            required_movement = self.assumed_slider_radius

            if ix == last_ix:
                # take the simpler of the lazy end and the true end
                lazy_movement = lazy_end_position - cursor_position
                if lazy_movement.length < movement.length:
                    movement = lazy_movement

                movement_length = scaling_factor * movement.length
            elif isinstance(nested, SliderRepeat):
                # repeats use a tighter threshold
                required_movement = self.normalized_radius

            if movement_length > required_movement:
                scale = (movement_length - required_movement) / movement_length
                cursor_position = cursor_position + movement.scale(scale)
                travel_distance += movement_length * scale

            if ix == last_ix:
                lazy_end_position = cursor_position

        return LazySlider(lazy_end_position, travel_distance, travel_time)


class OsuDifficultyHitObject(DifficultyHitObject):
    """A difficulty object for the osu!standard ruleset.
    """
    ruleset = Ruleset.osu


class DroidDifficultyHitObject(DifficultyHitObject):
    """A difficulty object for the osu!droid ruleset.

    Also tracks how crowded the playfield is around the object for the visual
    skill.
    """
    ruleset = Ruleset.droid

    maximum_slider_radius = DifficultyHitObject.normalized_radius * 2

    radius_buff_threshold = 70

    def __init__(self, *args, **kwargs):
        self.note_density = 1
        self.overlapping_factor = 0
        super().__init__(*args, **kwargs)

    @property
    def scaling_factor(self):
        radius = self.object.radius
        scaling_factor = self.normalized_radius / radius

        # small circle bonus
        if radius < self.radius_buff_threshold:
            scaling_factor *= 1 + (
                (self.radius_buff_threshold - radius) / 50
            ) ** 2

        return scaling_factor

    def opacity_at(self, time, mods):
        # traceable hides the body of circles entirely
        if isinstance(self.object, Circle) and Mod.traceable in mods:
            return 0.0
        return super().opacity_at(time, mods)

    def is_overlapping(self, consider_distance):
        """Whether this object and the previous one can be hit with a single
        tap.

        Parameters
        ----------
        consider_distance : bool
            Also require the objects to be close enough together.

        Returns
        -------
        overlapping : bool
            True if both objects can be hit at once.
        """
        hit_object = self.object
        if isinstance(hit_object, Spinner):
            return False

        previous = self.previous()
        if previous is None or isinstance(previous.object, Spinner):
            return False

        if hit_object.time != previous.object.time:
            return False

        if not consider_distance:
            return True

        previous_object = previous.object
        threshold = 2 * hit_object.radius
        start = hit_object.stacked_position
        previous_start = previous_object.stacked_position

        if distance(start, previous_start) > threshold:
            return False

        if (isinstance(hit_object, Circle) or
                isinstance(previous_object, Circle)):
            return True

        # both are sliders; every nested object must be hittable together
        for a, b, a_start in ((hit_object, previous_object, previous_start),
                              (previous_object, hit_object, start)):
            nested = a.nested_objects
            for ix in range(1, len(nested)):
                other = a_start + b.curve_position_at(ix / (len(nested) - 1))
                if distance(nested[ix].position, other) > threshold:
                    return False

        return True

    def _repeat_bonus(self, repeat_count):
        return (1 + repeat_count / 4) ** (1 / 4)

    def _tracking(self, slider):
        if almost_equal(slider.time, slider.end_time):
            # too short to require any movement
            return None, slider.nested_objects
        return slider.end_time, slider.nested_objects

    def compute_visuals(self, hit_objects):
        """Compute ``note_density`` and ``overlapping_factor``.

        Parameters
        ----------
        hit_objects : list[HitObject]
            Every prepared hit object of the beatmap.
        """
        clock_rate = self.clock_rate
        hit_object = self.object
        preempt = self.time_preempt

        for other in hit_objects[self.index + 1:]:
            if isinstance(other, Spinner):
                continue
            if other.time / clock_rate > self.end_time + preempt:
                break

            delta_time = other.time / clock_rate - self.end_time
            if delta_time >= 0:
                self.note_density += 1 - delta_time / preempt

            self._apply_overlap(
                distance(
                    other.stacked_position,
                    hit_object.stacked_end_position,
                ),
                delta_time,
            )

        for lag in range(self.index - 1):
            previous = self.previous(lag)
            if isinstance(previous.object, Spinner):
                continue
            if previous.start_time >= self.start_time:
                continue
            if previous.start_time < self.start_time - preempt:
                break

            self._apply_overlap(
                distance(
                    hit_object.stacked_position,
                    previous.object.stacked_end_position,
                ),
                self.start_time - previous.end_time,
            )

    def _apply_overlap(self, distance_, delta_time):
        # objects close in both space and time make streams look busier
        # than they read
        self.overlapping_factor += max(
            0,
            1 - distance_ / (2.5 * self.object.radius),
        ) * (
            7.5 /
            (1 + math.exp(0.15 * (max(delta_time, self.min_delta_time) - 75)))
        )


def great_window(overall_difficulty, mods, ruleset):
    """The 300 hit window of a ruleset in milliseconds.

    Parameters
    ----------
    overall_difficulty : float
        The overall difficulty after easy and hard rock.
    mods : ModSet
        The active mods.
    ruleset : Ruleset
        The ruleset.

    Returns
    -------
    window : float
        The 300 window, before clock rate adjustment.
    """
    if Ruleset(ruleset) is Ruleset.droid:
        return droid_hit_windows(
            overall_difficulty,
            precise=Mod.precise in mods,
        ).hit_300
    return od_to_ms(overall_difficulty).hit_300


def create_difficulty_hit_objects(beatmap, mods, ruleset=Ruleset.osu):
    """Convert a beatmap's hit objects into difficulty objects.

    Parameters
    ----------
    beatmap : Beatmap
        The beatmap.
    mods : ModSet
        The active mods.
    ruleset : Ruleset, optional
        The ruleset to calculate for.

    Returns
    -------
    objects : tuple[DifficultyHitObject]
        One difficulty object per hit object, in time order. The first
        object has no previous object.
    """
    ruleset = Ruleset(ruleset)
    if ruleset is Ruleset.droid:
        cls = DroidDifficultyHitObject
    else:
        cls = OsuDifficultyHitObject

    hit_objects = beatmap.hit_objects(mods)
    clock_rate = mods.clock_rate
    window = great_window(
        mods.overall_difficulty(beatmap.overall_difficulty),
        mods,
        ruleset,
    )

    objects = []
    lazy_sliders = {}
    for ix, hit_object in enumerate(hit_objects):
        objects.append(cls(
            hit_object,
            hit_objects[ix - 1] if ix > 0 else None,
            hit_objects[ix - 2] if ix > 1 else None,
            objects,
            ix,
            clock_rate,
            window,
            lazy_sliders,
        ))

    if ruleset is Ruleset.droid:
        for obj in objects:
            obj.compute_visuals(hit_objects)

    return tuple(objects)

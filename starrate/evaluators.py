"""Per object difficulty evaluators.

Each evaluator takes a :class:`~starrate.preprocessing.DifficultyHitObject`
and returns how hard that object is for one skill. The strain skills decay
and accumulate these values over time.
"""
import math

from scipy.special import erf

from .beatmap import Circle, Slider, Spinner
from .interpolation import ms_to_bpm, reverse_lerp, smootherstep, smoothstep
from .mod import Mod
from .preprocessing import DifficultyHitObject


normalized_radius = DifficultyHitObject.normalized_radius
normalized_diameter = DifficultyHitObject.normalized_diameter

# 200 bpm 1/4
min_speed_bonus = 75

history_time_max = 5000
history_objects_max = 32
rhythm_multiplier = 0.75


def _slider_velocity(obj):
    return obj.travel_distance / obj.travel_time


def _movement_velocity(obj):
    if obj.minimum_jump_time == 0:
        return 0
    return obj.minimum_jump_distance / obj.minimum_jump_time


def _jump_velocities(current, last, last_last, with_sliders):
    current_velocity = current.lazy_jump_distance / current.strain_time
    if isinstance(last.object, Slider) and with_sliders:
        current_velocity = max(
            current_velocity,
            _movement_velocity(current) + _slider_velocity(last),
        )

    previous_velocity = last.lazy_jump_distance / last.strain_time
    if isinstance(last_last.object, Slider) and with_sliders:
        previous_velocity = max(
            previous_velocity,
            _movement_velocity(last) + _slider_velocity(last_last),
        )

    return current_velocity, previous_velocity


def _velocity_change_bonus(current, last, last_last, non_overlap):
    # use the average velocity over the whole object, not the individual
    # jump and slider path velocities
    previous_velocity = (
        (last.lazy_jump_distance + last_last.travel_distance) /
        last.strain_time
    )
    current_velocity = (
        (current.lazy_jump_distance + last.travel_distance) /
        current.strain_time
    )
    fastest = max(previous_velocity, current_velocity)
    if not fastest:
        return 0

    difference = abs(previous_velocity - current_velocity)
    distance_ratio = math.sin(math.pi / 2 * difference / fastest) ** 2

    shortest_strain_time = min(current.strain_time, last.strain_time)
    longest_strain_time = max(current.strain_time, last.strain_time)

    # reward for % distance up to 125 / strain time for overlaps where
    # velocity is still changing
    bonus = min(125 / shortest_strain_time, difference)

    if non_overlap:
        bonus = max(
            bonus,
            difference * math.sin(
                math.pi / 2 * min(
                    1,
                    min(current.lazy_jump_distance, last.lazy_jump_distance) /
                    100,
                ),
            ) ** 2,
        )

    # penalize rhythm changes
    return (
        bonus *
        distance_ratio *
        (shortest_strain_time / longest_strain_time) ** 2
    )


def _similar_rhythm(current, last):
    return (
        max(current.strain_time, last.strain_time) <
        1.25 * min(current.strain_time, last.strain_time)
    )


def _osu_wide_angle_bonus(angle):
    return math.sin(
        3 / 4 * (
            min(5 / 6 * math.pi, max(math.pi / 6, angle)) - math.pi / 6
        ),
    ) ** 2


def _osu_acute_angle_bonus(angle):
    return 1 - _osu_wide_angle_bonus(angle)


def evaluate_osu_aim(current, with_sliders=True):
    """Evaluate the difficulty of aiming an object in osu!standard.

    Parameters
    ----------
    current : DifficultyHitObject
        The object to evaluate.
    with_sliders : bool, optional
        Include the movement needed to follow sliders.

    Returns
    -------
    strain : float
        The aim difficulty of the object.

    Notes
    -----
    Rewards the cursor velocity into the object, wide and acute angles,
    sharp changes in velocity and fast sliders.
    """
    last = current.previous()
    last_last = current.previous(1)
    if (isinstance(current.object, Spinner) or
            current.index <= 2 or
            isinstance(last.object, Spinner)):
        return 0

    current_velocity, previous_velocity = _jump_velocities(
        current,
        last,
        last_last,
        with_sliders,
    )

    wide_angle_bonus = 0
    acute_angle_bonus = 0

    strain = current_velocity

    if (_similar_rhythm(current, last) and
            current.angle is not None and
            last.angle is not None and
            last_last.angle is not None):
        angle_bonus = min(current_velocity, previous_velocity)

        wide_angle_bonus = _osu_wide_angle_bonus(current.angle)
        acute_angle_bonus = _osu_acute_angle_bonus(current.angle)

        # only buff delta times exceeding 300 bpm 1/2
        if current.strain_time > 100:
            acute_angle_bonus = 0
        else:
            acute_angle_bonus *= (
                _osu_acute_angle_bonus(last.angle) *
                min(angle_bonus, 125 / current.strain_time) *
                math.sin(
                    math.pi / 2 * min(1, (100 - current.strain_time) / 25),
                ) ** 2 *
                math.sin(
                    math.pi / 2 *
                    (min(max(current.lazy_jump_distance, 50), 100) - 50) /
                    50,
                ) ** 2
            )

        # penalize repeated wide angles, less so as the last angle gets
        # more acute
        wide_angle_bonus *= angle_bonus * (
            1 - min(
                wide_angle_bonus,
                _osu_wide_angle_bonus(last.angle) ** 3,
            )
        )
        acute_angle_bonus *= 0.5 + 0.5 * (
            1 - min(
                acute_angle_bonus,
                _osu_acute_angle_bonus(last_last.angle) ** 3,
            )
        )

    velocity_change_bonus = _velocity_change_bonus(
        current,
        last,
        last_last,
        non_overlap=True,
    )

    slider_bonus = 0
    if last.travel_time:
        slider_bonus = _slider_velocity(last)

    strain += max(
        acute_angle_bonus * 1.95,
        wide_angle_bonus * 1.5 + velocity_change_bonus * 0.75,
    )

    if with_sliders:
        strain += slider_bonus * 1.35

    return strain


def _droid_wide_angle_bonus(angle):
    return smoothstep(angle, math.radians(40), math.radians(140))


def _droid_acute_angle_bonus(angle):
    return smoothstep(angle, math.radians(140), math.radians(40))


def _droid_snap_aim(current, with_sliders):
    last = current.previous()
    last_last = current.previous(1)
    if current.index <= 2 or isinstance(last.object, Spinner):
        return 0

    current_velocity, previous_velocity = _jump_velocities(
        current,
        last,
        last_last,
        with_sliders,
    )

    wide_angle_bonus = 0
    acute_angle_bonus = 0
    wiggle_bonus = 0

    strain = current_velocity

    if (_similar_rhythm(current, last) and
            current.angle is not None and
            last.angle is not None):
        angle_bonus = min(current_velocity, previous_velocity)

        wide_angle_bonus = _droid_wide_angle_bonus(current.angle)
        acute_angle_bonus = _droid_acute_angle_bonus(current.angle)

        # penalize angle repetition
        wide_angle_bonus *= 1 - min(
            wide_angle_bonus,
            _droid_wide_angle_bonus(last.angle) ** 3,
        )
        acute_angle_bonus *= 0.08 + 0.92 * (
            1 - min(
                acute_angle_bonus,
                _droid_acute_angle_bonus(last.angle) ** 3,
            )
        )

        # full wide angle bonus past one diameter
        wide_angle_bonus *= angle_bonus * smootherstep(
            current.lazy_jump_distance,
            0,
            normalized_diameter,
        )

        # acute angle bonus above 300 bpm 1/2 and past one diameter
        acute_angle_bonus *= (
            angle_bonus *
            smootherstep(ms_to_bpm(current.strain_time, 2), 300, 400) *
            smootherstep(
                current.lazy_jump_distance,
                normalized_diameter,
                normalized_diameter * 2,
            )
        )

        # wiggles are jumps between one radius and three diameters with
        # angles below 110 degrees
        wiggle_bonus = angle_bonus
        for obj in (current, last):
            wiggle_bonus *= (
                smootherstep(
                    obj.lazy_jump_distance,
                    normalized_radius,
                    normalized_diameter,
                ) *
                reverse_lerp(
                    obj.lazy_jump_distance,
                    normalized_diameter * 3,
                    normalized_diameter,
                ) ** 1.8 *
                smootherstep(obj.angle, math.radians(110), math.radians(60))
            )

    velocity_change_bonus = _velocity_change_bonus(
        current,
        last,
        last_last,
        non_overlap=False,
    )

    slider_bonus = 0
    if isinstance(last.object, Slider):
        slider_bonus = _slider_velocity(last)

    strain += wiggle_bonus * 1.02
    strain += max(
        acute_angle_bonus * 2.6,
        wide_angle_bonus * 1.5 + velocity_change_bonus * 0.75,
    )

    if with_sliders:
        strain += (1 + slider_bonus * 1.35) ** 1.25 - 1

    return strain


def _droid_flow_aim(current):
    speed_bonus = 1
    if current.strain_time < min_speed_bonus:
        speed_bonus += 0.75 * (
            (min_speed_bonus - current.strain_time) / 40
        ) ** 2

    last = current.previous()
    travel_distance = last.travel_distance if last is not None else 0
    single_spacing_threshold = 100
    short_distance_penalty = (
        min(
            single_spacing_threshold,
            travel_distance + current.minimum_jump_distance,
        ) / single_spacing_threshold
    ) ** 3.5

    return 200 * speed_bonus * short_distance_penalty / current.strain_time


def evaluate_droid_aim(current, with_sliders=True):
    """Evaluate the difficulty of aiming an object in osu!droid.

    Parameters
    ----------
    current : DroidDifficultyHitObject
        The object to evaluate.
    with_sliders : bool, optional
        Include the movement needed to follow sliders.

    Returns
    -------
    strain : float
        The sum of the snap and flow aim difficulty.
    """
    if isinstance(current.object, Spinner) or current.is_overlapping(True):
        return 0

    return _droid_snap_aim(current, with_sliders) + _droid_flow_aim(current)


def evaluate_osu_speed(current):
    """Evaluate the difficulty of tapping an object in osu!standard.

    Parameters
    ----------
    current : DifficultyHitObject
        The object to evaluate.

    Returns
    -------
    strain : float
        The speed difficulty of the object.
    """
    if isinstance(current.object, Spinner):
        return 0

    previous = current.previous()
    strain_time = current.strain_time
    full_great_window = current.full_great_window

    # nerf cheesy rhythms: very fast doubles with large gaps between them
    if (previous is not None and
            strain_time < full_great_window and
            previous.strain_time > strain_time):
        strain_time = previous.strain_time + (
            strain_time - previous.strain_time
        ) * (strain_time / full_great_window)

    # cap the delta time to the 300 window
    strain_time /= min(max(strain_time / full_great_window / 0.93, 0.92), 1)

    speed_bonus = 1
    if strain_time < min_speed_bonus:
        speed_bonus += 0.75 * ((min_speed_bonus - strain_time) / 40) ** 2

    single_spacing_threshold = 125
    travel_distance = previous.travel_distance if previous is not None else 0
    distance = min(
        single_spacing_threshold,
        travel_distance + current.lazy_jump_distance,
    )

    return (
        speed_bonus +
        speed_bonus * (distance / single_spacing_threshold) ** 3.5
    ) / strain_time


def evaluate_droid_tap(current,
                       consider_cheesability=True,
                       strain_time_cap=None):
    """Evaluate the difficulty of tapping an object in osu!droid.

    Parameters
    ----------
    current : DroidDifficultyHitObject
        The object to evaluate.
    consider_cheesability : bool, optional
        Nerf doubles that can be hit with a single tap.
    strain_time_cap : float, optional
        The minimum strain time to evaluate with. Used to measure how much of
        the difficulty comes from vibro-able streams.

    Returns
    -------
    strain : float
        The tap difficulty of the object.
    """
    if isinstance(current.object, Spinner) or current.is_overlapping(False):
        return 0

    doubletapness = 1
    if consider_cheesability:
        doubletapness = 1 - current.doubletapness

    strain_time = current.strain_time
    if strain_time_cap is not None:
        strain_time = max(strain_time_cap, strain_time)

    speed_bonus = 1
    if strain_time < min_speed_bonus:
        speed_bonus += 0.75 * erf((min_speed_bonus - strain_time) / 40) ** 2

    return speed_bonus * doubletapness ** 1.5 / strain_time


def _rhythm_complexity(current, history):
    """Sum the difficulty of the rhythm changes in ``history``.

    Parameters
    ----------
    current : DifficultyHitObject
        The object being evaluated.
    history : list[DifficultyHitObject]
        The previous objects, most recent first.

    Returns
    -------
    complexity : float
        The rhythm complexity sum.
    """
    previous_island_size = 0
    complexity = 0
    island_size = 1

    # ratio at the start of the current island, tighter rhythms are buffed
    start_ratio = 0
    first_delta_switch = False

    rhythm_start = 0
    while (rhythm_start < len(history) - 2 and
           current.start_time - history[rhythm_start].start_time <
           history_time_max):
        rhythm_start += 1

    window = current.full_great_window * 0.3

    for i in range(rhythm_start, 0, -1):
        current_object = history[i - 1]
        previous_object = history[i]

        # scale notes 0 to 1 from history to now, limited by either time or
        # object count
        historical_decay = min(
            (history_time_max -
             (current.start_time - current_object.start_time)) /
            history_time_max,
            (len(history) - i) / len(history),
        )

        current_delta = current_object.strain_time
        previous_delta = previous_object.strain_time
        last_delta = history[i + 1].strain_time

        current_ratio = 1 + 6 * min(
            0.5,
            math.sin(
                math.pi / (
                    min(previous_delta, current_delta) /
                    max(previous_delta, current_delta)
                ),
            ) ** 2,
        )

        window_penalty = min(
            1,
            max(0, abs(previous_delta - current_delta) - window) / window,
        )

        effective_ratio = window_penalty * current_ratio

        if first_delta_switch:
            if (previous_delta <= 1.25 * current_delta and
                    previous_delta * 1.25 >= current_delta):
                # the island is still progressing
                if island_size < 7:
                    island_size += 1
            else:
                # uncommon snaps are harder to read
                effective_ratio *= 1 + current_object.rhythm.difficulty

                if isinstance(current_object.object, Slider):
                    # bpm change into a slider has an easy window
                    effective_ratio /= 8

                if isinstance(previous_object.object, Slider):
                    # bpm change out of a slider
                    effective_ratio /= 4

                if previous_island_size == island_size:
                    # repeated island size, e.g. triplet into triplet
                    effective_ratio /= 4

                if previous_island_size % 2 == island_size % 2:
                    # repeated island polarity, e.g. 2 into 4
                    effective_ratio /= 2

                if (last_delta > previous_delta + 10 and
                        previous_delta > current_delta + 10):
                    # the previous increase happened a note ago
                    effective_ratio /= 8

                complexity += (
                    math.sqrt(effective_ratio * start_ratio) *
                    historical_decay *
                    math.sqrt(4 + island_size) / 2 *
                    math.sqrt(4 + previous_island_size) / 2
                )

                start_ratio = effective_ratio
                previous_island_size = island_size

                if previous_delta * 1.25 < current_delta:
                    # slowing down, stop counting
                    first_delta_switch = False

                island_size = 1
        elif previous_delta > 1.25 * current_delta:
            # speeding up, start counting the island
            first_delta_switch = True
            start_ratio = effective_ratio
            island_size = 1

    return complexity


def _rhythm_history(current):
    history = []
    for lag in range(min(current.index - 1, history_objects_max)):
        obj = current.previous(lag)
        if not obj.is_overlapping(False):
            history.append(obj)
    return history


def evaluate_osu_rhythm(current):
    """Evaluate the rhythm multiplier of an object in osu!standard.

    Parameters
    ----------
    current : DifficultyHitObject
        The object to evaluate.

    Returns
    -------
    multiplier : float
        The multiplier applied to the object's speed strain, at least 1.
    """
    if isinstance(current.object, Spinner):
        return 1

    complexity = _rhythm_complexity(current, _rhythm_history(current))
    return math.sqrt(4 + complexity * rhythm_multiplier) / 2


def evaluate_droid_rhythm(current):
    """Evaluate the rhythm multiplier of an object in osu!droid.

    Parameters
    ----------
    current : DroidDifficultyHitObject
        The object to evaluate.

    Returns
    -------
    multiplier : float
        The multiplier applied to the object's tap strain, at least 1.
    """
    if isinstance(current.object, Spinner) or current.is_overlapping(False):
        return 1

    complexity = _rhythm_complexity(current, _rhythm_history(current))

    # doubles that can be tapped at once are easier
    doubletapness = 1 - current.doubletapness
    return math.sqrt(4 + complexity * rhythm_multiplier * doubletapness) / 2


def evaluate_flashlight(current, mods, with_sliders=True):
    """Evaluate the difficulty of memorizing and hitting an object with
    flashlight.

    Parameters
    ----------
    current : DifficultyHitObject
        The object to evaluate.
    mods : ModSet
        The active mods.
    with_sliders : bool, optional
        Reward long and fast sliders.

    Returns
    -------
    strain : float
        The flashlight difficulty of the object.
    """
    if isinstance(current.object, Spinner) or current.is_overlapping(True):
        return 0

    scaling_factor = 52 / current.object.radius
    small_distance_nerf = 1
    cumulative_strain_time = 0
    result = 0
    last = current
    angle_repeat_count = 0

    for lag in range(min(current.index - 1, 10)):
        previous = current.previous(lag)
        cumulative_strain_time += last.strain_time

        if (not isinstance(previous.object, Spinner) and
                not previous.is_overlapping(False)):
            jump_distance = (
                current.object.stacked_position -
                previous.object.stacked_end_position
            ).length

            # nerf objects visible within the flashlight radius
            if lag == 0:
                small_distance_nerf = min(1, jump_distance / 75)

            # only the first object of a stack counts
            stack_nerf = min(
                1,
                previous.lazy_jump_distance / scaling_factor / 25,
            )

            opacity_bonus = 1 + 0.4 * (
                1 - current.opacity_at(previous.start_time, mods)
            )

            result += (
                stack_nerf *
                opacity_bonus *
                scaling_factor *
                jump_distance /
                cumulative_strain_time
            )

            if previous.angle is not None and current.angle is not None:
                # objects further back count less for the nerf
                if abs(previous.angle - current.angle) < 0.02:
                    angle_repeat_count += max(0, 1 - 0.1 * lag)

        last = previous

    result = (small_distance_nerf * result) ** 2

    # no approach circles
    if Mod.hidden in mods:
        result *= 1.2

    # nerf repeated angles
    result *= 0.2 + 0.8 / (angle_repeat_count + 1)

    slider_bonus = 0
    if isinstance(current.object, Slider) and with_sliders:
        pixel_travel_distance = current.lazy_travel_distance / scaling_factor

        slider_bonus = max(
            0,
            pixel_travel_distance / current.travel_time - 0.5,
        ) ** 0.5
        # longer sliders need more memorization
        slider_bonus *= pixel_travel_distance
        # repeats need less
        slider_bonus /= current.object.repeat_count + 1

    return result + slider_bonus * 1.3


def evaluate_droid_visual(current, mods, with_sliders=True):
    """Evaluate the difficulty of reading an object in osu!droid.

    Parameters
    ----------
    current : DroidDifficultyHitObject
        The object to evaluate.
    mods : ModSet
        The active mods.
    with_sliders : bool, optional
        Reward slider velocity and changes in slider velocity.

    Returns
    -------
    strain : float
        The visual difficulty of the object.

    Notes
    -----
    Rewards note density, how faded the previous objects are, high approach
    rates, and slider velocity. The result is scaled down by how much the
    object overlaps its neighbours.
    """
    if (isinstance(current.object, Spinner) or
            current.is_overlapping(True) or
            current.index <= 1):
        return 0

    density = current.note_density
    if Mod.hidden in mods:
        strain = min(30, density ** 3)
    elif Mod.traceable in mods:
        # no circle piece
        if isinstance(current.object, Circle):
            strain = min(25, density ** 2.5)
        else:
            strain = min(22.5, density ** 2.25)
    else:
        strain = min(20, density ** 2)

    for lag in range(min(current.index - 1, 10)):
        previous = current.previous(lag)
        if (isinstance(previous.object, Spinner) or
                previous.is_overlapping(True)):
            continue

        if current.start_time - previous.end_time > current.time_preempt:
            break

        strain += (1 - current.opacity_at(previous.start_time, mods)) / 4

    # ar 10.33 and above
    if current.time_preempt < 400:
        strain += (400 - current.time_preempt) ** 1.35 / 100

    strain /= 10 * (1 + current.overlapping_factor)

    if isinstance(current.object, Slider) and with_sliders:
        scaling_factor = 50 / current.object.radius

        pixel_travel_distance = current.lazy_travel_distance / scaling_factor
        velocity = pixel_travel_distance / current.travel_time
        span_travel_distance = (
            pixel_travel_distance / current.object.span_count
        )

        strain += min(6, velocity * 1.5) * span_travel_distance / 100

        cumulative_strain_time = 0
        for lag in range(min(current.index - 1, 4)):
            last = current.previous(lag)
            cumulative_strain_time += last.strain_time

            if (not isinstance(last.object, Slider) or
                    last.is_overlapping(True)):
                continue

            last_pixel_travel_distance = (
                last.lazy_travel_distance / scaling_factor
            )
            last_velocity = last_pixel_travel_distance / last.travel_time
            last_span_travel_distance = (
                last_pixel_travel_distance / last.object.span_count
            )

            strain += (
                min(10, 2.5 * abs(velocity - last_velocity)) *
                last_span_travel_distance / 125 *
                min(1, 300 / cumulative_strain_time)
            )

    return strain

from collections import namedtuple
import logging
import math

from .mod import ModSet, Mod, ms_300_to_od
from .preprocessing import (
    Ruleset,
    create_difficulty_hit_objects,
    great_window,
)
from .rating import (
    DroidRatingCalculator,
    OsuRatingCalculator,
    calculate_rating_total,
    difficulty_to_rating,
)
from .skills import (
    droid_aim,
    droid_flashlight,
    droid_rhythm,
    droid_tap,
    droid_visual,
    osu_aim,
    osu_flashlight,
    osu_speed,
)
from .evaluators import evaluate_droid_rhythm, evaluate_osu_rhythm


logger = logging.getLogger(__name__)


class OsuDifficultyAttributes(namedtuple('OsuDifficultyAttributes', (
        'star_rating',
        'aim',
        'speed',
        'flashlight',
        'aim_difficulty_value',
        'speed_difficulty_value',
        'flashlight_difficulty_value',
        'slider_factor',
        'speed_note_count',
        'aim_difficult_strain_count',
        'speed_difficult_strain_count',
        'aim_difficult_slider_count',
        'approach_rate',
        'overall_difficulty',
        'hit_circle_count',
        'slider_count',
        'spinner_count',
        'max_combo',
        'mods',
        'clock_rate',
))):
    """The difficulty of an osu!standard beatmap.

    Parameters
    ----------
    star_rating : float
        The total star rating.
    aim : float
        The aim star rating component.
    speed : float
        The speed star rating component.
    flashlight : float
        The flashlight star rating component. 0 without flashlight.
    aim_difficulty_value : float
        The aim skill's difficulty value.
    speed_difficulty_value : float
        The speed skill's difficulty value.
    flashlight_difficulty_value : float
        The flashlight skill's difficulty value.
    slider_factor : float
        The aim rating without sliders divided by the aim rating.
    speed_note_count : float
        A continuous count of the notes that contribute to speed.
    aim_difficult_strain_count : float
        A continuous count of the objects near the top aim strain.
    speed_difficult_strain_count : float
        A continuous count of the objects near the top speed strain.
    aim_difficult_slider_count : float
        A continuous count of the sliders near the hardest slider.
    approach_rate : float
        The rate adjusted approach rate.
    overall_difficulty : float
        The rate adjusted overall difficulty.
    hit_circle_count : int
        The number of circles.
    slider_count : int
        The number of sliders.
    spinner_count : int
        The number of spinners.
    max_combo : int
        The highest reachable combo.
    mods : ModSet
        The mods the attributes were calculated with.
    clock_rate : float
        The rate the beatmap is played at.
    """
    def __str__(self):
        return (
            f'{self.star_rating:.2f} stars ({self.aim:.2f} aim,'
            f' {self.speed:.2f} speed, {self.flashlight:.2f} flashlight)'
        )

    @property
    def object_count(self):
        return self.hit_circle_count + self.slider_count + self.spinner_count


class DifficultSlider(namedtuple('DifficultSlider', 'index difficulty')):
    """A slider that is much faster than the others in the beatmap.

    Parameters
    ----------
    index : int
        The index of the slider's hit object.
    difficulty : float
        The slider's share of the total slider velocity.
    """


class HighStrainSection(namedtuple(
        'HighStrainSection',
        'first_index last_index sum_strain')):
    """A tap section hard enough that it may have been played with more
    than two fingers.

    Parameters
    ----------
    first_index : int
        The index of the first hit object in the section.
    last_index : int
        The index of the last hit object in the section.
    sum_strain : float
        The summed strain of the section relative to the threshold.
    """


class DroidDifficultyAttributes(namedtuple('DroidDifficultyAttributes', (
        'star_rating',
        'aim',
        'tap',
        'rhythm',
        'flashlight',
        'visual',
        'slider_factor',
        'flashlight_slider_factor',
        'visual_slider_factor',
        'speed_note_count',
        'average_speed_delta_time',
        'vibro_factor',
        'aim_difficult_strain_count',
        'tap_difficult_strain_count',
        'flashlight_difficult_strain_count',
        'visual_difficult_strain_count',
        'aim_difficult_slider_count',
        'difficult_sliders',
        'possible_three_fingered_sections',
        'approach_rate',
        'overall_difficulty',
        'hit_circle_count',
        'slider_count',
        'spinner_count',
        'max_combo',
        'mods',
        'clock_rate',
))):
    """The difficulty of an osu!droid beatmap.

    Parameters
    ----------
    star_rating : float
        The total star rating.
    aim : float
        The aim star rating component.
    tap : float
        The tap star rating component.
    rhythm : float
        The rhythm star rating component.
    flashlight : float
        The flashlight star rating component. 0 without flashlight.
    visual : float
        The visual star rating component.
    slider_factor : float
        The aim rating without sliders divided by the aim rating.
    flashlight_slider_factor : float
        The flashlight rating without sliders divided by the flashlight
        rating.
    visual_slider_factor : float
        The visual rating without sliders divided by the visual rating.
    speed_note_count : float
        A continuous count of the notes that contribute to tap.
    average_speed_delta_time : float
        The average delta time of the notes near the top tap strain.
    vibro_factor : float
        The tap rating with strain times capped at 50ms divided by the tap
        rating.
    aim_difficult_strain_count : float
        A continuous count of the objects near the top aim strain.
    tap_difficult_strain_count : float
        A continuous count of the objects near the top tap strain.
    flashlight_difficult_strain_count : float
        A continuous count of the objects near the top flashlight strain.
    visual_difficult_strain_count : float
        A continuous count of the objects near the top visual strain.
    aim_difficult_slider_count : float
        A continuous count of the sliders near the hardest slider.
    difficult_sliders : tuple[DifficultSlider]
        The fastest sliders, hardest first.
    possible_three_fingered_sections : tuple[HighStrainSection]
        The sections that may have been played with more than two fingers.
    approach_rate : float
        The rate adjusted approach rate.
    overall_difficulty : float
        The overall difficulty whose osu!standard 300 window matches the rate
        adjusted droid 300 window.
    hit_circle_count : int
        The number of circles.
    slider_count : int
        The number of sliders.
    spinner_count : int
        The number of spinners.
    max_combo : int
        The highest reachable combo.
    mods : ModSet
        The mods the attributes were calculated with.
    clock_rate : float
        The rate the beatmap is played at.
    """
    def __str__(self):
        return (
            f'{self.star_rating:.2f} stars ({self.aim:.2f} aim,'
            f' {self.tap:.2f} tap, {self.rhythm:.2f} rhythm,'
            f' {self.flashlight:.2f} flashlight, {self.visual:.2f} visual)'
        )

    @property
    def object_count(self):
        return self.hit_circle_count + self.slider_count + self.spinner_count


def _skill_input(objects):
    # the first object only provides history for the others
    return objects[1:]


def _run(skills, objects):
    for obj in _skill_input(objects):
        for skill in skills:
            skill.process(obj)
    return skills


class DifficultyCalculator:
    """Shared driver for the ruleset difficulty calculators.
    """
    ruleset = None
    components = ()
    attributes_type = None

    def calculate(self, beatmap, mods=None):
        """Calculate the difficulty of a beatmap.

        Parameters
        ----------
        beatmap : Beatmap
            The beatmap.
        mods : ModSet, optional
            The active mods.

        Returns
        -------
        attributes : OsuDifficultyAttributes or DroidDifficultyAttributes
            The difficulty attributes.
        """
        if mods is None:
            mods = ModSet()

        attributes = self._empty_attributes(beatmap, mods)
        if not beatmap.hit_object_count:
            return attributes

        objects = create_difficulty_hit_objects(beatmap, mods, self.ruleset)
        for component in self.components:
            attributes = self._compute(attributes, component, objects)

        attributes = self._finish(attributes)
        logger.debug('%s: %s with %r', beatmap, attributes, mods)
        return attributes

    def recalculate(self, attributes, component, beatmap, mods=None):
        """Recompute a single component of existing attributes.

        Parameters
        ----------
        attributes : OsuDifficultyAttributes or DroidDifficultyAttributes
            The attributes to update.
        component : str
            The component to recompute, one of ``components``.
        beatmap : Beatmap
            The beatmap the attributes were calculated for.
        mods : ModSet, optional
            The mods to recompute with. Defaults to ``attributes.mods``.

        Returns
        -------
        attributes : OsuDifficultyAttributes or DroidDifficultyAttributes
            New attributes where only the fields of ``component``, the mod
            dependent beatmap statistics and the star rating changed.
        """
        if component not in self.components:
            raise ValueError(
                f'unknown component {component!r}, expected one of'
                f' {", ".join(self.components)}',
            )

        if mods is None:
            mods = attributes.mods

        base = self._empty_attributes(beatmap, mods)
        attributes = attributes._replace(
            approach_rate=base.approach_rate,
            overall_difficulty=base.overall_difficulty,
            mods=mods,
            clock_rate=base.clock_rate,
        )
        if not beatmap.hit_object_count:
            return attributes

        objects = create_difficulty_hit_objects(beatmap, mods, self.ruleset)
        attributes = self._finish(
            self._compute(attributes, component, objects),
        )
        logger.debug(
            '%s: recalculated %s, %s with %r',
            beatmap,
            component,
            attributes,
            mods,
        )
        return attributes

    def _compute(self, attributes, component, objects):
        return getattr(self, f'_compute_{component}')(attributes, objects)


class OsuDifficultyCalculator(DifficultyCalculator):
    """Calculate the difficulty of osu!standard beatmaps.
    """
    ruleset = Ruleset.osu
    components = ('aim', 'speed', 'flashlight')
    attributes_type = OsuDifficultyAttributes

    star_rating_multiplier = 1.14 ** (1 / 3)

    def _empty_attributes(self, beatmap, mods):
        return OsuDifficultyAttributes(
            star_rating=0.0,
            aim=0.0,
            speed=0.0,
            flashlight=0.0,
            aim_difficulty_value=0.0,
            speed_difficulty_value=0.0,
            flashlight_difficulty_value=0.0,
            slider_factor=1.0,
            speed_note_count=0.0,
            aim_difficult_strain_count=0.0,
            speed_difficult_strain_count=0.0,
            aim_difficult_slider_count=0.0,
            approach_rate=mods.effective_approach_rate(beatmap.approach_rate),
            overall_difficulty=mods.effective_overall_difficulty(
                beatmap.overall_difficulty,
            ),
            hit_circle_count=beatmap.circle_count,
            slider_count=beatmap.slider_count,
            spinner_count=beatmap.spinner_count,
            max_combo=beatmap.max_combo,
            mods=mods,
            clock_rate=mods.clock_rate,
        )

    def _rating_calculator(self, attributes):
        multiplier = OsuRatingCalculator.difficulty_multiplier
        mechanical_difficulty_rating = calculate_rating_total(
            (
                difficulty_to_rating(
                    attributes.aim_difficulty_value,
                    multiplier,
                ),
                difficulty_to_rating(
                    attributes.speed_difficulty_value,
                    multiplier,
                ),
            ),
            self.star_rating_multiplier,
        )
        return OsuRatingCalculator(
            attributes.mods,
            attributes.object_count,
            attributes.approach_rate,
            attributes.overall_difficulty,
            mechanical_difficulty_rating,
            attributes.slider_factor,
        )

    def _compute_aim(self, attributes, objects):
        if Mod.auto_pilot in attributes.mods:
            return attributes._replace(
                aim_difficulty_value=0.0,
                aim_difficult_strain_count=0.0,
                aim_difficult_slider_count=0.0,
                slider_factor=1.0,
            )

        aim, aim_no_sliders = _run(
            [osu_aim(with_sliders=True), osu_aim(with_sliders=False)],
            objects,
        )
        value = aim.difficulty_value()
        no_sliders_value = aim_no_sliders.difficulty_value()
        return attributes._replace(
            aim_difficulty_value=value,
            aim_difficult_strain_count=aim.count_top_weighted_strains(value),
            aim_difficult_slider_count=aim.count_difficult_sliders(),
            slider_factor=(
                math.sqrt(no_sliders_value / value) if value > 0 else 1.0
            ),
        )

    def _compute_speed(self, attributes, objects):
        if Mod.relax in attributes.mods:
            return attributes._replace(
                speed_difficulty_value=0.0,
                speed_note_count=0.0,
                speed_difficult_strain_count=0.0,
            )

        rhythm = {}

        def rhythm_multiplier(obj):
            try:
                return rhythm[obj.index]
            except KeyError:
                value = rhythm[obj.index] = evaluate_osu_rhythm(obj)
                return value

        speed, = _run([osu_speed(rhythm_multiplier)], objects)
        value = speed.difficulty_value()
        return attributes._replace(
            speed_difficulty_value=value,
            speed_note_count=speed.relevant_note_count(),
            speed_difficult_strain_count=speed.count_top_weighted_strains(
                value,
            ),
        )

    def _compute_flashlight(self, attributes, objects):
        if Mod.flashlight not in attributes.mods:
            return attributes._replace(flashlight_difficulty_value=0.0)

        flashlight, = _run([osu_flashlight(attributes.mods)], objects)
        return attributes._replace(
            flashlight_difficulty_value=flashlight.difficulty_value(),
        )

    def _finish(self, attributes):
        calculator = self._rating_calculator(attributes)
        aim = calculator.compute_aim_rating(attributes.aim_difficulty_value)
        speed = calculator.compute_speed_rating(
            attributes.speed_difficulty_value,
        )
        flashlight = calculator.compute_flashlight_rating(
            attributes.flashlight_difficulty_value,
        )
        return attributes._replace(
            aim=aim,
            speed=speed,
            flashlight=flashlight,
            star_rating=calculate_rating_total(
                (aim, speed, flashlight),
                self.star_rating_multiplier,
            ),
        )


class DroidDifficultyCalculator(DifficultyCalculator):
    """Calculate the difficulty of osu!droid beatmaps.
    """
    ruleset = Ruleset.droid
    components = ('aim', 'tap', 'rhythm', 'flashlight', 'visual')
    attributes_type = DroidDifficultyAttributes

    # tap strain needed to flag a section as possibly three fingered
    three_finger_strain_threshold = 175
    three_finger_min_section_objects = 5

    def _empty_attributes(self, beatmap, mods):
        window = great_window(
            mods.overall_difficulty(beatmap.overall_difficulty),
            mods,
            self.ruleset,
        )
        return DroidDifficultyAttributes(
            star_rating=0.0,
            aim=0.0,
            tap=0.0,
            rhythm=0.0,
            flashlight=0.0,
            visual=0.0,
            slider_factor=1.0,
            flashlight_slider_factor=1.0,
            visual_slider_factor=1.0,
            speed_note_count=0.0,
            average_speed_delta_time=0.0,
            vibro_factor=1.0,
            aim_difficult_strain_count=0.0,
            tap_difficult_strain_count=0.0,
            flashlight_difficult_strain_count=0.0,
            visual_difficult_strain_count=0.0,
            aim_difficult_slider_count=0.0,
            difficult_sliders=(),
            possible_three_fingered_sections=(),
            approach_rate=mods.effective_approach_rate(beatmap.approach_rate),
            overall_difficulty=ms_300_to_od(window / mods.clock_rate),
            hit_circle_count=beatmap.circle_count,
            slider_count=beatmap.slider_count,
            spinner_count=beatmap.spinner_count,
            max_combo=beatmap.max_combo,
            mods=mods,
            clock_rate=mods.clock_rate,
        )

    def _rating_calculator(self, attributes):
        return DroidRatingCalculator(
            attributes.mods,
            attributes.object_count,
            attributes.approach_rate,
            attributes.overall_difficulty,
        )

    def _rhythm(self):
        cache = {}

        def rhythm_multiplier(obj):
            try:
                return cache[obj.index]
            except KeyError:
                value = cache[obj.index] = evaluate_droid_rhythm(obj)
                return value

        return rhythm_multiplier

    def _compute_aim(self, attributes, objects):
        calculator = self._rating_calculator(attributes)
        if Mod.auto_pilot in attributes.mods:
            return attributes._replace(
                aim=0.0,
                aim_difficult_strain_count=0.0,
                aim_difficult_slider_count=0.0,
                difficult_sliders=(),
                slider_factor=1.0,
            )

        aim, aim_no_sliders = _run(
            [droid_aim(with_sliders=True), droid_aim(with_sliders=False)],
            objects,
        )
        value = aim.difficulty_value()
        rating = calculator.compute_aim_rating(value)
        if rating > 0:
            slider_factor = (
                calculator.compute_aim_rating(
                    aim_no_sliders.difficulty_value(),
                ) / rating
            )
        else:
            slider_factor = 1.0

        return attributes._replace(
            aim=rating,
            aim_difficult_strain_count=aim.count_top_weighted_strains(value),
            aim_difficult_slider_count=aim.count_difficult_sliders(),
            difficult_sliders=self._difficult_sliders(
                objects,
                attributes.slider_count,
            ),
            slider_factor=slider_factor,
        )

    def _difficult_sliders(self, objects, slider_count):
        velocities = [
            (obj.index, obj.travel_distance / obj.travel_time)
            for obj in objects
            if obj.travel_time > 0 and obj.travel_distance > 0
        ]
        velocity_sum = sum(velocity for _, velocity in velocities)

        sliders = sorted(
            (
                DifficultSlider(index, velocity / velocity_sum)
                for index, velocity in velocities
                # only sliders that are fast enough
                if velocity / velocity_sum > 0.02
            ),
            key=lambda slider: slider.difficulty,
            reverse=True,
        )

        # the top 15%
        return tuple(sliders[:math.ceil(0.15 * slider_count)])

    def _compute_tap(self, attributes, objects):
        if Mod.relax in attributes.mods:
            return attributes._replace(
                tap=0.0,
                tap_difficult_strain_count=0.0,
                speed_note_count=0.0,
                average_speed_delta_time=0.0,
                vibro_factor=1.0,
                possible_three_fingered_sections=(),
            )

        rhythm = self._rhythm()
        tap, tap_original, tap_vibro = _run(
            [
                droid_tap(rhythm),
                droid_tap(rhythm, consider_cheesability=False),
                droid_tap(rhythm, strain_time_cap=50),
            ],
            objects,
        )

        calculator = self._rating_calculator(attributes)
        value = tap.difficulty_value()
        rating = calculator.compute_tap_rating(value)
        if rating > 0:
            vibro_factor = (
                calculator.compute_tap_rating(tap_vibro.difficulty_value()) /
                rating
            )
        else:
            vibro_factor = 1.0

        return attributes._replace(
            tap=rating,
            tap_difficult_strain_count=tap.count_top_weighted_strains(value),
            speed_note_count=tap.relevant_note_count(),
            average_speed_delta_time=tap.relevant_delta_time(),
            vibro_factor=vibro_factor,
            possible_three_fingered_sections=self._three_fingered_sections(
                _skill_input(objects),
                tap_original.object_strains,
            ),
        )

    def _three_fingered_sections(self, objects, strains):
        """Find the sections whose strain is high enough that they may have
        been tapped with more than two fingers.

        Parameters
        ----------
        objects : sequence[DroidDifficultyHitObject]
            The objects the tap skill processed.
        strains : list[float]
            The tap strain of each object, without the doubletap nerf.

        Returns
        -------
        sections : tuple[HighStrainSection]
            The sections in time order.
        """
        threshold = self.three_finger_strain_threshold
        sections = []
        in_section = False
        first = 0

        last_ix = len(objects) - 1
        for ix in range(1, len(objects)):
            strain = strains[ix]
            if not in_section and strain >= threshold:
                in_section = True
                first = ix
                continue

            current_delta = objects[ix].delta_time
            previous_delta = objects[ix - 1].delta_time
            delta_ratio = (
                min(previous_delta, current_delta) /
                max(previous_delta, current_delta, 1e-7)
            )

            if in_section and (
                    strain < threshold or
                    # slowing down by a 1/2 rhythm change or more
                    (previous_delta < current_delta and delta_ratio <= 0.5) or
                    ix == last_ix):
                last = ix if ix == last_ix else ix - 1
                in_section = False

                if ix - first < self.three_finger_min_section_objects:
                    continue

                sections.append(HighStrainSection(
                    objects[first].index,
                    objects[last].index,
                    sum(
                        strain / threshold
                        for strain in strains[first:last + 1]
                    ) ** 0.75,
                ))

        return tuple(sections)

    def _compute_rhythm(self, attributes, objects):
        if Mod.relax in attributes.mods:
            return attributes._replace(rhythm=0.0)

        rhythm, = _run([droid_rhythm(self._rhythm())], objects)
        return attributes._replace(
            rhythm=self._rating_calculator(attributes).compute_rhythm_rating(
                rhythm.difficulty_value(),
            ),
        )

    def _compute_flashlight(self, attributes, objects):
        if Mod.flashlight not in attributes.mods:
            return attributes._replace(
                flashlight=0.0,
                flashlight_difficult_strain_count=0.0,
                flashlight_slider_factor=1.0,
            )

        mods = attributes.mods
        flashlight, flashlight_no_sliders = _run(
            [
                droid_flashlight(mods, with_sliders=True),
                droid_flashlight(mods, with_sliders=False),
            ],
            objects,
        )

        calculator = self._rating_calculator(attributes)
        value = flashlight.difficulty_value()
        rating = calculator.compute_flashlight_rating(value)
        if rating > 0:
            slider_factor = calculator.compute_flashlight_rating(
                flashlight_no_sliders.difficulty_value(),
            ) / rating
        else:
            slider_factor = 1.0

        return attributes._replace(
            flashlight=rating,
            flashlight_difficult_strain_count=(
                flashlight.count_top_weighted_strains(value)
            ),
            flashlight_slider_factor=slider_factor,
        )

    def _compute_visual(self, attributes, objects):
        mods = attributes.mods
        visual, visual_no_sliders = _run(
            [
                droid_visual(mods, with_sliders=True),
                droid_visual(mods, with_sliders=False),
            ],
            objects,
        )

        calculator = self._rating_calculator(attributes)
        value = visual.difficulty_value()
        rating = calculator.compute_visual_rating(value)
        if rating > 0:
            slider_factor = calculator.compute_visual_rating(
                visual_no_sliders.difficulty_value(),
            ) / rating
        else:
            slider_factor = 1.0

        return attributes._replace(
            visual=rating,
            visual_difficult_strain_count=visual.count_top_weighted_strains(
                value,
            ),
            visual_slider_factor=slider_factor,
        )

    def _finish(self, attributes):
        return attributes._replace(
            star_rating=calculate_rating_total((
                attributes.aim,
                attributes.tap,
                attributes.flashlight,
                attributes.visual,
            )),
        )

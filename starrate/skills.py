from collections import namedtuple
from functools import partial
import math

from .beatmap import Slider
from .evaluators import (
    evaluate_droid_aim,
    evaluate_droid_tap,
    evaluate_droid_visual,
    evaluate_flashlight,
    evaluate_osu_aim,
    evaluate_osu_speed,
)
from .interpolation import clamp, lerp


class SkillConfig(namedtuple('SkillConfig', (
        'decay_base',
        'skill_multiplier',
        'reduced_section_count',
        'reduced_section_baseline',
        'decay_weight',
        'stars_per_double',
        'difficulty_multiplier',
        'section_length',
        'decay_by_strain_time',
        'aligned_sections',
))):
    """The tuning of a strain skill.

    Parameters
    ----------
    decay_base : float
        The fraction of strain left after one second.
    skill_multiplier : float
        Multiplier applied to every evaluated object difficulty.
    reduced_section_count : int
        The number of highest peaks that are scaled down to soften
        difficulty spikes.
    reduced_section_baseline : float
        The scale applied to the highest peak.
    decay_weight : float or None
        The weight lost per rank when summing the sorted peaks.
    stars_per_double : float or None
        When ``decay_weight`` is None, the factor the difficulty grows by
        when the number of equally hard sections doubles.
    difficulty_multiplier : float
        Multiplier applied to the weighted peak sum.
    section_length : float
        The width of a strain section in milliseconds.
    decay_by_strain_time : bool
        Decay by the object's strain time rather than its delta time.
    aligned_sections : bool
        Align sections to multiples of ``section_length`` instead of starting
        the first section at the first object.
    """
    def __new__(cls,
                decay_base,
                skill_multiplier,
                reduced_section_count=10,
                reduced_section_baseline=0.75,
                decay_weight=0.9,
                stars_per_double=None,
                difficulty_multiplier=1.0,
                section_length=400,
                decay_by_strain_time=False,
                aligned_sections=True):
        if decay_weight is None and stars_per_double is None:
            raise TypeError(
                'one of decay_weight or stars_per_double is required',
            )
        return super().__new__(
            cls,
            decay_base,
            skill_multiplier,
            reduced_section_count,
            reduced_section_baseline,
            decay_weight,
            stars_per_double,
            difficulty_multiplier,
            section_length,
            decay_by_strain_time,
            aligned_sections,
        )


osu_aim_config = SkillConfig(
    decay_base=0.15,
    skill_multiplier=25.18,
    difficulty_multiplier=1.06,
)
osu_speed_config = SkillConfig(
    decay_base=0.3,
    skill_multiplier=1.46,
    reduced_section_count=5,
    difficulty_multiplier=1.06,
    decay_by_strain_time=True,
)
osu_flashlight_config = SkillConfig(
    decay_base=0.15,
    skill_multiplier=0.15,
    decay_weight=1.0,
    difficulty_multiplier=1.06,
)

droid_aim_config = SkillConfig(
    decay_base=0.15,
    skill_multiplier=26.5,
    decay_weight=None,
    stars_per_double=1.05,
    aligned_sections=False,
)
droid_tap_config = SkillConfig(
    decay_base=0.3,
    skill_multiplier=1.375,
    decay_weight=None,
    stars_per_double=1.1,
    decay_by_strain_time=True,
    aligned_sections=False,
)
droid_rhythm_config = SkillConfig(
    decay_base=0.3,
    skill_multiplier=1,
    reduced_section_count=5,
    decay_weight=None,
    stars_per_double=1.75,
    aligned_sections=False,
)
droid_flashlight_config = SkillConfig(
    decay_base=0.15,
    skill_multiplier=0.125,
    reduced_section_count=0,
    reduced_section_baseline=1,
    decay_weight=None,
    stars_per_double=1.05,
    aligned_sections=False,
)
droid_visual_config = SkillConfig(
    decay_base=0.1,
    skill_multiplier=10,
    decay_weight=None,
    stars_per_double=1.025,
    aligned_sections=False,
)


class StrainSkill:
    """Accumulate per object difficulty into strain peaks.

    Parameters
    ----------
    name : str
        The name of the skill.
    config : SkillConfig
        The skill's tuning.
    evaluate : callable[DifficultyHitObject, float]
        The per object difficulty.
    multiplier : callable[DifficultyHitObject, float], optional
        A multiplier applied to the accumulated strain of each object, used
        to scale speed strains by rhythm complexity.

    Notes
    -----
    The strain decays exponentially between objects. The timeline is split
    into sections of ``config.section_length`` and the highest strain of
    each section is kept as a peak.
    """
    def __init__(self, name, config, evaluate, multiplier=None):
        self.name = name
        self.config = config
        self._evaluate = evaluate
        self._multiplier = multiplier

        self._strain_peaks = []
        self.object_strains = []
        self.object_delta_times = []
        self.slider_strains = []

        self._current_strain = 0
        self._current_multiplier = 1
        self._current_section_peak = 0
        self._current_section_end = None
        self._previous_start_time = None

    def __repr__(self):
        return f'<{type(self).__qualname__}: {self.name}>'

    def _strain_decay(self, ms):
        return self.config.decay_base ** (ms / 1000)

    def process(self, current):
        """Add an object to the skill.

        Parameters
        ----------
        current : DifficultyHitObject
            The next object. Objects must be processed in time order.
        """
        config = self.config

        if self._current_section_end is None:
            if config.aligned_sections:
                self._current_section_end = (
                    math.ceil(current.start_time / config.section_length) *
                    config.section_length
                )
            else:
                self._current_section_end = current.start_time

        while current.start_time > self._current_section_end:
            self._strain_peaks.append(self._current_section_peak)
            # the new section starts at the decayed strain
            self._current_section_peak = (
                self._current_strain *
                self._current_multiplier *
                self._strain_decay(
                    self._current_section_end - self._previous_start_time,
                )
            )
            self._current_section_end += config.section_length

        if config.decay_by_strain_time:
            self._current_strain *= self._strain_decay(current.strain_time)
        else:
            self._current_strain *= self._strain_decay(current.delta_time)

        self._current_strain += (
            self._evaluate(current) * config.skill_multiplier
        )
        if self._multiplier is not None:
            self._current_multiplier = self._multiplier(current)

        strain = self._current_strain * self._current_multiplier
        self.object_strains.append(strain)
        self.object_delta_times.append(current.delta_time)
        if isinstance(current.object, Slider):
            self.slider_strains.append(strain)

        self._current_section_peak = max(strain, self._current_section_peak)
        self._previous_start_time = current.start_time

    def peaks(self):
        """The strain peak of every section, highest first.

        Returns
        -------
        peaks : list[float]
            The peaks, including the unfinished last section.
        """
        peaks = list(self._strain_peaks)
        if self._current_section_end is not None:
            peaks.append(self._current_section_peak)
        return sorted(peaks, reverse=True)

    def _reduced_peaks(self):
        config = self.config
        strains = self.peaks()

        # scale down the hardest sections to soften difficulty spikes
        for ix in range(min(len(strains), config.reduced_section_count)):
            scale = math.log10(
                lerp(1, 10, clamp(ix / config.reduced_section_count, 0, 1)),
            )
            strains[ix] *= lerp(config.reduced_section_baseline, 1, scale)

        strains.sort(reverse=True)
        return strains

    def difficulty_value(self):
        """The skill's difficulty.

        Returns
        -------
        difficulty : float
            The weighted sum of the strain peaks.
        """
        config = self.config
        strains = self._reduced_peaks()

        if config.decay_weight is None:
            # two sections of equal difficulty x sum to
            # x * stars_per_double
            exponent = math.log2(config.stars_per_double)
            total = sum(strain ** (1 / exponent) for strain in strains)
            return total ** exponent * config.difficulty_multiplier

        difficulty = 0
        weight = 1
        for strain in strains:
            addition = strain * weight
            if difficulty + addition == difficulty:
                break
            difficulty += addition
            weight *= config.decay_weight

        return difficulty * config.difficulty_multiplier

    def count_top_weighted_strains(self, difficulty_value):
        """The number of object strains weighed against the top strain.

        Parameters
        ----------
        difficulty_value : float
            The skill's difficulty value.

        Returns
        -------
        count : float
            A continuous count of the objects close to the top strain.
        """
        if difficulty_value == 0:
            return 0

        # the top strain if every strain were identical
        consistent_top_strain = difficulty_value / 10
        return sum(
            1.1 / (1 + math.exp(-10 * (strain / consistent_top_strain - 0.88)))
            for strain in self.object_strains
        )

    def count_difficult_sliders(self):
        """A continuous count of the sliders close to the hardest slider.
        """
        if not self.slider_strains:
            return 0

        max_strain = max(self.slider_strains)
        if max_strain == 0:
            return 0

        return sum(
            1 / (1 + math.exp(-(strain / max_strain * 12 - 6)))
            for strain in self.slider_strains
        )

    def relevant_note_count(self):
        """A continuous count of the objects that contribute to the
        difficulty.
        """
        if not self.object_strains:
            return 0

        max_strain = max(self.object_strains)
        if max_strain == 0:
            return 0

        return sum(
            1 / (1 + math.exp(-(strain / max_strain * 12 - 6)))
            for strain in self.object_strains
        )

    def relevant_delta_time(self):
        """The average delta time of the objects near the top strain.
        """
        if not self.object_strains:
            return 0

        max_strain = max(self.object_strains)
        if max_strain == 0:
            return 0

        weights = [
            1 / (1 + math.exp(-(strain / max_strain * 25 - 20)))
            for strain in self.object_strains
        ]
        return sum(
            delta_time * weight
            for delta_time, weight in zip(self.object_delta_times, weights)
        ) / sum(weights)


def osu_aim(with_sliders=True):
    return StrainSkill(
        'aim' if with_sliders else 'aim_no_sliders',
        osu_aim_config,
        partial(evaluate_osu_aim, with_sliders=with_sliders),
    )


def osu_speed(rhythm):
    """The osu!standard speed skill.

    Parameters
    ----------
    rhythm : callable[DifficultyHitObject, float]
        The rhythm multiplier of an object.
    """
    return StrainSkill(
        'speed',
        osu_speed_config,
        evaluate_osu_speed,
        multiplier=rhythm,
    )


def osu_flashlight(mods):
    return StrainSkill(
        'flashlight',
        osu_flashlight_config,
        partial(evaluate_flashlight, mods=mods),
    )


def droid_aim(with_sliders=True):
    return StrainSkill(
        'aim' if with_sliders else 'aim_no_sliders',
        droid_aim_config,
        partial(evaluate_droid_aim, with_sliders=with_sliders),
    )


def droid_tap(rhythm, consider_cheesability=True, strain_time_cap=None):
    """The osu!droid tap skill.

    Parameters
    ----------
    rhythm : callable[DifficultyHitObject, float]
        The rhythm multiplier of an object.
    consider_cheesability : bool, optional
        Nerf doubles that can be hit with a single tap.
    strain_time_cap : float, optional
        The minimum strain time to evaluate with.
    """
    if strain_time_cap is not None:
        name = 'tap_vibro'
    elif consider_cheesability:
        name = 'tap'
    else:
        name = 'tap_original'

    return StrainSkill(
        name,
        droid_tap_config,
        partial(
            evaluate_droid_tap,
            consider_cheesability=consider_cheesability,
            strain_time_cap=strain_time_cap,
        ),
        multiplier=rhythm,
    )


def droid_rhythm(rhythm):
    return StrainSkill(
        'rhythm',
        droid_rhythm_config,
        lambda current: rhythm(current) - 1,
    )


def droid_flashlight(mods, with_sliders=True):
    return StrainSkill(
        'flashlight' if with_sliders else 'flashlight_no_sliders',
        droid_flashlight_config,
        partial(evaluate_flashlight, mods=mods, with_sliders=with_sliders),
    )


def droid_visual(mods, with_sliders=True):
    return StrainSkill(
        'visual' if with_sliders else 'visual_no_sliders',
        droid_visual_config,
        partial(evaluate_droid_visual, mods=mods, with_sliders=with_sliders),
    )

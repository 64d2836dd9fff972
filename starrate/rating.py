import math

from .interpolation import clamp, lerp, reverse_lerp
from .mod import Mod


def difficulty_to_rating(difficulty_value, multiplier):
    """Convert a skill's difficulty value into a star rating component.

    Parameters
    ----------
    difficulty_value : float
        The skill's difficulty value.
    multiplier : float
        The ruleset and component dependent multiplier.

    Returns
    -------
    rating : float
        The star rating component.
    """
    return math.sqrt(difficulty_value) * multiplier


def difficulty_to_performance(rating):
    """Convert a star rating component into its base performance value.

    Parameters
    ----------
    rating : float
        The star rating component.

    Returns
    -------
    performance : float
        The base performance value.
    """
    return (5 * max(1, rating / 0.0675) - 4) ** 3 / 100000


def calculate_rating_total(ratings, multiplier=1.0):
    """Combine star rating components into the total star rating.

    Parameters
    ----------
    ratings : iterable[float]
        The component ratings.
    multiplier : float, optional
        Multiplier applied to the combined rating.

    Returns
    -------
    stars : float
        The total star rating. Increasing any component never decreases it.
    """
    base_performance = sum(
        difficulty_to_performance(rating) ** 1.1 for rating in ratings
    ) ** (1 / 1.1)

    if base_performance <= 1e-5:
        return 0.0

    return multiplier * 0.027 * (
        math.pow(100000 / 2 ** (1 / 1.1) * base_performance, 1 / 3) + 4
    )


def calculate_length_bonus(total_hits):
    """The bonus for long beatmaps.

    Parameters
    ----------
    total_hits : int
        The number of hit objects.

    Returns
    -------
    bonus : float
        The length bonus.
    """
    bonus = 0.95 + 0.4 * min(1, total_hits / 2000)
    if total_hits > 2000:
        bonus += math.log10(total_hits / 2000) * 0.5
    return bonus


def calculate_flashlight_length_bonus(total_hits):
    """The flashlight multiplier that accounts for short beatmaps spending
    more time at a low combo, where the flashlight radius is larger.

    Parameters
    ----------
    total_hits : int
        The number of hit objects.

    Returns
    -------
    bonus : float
        The length multiplier.
    """
    bonus = 0.7 + 0.1 * min(1, total_hits / 200)
    if total_hits > 200:
        bonus += 0.2 * min(1, (total_hits - 200) / 200)
    return bonus


def calculate_visibility_bonus(mods,
                               approach_rate,
                               visibility_factor=1,
                               slider_factor=1):
    """The bonus for reduced visibility mods.

    Parameters
    ----------
    mods : ModSet
        The active mods.
    approach_rate : float
        The rate adjusted approach rate.
    visibility_factor : float, optional
        How much the approach rate affects readability, in [0, 1].
    slider_factor : float, optional
        The beatmap's slider factor.

    Returns
    -------
    bonus : float
        The bonus added to the rating multiplier.
    """
    partially_visible = mods.partially_hidden

    # reward lower approach rates down to 7
    bonus = (0.025 if partially_visible else 0.04) * (
        12 - max(approach_rate, 7)
    )
    bonus *= visibility_factor

    # slider aim is rewarded less at low approach rates
    slider_visibility_factor = slider_factor ** 3

    if approach_rate < 7:
        bonus += (
            (0.02 if partially_visible else 0.045) *
            (7 - max(approach_rate, 0)) *
            slider_visibility_factor
        )

    # cap the growth below approach rate 0
    if approach_rate < 0:
        bonus += (
            (0.01 if partially_visible else 0.1) *
            (1 - 1.5 ** approach_rate) *
            slider_visibility_factor
        )

    return bonus


class OsuRatingCalculator:
    """Convert osu!standard difficulty values into star rating components.

    Parameters
    ----------
    mods : ModSet
        The active mods.
    total_hits : int
        The number of hit objects.
    approach_rate : float
        The rate adjusted approach rate.
    overall_difficulty : float
        The rate adjusted overall difficulty.
    mechanical_difficulty_rating : float
        A rating of the mechanical difficulty, used to scale the visibility
        bonus.
    slider_factor : float
        The beatmap's slider factor.
    """
    difficulty_multiplier = 0.0675

    def __init__(self,
                 mods,
                 total_hits,
                 approach_rate,
                 overall_difficulty,
                 mechanical_difficulty_rating,
                 slider_factor):
        self.mods = mods
        self.total_hits = total_hits
        self.approach_rate = approach_rate
        self.overall_difficulty = overall_difficulty
        self.mechanical_difficulty_rating = mechanical_difficulty_rating
        self.slider_factor = slider_factor

    def _visibility_factor(self, starting_point_low):
        mechanical_difficulty_factor = reverse_lerp(
            self.mechanical_difficulty_rating,
            5,
            10,
        )
        starting_point = lerp(
            starting_point_low,
            10.33,
            mechanical_difficulty_factor,
        )
        return reverse_lerp(self.approach_rate, 11.5, starting_point)

    def _visibility_bonus(self, starting_point_low):
        if Mod.hidden not in self.mods:
            return 0
        return calculate_visibility_bonus(
            self.mods,
            self.approach_rate,
            self._visibility_factor(starting_point_low),
            self.slider_factor,
        )

    def compute_aim_rating(self, aim_difficulty_value):
        mods = self.mods
        if Mod.auto_pilot in mods:
            return 0

        rating = difficulty_to_rating(
            aim_difficulty_value,
            self.difficulty_multiplier,
        )

        if Mod.touch_device in mods:
            rating **= 0.8

        if Mod.relax in mods:
            rating *= 0.9

        if Mod.magnetised in mods:
            rating *= 1 - mods.magnetised_strength

        approach_rate_factor = 0
        if Mod.relax not in mods:
            if self.approach_rate > 10.33:
                approach_rate_factor = 0.3 * (self.approach_rate - 10.33)
            elif self.approach_rate < 8:
                approach_rate_factor = 0.05 * (8 - self.approach_rate)

        # longer beatmaps with high approach rates are harder
        multiplier = 1 + approach_rate_factor * calculate_length_bonus(
            self.total_hits,
        )
        multiplier += self._visibility_bonus(9)

        multiplier *= 0.98 + max(0, self.overall_difficulty) ** 2 / 2500

        return rating * multiplier ** (1 / 3)

    def compute_speed_rating(self, speed_difficulty_value):
        mods = self.mods
        if Mod.relax in mods:
            return 0

        rating = difficulty_to_rating(
            speed_difficulty_value,
            self.difficulty_multiplier,
        )

        if Mod.auto_pilot in mods:
            rating *= 0.5

        if Mod.magnetised in mods:
            # at most a 30% reduction from the distance scaling
            rating *= 1 - mods.magnetised_strength * 0.3

        approach_rate_factor = 0
        if self.approach_rate > 10.33 and Mod.auto_pilot not in mods:
            approach_rate_factor = 0.3 * (self.approach_rate - 10.33)

        multiplier = 1 + approach_rate_factor * calculate_length_bonus(
            self.total_hits,
        )
        multiplier += self._visibility_bonus(10)

        multiplier *= 0.95 + max(0, self.overall_difficulty) ** 2 / 750

        return rating * multiplier ** (1 / 3)

    def compute_flashlight_rating(self, flashlight_difficulty_value):
        mods = self.mods
        if Mod.flashlight not in mods:
            return 0

        rating = difficulty_to_rating(
            flashlight_difficulty_value,
            self.difficulty_multiplier,
        )

        if Mod.touch_device in mods:
            rating **= 0.8

        if Mod.relax in mods:
            rating *= 0.7
        elif Mod.auto_pilot in mods:
            rating *= 0.4

        if Mod.magnetised in mods:
            rating *= 1 - mods.magnetised_strength

        if Mod.deflate in mods:
            rating *= clamp(
                reverse_lerp(mods.deflate_start_scale, 11, 1),
                0.1,
                1,
            )

        multiplier = calculate_flashlight_length_bonus(self.total_hits)
        multiplier *= 0.98 + max(0, self.overall_difficulty) ** 2 / 2500

        return rating * math.sqrt(multiplier)


class DroidRatingCalculator:
    """Convert osu!droid difficulty values into star rating components.

    Parameters
    ----------
    mods : ModSet
        The active mods.
    total_hits : int
        The number of hit objects.
    approach_rate : float
        The rate adjusted approach rate.
    overall_difficulty : float
        The overall difficulty whose osu!standard 300 window matches the rate
        adjusted droid 300 window.

    Notes
    -----
    The droid ratings have no approach rate, overall difficulty or length
    factors; those are applied by
    :class:`~starrate.performance.DroidPerformanceCalculator`. The values are
    kept so both rating calculators are built from the same attributes.
    """
    difficulty_multiplier = 0.18

    def __init__(self, mods, total_hits, approach_rate, overall_difficulty):
        self.mods = mods
        self.total_hits = total_hits
        self.approach_rate = approach_rate
        self.overall_difficulty = overall_difficulty

    def _rating(self, difficulty_value):
        return difficulty_to_rating(
            difficulty_value,
            self.difficulty_multiplier,
        )

    def compute_aim_rating(self, aim_difficulty_value):
        if Mod.auto_pilot in self.mods:
            return 0

        rating = self._rating(aim_difficulty_value)
        if Mod.relax in self.mods:
            rating *= 0.9
        return rating

    def compute_tap_rating(self, tap_difficulty_value):
        if Mod.relax in self.mods:
            return 0
        return self._rating(tap_difficulty_value)

    def compute_rhythm_rating(self, rhythm_difficulty_value):
        if Mod.relax in self.mods:
            return 0
        return self._rating(rhythm_difficulty_value)

    def _reading_penalty(self, rating):
        if Mod.relax in self.mods:
            return rating * 0.7
        if Mod.auto_pilot in self.mods:
            return rating * 0.4
        return rating

    def compute_flashlight_rating(self, flashlight_difficulty_value):
        if Mod.flashlight not in self.mods:
            return 0

        return self._reading_penalty(
            self._rating(flashlight_difficulty_value),
        )

    def compute_visual_rating(self, visual_difficulty_value):
        return self._reading_penalty(self._rating(visual_difficulty_value))

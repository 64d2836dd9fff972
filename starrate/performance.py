from collections import namedtuple
import logging
import math

from .interpolation import clamp, sign
from .mod import Mod
from .rating import (
    calculate_flashlight_length_bonus,
    calculate_length_bonus,
    difficulty_to_performance,
)
from .utils import HitCounts, round_hit_counts


logger = logging.getLogger(__name__)


class ScoreStatistics(namedtuple('ScoreStatistics', (
        'combo',
        'n300',
        'n100',
        'n50',
        'misses',
        'accuracy',
        'slider_ends_dropped',
        'slider_ticks_missed',
))):
    """The statistics of a play.

    Parameters
    ----------
    combo : int, optional
        The highest combo reached. Defaults to the beatmap's max combo minus
        the misses.
    n300 : int, optional
        The number of 300s. Defaults to every object that was not a 100, 50
        or miss.
    n100 : int, optional
        The number of 100s.
    n50 : int, optional
        The number of 50s.
    misses : int, optional
        The number of misses.
    accuracy : float, optional
        An accuracy percentage in [0, 100]. When given, the hit counts are
        estimated from it and ``misses``, and ``n300``, ``n100`` and ``n50``
        are ignored.
    slider_ends_dropped : int, optional
        The number of slider ends that were not followed. Only used together
        with ``slider_ticks_missed``.
    slider_ticks_missed : int, optional
        The number of slider ticks that were missed. Only used together with
        ``slider_ends_dropped``.

    Notes
    -----
    Without both slider counts the play is treated as a classic score, where
    slider ends and ticks are not judged.
    """
    def __new__(cls,
                combo=None,
                n300=None,
                n100=0,
                n50=0,
                misses=0,
                accuracy=None,
                slider_ends_dropped=None,
                slider_ticks_missed=None):
        if accuracy is not None and not 0 <= accuracy <= 100:
            raise ValueError(
                f'accuracy must be a percentage in [0, 100], got {accuracy}',
            )
        for name, value in (('n100', n100), ('n50', n50), ('misses', misses)):
            if value < 0:
                raise ValueError(f'{name} must be non-negative, got {value}')

        return super().__new__(
            cls,
            combo,
            n300,
            n100,
            n50,
            misses,
            accuracy,
            slider_ends_dropped,
            slider_ticks_missed,
        )

    @property
    def classic(self):
        """Whether slider ends and ticks were not judged.
        """
        return (
            self.slider_ends_dropped is None or
            self.slider_ticks_missed is None
        )

    def hit_counts(self, object_count):
        """Resolve the statistics into hit counts.

        Parameters
        ----------
        object_count : int
            The number of objects in the beatmap.

        Returns
        -------
        counts : HitCounts
            The hit counts.
        """
        if self.accuracy is not None:
            return round_hit_counts(
                self.accuracy / 100,
                object_count,
                self.misses,
            )

        n300 = self.n300
        if n300 is None:
            n300 = max(0, object_count - self.n100 - self.n50 - self.misses)
        return HitCounts(n300, self.n100, self.n50, self.misses)


class Penalties(namedtuple('Penalties', (
        'tap',
        'aim_slider_cheese',
        'flashlight_slider_cheese',
        'visual_slider_cheese',
))):
    """Penalty multipliers computed from a replay.

    Each penalty divides its component, so 1 leaves it unchanged.

    Parameters
    ----------
    tap : float, optional
        Divides the tap value, for plays that were tapped with more than two
        fingers.
    aim_slider_cheese : float, optional
        Divides the aim value, for plays that cut sliders short.
    flashlight_slider_cheese : float, optional
        Divides the flashlight value, for plays that cut sliders short.
    visual_slider_cheese : float, optional
        Divides the visual value, for plays that cut sliders short.
    """
    def __new__(cls,
                tap=1,
                aim_slider_cheese=1,
                flashlight_slider_cheese=1,
                visual_slider_cheese=1):
        if tap <= 0:
            raise ValueError(f'tap penalty must be positive, got {tap}')

        for name, value in (
                ('aim_slider_cheese', aim_slider_cheese),
                ('flashlight_slider_cheese', flashlight_slider_cheese),
                ('visual_slider_cheese', visual_slider_cheese)):
            if value < 1:
                raise ValueError(f'{name} must be at least 1, got {value}')

        return super().__new__(
            cls,
            tap,
            aim_slider_cheese,
            flashlight_slider_cheese,
            visual_slider_cheese,
        )


class _Play(namedtuple('_Play', (
        'counts',
        'combo',
        'combo_penalty',
        'effective_miss_count',
        'slider_nerf_factor',
        'multiplier',
))):
    """A play's statistics resolved against a beatmap's attributes.
    """


class OsuPerformance(namedtuple('OsuPerformance', (
        'total',
        'aim',
        'speed',
        'accuracy',
        'flashlight',
        'effective_miss_count',
))):
    """The performance of an osu!standard play.
    """
    def __str__(self):
        return (
            f'{self.total:.2f} pp ({self.aim:.2f} aim,'
            f' {self.speed:.2f} speed, {self.accuracy:.2f} acc,'
            f' {self.flashlight:.2f} flashlight)'
        )


class DroidPerformance(namedtuple('DroidPerformance', (
        'total',
        'aim',
        'tap',
        'accuracy',
        'flashlight',
        'visual',
        'effective_miss_count',
))):
    """The performance of an osu!droid play.
    """
    def __str__(self):
        return (
            f'{self.total:.2f} pp ({self.aim:.2f} aim,'
            f' {self.tap:.2f} tap, {self.accuracy:.2f} acc,'
            f' {self.flashlight:.2f} flashlight, {self.visual:.2f} visual)'
        )


def _combine(values, multiplier):
    return sum(value ** 1.1 for value in values) ** (1 / 1.1) * multiplier


def _signed_square(value):
    return sign(value) * value ** 2


class PerformanceCalculator:
    """Shared handling of play statistics for the ruleset performance
    calculators.

    Parameters
    ----------
    attributes : OsuDifficultyAttributes or DroidDifficultyAttributes
        The difficulty of the beatmap for the play's mods.
    """
    final_multiplier = 1.0

    def __init__(self, attributes):
        self.attributes = attributes

    @property
    def total_hits(self):
        return self.attributes.object_count

    def _relax_miss_weights(self, od):
        raise NotImplementedError('_relax_miss_weights')

    def _effective_miss_count(self, statistics, counts, combo):
        attributes = self.attributes
        max_combo = attributes.max_combo
        misses = counts.count_miss
        imperfect = counts.count_100 + counts.count_50 + counts.count_miss

        miss_count = misses
        if attributes.slider_count > 0:
            if statistics.classic:
                # slider ends do not break combo, assume 10% were dropped
                full_combo_threshold = (
                    max_combo - 0.1 * attributes.slider_count
                )
                if combo < full_combo_threshold:
                    miss_count = full_combo_threshold / max(1, combo)
                miss_count = min(miss_count, imperfect)
            else:
                full_combo_threshold = (
                    max_combo - statistics.slider_ends_dropped
                )
                if combo < full_combo_threshold:
                    miss_count = full_combo_threshold / max(1, combo)
                miss_count = min(
                    miss_count,
                    statistics.slider_ticks_missed + misses,
                )

        return clamp(miss_count, misses, self.total_hits)

    def _slider_nerf_factor(self, statistics, counts, combo):
        attributes = self.attributes
        difficult_sliders = attributes.aim_difficult_slider_count
        if difficult_sliders <= 0:
            return 1.0

        if statistics.classic:
            # all missing combo is counted as dropped difficult sliders
            dropped = min(
                counts.count_100 + counts.count_50 + counts.count_miss,
                attributes.max_combo - combo,
            )
        else:
            dropped = (
                statistics.slider_ends_dropped +
                statistics.slider_ticks_missed
            )
        dropped = clamp(dropped, 0, difficult_sliders)

        slider_factor = attributes.slider_factor
        return (
            (1 - slider_factor) * (1 - dropped / difficult_sliders) ** 3 +
            slider_factor
        )

    def _resolve(self, statistics):
        attributes = self.attributes
        mods = attributes.mods
        max_combo = attributes.max_combo

        counts = statistics.hit_counts(self.total_hits)

        if statistics.classic:
            dropped = ticks = 0
        else:
            dropped = statistics.slider_ends_dropped
            ticks = statistics.slider_ticks_missed

        combo = statistics.combo
        if combo is None:
            combo = max_combo - counts.count_miss
        combo = clamp(
            combo,
            0,
            max(0, max_combo - counts.count_miss - dropped - ticks),
        )

        effective_miss_count = self._effective_miss_count(
            statistics,
            counts,
            combo,
        )

        multiplier = self.final_multiplier
        if Mod.no_fail in mods:
            multiplier *= max(0.9, 1 - 0.02 * effective_miss_count)

        if Mod.spun_out in mods:
            multiplier *= 1 - (
                attributes.spinner_count / self.total_hits
            ) ** 0.85

        if Mod.relax in mods:
            n100_weight, n50_weight = self._relax_miss_weights(
                attributes.overall_difficulty,
            )
            # 100s and 50s are probably misses that were not punished
            effective_miss_count = min(
                effective_miss_count +
                counts.count_100 * n100_weight +
                counts.count_50 * n50_weight,
                self.total_hits,
            )

        return _Play(
            counts=counts,
            combo=combo,
            combo_penalty=(
                min((combo / max_combo) ** 0.8, 1) if max_combo else 1
            ),
            effective_miss_count=effective_miss_count,
            slider_nerf_factor=self._slider_nerf_factor(
                statistics,
                counts,
                combo,
            ),
            multiplier=multiplier,
        )

    def _miss_penalty(self, play, exponent):
        """The reduction for missing, with at least a 3% reduction for any
        number of misses.
        """
        misses = play.effective_miss_count
        if misses <= 0:
            return 1.0
        return 0.97 * (
            1 - (misses / self.total_hits) ** 0.775
        ) ** exponent(misses)

    def _relevant_accuracy(self, play, speed_note_count, count_miss=0):
        """The accuracy on the notes that contribute to speed, assuming the
        worst hits landed on them.
        """
        counts = play.counts
        difference = self.total_hits - speed_note_count
        n300 = max(0, counts.count_300 - difference)
        n100 = max(
            0,
            counts.count_100 - max(0, difference - counts.count_300),
        )
        n50 = max(
            0,
            counts.count_50 - max(
                0,
                difference - counts.count_300 - counts.count_100,
            ),
        )
        return HitCounts(n300, n100, n50, count_miss).accuracy(
            speed_note_count,
        )

    def _accuracy_circle_count(self):
        attributes = self.attributes
        if Mod.score_v2 in attributes.mods:
            return self.total_hits - attributes.spinner_count
        return attributes.hit_circle_count


def _linear_misses(misses):
    return misses


def _damped_misses(misses):
    return misses ** 0.875


class OsuPerformanceCalculator(PerformanceCalculator):
    """Calculate the performance of osu!standard plays.

    Parameters
    ----------
    attributes : OsuDifficultyAttributes
        The difficulty of the beatmap for the play's mods.
    """
    final_multiplier = 1.14

    def _relax_miss_weights(self, od):
        if od > 0:
            return (
                max(0, 1 - (od / 13.33) ** 1.8),
                max(0, 1 - (od / 13.33) ** 5),
            )
        return 1, 1

    def calculate(self, statistics=None):
        """Calculate the performance of a play.

        Parameters
        ----------
        statistics : ScoreStatistics, optional
            The play. Defaults to a perfect play.

        Returns
        -------
        performance : OsuPerformance
            The performance breakdown.
        """
        if statistics is None:
            statistics = ScoreStatistics()

        if not self.total_hits:
            return OsuPerformance(0.0, 0.0, 0.0, 0.0, 0.0, 0.0)

        play = self._resolve(statistics)
        aim = self._aim_value(play)
        speed = self._speed_value(play)
        accuracy = self._accuracy_value(play)
        flashlight = self._flashlight_value(play)

        performance = OsuPerformance(
            total=_combine(
                (aim, speed, accuracy, flashlight),
                play.multiplier,
            ),
            aim=aim,
            speed=speed,
            accuracy=accuracy,
            flashlight=flashlight,
            effective_miss_count=play.effective_miss_count,
        )
        logger.debug('%s for %s', performance, statistics)
        return performance

    def _aim_value(self, play):
        attributes = self.attributes
        value = difficulty_to_performance(attributes.aim)
        value *= calculate_length_bonus(self.total_hits)
        value *= self._miss_penalty(play, _linear_misses)
        value *= play.combo_penalty
        value *= play.slider_nerf_factor
        value *= play.counts.accuracy()
        value *= 0.98 + _signed_square(attributes.overall_difficulty) / 2500
        return value

    def _speed_value(self, play):
        attributes = self.attributes
        if Mod.relax in attributes.mods:
            return 0.0

        od = attributes.overall_difficulty
        value = difficulty_to_performance(attributes.speed)
        value *= calculate_length_bonus(self.total_hits)
        value *= self._miss_penalty(play, _damped_misses)
        value *= play.combo_penalty

        relevant_accuracy = self._relevant_accuracy(
            play,
            attributes.speed_note_count,
        )
        value *= (0.95 + _signed_square(od) / 750) * (
            (play.counts.accuracy() + relevant_accuracy) / 2
        ) ** ((14.5 - max(od, 8)) / 2)

        # 50s are a sign of doubletapping
        value *= 0.99 ** max(0, play.counts.count_50 - self.total_hits / 500)
        return value

    def _accuracy_value(self, play):
        attributes = self.attributes
        if Mod.relax in attributes.mods:
            return 0.0

        circles = self._accuracy_circle_count()
        if circles == 0:
            return 0.0

        counts = play.counts
        circle_counts = counts._replace(
            count_300=counts.count_300 - (self.total_hits - circles),
        )
        if circle_counts.count_300 < 0:
            accuracy = 0.0
        else:
            accuracy = circle_counts.accuracy()

        value = (
            1.52163 ** attributes.overall_difficulty *
            accuracy ** 24 *
            2.83
        )
        # longer streaks of circles are harder to keep accurate
        value *= min(1.15, (circles / 1000) ** 0.3)

        if Mod.hidden in attributes.mods:
            value *= 1.08
        if Mod.flashlight in attributes.mods:
            value *= 1.02
        return value

    def _flashlight_value(self, play):
        attributes = self.attributes
        if Mod.flashlight not in attributes.mods:
            return 0.0

        value = attributes.flashlight ** 2 * 25
        value *= play.combo_penalty
        value *= self._miss_penalty(play, _damped_misses)
        value *= calculate_flashlight_length_bonus(self.total_hits)
        value *= 0.5 + play.counts.accuracy() / 2
        value *= 0.98 + _signed_square(attributes.overall_difficulty) / 2500
        return value


class DroidPerformanceCalculator(PerformanceCalculator):
    """Calculate the performance of osu!droid plays.

    Parameters
    ----------
    attributes : DroidDifficultyAttributes
        The difficulty of the beatmap for the play's mods.
    """
    final_multiplier = 1.24

    def _relax_miss_weights(self, od):
        if od > 0:
            return (
                0.75 * max(0, 1 - od / 13.33),
                max(0, 1 - (od / 13.33) ** 5),
            )
        return 0.75, 1

    def calculate(self, statistics=None, penalties=None):
        """Calculate the performance of a play.

        Parameters
        ----------
        statistics : ScoreStatistics, optional
            The play. Defaults to a perfect play.
        penalties : Penalties, optional
            Penalties found by analysing the play's replay.

        Returns
        -------
        performance : DroidPerformance
            The performance breakdown.
        """
        if statistics is None:
            statistics = ScoreStatistics()
        if penalties is None:
            penalties = Penalties()

        if not self.total_hits:
            return DroidPerformance(0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0)

        play = self._resolve(statistics)
        aim = self._aim_value(play) / penalties.aim_slider_cheese
        tap = self._tap_value(play) / penalties.tap
        accuracy = self._accuracy_value(play)
        flashlight = (
            self._flashlight_value(play) / penalties.flashlight_slider_cheese
        )
        visual = self._visual_value(play) / penalties.visual_slider_cheese

        performance = DroidPerformance(
            total=_combine(
                (aim, tap, accuracy, flashlight, visual),
                play.multiplier,
            ),
            aim=aim,
            tap=tap,
            accuracy=accuracy,
            flashlight=flashlight,
            visual=visual,
            effective_miss_count=play.effective_miss_count,
        )
        logger.debug('%s for %s with %s', performance, statistics, penalties)
        return performance

    def _od_scaling(self, divisor):
        return _signed_square(self.attributes.overall_difficulty) / divisor

    def _aim_value(self, play):
        value = difficulty_to_performance(self.attributes.aim ** 0.8)
        value *= self._miss_penalty(play, _linear_misses)
        value *= play.combo_penalty
        value *= play.slider_nerf_factor
        value *= play.counts.accuracy(self.total_hits)
        value *= 0.98 + self._od_scaling(2500)
        return value

    def _tap_value(self, play):
        attributes = self.attributes
        od = attributes.overall_difficulty

        value = difficulty_to_performance(attributes.tap)
        value *= self._miss_penalty(play, _damped_misses)
        value *= play.combo_penalty

        relevant_accuracy = self._relevant_accuracy(
            play,
            attributes.speed_note_count,
            play.effective_miss_count,
        )
        value *= (0.95 + self._od_scaling(750)) * (
            (play.counts.accuracy(self.total_hits) + relevant_accuracy) / 2
        ) ** ((14 - max(od, 2.5)) / 2)

        # 50s are a sign of doubletapping
        value *= 0.98 ** max(0, play.counts.count_50 - self.total_hits / 500)
        return value

    def _accuracy_value(self, play):
        attributes = self.attributes
        if Mod.relax in attributes.mods:
            return 0.0

        circles = self._accuracy_circle_count()
        if circles == 0:
            return 0.0

        accuracy = play.counts.accuracy(circles)
        value = (
            1.4 ** attributes.overall_difficulty *
            accuracy ** 12 *
            10
        )
        # longer streaks of circles are harder to keep accurate
        value *= min(1.15, (circles / 1000) ** 0.3)
        value *= 1.5 / (1 + math.exp(-(attributes.rhythm - 1) / 2))

        if Mod.hidden in attributes.mods:
            value *= 1.08
        if Mod.flashlight in attributes.mods:
            value *= 1.02
        return value

    def _flashlight_value(self, play):
        attributes = self.attributes
        if Mod.flashlight not in attributes.mods:
            return 0.0

        value = (attributes.flashlight ** 0.8) ** 2 * 25
        value *= play.combo_penalty
        value *= self._miss_penalty(play, _damped_misses)
        value *= calculate_flashlight_length_bonus(self.total_hits)
        value *= 0.5 + play.counts.accuracy(self.total_hits) / 2
        value *= 0.98 + self._od_scaling(2500)
        return value

    def _visual_value(self, play):
        total_hits = self.total_hits

        value = (self.attributes.visual ** 0.8) ** 2 * 25
        value *= self._miss_penalty(play, _linear_misses)
        value *= play.combo_penalty

        # short beatmaps are easier to memorise
        value *= min(
            1,
            1.650668 +
            (0.4845796 - 1.650668) /
            (1 + (total_hits / 817.9306) ** 1.147469),
        )
        value *= play.counts.accuracy(total_hits) ** 8
        value *= 0.98 + self._od_scaling(2500)
        return value

from collections import namedtuple

from .bit_enum import BitEnum


class Mod(BitEnum):
    """The modifiers understood by the rating pipeline.
    """
    no_fail = 1
    easy = 1 << 1
    touch_device = 1 << 2
    hidden = 1 << 3
    hard_rock = 1 << 4
    sudden_death = 1 << 5
    double_time = 1 << 6
    relax = 1 << 7
    half_time = 1 << 8
    nightcore = 1 << 9  # always used with double_time
    flashlight = 1 << 10
    spun_out = 1 << 12
    auto_pilot = 1 << 13
    perfect = 1 << 14
    score_v2 = 1 << 29
    precise = 1 << 30
    traceable = 1 << 31
    magnetised = 1 << 32
    deflate = 1 << 33

    @classmethod
    def parse(cls, cs):
        """Parse a mod mask out of a list of shortened mod names.

        Parameters
        ----------
        cs : str
            The mod string.

        Returns
        -------
        mod_mask : int
            The mod mask.
        """
        if len(cs) % 2 != 0:
            raise ValueError(f'malformed mods: {cs!r}')

        cs = cs.lower()
        mapping = {
            'nf': cls.no_fail,
            'ez': cls.easy,
            'td': cls.touch_device,
            'hd': cls.hidden,
            'hr': cls.hard_rock,
            'sd': cls.sudden_death,
            'dt': cls.double_time,
            'rx': cls.relax,
            'ht': cls.half_time,
            'nc': cls.nightcore,
            'fl': cls.flashlight,
            'so': cls.spun_out,
            'ap': cls.auto_pilot,
            'pf': cls.perfect,
            'v2': cls.score_v2,
            'pr': cls.precise,
            'tc': cls.traceable,
            'mg': cls.magnetised,
            'df': cls.deflate,
        }

        mod = 0
        for n in range(0, len(cs), 2):
            try:
                mod |= mapping[cs[n:n + 2]]
            except KeyError:
                raise ValueError(f'unknown mod: {cs[n:n + 2]!r}')

        return mod


class ModSet:
    """The set of active modifiers and their parameters.

    Parameters
    ----------
    mods : iterable[Mod] or int, optional
        The active mods, or a mod mask.
    speed_multiplier : float, optional
        An extra clock rate multiplier applied on top of the rate changing
        mods.
    magnetised_strength : float, optional
        How strongly the cursor is pulled towards objects with
        :data:`Mod.magnetised`, in the range [0, 1].
    deflate_start_scale : float, optional
        The initial object scale with :data:`Mod.deflate`.
    hidden_only_fade_approach_circles : bool, optional
        With :data:`Mod.hidden`, only fade approach circles and keep the
        objects themselves visible.

    Notes
    -----
    Combinations are not validated; mutually exclusive mods are assumed to
    have been rejected before reaching this type.
    """
    def __init__(self,
                 mods=(),
                 *,
                 speed_multiplier=1.0,
                 magnetised_strength=0.5,
                 deflate_start_scale=2.0,
                 hidden_only_fade_approach_circles=False):
        if isinstance(mods, int):
            mods = Mod.unpack(mods)
        self.mods = frozenset(Mod(m) for m in mods)
        self.speed_multiplier = speed_multiplier
        self.magnetised_strength = magnetised_strength
        self.deflate_start_scale = deflate_start_scale
        self.hidden_only_fade_approach_circles = (
            hidden_only_fade_approach_circles
        )

    @classmethod
    def parse(cls, cs, **kwargs):
        """Build a mod set from a string of two letter mod names.

        Parameters
        ----------
        cs : str
            The mod string, for example ``'HDDT'``.
        **kwargs
            Forwarded to :class:`ModSet`.

        Returns
        -------
        mods : ModSet
            The parsed mod set.
        """
        return cls(Mod.parse(cs), **kwargs)

    def __contains__(self, mod):
        return mod in self.mods

    def __iter__(self):
        return iter(sorted(self.mods))

    def __len__(self):
        return len(self.mods)

    def __eq__(self, other):
        if not isinstance(other, ModSet):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def _key(self):
        return (
            self.mods,
            self.speed_multiplier,
            self.magnetised_strength,
            self.deflate_start_scale,
            self.hidden_only_fade_approach_circles,
        )

    def __repr__(self):
        names = ''.join(m.name for m in self) or 'none'
        return f'<{type(self).__qualname__}: {names}>'

    @property
    def acronyms(self):
        return ''.join(_acronyms[m] for m in self)

    @property
    def bitmask(self):
        """The legacy integer mod mask for these mods."""
        return Mod.pack(*self.mods)

    def without(self, *mods):
        """A copy of this set with some mods removed.
        """
        return ModSet(
            self.mods - set(mods),
            speed_multiplier=self.speed_multiplier,
            magnetised_strength=self.magnetised_strength,
            deflate_start_scale=self.deflate_start_scale,
            hidden_only_fade_approach_circles=(
                self.hidden_only_fade_approach_circles
            ),
        )

    @property
    def clock_rate(self):
        """The rate the beatmap is played at.
        """
        rate = self.speed_multiplier
        if Mod.double_time in self or Mod.nightcore in self:
            rate *= 1.5
        elif Mod.half_time in self:
            rate *= 0.75
        return rate

    def circle_size(self, cs):
        if Mod.hard_rock in self:
            return min(cs * 1.3, 10)
        if Mod.easy in self:
            return cs / 2
        return cs

    def approach_rate(self, ar):
        if Mod.hard_rock in self:
            return min(ar * 1.4, 10)
        if Mod.easy in self:
            return ar / 2
        return ar

    overall_difficulty = approach_rate
    hp_drain_rate = approach_rate

    def effective_approach_rate(self, ar):
        """The approach rate that matches the rate adjusted approach time.

        Parameters
        ----------
        ar : float
            The beatmap's approach rate.

        Returns
        -------
        ar : float
            The approach rate after easy, hard rock and the clock rate.
        """
        return ms_to_ar(ar_to_ms(self.approach_rate(ar)) / self.clock_rate)

    def effective_overall_difficulty(self, od):
        """The overall difficulty that matches the rate adjusted 300 window.

        Parameters
        ----------
        od : float
            The beatmap's overall difficulty.

        Returns
        -------
        od : float
            The overall difficulty after easy, hard rock and the clock rate.
        """
        return ms_300_to_od(
            od_to_ms_300(self.overall_difficulty(od)) / self.clock_rate,
        )

    @property
    def partially_hidden(self):
        """Whether a visibility reducing mod keeps the object bodies visible.
        """
        return (
            (Mod.hidden in self and self.hidden_only_fade_approach_circles) or
            Mod.traceable in self
        )


_acronyms = {
    m: code.upper()
    for code, m in {
        'nf': Mod.no_fail,
        'ez': Mod.easy,
        'td': Mod.touch_device,
        'hd': Mod.hidden,
        'hr': Mod.hard_rock,
        'sd': Mod.sudden_death,
        'dt': Mod.double_time,
        'rx': Mod.relax,
        'ht': Mod.half_time,
        'nc': Mod.nightcore,
        'fl': Mod.flashlight,
        'so': Mod.spun_out,
        'ap': Mod.auto_pilot,
        'pf': Mod.perfect,
        'v2': Mod.score_v2,
        'pr': Mod.precise,
        'tc': Mod.traceable,
        'mg': Mod.magnetised,
        'df': Mod.deflate,
    }.items()
}


def ar_to_ms(ar):
    """Convert an approach rate value to milliseconds of time that an element
    appears on the screen before being hit.

    Parameters
    ----------
    ar : float
        The approach rate.

    Returns
    -------
    milliseconds : float
        The number of milliseconds that an element appears on the screen before
        being hit at the given approach rate.

    See Also
    --------
    :func:`starrate.mod.ms_to_ar`
    """
    # the formula is different for ar >= 5 and ar < 5
    if ar >= 5:
        return 1950 - (ar * 150)
    else:
        return 1800 - (ar * 120)


def ms_to_ar(ms):
    """Convert milliseconds to hit an element into an approach rate value.

    Parameters
    ----------
    ms : float
        The number of milliseconds that an element appears on the screen before
        being hit.

    Returns
    -------
    ar : float
        The approach rate value that produces the given millisecond value.

    See Also
    --------
    :func:`starrate.mod.ar_to_ms`
    """
    ar = (ms - 1950) / -150
    if ar < 5:
        # the ar lines cross at 5 but we use a different formula for the slower
        # approach rates.
        return (ms - 1800) / -120
    return ar


def fade_in_ms(preempt):
    """The time an object takes to fade in.

    Parameters
    ----------
    preempt : float
        The approach time of the object in milliseconds.

    Returns
    -------
    fade_in : float
        The fade in duration in milliseconds.
    """
    return 400 * min(1, preempt / 450)


# fraction of the preempt time objects fade in over with hidden
hidden_fade_in_multiplier = 0.4

# fraction of the preempt time objects fade out over with hidden
hidden_fade_out_multiplier = 0.3


def circle_radius(cs):
    """Compute the ``CS`` attribute into a circle radius in osu! pixels.

    Parameters
    ----------
    cs : float
        The circle size.

    Returns
    -------
    radius : float
        The radius in osu! pixels.
    """
    return (512 / 16) * (1 - 0.7 * (cs - 5) / 5)


class HitWindows(namedtuple('HitWindows', 'hit_300, hit_100, hit_50')):
    """Times to hit an object at various accuracies

    Parameters
    ----------
    hit_300 : float
        The maximum number of milliseconds away from exactly on time a hit
        can be to still be a 300
    hit_100 : float
        The maximum number of milliseconds away from exactly on time a hit
        can be to still be a 100
    hit_50 : float
        The maximum number of milliseconds away from exactly on time a hit
        can be to still be a 50

    Notes
    -----
    A hit further than the ``hit_50`` value away from the time of a hit object
    is a miss.
    """
    def scale(self, clock_rate):
        return HitWindows(*(window / clock_rate for window in self))


def od_to_ms(od):
    """Convert an overall difficulty value into milliseconds to hit an object
    at various accuracies.

    Parameters
    ----------
    od : float
        The overall difficulty.

    Returns
    -------
    hw : HitWindows
        A namedtuple of numbers of milliseconds to hit an object at different
        accuracies.
    """
    return HitWindows(
        hit_300=(159 - 12 * od) / 2,
        hit_100=(279 - 16 * od) / 2,
        hit_50=(399 - 20 * od) / 2,
    )


def droid_hit_windows(od, precise=False):
    """The osu!droid hit windows for an overall difficulty value.

    Parameters
    ----------
    od : float
        The overall difficulty.
    precise : bool, optional
        Use the tighter windows of :data:`Mod.precise`.

    Returns
    -------
    hw : HitWindows
        The hit windows in milliseconds.
    """
    if precise:
        return HitWindows(
            hit_300=55 + 6 * (5 - od),
            hit_100=120 + 8 * (5 - od),
            hit_50=180 + 10 * (5 - od),
        )

    return HitWindows(
        hit_300=75 + 5 * (5 - od),
        hit_100=150 + 10 * (5 - od),
        hit_50=250 + 10 * (5 - od),
    )


def od_to_ms_300(od):
    """Convert an overall difficulty value into milliseconds to hit an object
    at maximum accuracy.

    Parameters
    ----------
    od : float
        The overall difficulty.

    Returns
    -------
    ms : float
        The number of milliseconds to hit an object at maximum accuracy.

    See Also
    --------
    :func:`starrate.mod.ms_300_to_od`
    """
    return 79.5 - 6 * od


def ms_300_to_od(ms):
    """Convert the milliseconds to score a 300 into an OD value.

    Parameters
    ----------
    ms : float
        The length of the 300 window in milliseconds.

    Returns
    -------
    od : float
        The OD value that produces a 300 window of length ``ms``.

    See Also
    --------
    :func:`starrate.mod.od_to_ms_300`
    """
    return (ms - 79.5) / -6

from .beatmap import Beatmap, Circle, Slider, Spinner, HitObject
from .difficulty import (
    DroidDifficultyAttributes,
    DroidDifficultyCalculator,
    OsuDifficultyAttributes,
    OsuDifficultyCalculator,
)
from .mod import Mod, ModSet
from .path import PathType, SliderPath
from .performance import (
    DroidPerformanceCalculator,
    OsuPerformanceCalculator,
    Penalties,
    ScoreStatistics,
)
from .position import Position
from .preprocessing import Ruleset

__version__ = "0.1.0"


__all__ = [
    "Beatmap",
    "Circle",
    "DroidDifficultyAttributes",
    "DroidDifficultyCalculator",
    "DroidPerformanceCalculator",
    "HitObject",
    "Mod",
    "ModSet",
    "OsuDifficultyAttributes",
    "OsuDifficultyCalculator",
    "OsuPerformanceCalculator",
    "PathType",
    "Penalties",
    "Position",
    "Ruleset",
    "ScoreStatistics",
    "Slider",
    "SliderPath",
    "Spinner",
]

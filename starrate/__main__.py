import click

from . import Beatmap
from .cli import (
    ModSetParamType,
    RulesetParamType,
    configure_logging,
    process_paths,
)
from .difficulty import DroidDifficultyCalculator, OsuDifficultyCalculator
from .performance import (
    DroidPerformanceCalculator,
    OsuPerformanceCalculator,
    Penalties,
    ScoreStatistics,
)
from .preprocessing import Ruleset


def difficulty_calculator(ruleset):
    if ruleset is Ruleset.droid:
        return DroidDifficultyCalculator()
    return OsuDifficultyCalculator()


@click.group()
@click.option(
    '--verbose/--no-verbose',
    help='Log the computed components?',
    default=False,
)
def main(verbose):
    """Star rating and performance utilities.
    """
    configure_logging(verbose)


_beatmaps_argument = click.argument(
    'beatmaps',
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False),
)
_mods_option = click.option(
    '--mods',
    type=ModSetParamType(),
    help='The active mods, for example HDDT.',
    default='',
)
_ruleset_option = click.option(
    '--ruleset',
    type=RulesetParamType(),
    help='The ruleset to rate for.',
    default='osu',
)
_progress_option = click.option(
    '--progress/--no-progress',
    help='Show a progress bar?',
    default=False,
)
_skip_exceptions_option = click.option(
    '--skip-exceptions/--no-skip-exceptions',
    help='Skip beatmap files that cause exceptions rather than exiting?',
    default=False,
)


@main.command()
@_beatmaps_argument
@_mods_option
@_ruleset_option
@_progress_option
@_skip_exceptions_option
def difficulty(beatmaps, mods, ruleset, progress, skip_exceptions):
    """Print the star rating of beatmap JSON files.
    """
    calculator = difficulty_calculator(ruleset)
    results = process_paths(
        beatmaps,
        lambda path: calculator.calculate(Beatmap.from_path(path), mods),
        show_progress=progress,
        skip_exceptions=skip_exceptions,
    )
    for path, attributes in results:
        click.echo(f'{path}: {attributes}')


@main.command()
@_beatmaps_argument
@_mods_option
@_ruleset_option
@click.option(
    '--combo',
    type=click.IntRange(min=0),
    help='The highest combo reached. Defaults to a full combo.',
)
@click.option(
    '--accuracy',
    type=click.FloatRange(0, 100),
    help='The accuracy percentage. Defaults to the best possible.',
)
@click.option(
    '--misses',
    type=click.IntRange(min=0),
    help='The number of misses.',
    default=0,
)
@click.option(
    '--tap-penalty',
    type=click.FloatRange(min=1),
    help='The tap penalty of a droid play.',
    default=1.0,
)
@_progress_option
@_skip_exceptions_option
def performance(beatmaps,
                mods,
                ruleset,
                combo,
                accuracy,
                misses,
                tap_penalty,
                progress,
                skip_exceptions):
    """Print the performance of a play on beatmap JSON files.
    """
    calculator = difficulty_calculator(ruleset)
    statistics = ScoreStatistics(
        combo=combo,
        misses=misses,
        accuracy=accuracy,
    )

    def rate(path):
        attributes = calculator.calculate(Beatmap.from_path(path), mods)
        if ruleset is Ruleset.droid:
            return DroidPerformanceCalculator(attributes).calculate(
                statistics,
                Penalties(tap=tap_penalty),
            )
        return OsuPerformanceCalculator(attributes).calculate(statistics)

    results = process_paths(
        beatmaps,
        rate,
        show_progress=progress,
        skip_exceptions=skip_exceptions,
    )
    for path, result in results:
        click.echo(f'{path}: {result}')


if __name__ == '__main__':
    main()

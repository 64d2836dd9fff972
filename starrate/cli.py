from contextlib import contextmanager
import logging

import click

from .mod import ModSet
from .preprocessing import Ruleset


logger = logging.getLogger(__name__)


def maybe_show_progress(it, show_progress, **kwargs):
    """Optionally show a progress bar for the given iterator.

    Parameters
    ----------
    it : iterable
        The underlying iterator.
    show_progress : bool
        Should progress be shown.
    **kwargs
        Forwarded to the click progress bar.

    Returns
    -------
    itercontext : context manager
        A context manager whose enter is the actual iterator to use.

    Examples
    --------
    .. code-block:: python

       with maybe_show_progress([1, 2, 3], True) as ns:
            for n in ns:
                ...
    """
    if show_progress:
        return click.progressbar(it, **kwargs)

    @contextmanager
    def ctx():
        yield it

    return ctx()


class ModSetParamType(click.ParamType):
    """A click parameter for mod strings like ``HDDT``.
    """
    name = 'mods'

    def convert(self, value, param, ctx):
        if isinstance(value, ModSet):
            return value
        try:
            return ModSet.parse(value)
        except ValueError as e:
            self.fail(str(e), param, ctx)


class RulesetParamType(click.Choice):
    """A click parameter for a :class:`Ruleset` name.
    """
    def __init__(self):
        super().__init__([ruleset.value for ruleset in Ruleset])

    def convert(self, value, param, ctx):
        if isinstance(value, Ruleset):
            return value
        return Ruleset(super().convert(value, param, ctx))


def configure_logging(verbose):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )


def process_paths(paths, f, *, show_progress, skip_exceptions):
    """Apply a function to each path, optionally logging and skipping
    failures.

    Parameters
    ----------
    paths : iterable[str]
        The paths to process.
    f : callable[str, any]
        The function to apply.
    show_progress : bool
        Show a progress bar?
    skip_exceptions : bool
        Log and skip paths that raise instead of propagating the exception.

    Returns
    -------
    results : list[tuple[str, any]]
        The path and result of each path that succeeded.
    """
    results = []
    with maybe_show_progress(
            paths,
            show_progress,
            label='Rating beatmaps') as it:
        for path in it:
            try:
                results.append((path, f(path)))
            except Exception:
                if not skip_exceptions:
                    raise
                logger.exception(f'Failed to process "{path}"')
    return results

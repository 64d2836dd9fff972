class ExpansionExhausted(ValueError):
    """Raised when the upper bound could not be expanded far enough to bracket
    a root.
    """


def find_root_expand(f,
                     lower,
                     upper,
                     max_iterations=25,
                     accuracy=1e-6,
                     expansion_factor=2,
                     max_expansions=32):
    """Find a root of ``f``, expanding ``upper`` until a sign change is
    bracketed.

    Parameters
    ----------
    f : callable[float, float]
        The function to find a root of.
    lower : float
        The lower bound of the search.
    upper : float
        The initial upper bound of the search.
    max_iterations : int, optional
        The maximum number of refinement steps.
    accuracy : float, optional
        The desired tolerance of the root.
    expansion_factor : float, optional
        The factor to grow ``upper`` by on each expansion.
    max_expansions : int, optional
        The maximum number of times ``upper`` may be grown.

    Returns
    -------
    root : float
        The root, or the best midpoint found if ``max_iterations`` ran out.

    Raises
    ------
    ExpansionExhausted
        Raised when no sign change is found within ``max_expansions``.
    """
    f_lower = f(lower)
    f_upper = f(upper)

    expansions = 0
    while f_lower * f_upper > 0:
        lower = upper
        upper *= expansion_factor
        f_lower = f_upper
        f_upper = f(upper)

        expansions += 1
        if expansions > max_expansions:
            raise ExpansionExhausted(
                f'no root found after {max_expansions} expansions; last'
                f' bracket was [{lower}, {upper}]',
            )

    return _chandrupatla(
        f,
        lower,
        upper,
        f_lower,
        f_upper,
        max_iterations,
        accuracy,
    )


def find_root(f, lower, upper, max_iterations=25, accuracy=1e-6):
    """Find a root of ``f`` in ``[lower, upper]``.

    Parameters
    ----------
    f : callable[float, float]
        The function to find a root of.
    lower, upper : float
        The bounds of the search; ``f`` must change sign between them.
    max_iterations : int, optional
        The maximum number of refinement steps.
    accuracy : float, optional
        The desired tolerance of the root.

    Returns
    -------
    root : float
        The root, or the best midpoint found if ``max_iterations`` ran out.
    """
    f_lower = f(lower)
    f_upper = f(upper)
    if f_lower * f_upper > 0:
        raise ValueError(
            f'f({lower}) and f({upper}) have the same sign; the bounds do not'
            ' bracket a root',
        )

    return _chandrupatla(
        f,
        lower,
        upper,
        f_lower,
        f_upper,
        max_iterations,
        accuracy,
    )


def _sign(value):
    return (value > 0) - (value < 0)


def _chandrupatla(f, a, b, fa, fb, max_iterations, accuracy):
    # inverse quadratic interpolation when it stays inside the bracket,
    # otherwise bisection
    t = 0.5
    c = fc = 0
    xm = a
    fm = fa

    for _ in range(max_iterations):
        xt = a + t * (b - a)
        ft = f(xt)

        if _sign(ft) == _sign(fa):
            c, fc = a, fa
        else:
            c, fc = b, fb
            b, fb = a, fa

        a, fa = xt, ft

        if abs(fa) < abs(fb):
            xm, fm = a, fa
        else:
            xm, fm = b, fb

        if fm == 0:
            return xm

        tolerance = 2 * accuracy * abs(xm) + 2 * accuracy
        t_limit = tolerance / abs(b - c)

        if t_limit > 0.5:
            return xm

        chi = (a - b) / (c - b)
        phi = (fa - fb) / (fc - fb)

        if phi ** 2 < chi and (1 - phi) ** 2 < chi:
            t = (
                fa / (fb - fa) * fc / (fb - fc) +
                (c - a) / (b - a) * fa / (fc - fa) * fb / (fc - fb)
            )
        else:
            t = 0.5

        t = min(1 - t_limit, max(t_limit, t))

    return xm

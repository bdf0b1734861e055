"""Integer helpers used by the batch partitioner."""


def round_up_to_multiple(n: int, r: int) -> int:
    """Round ``n`` up to the next multiple of ``r``.

    Returns ``n`` unchanged when it is already a multiple. ``r`` must be
    positive; ``r == 0`` raises ``ZeroDivisionError``.

    Examples
    --------
    >>> round_up_to_multiple(25, 10)
    30
    >>> round_up_to_multiple(20, 10)
    20
    >>> round_up_to_multiple(0, 10)
    0
    """
    m = n % r
    if m == 0:
        return n
    return (n + r) - m

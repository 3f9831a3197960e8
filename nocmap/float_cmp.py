"""Epsilon-tolerant floating point comparisons.

Costs are compared using a tolerance scaled by the magnitude of the values
being compared so that rounding noise in the cost model can never flip the
outcome of an acceptance test or of a "best so far" comparison.

See Knuth, "The Art of Computer Programming", Vol. 2, section 4.2.2.
"""

import numpy as np

EPSILON = float(np.finfo(np.float32).eps)
"""The (single precision) machine epsilon used for all comparisons."""


def approximately_equal(a, b, epsilon=EPSILON):
    """True if a and b are within a tolerance relative to the larger of
    their magnitudes.
    """
    return abs(a - b) <= max(abs(a), abs(b)) * epsilon


def essentially_equal(a, b, epsilon=EPSILON):
    """True if a and b are within a tolerance relative to the smaller of
    their magnitudes (a stricter test than :py:func:`approximately_equal`).
    """
    return abs(a - b) <= min(abs(a), abs(b)) * epsilon


def definitely_greater_than(a, b, epsilon=EPSILON):
    """True if a exceeds b by more than the comparison tolerance."""
    return (a - b) > max(abs(a), abs(b)) * epsilon


def definitely_less_than(a, b, epsilon=EPSILON):
    """True if a is below b by more than the comparison tolerance."""
    return (b - a) > max(abs(a), abs(b)) * epsilon

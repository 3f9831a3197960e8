"""Placement algorithms.

Every placer has the same prototype::

    place(assignment, cost_model, random=None, **kwargs)

It completes the given :py:class:`~nocmap.assignment.Assignment` in place,
attempting to minimise the cost given by the
:py:class:`~nocmap.cost.CostModel`, and returns
:py:class:`~nocmap.place.utils.PlacementStatistics`. All random decisions
are drawn from ``random``, a :py:class:`~nocmap.lcg.LCG`.

The following placers are available, keyed by the identifier used for them
in mapping results and on the command line:

``"sa"``
    :py:func:`nocmap.place.sa.place`, simulated annealing.
``"osa"``
    :py:func:`nocmap.place.osa.place`, optimised simulated annealing.
``"bb"``
    :py:func:`nocmap.place.bb.place`, branch and bound.
``"es"``
    :py:func:`nocmap.place.exhaustive.place`, exhaustive search.
``"random"``
    :py:func:`nocmap.place.rand.place`, random placement.
"""

from nocmap.place import sa, osa, bb, exhaustive, rand

PLACERS = {
    "sa": sa.place,
    "osa": osa.place,
    "bb": bb.place,
    "es": exhaustive.place,
    "random": rand.place,
}

default_place = sa.place

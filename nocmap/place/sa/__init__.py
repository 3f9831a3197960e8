"""A simulated-annealing based placer.

The annealing algorithm is broken into two components: the high-level
algorithm implementation :py:func:`~nocmap.place.sa.place` and a simulated
annealing placement :py:class:`~nocmap.place.sa.kernel.Kernel`.

The algorithm takes care of initial placement, handles special-case
"trivial" placement problems where no placer effort is required and manages
the annealing schedule and its termination (freezing) condition.

The kernel is responsible for performing the kernel of the annealing
operation: swapping cores, evaluating the change in cost and reverting
(some) bad swaps. Since this is the most performance-sensitive part of the
algorithm, its implementation may be swapped for more efficient
implementations as required. A portable kernel written in Python is
included in :py:class:`~nocmap.place.sa.python_kernel.PythonKernel`.
"""

from nocmap.place.sa.algorithm import \
    place, AnnealingSchedule, AnnealingState

"""High-level wrapper around the placement algorithms.

:py:func:`map_application` performs a complete mapping run: it checks the
problem is feasible, builds the cost model for the chosen routing strategy,
runs a placer, programs routing tables for the final assignment and packages
the outcome as a :py:class:`MappingResult`.
"""

import logging
import os
import time

from collections import namedtuple
from datetime import datetime

import numpy as np
import sentinel

from pytz import utc

from nocmap.assignment import Assignment, EMPTY
from nocmap.cost import CostModel
from nocmap.exceptions import TooFewNodesError
from nocmap.lcg import LCG
from nocmap.monitor import HeapUsageMonitor

from nocmap.place import PLACERS, default_place
from nocmap.place.utils import \
    PlacementStatistics, initial_placement, is_trivial

from nocmap.routing import routing_strategy


logger = logging.getLogger(__name__)


Unmapped = sentinel.create("Unmapped")
"""Stands in for the core of a node which hosts no core."""


class MappingResult(namedtuple("MappingResult",
                               "mapper_id seed cost mapping routing_tables "
                               "accept_ratios evaluations start_time "
                               "real_time user_time sys_time "
                               "average_memory")):
    """The outcome of a mapping run.

    Parameters
    ----------
    mapper_id : str
        Identifies the placer used (e.g. "sa").
    seed : int
        The seed of the random number generator used.
    cost : float
        The cost of the final assignment.
    mapping : [int, ...]
        The core hosted by each node (indexed by node ID) or -1.
    routing_tables : :py:class:`numpy.ndarray` or None
        The programmed per-node routing tables, ``routing_tables[node,
        source, destination]`` (see :py:mod:`nocmap.routing.util`), or None
        when static routing was used.
    accept_ratios : [float, ...]
        The acceptance ratio of every annealing round (simulated annealing
        only).
    evaluations : int
        The number of assignments whose cost was evaluated.
    start_time : :py:class:`datetime.datetime`
        When the run started (UTC).
    real_time : float
        Wall-clock duration of the run (seconds).
    user_time : float
        User CPU time used by the run (seconds).
    sys_time : float
        System CPU time used by the run (seconds).
    average_memory : float or None
        Average resident memory during the run (bytes), or None if memory
        was not monitored.
    """

    def node_to_core(self):
        """Get the core on every node, with :py:data:`Unmapped` for nodes
        without a core.
        """
        return [Unmapped if core == EMPTY else core for core in self.mapping]

    def as_dict(self):
        """Get a plain-data representation of the result for serialisation.

        Only occupied nodes are listed in the map and only entries which
        forward traffic on a link in the routing tables.
        """
        result = {
            "mapper": self.mapper_id,
            "seed": self.seed,
            "cost": self.cost,
            "map": [{"node": node, "core": core}
                    for node, core in enumerate(self.mapping)
                    if core != EMPTY],
            "accept_ratios": list(self.accept_ratios),
            "evaluations": self.evaluations,
            "start_time": self.start_time.isoformat(),
            "real_time": self.real_time,
            "user_time": self.user_time,
            "sys_time": self.sys_time,
            "average_memory": self.average_memory,
        }
        if self.routing_tables is not None:
            nodes, sources, destinations = np.nonzero(
                self.routing_tables >= 0)
            result["routing_tables"] = [
                {"node": int(n), "source": int(s), "destination": int(d),
                 "link": int(self.routing_tables[n, s, d])}
                for n, s, d in zip(nodes, sources, destinations)]
        return result


def _mapper_id(place):
    for name, placer in PLACERS.items():
        if placer is place:
            return name
    return getattr(place, "__module__", repr(place))


def map_application(mesh, application, place=default_place, routing=None,
                    seed=None, monitor_memory=True, **place_kwargs):
    """Map the cores of an application onto a mesh.

    Parameters
    ----------
    mesh : :py:class:`~nocmap.topology.Mesh`
    application : :py:class:`~nocmap.application.Application`
    place : function
        The placement algorithm to use (see :py:mod:`nocmap.place`).
    routing : None, "XY", "WEST_FIRST" or "ODD_EVEN"
        The routing strategy (see
        :py:func:`~nocmap.routing.strategy.routing_strategy`). With adaptive
        routing the routing tables of the final assignment are programmed.
    seed : int or None
        Seed of the random number generator. If None, one is derived from
        the current time (and recorded in the result).
    monitor_memory : bool
        If True, sample the memory used by the process during the run.
    **place_kwargs
        Additional keyword arguments for the placer.

    Returns
    -------
    :py:class:`MappingResult`

    Raises
    ------
    TooFewNodesError
        If the mesh has fewer nodes than the application has cores. This is
        checked before any placement is attempted.
    """
    if mesh.num_nodes < application.num_cores:
        raise TooFewNodesError(application.num_cores, mesh.num_nodes)

    mapper_id = _mapper_id(place)
    assignment = Assignment(application.num_cores, mesh.num_nodes)
    strategy = routing_strategy(mesh, routing)
    cost_model = CostModel(mesh, application, strategy)
    random = LCG(seed)

    logger.info("Mapping %d cores onto a %dx%d mesh using '%s' with %s "
                "routing (seed %d).", application.num_cores, mesh.rows,
                mesh.columns, mapper_id, strategy.name, random.seed)

    monitor = None
    if monitor_memory:
        monitor = HeapUsageMonitor()
        monitor.start_monitor()

    start = time.time()
    start_times = os.times()
    try:
        if is_trivial(assignment):
            logger.info("Fewer than two cores: no search required.")
            initial_placement(assignment, random)
            statistics = PlacementStatistics(cost_model(assignment))
        else:
            statistics = place(assignment, cost_model, random=random,
                               **place_kwargs)
        routing_tables = cost_model.program(assignment)
    finally:
        end_times = os.times()
        real_time = time.time() - start
        if monitor is not None:
            monitor.stop_monitor()

    average_memory = None
    if monitor is not None:
        average_memory = monitor.average_used_memory
        logger.info("Average memory used: %0.1f MiB",
                    average_memory / (1024.0 * 1024.0))

    logger.info("Mapping finished in %0.3f s with cost %f.",
                real_time, statistics.cost)

    return MappingResult(
        mapper_id=mapper_id,
        seed=random.seed,
        cost=statistics.cost,
        mapping=[int(core) for core in assignment.node_to_core],
        routing_tables=routing_tables,
        accept_ratios=statistics.accept_ratios,
        evaluations=cost_model.evaluations,
        start_time=datetime.fromtimestamp(start, tz=utc),
        real_time=real_time,
        user_time=end_times[0] - start_times[0],
        sys_time=end_times[1] - start_times[1],
        average_memory=average_memory)

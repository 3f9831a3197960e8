"""The routing strategies a mapping run can use.

A routing strategy is chosen once per mapping run. It determines how the
bandwidth of a placement is projected onto the links of the mesh (and thus
the overload penalty of the cost model) and which routing tables are
programmed for the final placement:

:py:class:`StaticRouting`
    Traffic follows fixed XY routes. Routes are computed once per mesh and
    no routing tables are programmed.
:py:class:`AdaptiveRouting`
    Traffic is routed afresh for every placement evaluated using a
    deadlock-free turn model and the routing tables of the final placement
    are programmed.
"""

import logging

import numpy as np

from nocmap.directions import Directions
from nocmap.exceptions import RoutingError

from nocmap.routing.turn_model import \
    TurnModel, NO_DIRECTION, new_usage, new_table, route_traffic
from nocmap.routing.util import SELF, UNREACHABLE
from nocmap.routing.xy import link_usage_lists, padded_path_links


logger = logging.getLogger(__name__)


def _overload_ratio(usage, capacity):
    """Sum of ``usage / capacity - 1`` over every overloaded counter.

    A counter with zero capacity contributes its whole usage.
    """
    excess = np.maximum(usage - capacity, 0.0)
    return float(np.sum(excess / np.where(capacity > 0, capacity, 1.0)))


def _counter_capacities(mesh):
    """Get the capacity behind every ``usage[row, column, direction]``
    counter of an adaptive route.

    Counters for directions leaving the mesh are never used and are given
    the default link bandwidth.
    """
    capacity = np.full((mesh.rows, mesh.columns, len(Directions)),
                       float(mesh.link_bandwidth))
    for link in mesh.links:
        capacity[link.from_row, link.from_column, link.direction] = \
            link.bandwidth
    return capacity


class RoutingStrategy(object):
    """Base class of routing strategies.

    Both methods are given the traffic to route as three equal-length
    arrays: the source node, destination node and bandwidth requirement of
    every communicating pair of placed cores.
    """

    def __init__(self, mesh):
        self.mesh = mesh

    def overload(self, sources, destinations, bandwidths):
        """Get the total overload ratio of the links of the mesh.

        Returns
        -------
        float
            The sum, over every overloaded link, of ``usage / capacity - 1``.
        """
        raise NotImplementedError()  # pragma: no cover

    def program(self, sources, destinations, bandwidths):
        """Produce the routing tables for the traffic given.

        Returns
        -------
        :py:class:`numpy.ndarray` or None
            Per-node routing tables (see :py:mod:`nocmap.routing.util`) or
            None if this strategy does not program routers.
        """
        raise NotImplementedError()  # pragma: no cover


class StaticRouting(RoutingStrategy):
    """Static XY routing.

    Attributes
    ----------
    usage_lists : [[(link_id, ...), ...], ...]
        The links used by the route between every pair of nodes.
    """

    name = "XY"

    def __init__(self, mesh):
        super(StaticRouting, self).__init__(mesh)
        self.usage_lists = link_usage_lists(mesh)
        self._paths = padded_path_links(mesh, self.usage_lists)
        self._capacity = mesh.link_capacities()

    def link_usage(self, sources, destinations, bandwidths):
        """Get the bandwidth routed over every link, by link ID."""
        paths = self._paths[sources * self.mesh.num_nodes + destinations]
        weights = np.broadcast_to(
            np.asarray(bandwidths, dtype=np.float64)[:, np.newaxis],
            paths.shape)
        used = paths >= 0
        return np.bincount(paths[used], weights=weights[used],
                           minlength=self.mesh.num_links)

    def overload(self, sources, destinations, bandwidths):
        return _overload_ratio(
            self.link_usage(sources, destinations, bandwidths),
            self._capacity)

    def program(self, sources, destinations, bandwidths):
        return None

    def __repr__(self):
        return "<StaticRouting {}>".format(self.name)


class AdaptiveRouting(RoutingStrategy):
    """Adaptive routing using a turn model.

    Overloads are measured against the per-direction bandwidth used at
    every node, each counter relative to the capacity of the link leaving
    the node in that direction.

    Parameters
    ----------
    mesh : :py:class:`~nocmap.topology.Mesh`
    turn_model : :py:class:`~nocmap.routing.turn_model.TurnModel` or str
    """

    def __init__(self, mesh, turn_model):
        super(AdaptiveRouting, self).__init__(mesh)
        self.turn_model = TurnModel(turn_model)
        self._capacity = _counter_capacities(mesh)

    @property
    def name(self):
        return self.turn_model.value

    def route(self, sources, destinations, bandwidths, table=None):
        """Route all traffic, in order, from zeroed usage counters.

        Returns
        -------
        :py:class:`numpy.ndarray`
            The resulting ``usage[row, column, direction]`` counters.
        """
        usage = new_usage(self.mesh)
        for source, destination, bandwidth in zip(sources, destinations,
                                                  bandwidths):
            route_traffic(self.mesh, self.turn_model, int(source),
                          int(destination), int(bandwidth), usage, table)
        return usage

    def overload(self, sources, destinations, bandwidths):
        usage = self.route(sources, destinations, bandwidths)
        return _overload_ratio(usage.astype(np.float64), self._capacity)

    def program(self, sources, destinations, bandwidths):
        """Route the traffic and translate the decisions taken at every
        node into link IDs.

        Raises
        ------
        RoutingError
            If a routing decision has no corresponding link.
        """
        table = new_table(self.mesh)
        self.route(sources, destinations, bandwidths, table)

        n = self.mesh.num_nodes
        tables = np.full((n, n, n), UNREACHABLE, dtype=np.int32)
        tables[np.arange(n), :, np.arange(n)] = SELF

        for node in self.mesh:
            row, column = self.mesh.coordinates(node)
            decisions = table[row, column]
            for direction in Directions:
                mask = decisions == direction
                if np.any(mask):
                    # Raises RoutingError if the hop leaves the mesh
                    link = self.mesh.out_link(node, direction)
                    tables[node][mask] = link.link_id

        logger.debug("Programmed %d routing entries.",
                     int(np.sum(table != NO_DIRECTION)))
        return tables

    def __repr__(self):
        return "<AdaptiveRouting {}>".format(self.name)


def routing_strategy(mesh, routing=None):
    """Create the routing strategy for a mapping run.

    Parameters
    ----------
    mesh : :py:class:`~nocmap.topology.Mesh`
    routing : None, "XY", "WEST_FIRST", "ODD_EVEN" or \
            :py:class:`~nocmap.routing.turn_model.TurnModel`
        None or "XY" selects :py:class:`StaticRouting`, anything else
        selects :py:class:`AdaptiveRouting` with that turn model.

    Raises
    ------
    ValueError
        If the routing is not recognised.
    """
    if isinstance(routing, RoutingStrategy):
        return routing
    elif routing is None or routing == StaticRouting.name:
        return StaticRouting(mesh)
    else:
        return AdaptiveRouting(mesh, TurnModel(routing))

"""The cost of a placement: communication energy plus a penalty for
overloading links.

The communication energy of traffic between two placed cores is the sum of
three terms, each proportional to the traffic's volume:

switch energy
    The switching cost of every node along the route, including both the
    source and destination nodes.
link energy
    The cost of every link along the route.
buffer energy
    One buffer read and write per hop plus a final buffer write at the
    destination.

Energy is always computed along XY routes. Adaptive turn-model routes are
minimal and visit the same number of nodes and links, so on a uniform mesh
their energy is identical.

The overload penalty is the overload ratio reported by the run's
:py:class:`~nocmap.routing.strategy.RoutingStrategy` scaled by
``overload_unit_cost``, large enough that any bandwidth violation dominates
the energy terms.
"""

import logging

import numpy as np

from nocmap.assignment import EMPTY

from nocmap.routing.xy import link_usage_lists, path_costs


logger = logging.getLogger(__name__)


OVERLOAD_UNIT_COST = 1e9
"""Cost added per unit of link overload ratio."""


class CostModel(object):
    """Evaluates the cost of assignments of an application to a mesh.

    Everything which does not depend on the placement (routes, per-route
    energies and the list of communicating core pairs) is computed once when
    the model is built. Every call then evaluates the given assignment from
    scratch.

    Parameters
    ----------
    mesh : :py:class:`~nocmap.topology.Mesh`
    application : :py:class:`~nocmap.application.Application`
    routing : :py:class:`~nocmap.routing.strategy.RoutingStrategy`
    overload_unit_cost : float

    Attributes
    ----------
    evaluations : int
        The number of times the model has been called.
    """

    def __init__(self, mesh, application, routing,
                 overload_unit_cost=OVERLOAD_UNIT_COST):
        self.mesh = mesh
        self.application = application
        self.routing = routing
        self.overload_unit_cost = overload_unit_cost
        self.evaluations = 0

        usage_lists = link_usage_lists(mesh)
        switch_cost, link_cost, hops = path_costs(mesh, usage_lists)
        energy = mesh.energy
        self._switch_per_bit = switch_cost
        self._link_per_bit = link_cost
        self._buffer_per_bit = \
            (hops * (energy.buf_read_e_bit + energy.buf_write_e_bit) +
             energy.buf_write_e_bit)

        (self._comm_sources, self._comm_destinations,
         self._volumes) = application.communicating_pairs()
        (self._bw_sources, self._bw_destinations,
         self._bandwidths) = application.bandwidth_pairs()

        # Every pair exchanging any traffic is given a route when routers
        # are programmed, even if it requires no bandwidth.
        self._route_sources, self._route_destinations = np.nonzero(
            (application.communication > 0) | (application.bandwidth > 0))

    def _placed(self, core_to_node, sources, destinations, weights):
        """Get the (source node, destination node, weight) of every pair
        whose cores are both placed.
        """
        src_nodes = core_to_node[sources]
        dst_nodes = core_to_node[destinations]
        placed = (src_nodes != EMPTY) & (dst_nodes != EMPTY)
        return src_nodes[placed], dst_nodes[placed], weights[placed]

    def _energy(self, per_bit, assignment):
        src_nodes, dst_nodes, volumes = self._placed(
            assignment.core_to_node, self._comm_sources,
            self._comm_destinations, self._volumes)
        return float(np.sum(volumes * per_bit[src_nodes, dst_nodes]))

    def switch_energy(self, assignment):
        """Get the energy consumed switching traffic through nodes."""
        return self._energy(self._switch_per_bit, assignment)

    def link_energy(self, assignment):
        """Get the energy consumed carrying traffic over links."""
        return self._energy(self._link_per_bit, assignment)

    def buffer_energy(self, assignment):
        """Get the energy consumed buffering traffic in routers."""
        return self._energy(self._buffer_per_bit, assignment)

    def energy_per_bit(self):
        """Get the energy consumed by every bit sent between every pair of
        nodes, indexed ``[source node, destination node]``.
        """
        return (self._switch_per_bit + self._link_per_bit +
                self._buffer_per_bit)

    def communication_energy(self, assignment):
        """Get the total communication energy of an assignment."""
        return self._energy(self.energy_per_bit(), assignment)

    def placed_traffic(self, assignment):
        """Get the (source nodes, destination nodes, bandwidths) of the
        traffic between placed cores.
        """
        return self._placed(assignment.core_to_node, self._bw_sources,
                            self._bw_destinations, self._bandwidths)

    def overload(self, assignment):
        """Get the overload penalty of an assignment."""
        return (self.routing.overload(*self.placed_traffic(assignment)) *
                self.overload_unit_cost)

    def __call__(self, assignment):
        """Get the total cost of an assignment.

        Parameters
        ----------
        assignment : :py:class:`~nocmap.assignment.Assignment`

        Returns
        -------
        float
        """
        self.evaluations += 1
        energy = self.communication_energy(assignment)
        overload = self.overload(assignment)
        logger.debug("Energy %f, overload %f.", energy, overload)
        return energy + overload

    def program(self, assignment):
        """Get the routing tables of an assignment, or None if the routing
        strategy does not program routers.
        """
        return self.routing.program(*self._placed(
            assignment.core_to_node, self._route_sources,
            self._route_destinations,
            self.application.bandwidth[self._route_sources,
                                       self._route_destinations]))

"""Post-mapping analysis of link loads and communication energy."""

import logging

from collections import namedtuple

import numpy as np

from nocmap.assignment import EMPTY

from nocmap.routing.util import follow_route
from nocmap.routing.xy import xy_routing_tables


logger = logging.getLogger(__name__)


class Analysis(namedtuple("Analysis",
                          "link_usage link_capacity overloaded_links "
                          "max_bandwidth_requirement switch_energy "
                          "link_energy buffer_energy "
                          "communication_energy")):
    """Summary of a mapping.

    Parameters
    ----------
    link_usage : :py:class:`numpy.ndarray`
        Bandwidth routed over each link, by link ID.
    link_capacity : :py:class:`numpy.ndarray`
        Capacity of each link, by link ID.
    overloaded_links : [int, ...]
        IDs of the links whose usage exceeds their capacity.
    max_bandwidth_requirement : float
        The largest bandwidth routed over any one link.
    switch_energy : float
    link_energy : float
    buffer_energy : float
    communication_energy : float
        Sum of the three energy terms.
    """

    @property
    def bandwidth_ok(self):
        """True iff no link is overloaded."""
        return len(self.overloaded_links) == 0


def analyse(mesh, application, assignment, routing_tables=None):
    """Verify the link loads of an assignment and compute its energy.

    Every pair of placed, communicating cores is followed along the given
    routing tables.

    Parameters
    ----------
    mesh : :py:class:`~nocmap.topology.Mesh`
    application : :py:class:`~nocmap.application.Application`
    assignment : :py:class:`~nocmap.assignment.Assignment`
    routing_tables : :py:class:`numpy.ndarray` or None
        Programmed routing tables (as in
        :py:attr:`~nocmap.mapper.MappingResult.routing_tables`). If None, XY
        routing is assumed.

    Returns
    -------
    :py:class:`Analysis`

    Raises
    ------
    RoutingError
        If the routing tables do not route some communicating pair.
    """
    if routing_tables is None:
        routing_tables = xy_routing_tables(mesh)

    energy = mesh.energy
    usage = np.zeros(mesh.num_links)
    switch_energy = link_energy = buffer_energy = 0.0

    core_to_node = assignment.core_to_node
    for src_core in range(application.num_cores):
        for dst_core in range(application.num_cores):
            source = core_to_node[src_core]
            destination = core_to_node[dst_core]
            if src_core == dst_core or EMPTY in (source, destination):
                continue

            volume = application.communication[src_core, dst_core]
            bandwidth = application.bandwidth[src_core, dst_core]
            if volume == 0 and bandwidth == 0:
                continue

            links = list(follow_route(mesh, routing_tables,
                                      source, destination))
            for link in links:
                usage[link.link_id] += bandwidth

            if volume > 0:
                switch_energy += volume * (
                    mesh.nodes[source].cost +
                    sum(mesh.nodes[link.to_node].cost for link in links))
                link_energy += volume * sum(link.cost for link in links)
                buffer_energy += volume * (
                    len(links) * (energy.buf_read_e_bit +
                                  energy.buf_write_e_bit) +
                    energy.buf_write_e_bit)

    capacity = mesh.link_capacities()
    overloaded = [int(l) for l in np.nonzero(usage > capacity)[0]]

    for link_id in range(mesh.num_links):
        logger.debug("Link %d requires %d of %d b/s.",
                     link_id, usage[link_id], capacity[link_id])
    for link_id in overloaded:
        logger.info("Link %d is overloaded: %d b/s > %d b/s.",
                    link_id, usage[link_id], capacity[link_id])

    analysis = Analysis(
        link_usage=usage,
        link_capacity=capacity,
        overloaded_links=overloaded,
        max_bandwidth_requirement=float(usage.max()) if len(usage) else 0.0,
        switch_energy=float(switch_energy),
        link_energy=float(link_energy),
        buffer_energy=float(buffer_energy),
        communication_energy=float(
            switch_energy + link_energy + buffer_energy))

    logger.info("Bandwidth requirements %s.",
                "met" if analysis.bandwidth_ok else "NOT met")
    logger.info("Maximum bandwidth requirement: %d b/s.",
                analysis.max_bandwidth_requirement)
    logger.info("Communication energy: %f (switch %f, link %f, buffer %f).",
                analysis.communication_energy, switch_energy, link_energy,
                buffer_energy)

    return analysis

"""Utility functions for working with per-node routing tables.

A set of routing tables is a ``num_nodes x num_nodes x num_nodes`` integer
array, ``tables[node, source, destination]``, giving the link a packet
travelling from ``source`` to ``destination`` leaves ``node`` on.
"""

from nocmap.exceptions import RoutingError


SELF = -1
"""Routing table entry of a node for traffic addressed to itself."""

UNREACHABLE = -2
"""Routing table entry for traffic which never passes the node."""


def follow_route(mesh, tables, source, destination):
    """Generate the links visited by traffic from one node to another
    according to a set of routing tables.

    Parameters
    ----------
    mesh : :py:class:`~nocmap.topology.Mesh`
    tables : :py:class:`numpy.ndarray`
    source : int
    destination : int

    Generates
    ---------
    :py:class:`~nocmap.topology.Link`
        Every link along the route, in order.

    Raises
    ------
    RoutingError
        If the tables do not lead from source to destination.
    """
    node = source
    for _ in range(mesh.num_links + 1):
        if node == destination:
            return
        link_id = int(tables[node, source, destination])
        if link_id < 0:
            raise RoutingError(
                "Node {} has no route from {} to {}.".format(
                    node, source, destination))
        link = mesh.links[link_id]
        yield link
        node = link.to_node

    raise RoutingError("Route from {} to {} contains a loop.".format(
        source, destination))

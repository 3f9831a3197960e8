"""Static dimension-order (XY) routing.

XY routes first travel along the source's row until the destination column
is reached and then along that column to the destination. The route between
two nodes therefore does not depend on where the traffic came from or on the
placement of cores, so everything here is computed once per mesh.
"""

import numpy as np

from nocmap.directions import Directions

from nocmap.routing.util import SELF


def xy_route(mesh, source, destination):
    """Generate the hops of the XY route between two nodes.

    Parameters
    ----------
    mesh : :py:class:`~nocmap.topology.Mesh`
    source : int
    destination : int

    Generates
    ---------
    (node, :py:class:`~nocmap.directions.Directions`)
        For every hop, the node the hop leaves from and the direction it
        leaves in. Nothing is generated when source == destination.
    """
    row, column = mesh.coordinates(source)
    dst_row, dst_column = mesh.coordinates(destination)

    while column != dst_column:
        direction = Directions.east if column < dst_column else \
            Directions.west
        yield (mesh.node_id(row, column), direction)
        column += direction.to_vector()[1]

    while row != dst_row:
        direction = Directions.north if row < dst_row else Directions.south
        yield (mesh.node_id(row, column), direction)
        row += direction.to_vector()[0]


def xy_next_links(mesh):
    """Get the link each node forwards traffic on, for every destination.

    Returns
    -------
    :py:class:`numpy.ndarray`
        ``next_links[node, destination]`` is a link ID or
        :py:data:`~nocmap.routing.util.SELF` when node == destination.
    """
    n = mesh.num_nodes
    next_links = np.empty((n, n), dtype=np.int32)
    for node in range(n):
        for destination in range(n):
            if node == destination:
                next_links[node, destination] = SELF
            else:
                _, direction = next(xy_route(mesh, node, destination))
                next_links[node, destination] = \
                    mesh.out_link(node, direction).link_id
    return next_links


def xy_routing_tables(mesh):
    """Get the per-node routing tables of XY routing.

    XY routing ignores the source of traffic so every source shares the
    same entries. The result is a read-only view and does not allocate a
    full ``num_nodes ** 3`` table.

    Returns
    -------
    :py:class:`numpy.ndarray`
        ``tables[node, source, destination]`` (see
        :py:mod:`nocmap.routing.util`).
    """
    next_links = xy_next_links(mesh)
    n = mesh.num_nodes
    return np.broadcast_to(next_links[:, np.newaxis, :], (n, n, n))


def link_usage_lists(mesh):
    """Get the links used by the XY route between every pair of nodes.

    Returns
    -------
    [[(link_id, ...), ...], ...]
        ``usage[source][destination]`` lists the links from source to
        destination in the order they are traversed.
    """
    n = mesh.num_nodes
    return [[tuple(mesh.out_link(node, direction).link_id
                   for node, direction in xy_route(mesh, source, destination))
             for destination in range(n)]
            for source in range(n)]


def padded_path_links(mesh, usage_lists=None):
    """Get the XY link usage lists as one rectangular array.

    Returns
    -------
    :py:class:`numpy.ndarray`
        Shape ``(num_nodes * num_nodes, max_hops)``. Row ``source *
        num_nodes + destination`` holds the link IDs along that route,
        padded with -1.
    """
    if usage_lists is None:
        usage_lists = link_usage_lists(mesh)
    n = mesh.num_nodes
    max_hops = max(1, (mesh.rows - 1) + (mesh.columns - 1))
    paths = np.full((n * n, max_hops), -1, dtype=np.int64)
    for source in range(n):
        for destination in range(n):
            links = usage_lists[source][destination]
            paths[source * n + destination, :len(links)] = links
    return paths


def path_costs(mesh, usage_lists=None):
    """Get the per-bit energy of the XY route between every pair of nodes.

    Returns
    -------
    (switch_cost, link_cost, hops)
        ``num_nodes x num_nodes`` arrays giving, per route, the sum of the
        costs of every node visited (including both ends), the sum of the
        costs of every link traversed and the number of links traversed.
    """
    if usage_lists is None:
        usage_lists = link_usage_lists(mesh)
    n = mesh.num_nodes
    switch_cost = np.zeros((n, n))
    link_cost = np.zeros((n, n))
    hops = np.zeros((n, n), dtype=np.int64)
    for source in range(n):
        for destination in range(n):
            links = [mesh.links[l] for l in usage_lists[source][destination]]
            switch_cost[source, destination] = mesh.nodes[source].cost + sum(
                mesh.nodes[link.to_node].cost for link in links)
            link_cost[source, destination] = sum(link.cost for link in links)
            hops[source, destination] = len(links)
    return (switch_cost, link_cost, hops)

"""Adaptive, deadlock-free routing using turn models.

A turn model forbids enough of the turns a packet could make in a mesh to
break every cycle of channel dependencies, making wormhole routing
deadlock-free while still leaving some freedom in the route taken. Where a
turn model allows more than one direction the least used outgoing link (in
terms of bandwidth already routed over it) is chosen.

Two turn models are supported:

West-First
    All westward hops are made first. A packet which no longer needs to
    travel west may then move adaptively north, south or east. Once a packet
    has made a non-westward hop it never turns west again.

Odd-Even
    (G.-M. Chiu, "The Odd-Even Turn Model for Adaptive Routing", 2000.) East
    to north/south turns are forbidden in even columns and north/south to
    west turns are forbidden in odd columns.
"""

from enum import Enum

import numpy as np

from nocmap.directions import Directions
from nocmap.exceptions import RoutingError


NO_DIRECTION = -1
"""Entry of an adaptive routing table which holds no routing decision."""


class TurnModel(Enum):
    """The turn models available for adaptive routing."""

    west_first = "WEST_FIRST"
    odd_even = "ODD_EVEN"


def _vertical(row, dst_row):
    return Directions.north if row < dst_row else Directions.south


def west_first_direction(row, column, src_row, src_column,
                         dst_row, dst_column, usage):
    """Choose the next hop of a West-First route.

    Parameters
    ----------
    row, column : int
        Current position.
    src_row, src_column : int
        Position the packet was injected at.
    dst_row, dst_column : int
        Destination position (which must differ from the current one).
    usage : :py:class:`numpy.ndarray`
        ``usage[row, column, direction]``: bandwidth routed so far.

    Returns
    -------
    :py:class:`~nocmap.directions.Directions`
    """
    if column > dst_column:
        return Directions.west
    elif column == dst_column:
        return _vertical(row, dst_row)
    elif row == dst_row:
        return Directions.east

    # Both a vertical and an eastward hop are productive
    vertical = _vertical(row, dst_row)
    vertical_usage = usage[row, column, vertical]
    east_usage = usage[row, column, Directions.east]
    if vertical_usage < east_usage:
        return vertical
    elif vertical_usage > east_usage:
        return Directions.east
    elif (dst_column - column) ** 2 <= (dst_row - row) ** 2:
        return vertical
    else:
        return Directions.east


def odd_even_direction(row, column, src_row, src_column,
                       dst_row, dst_column, usage):
    """Choose the next hop of an Odd-Even route.

    Takes the same arguments as :py:func:`west_first_direction`.

    Raises
    ------
    RoutingError
        If no direction is allowed (which cannot happen for a packet routed
        from its source by this function).
    """
    e_column = dst_column - column
    e_row = dst_row - row

    if e_column == 0:
        return _vertical(row, dst_row)
    elif e_column > 0:
        # Eastbound
        if e_row == 0:
            return Directions.east

        candidates = []
        if column % 2 == 1 or column == src_column:
            candidates.append(_vertical(row, dst_row))
        if dst_column % 2 == 1 or e_column != 1:
            candidates.append(Directions.east)

        if not candidates:  # pragma: no cover
            raise RoutingError(
                "Odd-Even routing has no legal hop at ({}, {}) towards "
                "({}, {}).".format(row, column, dst_row, dst_column))
        elif len(candidates) == 1:
            return candidates[0]
        else:
            vertical, east = candidates
            if usage[row, column, vertical] < usage[row, column, east]:
                return vertical
            else:
                return east
    else:
        # Westbound
        if column % 2 != 0 or e_row == 0:
            return Directions.west

        vertical = _vertical(row, dst_row)
        if usage[row, column, Directions.west] < usage[row, column, vertical]:
            return Directions.west
        else:
            return vertical


_direction_functions = {
    TurnModel.west_first: west_first_direction,
    TurnModel.odd_even: odd_even_direction,
}


def new_usage(mesh):
    """Get zeroed per-hop bandwidth usage counters for a mesh, indexed
    ``usage[row, column, direction]``.
    """
    return np.zeros((mesh.rows, mesh.columns, len(Directions)),
                    dtype=np.int64)


def new_table(mesh):
    """Get an empty adaptive routing table for a mesh, indexed
    ``table[row, column, source, destination]``.
    """
    n = mesh.num_nodes
    return np.full((mesh.rows, mesh.columns, n, n), NO_DIRECTION,
                   dtype=np.int8)


def route_traffic(mesh, turn_model, source, destination, bandwidth, usage,
                  table=None):
    """Route traffic from one node to another, accounting for its bandwidth.

    Every hop adds ``bandwidth`` to the usage counter of the direction taken
    at that hop, so traffic routed later is steered around links which are
    already heavily used.

    Parameters
    ----------
    mesh : :py:class:`~nocmap.topology.Mesh`
    turn_model : :py:class:`TurnModel`
    source : int
    destination : int
    bandwidth : int
    usage : :py:class:`numpy.ndarray`
        Usage counters (see :py:func:`new_usage`), updated in place.
    table : :py:class:`numpy.ndarray` or None
        If given, an adaptive routing table (see :py:func:`new_table`) into
        which every hop taken is recorded.

    Returns
    -------
    [(row, column, :py:class:`~nocmap.directions.Directions`), ...]
        The hops taken.
    """
    choose = _direction_functions[TurnModel(turn_model)]

    src_row, src_column = mesh.coordinates(source)
    dst_row, dst_column = mesh.coordinates(destination)
    row, column = src_row, src_column

    hops = []
    while row != dst_row or column != dst_column:
        direction = choose(row, column, src_row, src_column,
                           dst_row, dst_column, usage)
        usage[row, column, direction] += bandwidth
        if table is not None:
            table[row, column, source, destination] = direction
        hops.append((row, column, direction))

        d_row, d_column = direction.to_vector()
        row += d_row
        column += d_column

    return hops

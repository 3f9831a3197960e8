"""Defines the nodes and links of a 2D-mesh network-on-chip.

The Mesh datastructure assumes a regular, fully working mesh in which every
link has the same capacity and every node and link the same energy cost
unless otherwise stated.
"""

from collections import namedtuple

import numpy as np

from nocmap.directions import Directions
from nocmap.exceptions import RoutingError


DEFAULT_LINK_BANDWIDTH = 256e9
"""Default link capacity (bits/s)."""


class EnergyModel(namedtuple("EnergyModel",
                             "switch_e_bit link_e_bit "
                             "buf_read_e_bit buf_write_e_bit")):
    """Energy consumed per bit of traffic by each part of the network.

    Parameters
    ----------
    switch_e_bit : float
        Energy to switch one bit through a node (the node cost).
    link_e_bit : float
        Energy to carry one bit over a link (the link cost).
    buf_read_e_bit : float
        Energy to read one bit from a router buffer.
    buf_write_e_bit : float
        Energy to write one bit into a router buffer.
    """

    def __new__(cls, switch_e_bit=0.284, link_e_bit=0.449,
                buf_read_e_bit=1.056, buf_write_e_bit=2.831):
        return super(EnergyModel, cls).__new__(
            cls, switch_e_bit, link_e_bit, buf_read_e_bit, buf_write_e_bit)


class Node(namedtuple("Node", "node_id row column cost in_links out_links")):
    """A tile of the mesh.

    Parameters
    ----------
    node_id : int
    row : int
    column : int
    cost : float
        Switching energy per bit.
    in_links : (link_id, ...)
        The links arriving at this node, in link order.
    out_links : (link_id, ...)
        The links leaving this node, in link order.
    """


class Link(namedtuple("Link",
                      "link_id bandwidth from_node to_node "
                      "from_row from_column to_row to_column cost")):
    """A unidirectional link between two neighbouring nodes.

    Parameters
    ----------
    link_id : int
    bandwidth : float
        Capacity of the link (bits/s).
    from_node : int
    to_node : int
    from_row : int
    from_column : int
    to_row : int
    to_column : int
    cost : float
        Energy consumed per bit carried.
    """

    @property
    def direction(self):
        """The :py:class:`~nocmap.directions.Directions` this link leaves
        its source node in.
        """
        return Directions.from_vector((self.to_row - self.from_row,
                                       self.to_column - self.from_column))


class Mesh(object):
    """A 2D-mesh network-on-chip.

    Node ``i`` is at row ``i // columns`` and column ``i % columns``. Every
    pair of horizontally or vertically adjacent nodes is connected by two
    links, one in each direction. Links are numbered with all horizontal
    links first (row by row, each eastward link followed by its westward
    twin), followed by all vertical links (northward link followed by its
    southward twin).

    Attributes
    ----------
    rows : int
    columns : int
    link_bandwidth : float
        The capacity of every link without an entry in
        `link_bandwidth_exceptions`.
    link_bandwidth_exceptions : {link_id: bandwidth, ...}
    energy : :py:class:`EnergyModel`
    nodes : [:py:class:`Node`, ...]
        Indexed by node ID.
    links : [:py:class:`Link`, ...]
        Indexed by link ID.
    """
    __slots__ = ["rows", "columns", "link_bandwidth",
                 "link_bandwidth_exceptions", "energy", "nodes", "links",
                 "_out_link_ids"]

    def __init__(self, rows, columns, link_bandwidth=DEFAULT_LINK_BANDWIDTH,
                 energy=EnergyModel(), link_bandwidth_exceptions={}):
        """Build a mesh.

        Parameters
        ----------
        rows : int
        columns : int
        link_bandwidth : float
        energy : :py:class:`EnergyModel`
        link_bandwidth_exceptions : {link_id: bandwidth, ...}
        """
        if rows < 1 or columns < 1:
            raise ValueError(
                "A mesh must have at least one row and one column, "
                "not {}x{}.".format(rows, columns))

        self.rows = rows
        self.columns = columns
        self.link_bandwidth = link_bandwidth
        self.link_bandwidth_exceptions = link_bandwidth_exceptions.copy()
        self.energy = energy

        # The (from, to) coordinates of every link, in link ID order.
        endpoints = []
        for row in range(rows):
            for column in range(columns - 1):
                endpoints.append(((row, column), (row, column + 1)))
                endpoints.append(((row, column + 1), (row, column)))
        for row in range(rows - 1):
            for column in range(columns):
                endpoints.append(((row, column), (row + 1, column)))
                endpoints.append(((row + 1, column), (row, column)))

        self.links = []
        for link_id, ((fr, fc), (tr, tc)) in enumerate(endpoints):
            self.links.append(Link(
                link_id,
                self.link_bandwidth_exceptions.get(link_id, link_bandwidth),
                self.node_id(fr, fc), self.node_id(tr, tc),
                fr, fc, tr, tc, energy.link_e_bit))

        for link_id in self.link_bandwidth_exceptions:
            if not 0 <= link_id < len(self.links):
                raise IndexError(
                    "Link {} is not part of the mesh.".format(link_id))

        in_links = [[] for _ in range(self.num_nodes)]
        out_links = [[] for _ in range(self.num_nodes)]
        self._out_link_ids = np.full((self.num_nodes, len(Directions)), -1,
                                     dtype=np.int32)
        for link in self.links:
            in_links[link.to_node].append(link.link_id)
            out_links[link.from_node].append(link.link_id)
            self._out_link_ids[link.from_node, link.direction] = link.link_id

        self.nodes = [
            Node(node_id, node_id // columns, node_id % columns,
                 energy.switch_e_bit,
                 tuple(in_links[node_id]), tuple(out_links[node_id]))
            for node_id in range(self.num_nodes)]

    @property
    def num_nodes(self):
        return self.rows * self.columns

    @property
    def num_links(self):
        return len(self.links)

    def copy(self):
        """Produce a copy of this datastructure."""
        return Mesh(self.rows, self.columns, self.link_bandwidth,
                    self.energy, self.link_bandwidth_exceptions)

    def node_id(self, row, column):
        """Get the ID of the node at the given coordinates.

        Raises
        ------
        IndexError
            If the coordinates are not within the mesh.
        """
        if (row, column) not in self:
            raise IndexError(
                "{} is not part of the mesh.".format(repr((row, column))))
        return row * self.columns + column

    def coordinates(self, node_id):
        """Get the (row, column) of the given node.

        Raises
        ------
        IndexError
            If the node is not part of the mesh.
        """
        node = self[node_id]
        return (node.row, node.column)

    def neighbour(self, node_id, direction):
        """Get the ID of the node one step away in the given direction or
        None if the step would leave the mesh.
        """
        row, column = self.coordinates(node_id)
        d_row, d_column = Directions(direction).to_vector()
        if (row + d_row, column + d_column) in self:
            return self.node_id(row + d_row, column + d_column)
        else:
            return None

    def out_link(self, node_id, direction):
        """Get the link leaving a node in a given direction.

        Raises
        ------
        RoutingError
            If no link leaves the node in that direction.
        """
        link_id = self._out_link_ids[self[node_id].node_id, direction]
        if link_id < 0:
            raise RoutingError(
                "No link leaves node {} heading {}.".format(
                    node_id, Directions(direction).name))
        return self.links[link_id]

    def link_capacities(self):
        """Get a numpy array of the capacity of every link, by link ID."""
        return np.array([link.bandwidth for link in self.links],
                        dtype=np.float64)

    def __contains__(self, row_column):
        """Test if the given (row, column) coordinates are part of the mesh.
        """
        row, column = row_column
        return 0 <= row < self.rows and 0 <= column < self.columns

    def __getitem__(self, node_id):
        """Get the :py:class:`Node` with the given ID.

        Raises
        ------
        IndexError
            If the node is not part of the mesh.
        """
        if not 0 <= node_id < self.num_nodes:
            raise IndexError("Node {} is not part of the mesh.".format(
                repr(node_id)))
        return self.nodes[node_id]

    def __iter__(self):
        """Iterate over the node IDs of the mesh."""
        return iter(range(self.num_nodes))

    def __len__(self):
        return self.num_nodes

    def __repr__(self):
        return "<Mesh {}x{}>".format(self.rows, self.columns)


def build_mesh(edge, **kwargs):
    """Build a square mesh with the given number of nodes along each edge.

    Keyword arguments are passed to :py:class:`Mesh`.
    """
    return Mesh(edge, edge, **kwargs)

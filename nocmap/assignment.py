"""The (partial) bijection between cores and the nodes hosting them."""

import numpy as np

from nocmap.exceptions import TooFewNodesError


EMPTY = -1
"""Marks an unplaced core or an unoccupied node."""


class Assignment(object):
    """Records which node hosts each core and which core each node hosts.

    Both directions of the mapping are owned by this object and are only
    changed together, through :py:meth:`swap`, :py:meth:`place`,
    :py:meth:`apply` and :py:meth:`clear`. The arrays exposed by
    :py:attr:`core_to_node` and :py:attr:`node_to_core` are read-only views.

    Parameters
    ----------
    num_cores : int
    num_nodes : int

    Raises
    ------
    TooFewNodesError
        If there are not enough nodes to host every core.
    """
    __slots__ = ["_core_to_node", "_node_to_core"]

    def __init__(self, num_cores, num_nodes):
        if num_nodes < num_cores:
            raise TooFewNodesError(num_cores, num_nodes)
        self._core_to_node = np.full(num_cores, EMPTY, dtype=np.int64)
        self._node_to_core = np.full(num_nodes, EMPTY, dtype=np.int64)

    @property
    def num_cores(self):
        return len(self._core_to_node)

    @property
    def num_nodes(self):
        return len(self._node_to_core)

    @property
    def core_to_node(self):
        """Read-only array giving the node of each core (or EMPTY)."""
        view = self._core_to_node.view()
        view.flags.writeable = False
        return view

    @property
    def node_to_core(self):
        """Read-only array giving the core on each node (or EMPTY)."""
        view = self._node_to_core.view()
        view.flags.writeable = False
        return view

    def node_of(self, core):
        """Get the node hosting a core, or EMPTY if it is not placed."""
        self._check_core(core)
        return int(self._core_to_node[core])

    def core_at(self, node):
        """Get the core hosted by a node, or EMPTY if it is unoccupied."""
        self._check_node(node)
        return int(self._node_to_core[node])

    def is_complete(self):
        """True iff every core has been placed."""
        return bool(np.all(self._core_to_node != EMPTY))

    def place(self, core, node):
        """Place an unplaced core on an unoccupied node.

        Raises
        ------
        ValueError
            If the core is already placed or the node is already occupied.
        """
        self._check_core(core)
        self._check_node(node)
        if self._core_to_node[core] != EMPTY:
            raise ValueError("Core {} is already placed on node {}.".format(
                core, self._core_to_node[core]))
        if self._node_to_core[node] != EMPTY:
            raise ValueError("Node {} already hosts core {}.".format(
                node, self._node_to_core[node]))
        self._core_to_node[core] = node
        self._node_to_core[node] = core

    def swap(self, node_a, node_b):
        """Exchange the cores (or empty slots) hosted by two nodes.

        Swapping the same pair twice restores the original assignment.
        """
        self._check_node(node_a)
        self._check_node(node_b)
        core_a = self._node_to_core[node_a]
        core_b = self._node_to_core[node_b]

        self._node_to_core[node_a] = core_b
        self._node_to_core[node_b] = core_a
        if core_a != EMPTY:
            self._core_to_node[core_a] = node_b
        if core_b != EMPTY:
            self._core_to_node[core_b] = node_a

    def apply(self, nodes):
        """Replace the assignment with one where core ``i`` is on
        ``nodes[i]``.

        Raises
        ------
        ValueError
            If the nodes are not distinct or there is not one per core.
        """
        nodes = np.asarray(nodes, dtype=np.int64)
        if len(nodes) != self.num_cores:
            raise ValueError("Expected {} nodes, got {}.".format(
                self.num_cores, len(nodes)))
        if len(np.unique(nodes)) != len(nodes):
            raise ValueError(
                "Nodes {} are not distinct.".format(nodes.tolist()))
        for node in nodes:
            self._check_node(node)

        self._node_to_core[:] = EMPTY
        self._core_to_node[:] = nodes
        self._node_to_core[nodes] = np.arange(self.num_cores)

    def clear(self):
        """Unplace every core."""
        self._core_to_node[:] = EMPTY
        self._node_to_core[:] = EMPTY

    def copy(self):
        """Produce a copy of this assignment."""
        other = Assignment(self.num_cores, self.num_nodes)
        other._core_to_node[:] = self._core_to_node
        other._node_to_core[:] = self._node_to_core
        return other

    def _check_core(self, core):
        if not 0 <= core < self.num_cores:
            raise IndexError("Core {} does not exist.".format(repr(core)))

    def _check_node(self, node):
        if not 0 <= node < self.num_nodes:
            raise IndexError("Node {} does not exist.".format(repr(node)))

    def __eq__(self, other):
        return (isinstance(other, Assignment) and
                np.array_equal(self._core_to_node, other._core_to_node) and
                np.array_equal(self._node_to_core, other._node_to_core))

    def __ne__(self, other):
        return not self == other

    __hash__ = None

    def __repr__(self):
        return "<Assignment {}>".format(self._core_to_node.tolist())

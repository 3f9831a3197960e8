"""A Branch-and-Bound placer.

Cores are placed one at a time, in decreasing order of the volume of
traffic they send and receive, building a search tree whose nodes are
partial placements. Partial placements are expanded cheapest first and a
branch is pruned when:

* its communication energy so far already reaches that of the best complete
  placement found,
* a lower bound on the energy of any completion exceeds it, or
* the traffic between the cores placed so far overloads a link along its XY
  route.

Every partial placement is also completed greedily (each remaining core
goes as close as possible to the cores it exchanges traffic with) to give
an upper bound. A feasible greedy completion is a complete placement in its
own right and is kept if it is the best seen.

The search is exact while the queue of partial placements stays below its
maximum length. Beyond that only two children of every expanded placement
are kept: the cheapest and the one chosen by the greedy completion.
"""

import heapq
import logging

from itertools import count

import numpy as np

from nocmap.float_cmp import \
    approximately_equal, definitely_greater_than, definitely_less_than

from nocmap.place.utils import PlacementStatistics, is_trivial

from nocmap.routing.strategy import StaticRouting


logger = logging.getLogger(__name__)


MAX_COST = float(np.finfo(np.float64).max)
"""The cost of a placement which cannot be completed."""

DEFAULT_QUEUE_LENGTH = 2000
"""Queue length beyond which only two children of a placement are kept."""


class PartialPlacement(object):
    """A node of the search tree.

    Attributes
    ----------
    tiles : (int, ...)
        The node hosting each placed core, in placement order.
    cost : float
        Communication energy between the placed cores.
    lower_bound : float
    upper_bound : float
        The energy of ``completion`` or :py:data:`MAX_COST` if the greedy
        completion overloads a link.
    completion : (int, ...)
        The greedy completion of this placement.
    """

    __slots__ = ["tiles", "cost", "lower_bound", "upper_bound",
                 "completion"]

    def __init__(self, tiles, cost):
        self.tiles = tiles
        self.cost = cost
        self.lower_bound = cost
        self.upper_bound = MAX_COST
        self.completion = None

    @property
    def is_complete(self):
        return self.completion == self.tiles


class BranchAndBound(object):
    """The search state of a Branch-and-Bound placement.

    Parameters
    ----------
    cost_model : :py:class:`~nocmap.cost.CostModel`
    num_cores : int
    check_bandwidth : bool
        If False, placements are never pruned for overloading links.
    """

    def __init__(self, cost_model, num_cores, check_bandwidth=True):
        mesh = cost_model.mesh
        application = cost_model.application
        self.mesh = mesh
        self.num_cores = num_cores
        self.num_nodes = mesh.num_nodes
        self.check_bandwidth = check_bandwidth

        # Cores in placement order, ties broken by core ID
        volume = application.communication
        total = volume.sum(axis=0) + volume.sum(axis=1)
        self.order = sorted(range(num_cores), key=lambda c: -total[c])

        order = np.array(self.order, dtype=np.int64)
        self._volume = volume[np.ix_(order, order)].astype(np.float64)
        self._pair_volume = self._volume + self._volume.T

        per_bit = cost_model.energy_per_bit()
        self._per_bit = per_bit
        self._pair_per_bit = np.minimum(per_bit, per_bit.T)

        bandwidth = application.bandwidth[np.ix_(order, order)]
        self._bw_from, self._bw_to = np.nonzero(bandwidth > 0)
        self._bandwidths = bandwidth[self._bw_from, self._bw_to]
        self._routing = StaticRouting(mesh)

        self._rows = np.array([n.row for n in mesh.nodes])
        self._columns = np.array([n.column for n in mesh.nodes])

        self.generated = 0
        self.pruned = 0
        self.best = None
        self.best_cost = MAX_COST
        self._queue = []
        self._sequence = count()

    def energy(self, tiles):
        """Get the communication energy between the cores placed on
        the given tiles.
        """
        tiles = np.asarray(tiles, dtype=np.int64)
        placed = len(tiles)
        return float(np.sum(self._volume[:placed, :placed] *
                            self._per_bit[np.ix_(tiles, tiles)]))

    def feasible(self, tiles):
        """True if the traffic between the placed cores fits on the links
        of its XY routes.
        """
        if not self.check_bandwidth:
            return True
        tiles = np.asarray(tiles, dtype=np.int64)
        placed = (self._bw_from < len(tiles)) & (self._bw_to < len(tiles))
        return self._routing.overload(
            tiles[self._bw_from[placed]], tiles[self._bw_to[placed]],
            self._bandwidths[placed]) == 0.0

    def added_energy(self, tiles, tile):
        """Get the energy added by placing the next core on tile."""
        placed = len(tiles)
        if placed == 0:
            return 0.0
        tiles = np.asarray(tiles, dtype=np.int64)
        return float(
            np.sum(self._volume[:placed, placed] *
                   self._per_bit[tiles, tile]) +
            np.sum(self._volume[placed, :placed] *
                   self._per_bit[tile, tiles]))

    def free_tiles(self, tiles):
        used = set(tiles)
        return [t for t in range(self.num_nodes) if t not in used]

    def lower_bound(self, node):
        """Bound the energy of any completion of a partial placement from
        below using the cheapest free tile for every pair of cores with at
        least one core unplaced.
        """
        placed = len(node.tiles)
        free = self.free_tiles(node.tiles)
        if placed == self.num_cores or len(free) == 0:
            return node.cost

        free = np.array(free, dtype=np.int64)
        tiles = np.array(node.tiles, dtype=np.int64)
        bound = node.cost

        # Placed to unplaced
        cheapest = self._pair_per_bit[np.ix_(tiles, free)].min(axis=1)
        bound += float(np.sum(
            self._pair_volume[:placed, placed:].sum(axis=1) * cheapest))

        # Unplaced to unplaced
        if len(free) > 1:
            per_bit = self._pair_per_bit[np.ix_(free, free)]
            cheapest = per_bit[~np.eye(len(free), dtype=bool)].min()
            bound += float(
                np.sum(np.triu(self._pair_volume[placed:, placed:], 1)) *
                cheapest)
        return bound

    def greedy_completion(self, tiles):
        """Complete a placement by putting every remaining core on the free
        tile nearest (in Manhattan distance) the volume-weighted centre of
        the cores already placed that it exchanges traffic with.
        """
        tiles = list(tiles)
        free = self.free_tiles(tiles)
        for core in range(len(tiles), self.num_cores):
            weights = self._pair_volume[core, :core]
            total = weights.sum()
            if total > 0:
                placed = np.array(tiles, dtype=np.int64)
                row = np.sum(weights * self._rows[placed]) / total
                column = np.sum(weights * self._columns[placed]) / total
                best = free[0]
                best_distance = None
                for tile in free:
                    distance = (abs(self._rows[tile] - row) +
                                abs(self._columns[tile] - column))
                    if (best_distance is None or
                            definitely_less_than(distance, best_distance)):
                        best = tile
                        best_distance = distance
            else:
                best = free[0]
            tiles.append(best)
            free.remove(best)
        return tuple(tiles)

    def make_node(self, tiles, cost):
        """Create and bound a partial placement.

        Returns
        -------
        :py:class:`PartialPlacement` or None
            None if the placement overloads a link.
        """
        self.generated += 1
        if not self.feasible(tiles):
            return None

        node = PartialPlacement(tiles, cost)
        node.lower_bound = self.lower_bound(node)
        node.completion = self.greedy_completion(tiles)
        if self.feasible(node.completion):
            node.upper_bound = self.energy(node.completion)
        return node

    def first_tiles(self):
        """Get the candidate tiles of the first core.

        XY routes and the energy of a placement are unchanged by mirroring
        the mesh, so when every link has the same capacity the first core
        need only be tried in one quarter of the mesh.
        """
        if self.mesh.link_bandwidth_exceptions:
            return list(range(self.num_nodes))
        return [t for t in range(self.num_nodes)
                if self._rows[t] < (self.mesh.rows + 1) // 2 and
                self._columns[t] < (self.mesh.columns + 1) // 2]

    def cheapest_child(self, node):
        """Get the free tile adding the least energy for the next core."""
        best = None
        best_energy = None
        for tile in self.free_tiles(node.tiles):
            energy = self.added_energy(node.tiles, tile)
            if best_energy is None or definitely_less_than(energy,
                                                           best_energy):
                best = tile
                best_energy = energy
        return best

    def consider(self, node):
        """Record the node's greedy completion if it is the best placement
        yet and queue the node if it could lead to a better one.
        """
        if definitely_less_than(node.upper_bound, self.best_cost):
            self.best = node.completion
            self.best_cost = node.upper_bound
        if (not node.is_complete and
                not approximately_equal(node.lower_bound, node.upper_bound)):
            heapq.heappush(self._queue,
                           (node.cost, next(self._sequence), node))

    def search(self, max_queue_length=DEFAULT_QUEUE_LENGTH):
        """Search for the placement with the least communication energy.

        Returns
        -------
        ((int, ...), float) or (None, MAX_COST)
            The tile of every core, in placement order, and its energy.
        """
        for tile in self.first_tiles():
            node = self.make_node((tile, ), 0.0)
            if node is not None:
                self.consider(node)

        while self._queue:
            _, _, node = heapq.heappop(self._queue)
            if (definitely_greater_than(node.cost, self.best_cost) or
                    definitely_greater_than(node.lower_bound,
                                            self.best_cost)):
                self.pruned += 1
                continue

            if len(self._queue) < max_queue_length:
                children = self.free_tiles(node.tiles)
            else:
                children = [self.cheapest_child(node)]
                greedy = node.completion[len(node.tiles)]
                if greedy not in children:
                    children.append(greedy)

            for tile in children:
                cost = node.cost + self.added_energy(node.tiles, tile)
                if (self.best is not None and
                        not definitely_less_than(cost, self.best_cost)):
                    self.pruned += 1
                    continue
                child = self.make_node(node.tiles + (tile, ), cost)
                if (child is None or
                        definitely_greater_than(child.lower_bound,
                                                self.best_cost)):
                    self.pruned += 1
                    continue
                self.consider(child)

        return self.best, self.best_cost


def place(assignment, cost_model, random=None,
          max_queue_length=DEFAULT_QUEUE_LENGTH):
    """A Branch-and-Bound placer minimising communication energy.

    Placements whose XY routes overload a link are excluded from the
    search. If no placement fits the links, the search is repeated
    ignoring link capacities (with a warning).

    This algorithm produces INFO level logging information summarising the
    search.

    Parameters
    ----------
    assignment : :py:class:`~nocmap.assignment.Assignment`
        Replaced by the best assignment found.
    cost_model : :py:class:`~nocmap.cost.CostModel`
    random : ignored
        Accepted for compatibility with other placers; the search is
        deterministic.
    max_queue_length : int
        Queue length beyond which the search stops being exhaustive.

    Returns
    -------
    :py:class:`~nocmap.place.utils.PlacementStatistics`
        The cost is the full cost of the assignment found, including any
        overload penalty of the run's routing strategy.
    """
    num_cores = assignment.num_cores
    if is_trivial(assignment):
        logger.info("Placement has trivial solution. "
                    "Branch-and-Bound not used.")
        assignment.apply(list(range(num_cores)))
        return PlacementStatistics(cost_model(assignment))

    bb = BranchAndBound(cost_model, num_cores)
    tiles, energy = bb.search(max_queue_length)
    if tiles is None:
        logger.warning("Can not find a placement meeting the bandwidth "
                       "requirements. Ignoring link capacities.")
        bb = BranchAndBound(cost_model, num_cores, check_bandwidth=False)
        tiles, energy = bb.search(max_queue_length)

    pruned = 100.0 * bb.pruned / bb.generated if bb.generated else 0.0
    logger.info("Totally %d (partial) placements have been generated. "
                "From these, %d (%0.1f%%) were pruned.",
                bb.generated, bb.pruned, pruned)
    logger.info("Best placement energy: %f", energy)

    nodes = [0] * num_cores
    for position, core in enumerate(bb.order):
        nodes[core] = tiles[position]
    assignment.apply(nodes)
    return PlacementStatistics(cost_model(assignment))

"""An optimised Simulated Annealing placer.

This variant of :py:mod:`nocmap.place.sa` anneals over a much shorter
schedule:

* The temperature starts low (1.0 by default) and every round attempts only
  as many moves as there are distinct pairs of nodes which could hold at
  least one core.
* Cost changes are measured relative to the cost of the initial placement
  and accepted with the inverse normalised exponential probability
  ``1 / (1 + exp(delta / temperature))``.
* The anneal terminates once the temperature has fallen below the final
  temperature and a whole round has passed without finding a better
  placement. The best placement seen, not the last, is kept.

Besides the random swaps of the plain annealer, moves can be guided by the
traffic of the application (see :py:class:`Move`).
"""

import logging
import math

from collections import namedtuple

from enum import Enum

from nocmap.assignment import EMPTY
from nocmap.float_cmp import approximately_equal, definitely_less_than
from nocmap.lcg import LCG

from nocmap.place.utils import \
    PlacementStatistics, initial_placement, is_trivial

from nocmap.place.sa.kernel import Kernel
from nocmap.place.sa.python_kernel import _random_swap_nodes


logger = logging.getLogger(__name__)


MAX_EXPONENT = 700.0
"""Exponents above this are treated as giving a zero acceptance
probability (``math.exp`` overflows just above 709)."""


class OsaSchedule(namedtuple("OsaSchedule",
                             "initial_temperature final_temperature "
                             "cooling_ratio")):
    """The parameters of the optimised annealing schedule.

    Parameters
    ----------
    initial_temperature : float
    final_temperature : float
        The anneal cannot terminate until the temperature is below this.
    cooling_ratio : float
        The temperature is multiplied by this after every round.
    """

    def __new__(cls, initial_temperature=1.0, final_temperature=1e-3,
                cooling_ratio=0.9):
        return super(OsaSchedule, cls).__new__(
            cls, initial_temperature, final_temperature, cooling_ratio)


class Move(Enum):
    """The ways a move can be chosen."""

    random_swap = "random"
    """Swap the contents of two random nodes, at least one holding a
    core."""

    topological = "topological"
    """Move a core chosen according to its traffic onto a node with enough
    neighbours, preferably next to the only core sending to it."""

    variable_grain = "variable_grain"
    """Swap two distinct cores, both chosen according to their traffic."""


def attempts_per_temperature(num_nodes, num_cores):
    """Get the number of moves attempted in each round.

    This is the number of unordered pairs of distinct nodes minus those
    pairs which would both be left empty were the cores packed into as few
    nodes as possible.
    """
    return (num_nodes * (num_nodes - 1) // 2 -
            (num_nodes - num_cores - 1) * (num_nodes - num_cores) // 2)


def _accept(delta, temperature, random):
    """The inverse normalised exponential acceptance test.

    Parameters
    ----------
    delta : float
        Cost change relative to the initial cost.
    temperature : float > 0.0
    random : :py:class:`~nocmap.lcg.LCG`
        Only consumed when the move increases the cost.
    """
    if definitely_less_than(delta, 0.0) or approximately_equal(delta, 0.0):
        return True

    exponent = delta / temperature
    if exponent > MAX_EXPONENT:
        probability = 0.0
    else:
        probability = 1.0 / (1.0 + math.exp(exponent))
    r = random.random()
    return (definitely_less_than(r, probability) or
            approximately_equal(r, probability))


class OsaKernel(Kernel):
    """The moves and bookkeeping of the optimised annealer.

    Attributes
    ----------
    cost : float
        The cost of the current assignment.
    initial_cost : float
        The cost of the assignment the kernel was created with.
    best : :py:class:`~nocmap.assignment.Assignment`
        A copy of the cheapest assignment seen.
    best_cost : float
    consecutive_rejected : int
        The number of moves since the start of the current round, or since
        the best assignment last improved, which did not improve on the
        best assignment.
    """

    def __init__(self, assignment, cost_model, random,
                 move=Move.random_swap, initial_temperature=1.0):
        self.assignment = assignment
        self.cost_model = cost_model
        self.random = random
        self.move = Move(move)
        self.initial_temperature = initial_temperature

        self.cost = self.initial_cost = cost_model(assignment)
        self.best = assignment.copy()
        self.best_cost = self.cost
        self.consecutive_rejected = 0

        mesh = cost_model.mesh
        self._node_neighbours = [
            [mesh.links[link_id].to_node for link_id in node.out_links]
            for node in mesh.nodes]
        self._max_node_neighbours = max(
            len(n) for n in self._node_neighbours)

        communication = cost_model.application.communication
        talks = (communication > 0) | (communication.T > 0)
        self._talks = talks
        self._num_core_neighbours = [int(n) for n in talks.sum(axis=1)]
        self._senders = [
            [int(c) for c in (communication[:, core] > 0).nonzero()[0]]
            for core in range(assignment.num_cores)]
        self._sent = [float(v) for v in communication.sum(axis=1)]

    def run_steps(self, num_steps, temperature):
        self.consecutive_rejected = 0
        num_accepted = 0
        num_free = 0
        for _ in range(num_steps):
            accepted, free = self._step(temperature)
            num_accepted += 1 if accepted else 0
            num_free += 1 if free else 0
        return num_accepted, num_free, self.cost

    def get_assignment(self):
        return self.assignment

    def _step(self, temperature):
        """Attempt a single move.

        Returns
        -------
        (accepted, free)
        """
        node_a, node_b = self.choose_move(temperature)
        self.assignment.swap(node_a, node_b)

        new_cost = self.cost_model(self.assignment)
        delta = (new_cost - self.cost) / self.initial_cost
        if approximately_equal(delta, 0.0):
            delta = 0.0

        if not _accept(delta, temperature, self.random):
            self.assignment.swap(node_a, node_b)
            self.consecutive_rejected += 1
            return (False, False)

        if definitely_less_than(new_cost, self.best_cost):
            self.best = self.assignment.copy()
            self.best_cost = new_cost
            self.consecutive_rejected = 0
        else:
            self.consecutive_rejected += 1
        self.cost = new_cost
        return (True, delta == 0.0)

    def choose_move(self, temperature):
        """Choose the pair of nodes whose contents the next move swaps."""
        if self.move is Move.topological:
            return self._topological_move(temperature)
        elif self.move is Move.variable_grain:
            core_a = self.select_core(temperature)
            core_b = self.select_core(temperature, exclude=core_a)
            return (self.assignment.node_of(core_a),
                    self.assignment.node_of(core_b))
        else:
            return _random_swap_nodes(self.assignment, self.random)

    def select_core(self, temperature, exclude=None):
        """Choose a core at random, weighted by the traffic it sends.

        At the initial temperature a core is chosen in proportion to the
        volume it sends. As the temperature falls the distribution tends
        towards the uniform one.

        Parameters
        ----------
        temperature : float
        exclude : int or None
            A core which must not be chosen.
        """
        num_cores = len(self._sent)
        mean = sum(self._sent) / num_cores
        scale = temperature / self.initial_temperature
        weights = [mean + scale * (sent - mean) for sent in self._sent]
        if exclude is not None:
            weights[exclude] = 0.0

        candidates = [core for core, weight in enumerate(weights)
                      if weight > 0.0]
        if not candidates:
            # No traffic at all: every core is equally likely
            return self.random.choice(
                [core for core in range(num_cores) if core != exclude])

        total = sum(weights)
        p = self.random.random()
        cumulative = 0.0
        for core in candidates:
            cumulative += weights[core] / total
            if (definitely_less_than(p, cumulative) or
                    approximately_equal(p, cumulative)):
                return core
        return candidates[-1]

    def _has_room(self, node, core):
        """True if node has at least as many neighbours as core
        communicates with (or as many as any node has).
        """
        num_neighbours = len(self._node_neighbours[node])
        return (num_neighbours >= self._num_core_neighbours[core] or
                num_neighbours == self._max_node_neighbours)

    def _topological_move(self, temperature):
        assignment = self.assignment
        core = self.select_core(temperature)
        node = assignment.node_of(core)

        # Nodes which could take the core and whose core could move here
        allowed = []
        for other in range(assignment.num_nodes):
            if other == node or not self._has_room(other, core):
                continue
            other_core = assignment.core_at(other)
            if other_core == EMPTY or self._has_room(node, other_core):
                allowed.append(other)

        target = None
        if len(self._senders[core]) == 1:
            sender = self._senders[core][0]
            sender_node = assignment.node_of(sender)
            near = [n for n in self._node_neighbours[sender_node]
                    if n in allowed]
            empty = [n for n in near if assignment.core_at(n) == EMPTY]
            quiet = [n for n in near if assignment.core_at(n) != EMPTY and
                     not self._talks[assignment.core_at(n), sender]]
            if empty:
                target = self.random.choice(empty)
            elif quiet:
                target = self.random.choice(quiet)

        if target is None:
            if allowed:
                target = self.random.choice(allowed)
            else:
                logger.debug("No node can take core %d.", core)
                target = node
        return (node, target)


def place(assignment, cost_model, random=None, schedule=OsaSchedule(),
          move=Move.random_swap, on_temperature_change=None):
    """An optimised Simulated Annealing based placement algorithm.

    This algorithm produces INFO level logging information describing the
    progress made by the algorithm.

    Parameters
    ----------
    assignment : :py:class:`~nocmap.assignment.Assignment`
        Updated in place with the best assignment found. Any cores already
        placed are used as the starting point, unplaced cores are placed
        randomly.
    cost_model : :py:class:`~nocmap.cost.CostModel`
    random : :py:class:`~nocmap.lcg.LCG`
        Defaults to a time-seeded generator.
    schedule : :py:class:`OsaSchedule`
    move : :py:class:`Move` or str
    on_temperature_change : callback_function or None
        Called after every round with the same arguments as the callback of
        :py:func:`nocmap.place.sa.place`. If it returns False the anneal is
        terminated and the best assignment found so far is kept.

    Returns
    -------
    :py:class:`~nocmap.place.utils.PlacementStatistics`
        The cost is that of the best assignment found.
    """
    if random is None:
        random = LCG()

    initial_placement(assignment, random)
    if is_trivial(assignment):
        logger.info("Placement has trivial solution. OSA not used.")
        return PlacementStatistics(cost_model(assignment))

    k = OsaKernel(assignment, cost_model, random, move,
                  schedule.initial_temperature)
    logger.info("Initial placement cost: %f", k.initial_cost)
    if k.initial_cost == 0.0:
        logger.info("Initial placement cannot be improved. OSA not used.")
        return PlacementStatistics(0.0)

    num_steps = attempts_per_temperature(assignment.num_nodes,
                                         assignment.num_cores)
    temperature = schedule.initial_temperature
    round_count = 0
    iteration_count = 0
    accept_ratios = []
    best_round = best_temperature = None
    while not (definitely_less_than(temperature,
                                    schedule.final_temperature) and
               k.consecutive_rejected >= num_steps):
        best_cost = k.best_cost
        num_accepted, _, cost = k.run_steps(num_steps, temperature)
        iteration_count += num_steps
        r_accept = num_accepted / float(num_steps)
        accept_ratios.append(r_accept)
        if definitely_less_than(k.best_cost, best_cost):
            best_round, best_temperature = round_count, temperature

        logger.info("Round: %d, Temp: %0.5f, Cost: %f, Kept: %0.1f%%.",
                    round_count, temperature, cost, r_accept * 100)

        if on_temperature_change is not None:
            if on_temperature_change(iteration_count,
                                     k.get_assignment().copy(), cost,
                                     r_accept, temperature) is False:
                break

        temperature *= schedule.cooling_ratio
        round_count += 1

    if best_round is None:
        logger.info("No placement improved on the initial one.")
    else:
        logger.info("Best placement found in round %d, at temperature "
                    "%0.5f.", best_round, best_temperature)
    logger.info("Best placement cost: %f (%d cost evaluations).",
                k.best_cost, cost_model.evaluations)

    assignment.apply(k.best.core_to_node)
    return PlacementStatistics(k.best_cost, accept_ratios)

import pytest

import logging

from itertools import permutations

from nocmap.application import Application
from nocmap.assignment import Assignment
from nocmap.cost import CostModel
from nocmap.topology import Mesh

from nocmap.routing import routing_strategy

from nocmap.place.bb import place, BranchAndBound, PartialPlacement, \
    MAX_COST
from nocmap.place.exhaustive import place as exhaustive_place


def make_cost_model(app, rows=2, columns=2, **kwargs):
    mesh = Mesh(rows, columns, **kwargs)
    return CostModel(mesh, app, routing_strategy(mesh))


def chain(num_cores):
    app = Application(num_cores)
    for core in range(num_cores - 1):
        app.add_communication(core, core + 1, 100 * (core + 1), 1)
    return app


def star(num_cores):
    app = Application(num_cores)
    for core in range(1, num_cores):
        app.add_communication(0, core, 10 * core, 1)
        app.add_communication(core, 0, 5, 1)
    return app


def all_pairs(num_cores):
    app = Application(num_cores)
    for src in range(num_cores):
        for dst in range(num_cores):
            if src != dst:
                app.add_communication(src, dst, (src * 7 + dst * 3) % 11, 1)
    return app


def test_placement_order():
    app = Application(4)
    app.add_communication(0, 1, 10, 1)
    app.add_communication(2, 3, 50, 1)
    app.add_communication(1, 2, 5, 1)
    app.add_communication(3, 0, 0, 1)
    bb = BranchAndBound(make_cost_model(app), 4)

    # Heaviest first, ties in core order
    assert bb.order == [2, 3, 1, 0]

    app = Application(3)
    assert BranchAndBound(make_cost_model(app), 3).order == [0, 1, 2]


def test_energy_matches_cost_model():
    app = all_pairs(4)
    cost_model = make_cost_model(app, 2, 3)
    bb = BranchAndBound(cost_model, 4)
    assignment = Assignment(4, 6)

    tiles = (5, 0, 3, 1)
    nodes = [0] * 4
    for position, core in enumerate(bb.order):
        nodes[core] = tiles[position]
    assignment.apply(nodes)

    assert bb.energy(tiles) == \
        pytest.approx(cost_model.communication_energy(assignment))

    # Energy can be built up one core at a time
    energy = 0.0
    for placed in range(4):
        energy += bb.added_energy(tiles[:placed], tiles[placed])
    assert energy == pytest.approx(bb.energy(tiles))


@pytest.mark.parametrize("app", [chain(3), star(4), all_pairs(3)])
def test_lower_bound(app):
    cost_model = make_cost_model(app, 2, 2)
    bb = BranchAndBound(cost_model, app.num_cores)

    for tile in range(4):
        node = PartialPlacement((tile, ), 0.0)
        bound = bb.lower_bound(node)
        free = [t for t in range(4) if t != tile]
        cheapest = min(bb.energy((tile, ) + rest)
                       for rest in permutations(free, app.num_cores - 1))
        assert bound <= cheapest * (1 + 1e-9)

    # A complete placement is its own bound
    node = PartialPlacement(tuple(range(app.num_cores)), 123.0)
    assert bb.lower_bound(node) == 123.0


def test_greedy_completion():
    app = Application(3)
    app.add_communication(0, 1, 100, 1)
    app.add_communication(2, 1, 10, 1)
    bb = BranchAndBound(make_cost_model(app, 3, 3), 3)
    assert bb.order == [1, 0, 2]

    # Both remaining cores only talk to the first, in the centre, and take
    # the lowest-numbered free neighbours
    assert bb.greedy_completion((4, )) == (4, 1, 3)

    # Cores without traffic take the first free node
    bb = BranchAndBound(make_cost_model(Application(3), 3, 3), 3)
    assert bb.greedy_completion((0, )) == (0, 1, 2)


def test_first_tiles():
    bb = BranchAndBound(make_cost_model(chain(2), 3, 3), 2)
    assert bb.first_tiles() == [0, 1, 3, 4]

    bb = BranchAndBound(make_cost_model(chain(2), 2, 4), 2)
    assert bb.first_tiles() == [0, 1]

    # Non-uniform links break the symmetry
    bb = BranchAndBound(
        make_cost_model(chain(2), 3, 3, link_bandwidth_exceptions={0: 1}), 2)
    assert bb.first_tiles() == list(range(9))


def test_make_node():
    app = Application(2)
    app.add_communication(0, 1, 100, 20)
    bb = BranchAndBound(make_cost_model(app, 1, 3, link_bandwidth=10), 2)

    # The traffic overloads any link it crosses
    assert bb.make_node((0, 1), 0.0) is None

    bb = BranchAndBound(make_cost_model(app, 1, 3, link_bandwidth=100), 2)
    node = bb.make_node((0, ), 0.0)
    assert node.completion == (0, 1)
    assert node.upper_bound == pytest.approx(bb.energy((0, 1)))
    assert not node.is_complete
    assert bb.make_node((0, 1), bb.energy((0, 1))).is_complete


@pytest.mark.parametrize("app,rows,columns",
                         [(chain(4), 2, 3),
                          (star(5), 2, 3),
                          (all_pairs(4), 2, 2),
                          (all_pairs(5), 2, 3),
                          (chain(3), 1, 4)])
def test_matches_exhaustive(app, rows, columns):
    cost_model = make_cost_model(app, rows, columns)
    assignment = Assignment(app.num_cores, rows * columns)
    stats = place(assignment, cost_model)
    assert assignment.is_complete()
    assert stats.cost == pytest.approx(cost_model(assignment))

    optimum = Assignment(app.num_cores, rows * columns)
    exhaustive_stats = exhaustive_place(optimum, cost_model)
    assert stats.cost == pytest.approx(exhaustive_stats.cost)


def test_short_queue():
    app = all_pairs(5)
    cost_model = make_cost_model(app, 2, 3)
    exact = Assignment(5, 6)
    exact_stats = place(exact, cost_model)

    assignment = Assignment(5, 6)
    stats = place(assignment, cost_model, max_queue_length=1)
    assert assignment.is_complete()
    assert stats.cost == pytest.approx(cost_model(assignment))
    assert stats.cost >= exact_stats.cost * (1 - 1e-9)


def test_bandwidth_constraint():
    # The cheapest placement puts cores 0 and 2 side by side but then the
    # traffic into core 1 shares a link.
    app = Application(3)
    app.add_communication(0, 1, 1, 80)
    app.add_communication(2, 1, 1, 80)
    app.add_communication(0, 2, 1000, 10)
    cost_model = make_cost_model(app, 1, 3, link_bandwidth=100)

    assignment = Assignment(3, 3)
    place(assignment, cost_model)
    assert assignment.node_of(1) == 1
    assert cost_model.overload(assignment) == 0.0

    bb = BranchAndBound(cost_model, 3, check_bandwidth=False)
    tiles, energy = bb.search()
    assert energy < cost_model.communication_energy(assignment)


def test_no_feasible_placement(caplog):
    caplog.set_level(logging.INFO)
    app = Application(2)
    app.add_communication(0, 1, 100, 50)
    cost_model = make_cost_model(app, 1, 2, link_bandwidth=10)

    bb = BranchAndBound(cost_model, 2)
    assert bb.search() == (None, MAX_COST)

    assignment = Assignment(2, 2)
    stats = place(assignment, cost_model)
    assert assignment.is_complete()
    assert stats.cost == pytest.approx(cost_model(assignment))
    assert cost_model.overload(assignment) > 0.0
    assert "Ignoring link capacities" in caplog.text


def test_logging(caplog):
    caplog.set_level(logging.INFO)
    cost_model = make_cost_model(chain(4), 2, 3)
    place(Assignment(4, 6), cost_model)
    assert "were pruned" in caplog.text
    assert "Best placement energy" in caplog.text

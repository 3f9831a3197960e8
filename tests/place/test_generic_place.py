"""Generic correctness tests applicable to all placement algorithms.

Note that these tests are intended to be so easy that it will just weed out
fundamental failures of placement algorithms.
"""

import pytest

from nocmap.application import Application
from nocmap.assignment import Assignment
from nocmap.cost import CostModel
from nocmap.lcg import LCG
from nocmap.topology import Mesh

from nocmap.routing import routing_strategy

from nocmap.place import PLACERS, default_place
from nocmap.place.sa import place as sa_place, AnnealingSchedule
from nocmap.place.osa import place as osa_place, Move
from nocmap.place.bb import place as bb_place
from nocmap.place.exhaustive import place as exhaustive_place
from nocmap.place.rand import place as rand_place

from nocmap.place.sa.python_kernel import PythonKernel


# This list should be updated to contain all implemented algorithms along
# with applicable keyword arguments.
ALGORITHMS_UNDER_TEST = [
    (default_place, {"schedule": AnnealingSchedule(
        attempts_per_node_squared=2)}),
    (sa_place, {"schedule": AnnealingSchedule(attempts_per_node_squared=2),
                "kernel": PythonKernel}),
    (osa_place, {}),
    (osa_place, {"move": Move.topological}),
    (osa_place, {"move": Move.variable_grain}),
    (bb_place, {}),
    (bb_place, {"max_queue_length": 1}),
    (exhaustive_place, {}),
    (rand_place, {}),
]


def test_placers():
    assert PLACERS == {"sa": sa_place, "osa": osa_place, "bb": bb_place,
                       "es": exhaustive_place, "random": rand_place}
    assert default_place is sa_place


def make_problem(num_cores, rows, columns):
    mesh = Mesh(rows, columns)
    app = Application(num_cores)
    for core in range(num_cores - 1):
        app.add_communication(core, core + 1, 10, 1)
    cost_model = CostModel(mesh, app, routing_strategy(mesh))
    return Assignment(num_cores, mesh.num_nodes), cost_model


@pytest.mark.parametrize("algorithm,kwargs", ALGORITHMS_UNDER_TEST)
@pytest.mark.parametrize("num_cores,rows,columns", [(0, 2, 2),
                                                    (1, 1, 1),
                                                    (1, 2, 2),
                                                    (2, 1, 2),
                                                    (4, 2, 2),
                                                    (3, 2, 2)])
def test_complete_placement(algorithm, kwargs, num_cores, rows, columns):
    """Test algorithms always produce a complete placement with the cost
    they report.
    """
    assignment, cost_model = make_problem(num_cores, rows, columns)
    stats = algorithm(assignment, cost_model, random=LCG(1), **kwargs)

    assert assignment.is_complete()
    assert len(set(assignment.core_to_node)) == num_cores
    assert stats.cost == pytest.approx(cost_model(assignment))


@pytest.mark.parametrize("algorithm,kwargs", ALGORITHMS_UNDER_TEST)
def test_no_communication(algorithm, kwargs):
    """Without any traffic every placement costs nothing."""
    mesh = Mesh(2, 2)
    app = Application(3)
    cost_model = CostModel(mesh, app, routing_strategy(mesh))
    assignment = Assignment(3, 4)

    stats = algorithm(assignment, cost_model, random=LCG(1), **kwargs)
    assert assignment.is_complete()
    assert stats.cost == 0.0

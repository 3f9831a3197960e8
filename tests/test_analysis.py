import pytest

import logging

import numpy as np

from nocmap.analysis import analyse, Analysis
from nocmap.application import Application
from nocmap.assignment import Assignment
from nocmap.cost import CostModel
from nocmap.exceptions import RoutingError
from nocmap.mapper import map_application
from nocmap.topology import Mesh

from nocmap.place.exhaustive import place as exhaustive_place
from nocmap.routing import routing_strategy
from nocmap.routing.util import UNREACHABLE


def make_problem(link_bandwidth=1e6):
    mesh = Mesh(2, 2, link_bandwidth=link_bandwidth)
    app = Application(3)
    app.add_communication(0, 1, 100, 50)
    app.add_communication(1, 2, 20, 0)
    app.add_communication(2, 0, 0, 30)
    assignment = Assignment(3, 4)
    assignment.apply([0, 3, 2])
    return mesh, app, assignment


def test_xy():
    mesh, app, assignment = make_problem()
    analysis = analyse(mesh, app, assignment)

    # 0 -> 3 over links 0 and 6, 2 -> 0 over link 5
    assert list(analysis.link_usage) == [50, 0, 0, 0, 0, 30, 50, 0]
    assert list(analysis.link_capacity) == [1e6] * 8
    assert analysis.overloaded_links == []
    assert analysis.bandwidth_ok
    assert analysis.max_bandwidth_requirement == 50.0

    # The energy agrees with the cost model
    cost_model = CostModel(mesh, app, routing_strategy(mesh))
    assert analysis.switch_energy == \
        pytest.approx(cost_model.switch_energy(assignment))
    assert analysis.link_energy == \
        pytest.approx(cost_model.link_energy(assignment))
    assert analysis.buffer_energy == \
        pytest.approx(cost_model.buffer_energy(assignment))
    assert analysis.communication_energy == \
        pytest.approx(cost_model.communication_energy(assignment))


def test_energies_are_floats():
    mesh, app, assignment = make_problem()
    analysis = analyse(mesh, app, assignment)
    for energy in (analysis.switch_energy, analysis.link_energy,
                   analysis.buffer_energy, analysis.communication_energy):
        assert type(energy) is float
    assert "np." not in repr(analysis.communication_energy)


def test_overloaded(caplog):
    caplog.set_level(logging.INFO)
    mesh, app, assignment = make_problem(link_bandwidth=40)
    analysis = analyse(mesh, app, assignment)

    assert analysis.overloaded_links == [0, 6]
    assert not analysis.bandwidth_ok
    assert "NOT met" in caplog.text
    assert "Link 0 is overloaded" in caplog.text


def test_partial_assignment():
    mesh, app, _ = make_problem()
    assignment = Assignment(3, 4)
    assignment.place(0, 0)
    assignment.place(1, 1)
    analysis = analyse(mesh, app, assignment)
    assert list(analysis.link_usage) == [50, 0, 0, 0, 0, 0, 0, 0]


@pytest.mark.parametrize("routing", ["WEST_FIRST", "ODD_EVEN"])
def test_adaptive_tables(routing):
    mesh = Mesh(3, 3, link_bandwidth=1e6)
    app = Application(3)
    app.add_communication(0, 1, 100, 50)
    app.add_communication(1, 2, 20, 0)
    app.add_communication(2, 0, 10, 30)
    result = map_application(mesh, app, place=exhaustive_place,
                             routing=routing, monitor_memory=False)

    assignment = Assignment(3, mesh.num_nodes)
    assignment.apply([result.mapping.index(c) for c in range(3)])
    analysis = analyse(mesh, app, assignment, result.routing_tables)

    # Routes are minimal so the energy is the same as along XY routes
    xy = analyse(mesh, app, assignment)
    assert analysis.communication_energy == \
        pytest.approx(xy.communication_energy)
    assert np.sum(analysis.link_usage) == np.sum(xy.link_usage)
    assert analysis.bandwidth_ok


def test_missing_route():
    mesh, app, assignment = make_problem()
    tables = np.full((4, 4, 4), UNREACHABLE, dtype=np.int32)
    with pytest.raises(RoutingError):
        analyse(mesh, app, assignment, tables)


def test_bandwidth_ok():
    analysis = Analysis(np.zeros(2), np.ones(2), [], 0.0, 0.0, 0.0, 0.0, 0.0)
    assert analysis.bandwidth_ok
    assert not analysis._replace(overloaded_links=[1]).bandwidth_ok

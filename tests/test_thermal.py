import pytest

import subprocess

from io import StringIO

from mock import patch

from nocmap.assignment import Assignment
from nocmap.exceptions import ThermalSimulatorError
from nocmap.thermal import tile_name, tile_powers, write_floorplan, \
    write_power_trace, read_steady_temperatures, run_thermal_simulator, \
    max_block_temperature, TILE_WIDTH, TILE_HEIGHT


def test_tile_name():
    assert tile_name(0) == "Tile0"
    assert tile_name(12) == "Tile12"


def test_tile_powers():
    assignment = Assignment(2, 4)
    assignment.apply([3, 0])
    assert tile_powers(assignment, [1.5, 2.5]) == [2.5, 0.0, 0.0, 1.5]


def test_write_floorplan():
    f = StringIO()
    write_floorplan(f, 2, 2)
    lines = [l.split("\t") for l in f.getvalue().splitlines()]
    assert [l[0] for l in lines] == ["Tile0", "Tile1", "Tile2", "Tile3"]
    for name, width, height, x, y in lines:
        assert float(width) == TILE_WIDTH
        assert float(height) == TILE_HEIGHT

    # Columns along x, rows along y
    assert (float(lines[1][3]), float(lines[1][4])) == (TILE_WIDTH, 0.0)
    assert (float(lines[2][3]), float(lines[2][4])) == (0.0, TILE_HEIGHT)


def test_write_power_trace():
    f = StringIO()
    write_power_trace(f, [1.0, 0.0, 2.5])
    assert f.getvalue() == "Tile0\tTile1\tTile2\n1.0\t0.0\t2.5\n"


def test_read_steady_temperatures():
    f = StringIO("Tile0\t320.5\nTile1\t330.0\niface_Tile0\t300.0\n")
    assert read_steady_temperatures(f) == [320.5, 330.0]
    assert read_steady_temperatures(StringIO("")) == []


def fake_simulator(temperatures, returncode=0):
    """Make a replacement for subprocess.run which writes the given
    temperatures to the requested steady state file.
    """
    calls = []

    def run(args, **kwargs):
        calls.append(args)
        if temperatures is not None:
            steady = args[args.index("-steady_file") + 1]
            with open(steady, "w") as f:
                for i, t in enumerate(temperatures):
                    f.write("Tile{}\t{}\n".format(i, t))
        return subprocess.CompletedProcess(args, returncode, "", "error!")
    run.calls = calls
    return run


def test_run_thermal_simulator():
    run = fake_simulator([300.0, 301.0, 302.0, 303.0])
    with patch("subprocess.run", side_effect=run):
        temperatures = run_thermal_simulator([1.0, 0.0, 0.0, 1.0], 2, 2)
    assert temperatures == [300.0, 301.0, 302.0, 303.0]

    args, = run.calls
    assert args[0] == "hotspot"
    assert "-c" not in args
    assert args[args.index("-f") + 1].endswith(".flp")
    assert args[args.index("-p") + 1].endswith(".ptrace")


def test_run_thermal_simulator_options():
    run = fake_simulator([300.0])
    with patch("subprocess.run", side_effect=run) as mock_run:
        run_thermal_simulator([1.0], 1, 1, command="/opt/hotspot",
                              config="hotspot.config", timeout=5.0)
    args, = run.calls
    assert args[:3] == ["/opt/hotspot", "-c", "hotspot.config"]
    assert mock_run.call_args[1]["timeout"] == 5.0


def test_run_thermal_simulator_fails():
    run = fake_simulator([300.0], returncode=1)
    with patch("subprocess.run", side_effect=run):
        with pytest.raises(ThermalSimulatorError) as excinfo:
            run_thermal_simulator([1.0], 1, 1)
    assert excinfo.value.returncode == 1
    assert excinfo.value.output == "error!"


def test_run_thermal_simulator_no_output():
    with patch("subprocess.run", side_effect=fake_simulator(None)):
        with pytest.raises(ThermalSimulatorError):
            run_thermal_simulator([1.0], 1, 1)


def test_run_thermal_simulator_wrong_count():
    with patch("subprocess.run", side_effect=fake_simulator([300.0])):
        with pytest.raises(ThermalSimulatorError):
            run_thermal_simulator([1.0, 1.0], 1, 2)


@pytest.mark.parametrize("exception",
                         [subprocess.TimeoutExpired("hotspot", 1.0),
                          OSError("No such file or directory")])
def test_run_thermal_simulator_not_run(exception):
    with patch("subprocess.run", side_effect=exception):
        with pytest.raises(ThermalSimulatorError) as excinfo:
            run_thermal_simulator([1.0], 1, 1)
    assert excinfo.value.returncode is None


def test_max_block_temperature():
    # 2x3 mesh: the right-hand block is the hottest
    temperatures = [1.0, 2.0, 3.0,
                    4.0, 5.0, 6.0]
    assert max_block_temperature(temperatures, 2, 3) == 2.0 + 3.0 + 5.0 + 6.0

    # No 2x2 blocks
    assert max_block_temperature([1.0, 2.0], 1, 2) is None

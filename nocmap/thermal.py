"""Interface to an external steady-state thermal simulator (HotSpot).

The simulator is given a floorplan of the mesh (one block per tile) and a
power trace (the power dissipated by each tile) and writes the steady state
temperature of every tile. The simulator itself is treated as an opaque,
blocking external process.
"""

import logging
import os
import subprocess
import tempfile

from nocmap.assignment import EMPTY
from nocmap.exceptions import ThermalSimulatorError


logger = logging.getLogger(__name__)


CORE_WIDTH = 0.0098
CORE_HEIGHT = 0.0196
ROUTER_WIDTH = 0.000460114
ROUTER_HEIGHT = 0.000460114
"""Dimensions (m) of the blocks of a tile."""

TILE_WIDTH = CORE_WIDTH + ROUTER_WIDTH
TILE_HEIGHT = CORE_HEIGHT + ROUTER_HEIGHT


def tile_name(node_id):
    return "Tile{}".format(node_id)


def tile_powers(assignment, core_powers):
    """Get the power dissipated by every tile given the power of every core.

    Parameters
    ----------
    assignment : :py:class:`~nocmap.assignment.Assignment`
    core_powers : [float, ...]
        Indexed by core ID.

    Returns
    -------
    [float, ...]
        Indexed by node ID, 0.0 for unoccupied nodes.
    """
    return [0.0 if core == EMPTY else float(core_powers[core])
            for core in assignment.node_to_core]


def write_floorplan(f, rows, columns):
    """Write the floorplan of a mesh.

    Each line reads ``Tile<id>\\t<width>\\t<height>\\t<x>\\t<y>`` with tiles
    laid out in node ID order, columns along x and rows along y.
    """
    for row in range(rows):
        for column in range(columns):
            f.write("{}\t{!r}\t{!r}\t{!r}\t{!r}\n".format(
                tile_name(row * columns + column),
                TILE_WIDTH, TILE_HEIGHT,
                column * TILE_WIDTH, row * TILE_HEIGHT))


def write_power_trace(f, powers):
    """Write a single-sample power trace: a header line of tile names and a
    line of the corresponding powers (W), both tab separated.
    """
    f.write("\t".join(tile_name(i) for i in range(len(powers))) + "\n")
    f.write("\t".join(repr(float(p)) for p in powers) + "\n")


def read_steady_temperatures(f):
    """Read the tile temperatures from a steady state file.

    Reading stops at the first line not describing a tile.

    Returns
    -------
    [float, ...]
        Indexed by node ID.
    """
    temperatures = []
    for line in f:
        if not line.startswith("Tile"):
            break
        temperatures.append(float(line.split("\t")[1]))
    return temperatures


def run_thermal_simulator(powers, rows, columns, command="hotspot",
                          config=None, timeout=600.0):
    """Run the thermal simulator on a mesh and get every tile's temperature.

    Parameters
    ----------
    powers : [float, ...]
        Power dissipated by each tile (see :py:func:`tile_powers`).
    rows : int
    columns : int
    command : str
        The simulator executable.
    config : str or None
        Simulator configuration file, passed with ``-c`` if given.
    timeout : float
        Seconds to wait for the simulator.

    Returns
    -------
    [float, ...]
        Steady state temperature of each tile.

    Raises
    ------
    ThermalSimulatorError
        If the simulator cannot be run, exits with a non-zero status, times
        out or does not produce a temperature for every tile.
    """
    with tempfile.TemporaryDirectory(prefix="nocmap-thermal-") as workdir:
        floorplan = os.path.join(workdir, "mesh.flp")
        power_trace = os.path.join(workdir, "mesh.ptrace")
        steady = os.path.join(workdir, "mesh.steady")

        with open(floorplan, "w") as f:
            write_floorplan(f, rows, columns)
        with open(power_trace, "w") as f:
            write_power_trace(f, powers)

        args = [command]
        if config is not None:
            args += ["-c", config]
        args += ["-f", floorplan, "-p", power_trace, "-steady_file", steady]
        logger.debug("Calling thermal simulator: %s", " ".join(args))

        try:
            process = subprocess.run(args, stdout=subprocess.PIPE,
                                     stderr=subprocess.PIPE,
                                     universal_newlines=True,
                                     timeout=timeout)
        except subprocess.TimeoutExpired:
            raise ThermalSimulatorError(
                "{} timed out after {} s".format(command, timeout))
        except OSError as e:
            raise ThermalSimulatorError(
                "Could not run {}: {}".format(command, e))

        if process.returncode != 0:
            raise ThermalSimulatorError(
                "{} exited with status {}".format(command,
                                                  process.returncode),
                process.returncode, process.stderr)

        try:
            with open(steady, "r") as f:
                temperatures = read_steady_temperatures(f)
        except IOError:
            raise ThermalSimulatorError(
                "{} produced no steady state file".format(command),
                process.returncode, process.stderr)

    if len(temperatures) != len(powers):
        raise ThermalSimulatorError(
            "Expected {} temperatures from {}, got {}".format(
                len(powers), command, len(temperatures)))

    return temperatures


def max_block_temperature(temperatures, rows, columns):
    """Get the largest sum of the temperatures of any 2x2 block of tiles.

    Returns
    -------
    float or None
        None if the mesh has no 2x2 block.
    """
    maximum = None
    for row in range(rows - 1):
        for column in range(columns - 1):
            i = row * columns + column
            total = (temperatures[i] + temperatures[i + 1] +
                     temperatures[i + columns] +
                     temperatures[i + columns + 1])
            if maximum is None or total > maximum:
                maximum = total
    return maximum

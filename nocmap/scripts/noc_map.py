"""A command-line utility which maps the cores described by a traffic file
onto a 2D-mesh network-on-chip.

Installed as "noc-map" by setuptools.
"""

import sys
import argparse
import json
import logging
import math

import nocmap

from nocmap.analysis import analyse
from nocmap.application import Application, DEFAULT_BANDWIDTH_MULTIPLIER
from nocmap.assignment import Assignment
from nocmap.exceptions import TooFewNodesError, RoutingError
from nocmap.mapper import map_application, Unmapped
from nocmap.place import PLACERS
from nocmap.topology import Mesh, DEFAULT_LINK_BANDWIDTH


NODE_PREFIX = "@NODE"
RATE_PREFIX = "packet_to_destination_rate"


def parse_traffic(lines):
    """Parse a traffic file.

    The file consists of ``@NODE <id>`` lines, each followed by the
    ``packet_to_destination_rate <destination>\\t<rate>`` lines describing
    the traffic that core sends. Lines starting with ``#`` are comments.

    Returns
    -------
    (num_cores, [(source, destination, rate), ...])
        The number of cores is one more than the largest core ID mentioned.

    Raises
    ------
    ValueError
        If the file is malformed.
    """
    source = None
    num_cores = 0
    rates = []
    for line_number, line in enumerate(lines, 1):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        try:
            if line.startswith(NODE_PREFIX):
                source = int(line[len(NODE_PREFIX):])
                num_cores = max(num_cores, source + 1)
            elif line.startswith(RATE_PREFIX):
                if source is None:
                    raise ValueError("rate given before any {}".format(
                        NODE_PREFIX))
                destination, rate = line[len(RATE_PREFIX):].split()
                destination = int(destination)
                num_cores = max(num_cores, destination + 1)
                rates.append((source, destination, float(rate)))
        except ValueError as e:
            raise ValueError("line {}: {}".format(line_number, e))
    return num_cores, rates


def read_traffic(lines, link_bandwidth,
                 multiplier=DEFAULT_BANDWIDTH_MULTIPLIER):
    """Build an :py:class:`~nocmap.application.Application` from a traffic
    file.

    Raises
    ------
    InvalidRateError
        If any rate lies outside the range [0, 1].
    """
    num_cores, rates = parse_traffic(lines)
    application = Application(num_cores)
    for source, destination, rate in rates:
        application.add_rate(source, destination, rate, link_bandwidth,
                             multiplier)
    return application


def default_mesh_size(num_cores):
    """Get the (rows, columns) of the smallest mesh, at least 2x2, which is
    square or one row short of square and holds num_cores cores.
    """
    size = max(2, int(math.ceil(math.sqrt(num_cores))))
    if size * (size - 1) >= num_cores:
        return (size - 1, size)
    else:
        return (size, size)


def main(args=None):
    parser = argparse.ArgumentParser(
        description="Map the cores of an application onto a 2D-mesh "
                    "network-on-chip, minimising communication energy "
                    "subject to link bandwidth limits.")
    parser.add_argument("--version", "-V", action="version",
                        version="%(prog)s {}".format(nocmap.__version__))

    parser.add_argument("traffic", type=str,
                        help="traffic file describing the rates at which "
                             "cores communicate")

    parser.add_argument("--rows", "-r", type=int,
                        help="number of rows in the mesh (default: "
                             "smallest mesh which fits the cores)")
    parser.add_argument("--columns", "-c", type=int,
                        help="number of columns in the mesh (default: "
                             "smallest mesh which fits the cores)")
    parser.add_argument("--engine", "-e", choices=sorted(PLACERS),
                        default="sa",
                        help="placement algorithm (default: %(default)s)")
    parser.add_argument("--routing", choices=["XY", "WEST_FIRST",
                                              "ODD_EVEN"],
                        default="XY",
                        help="routing algorithm; anything but XY programs "
                             "routing tables (default: %(default)s)")
    parser.add_argument("--link-bandwidth", "-b", type=float,
                        default=DEFAULT_LINK_BANDWIDTH,
                        help="bandwidth of every link in bits/s "
                             "(default: %(default)s)")
    parser.add_argument("--seed", "-s", type=int,
                        help="random number generator seed (default: "
                             "derived from the current time)")
    parser.add_argument("--output", "-o", type=str, metavar="FILENAME",
                        help="also write the result as JSON to this file "
                             "or - for stdout")
    parser.add_argument("--verbose", "-v", action="count", default=0,
                        help="show progress (repeat for debugging output)")

    args = parser.parse_args(args)

    if args.verbose >= 2:
        logging.basicConfig(level=logging.DEBUG)
    elif args.verbose == 1:
        logging.basicConfig(level=logging.INFO)

    try:
        with open(args.traffic, "r") as f:
            application = read_traffic(f, args.link_bandwidth)

        rows, columns = default_mesh_size(application.num_cores)
        mesh = Mesh(rows if args.rows is None else args.rows,
                    columns if args.columns is None else args.columns,
                    args.link_bandwidth)

        result = map_application(mesh, application,
                                 place=PLACERS[args.engine],
                                 routing=args.routing,
                                 seed=args.seed)

        assignment = Assignment(application.num_cores, mesh.num_nodes)
        assignment.apply([result.mapping.index(core)
                          for core in range(application.num_cores)])
        analysis = analyse(mesh, application, assignment,
                           result.routing_tables)
    except (IOError, ValueError, TooFewNodesError, RoutingError) as e:
        sys.stderr.write("{}: error: {}\n".format(parser.prog, e))
        return 1

    for node, core in enumerate(result.node_to_core()):
        print("node {}: {}".format(
            node, "-" if core is Unmapped else "core {}".format(core)))
    print("cost: {!r}".format(result.cost))
    print("communication energy: {!r}".format(analysis.communication_energy))
    print("bandwidth requirements: {}".format(
        "met" if analysis.bandwidth_ok else "NOT met"))

    if args.output is not None:
        if args.output == "-":
            json.dump(result.as_dict(), sys.stdout, indent=2)
            sys.stdout.write("\n")
        else:
            with open(args.output, "w") as f:
                json.dump(result.as_dict(), f, indent=2)

    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())

"""Test the noc-map command produces the correct output."""

import pytest

import json

from io import StringIO

import nocmap

import nocmap.scripts.noc_map as noc_map

from nocmap.exceptions import InvalidRateError


TRAFFIC = """# Three cores in a chain
@NODE 0
packet_to_destination_rate 1\t0.25
@NODE 1
packet_to_destination_rate 2\t0.125

@NODE 2
"""


@pytest.fixture
def traffic_file(tmpdir):
    filename = str(tmpdir.join("traffic.txt"))
    with open(filename, "w") as f:
        f.write(TRAFFIC)
    return filename


def test_parse_traffic():
    num_cores, rates = noc_map.parse_traffic(StringIO(TRAFFIC))
    assert num_cores == 3
    assert rates == [(0, 1, 0.25), (1, 2, 0.125)]


def test_parse_traffic_counts_destinations():
    num_cores, rates = noc_map.parse_traffic(
        ["@NODE 0", "packet_to_destination_rate 4 0.1"])
    assert num_cores == 5
    assert rates == [(0, 4, 0.1)]


@pytest.mark.parametrize("lines", [["packet_to_destination_rate 1\t0.5"],
                                   ["@NODE zero"],
                                   ["@NODE 0",
                                    "packet_to_destination_rate 1"],
                                   ["@NODE 0",
                                    "packet_to_destination_rate a\t0.1"]])
def test_parse_traffic_malformed(lines):
    with pytest.raises(ValueError):
        noc_map.parse_traffic(lines)


def test_read_traffic():
    app = noc_map.read_traffic(StringIO(TRAFFIC), 1000.0)
    assert app.num_cores == 3
    assert app.communication[0, 1] == 250000
    assert app.bandwidth[0, 1] == 750
    assert app.communication[1, 2] == 125000
    assert app.bandwidth[1, 2] == 375


def test_read_traffic_bad_rate():
    with pytest.raises(InvalidRateError):
        noc_map.read_traffic(["@NODE 0", "packet_to_destination_rate 1 1.5"],
                             1000.0)


@pytest.mark.parametrize("num_cores,size", [(1, (1, 2)),
                                            (2, (1, 2)),
                                            (3, (2, 2)),
                                            (4, (2, 2)),
                                            (5, (2, 3)),
                                            (7, (3, 3)),
                                            (9, (3, 3)),
                                            (10, (3, 4)),
                                            (16, (4, 4))])
def test_default_mesh_size(num_cores, size):
    assert noc_map.default_mesh_size(num_cores) == size


def test_version(capsys):
    with pytest.raises(SystemExit):
        noc_map.main(["--version"])
    out, err = capsys.readouterr()
    assert nocmap.__version__ in out + err


def test_exhaustive(traffic_file, capsys):
    assert noc_map.main([traffic_file, "--engine", "es"]) == 0
    out, err = capsys.readouterr()
    lines = out.splitlines()

    # A 2x2 mesh with one free node
    assert len([l for l in lines if l.startswith("node ")]) == 4
    assert len([l for l in lines if l.endswith(": -")]) == 1
    assert "cost: " in out
    assert "bandwidth requirements: met" in out


@pytest.mark.parametrize("routing", ["XY", "WEST_FIRST", "ODD_EVEN"])
def test_routing(traffic_file, capsys, routing):
    assert noc_map.main([traffic_file, "-e", "es", "--routing", routing,
                         "--rows", "2", "--columns", "3"]) == 0
    out, err = capsys.readouterr()
    assert len([l for l in out.splitlines() if l.startswith("node ")]) == 6


def test_random_seeded(traffic_file, capsys):
    assert noc_map.main([traffic_file, "-e", "random", "-s", "7"]) == 0
    first, _ = capsys.readouterr()
    assert noc_map.main([traffic_file, "-e", "random", "-s", "7"]) == 0
    second, _ = capsys.readouterr()
    assert first == second


def test_json_output(traffic_file, tmpdir, capsys):
    output = str(tmpdir.join("result.json"))
    assert noc_map.main([traffic_file, "-e", "es", "--routing", "ODD_EVEN",
                         "-o", output]) == 0
    with open(output, "r") as f:
        result = json.load(f)
    assert result["mapper"] == "es"
    assert sorted(m["core"] for m in result["map"]) == [0, 1, 2]
    assert "routing_tables" in result

    assert noc_map.main([traffic_file, "-e", "es", "-o", "-"]) == 0
    out, err = capsys.readouterr()
    assert '"mapper": "es"' in out


def test_verbose(traffic_file, capsys):
    assert noc_map.main([traffic_file, "-e", "es", "-vv"]) == 0


def test_link_bandwidth(tmpdir, capsys):
    filename = str(tmpdir.join("traffic.txt"))
    with open(filename, "w") as f:
        f.write("@NODE 0\npacket_to_destination_rate 1\t0.5\n")
    assert noc_map.main([filename, "-e", "es", "-b", "1000"]) == 0
    out, err = capsys.readouterr()

    # Bandwidth requirements are a multiple of the link bandwidth
    assert "bandwidth requirements: NOT met" in out


@pytest.mark.parametrize("contents,message",
                         [("@NODE 0\npacket_to_destination_rate 1\t1.5\n",
                           "not in the range"),
                          ("@NODE 0\npacket_to_destination_rate\n",
                           "line 2")])
def test_bad_traffic(tmpdir, capsys, contents, message):
    filename = str(tmpdir.join("traffic.txt"))
    with open(filename, "w") as f:
        f.write(contents)
    assert noc_map.main([filename]) == 1
    out, err = capsys.readouterr()
    assert message in err


def test_missing_file(tmpdir, capsys):
    assert noc_map.main([str(tmpdir.join("missing.txt"))]) == 1
    out, err = capsys.readouterr()
    assert "error" in err


def test_too_few_nodes(traffic_file, capsys):
    assert noc_map.main([traffic_file, "--rows", "1",
                         "--columns", "2"]) == 1
    out, err = capsys.readouterr()
    assert "Cannot map 3 cores onto only 2 nodes" in err


def test_energy_printed_as_float(traffic_file, capsys):
    assert noc_map.main([traffic_file, "-e", "es"]) == 0
    out, err = capsys.readouterr()
    energy_line, = [l for l in out.splitlines()
                    if l.startswith("communication energy: ")]
    assert "np." not in energy_line
    float(energy_line.split(": ")[1])


@pytest.mark.parametrize("args", [["--rows", "0"], ["--columns", "0"]])
def test_empty_mesh(traffic_file, capsys, args):
    assert noc_map.main([traffic_file] + args) == 1
    out, err = capsys.readouterr()
    assert "at least one row and one column" in err

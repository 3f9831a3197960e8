"""Exceptions which indicate the standard kinds of mapping failure."""


class TooFewNodesError(Exception):
    """Indication that the topology has fewer nodes than there are cores to
    place.

    Attributes
    ----------
    num_cores : int
    num_nodes : int
    """

    def __init__(self, num_cores, num_nodes):
        super(TooFewNodesError, self).__init__(
            "Cannot map {} cores onto only {} nodes.".format(
                num_cores, num_nodes))
        self.num_cores = num_cores
        self.num_nodes = num_nodes


class InvalidRateError(ValueError):
    """Indication that a communication rate lies outside the range [0, 1].

    Attributes
    ----------
    source : int
    destination : int
    rate : float
    """

    def __init__(self, source, destination, rate):
        super(InvalidRateError, self).__init__(
            "Rate {} from core {} to core {} is not in the range "
            "[0, 1].".format(rate, source, destination))
        self.source = source
        self.destination = destination
        self.rate = rate


class RoutingError(Exception):
    """Indication that a route could not be determined or resolved into a
    link. This always indicates an internal consistency problem in the
    topology or the routing algorithm.
    """
    pass


class ThermalSimulatorError(Exception):
    """Indication that the external thermal simulator failed.

    Attributes
    ----------
    returncode : int or None
        The exit status of the simulator or None if it did not finish (e.g.
        it timed out).
    output : str
        Anything the simulator printed to its standard error stream.
    """

    def __init__(self, message, returncode=None, output=""):
        super(ThermalSimulatorError, self).__init__(message)
        self.returncode = returncode
        self.output = output

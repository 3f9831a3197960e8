"""Describes the communicating cores of an application.

The traffic of an application is held as two dense ``num_cores x
num_cores`` matrices: the communication volume (bits) and the bandwidth
requirement (bits/s) from every core to every other core. A
:py:class:`Core` is a lightweight view onto one row and one column of these
matrices so that a core's outgoing requirements are, by construction, the
incoming requirements recorded at its peers.
"""

import logging

import numpy as np

from nocmap.exceptions import InvalidRateError


logger = logging.getLogger(__name__)


VOLUME_PER_UNIT_RATE = 1000000
"""Communication volume (bits) recorded for a rate of 1.0."""

DEFAULT_BANDWIDTH_MULTIPLIER = 3
"""Scaling applied to ``rate * link_bandwidth`` to give the bandwidth
requirement of a communication.
"""


class Core(object):
    """A single core (task) of an application.

    Attributes
    ----------
    core_id : int
    apcg_id : str or None
        The identifier of the application graph this core belongs to.
    """
    __slots__ = ["core_id", "apcg_id", "_application"]

    def __init__(self, application, core_id, apcg_id=None):
        self._application = application
        self.core_id = core_id
        self.apcg_id = apcg_id

    @property
    def to_communication(self):
        """Volume sent to each other core, indexed by peer core ID."""
        return self._application.communication[self.core_id, :]

    @property
    def from_communication(self):
        """Volume received from each other core, indexed by peer core ID."""
        return self._application.communication[:, self.core_id]

    @property
    def to_bandwidth_requirement(self):
        """Bandwidth required to each other core, indexed by peer core ID.
        """
        return self._application.bandwidth[self.core_id, :]

    @property
    def from_bandwidth_requirement(self):
        """Bandwidth required from each other core, indexed by peer core ID.
        """
        return self._application.bandwidth[:, self.core_id]

    def __repr__(self):
        return "<Core {}>".format(self.core_id)


class Application(object):
    """The cores of an application and the traffic between them.

    Attributes
    ----------
    communication : :py:class:`numpy.ndarray`
        ``communication[src, dst]`` gives the volume (bits) sent from core
        ``src`` to core ``dst``.
    bandwidth : :py:class:`numpy.ndarray`
        ``bandwidth[src, dst]`` gives the bandwidth (bits/s) required by the
        traffic from core ``src`` to core ``dst``.
    cores : [:py:class:`Core`, ...]
        Indexed by core ID.
    """

    def __init__(self, num_cores, apcg_ids=None):
        """Create an application with no traffic.

        Parameters
        ----------
        num_cores : int
        apcg_ids : [str, ...] or None
            The application graph identifier of each core, if any.
        """
        if apcg_ids is not None and len(apcg_ids) != num_cores:
            raise ValueError("Expected {} apcg_ids, got {}.".format(
                num_cores, len(apcg_ids)))

        self.communication = np.zeros((num_cores, num_cores), dtype=np.int64)
        self.bandwidth = np.zeros((num_cores, num_cores), dtype=np.int64)
        self.cores = [
            Core(self, core_id,
                 apcg_ids[core_id] if apcg_ids is not None else None)
            for core_id in range(num_cores)]

    @property
    def num_cores(self):
        return len(self.cores)

    def __getitem__(self, core_id):
        """Get the :py:class:`Core` with the given ID.

        Raises
        ------
        IndexError
            If the core does not exist.
        """
        if not 0 <= core_id < self.num_cores:
            raise IndexError("Core {} is not part of the application.".format(
                repr(core_id)))
        return self.cores[core_id]

    def __iter__(self):
        return iter(self.cores)

    def __len__(self):
        return self.num_cores

    def add_communication(self, source, destination, volume, bandwidth):
        """Add traffic from one core to another.

        Traffic between a core and itself never enters the network and is
        ignored (with a warning).

        Parameters
        ----------
        source : int
        destination : int
        volume : int
            Volume of data (bits).
        bandwidth : int
            Bandwidth requirement (bits/s).

        Raises
        ------
        IndexError
            If either core does not exist.
        ValueError
            If the volume or bandwidth is negative.
        """
        self[source]
        self[destination]
        if volume < 0 or bandwidth < 0:
            raise ValueError(
                "Negative traffic from core {} to core {}.".format(
                    source, destination))

        if source == destination:
            logger.warning("Ignoring traffic from core %d to itself.", source)
            return

        self.communication[source, destination] += volume
        self.bandwidth[source, destination] += bandwidth

    def add_rate(self, source, destination, rate, link_bandwidth,
                 multiplier=DEFAULT_BANDWIDTH_MULTIPLIER):
        """Add traffic described by a packet injection rate.

        The volume is ``rate * 1e6`` bits and the bandwidth requirement
        ``rate * multiplier * link_bandwidth`` (both truncated to integers).

        Parameters
        ----------
        source : int
        destination : int
        rate : float
            Fraction of the link bandwidth used, between 0 and 1.
        link_bandwidth : float
        multiplier : float

        Raises
        ------
        InvalidRateError
            If the rate is outside the range [0, 1].
        """
        if not 0.0 <= rate <= 1.0:
            raise InvalidRateError(source, destination, rate)

        self.add_communication(source, destination,
                               int(rate * VOLUME_PER_UNIT_RATE),
                               int(rate * multiplier * link_bandwidth))

    def communicating_pairs(self):
        """Get the (sources, destinations, volumes) of every ordered pair of
        cores with a positive communication volume, in row-major order.
        """
        sources, destinations = np.nonzero(self.communication > 0)
        return (sources, destinations,
                self.communication[sources, destinations])

    def bandwidth_pairs(self):
        """Get the (sources, destinations, bandwidths) of every ordered pair
        of cores with a positive bandwidth requirement, in row-major order.
        """
        sources, destinations = np.nonzero(self.bandwidth > 0)
        return (sources, destinations,
                self.bandwidth[sources, destinations])


def merge_applications(applications):
    """Combine several applications into one, renumbering their cores
    consecutively.

    Parameters
    ----------
    applications : [(apcg_id, :py:class:`Application`), ...]

    Returns
    -------
    :py:class:`Application`
        Each core keeps the apcg_id of the application it came from.
    """
    apcg_ids = []
    for apcg_id, application in applications:
        apcg_ids.extend([apcg_id] * application.num_cores)

    merged = Application(len(apcg_ids), apcg_ids)
    offset = 0
    for _, application in applications:
        n = application.num_cores
        merged.communication[offset:offset + n, offset:offset + n] = \
            application.communication
        merged.bandwidth[offset:offset + n, offset:offset + n] = \
            application.bandwidth
        offset += n

    return merged

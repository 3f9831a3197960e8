"""A background monitor of the memory used by the mapping process."""

import logging
import threading

import psutil


logger = logging.getLogger(__name__)


class HeapUsageMonitor(threading.Thread):
    """Periodically samples the resident memory of this process.

    The monitor runs as a daemon thread between :py:meth:`start_monitor`
    and :py:meth:`stop_monitor`. It only reads process-wide memory counters.

    Parameters
    ----------
    interval : float
        Seconds between samples.
    """

    def __init__(self, interval=0.5):
        super(HeapUsageMonitor, self).__init__(name="HeapUsageMonitor")
        self.daemon = True
        self.interval = interval
        self._process = psutil.Process()
        self._stop_event = threading.Event()
        self._samples = 0
        self._total = 0

    def _sample(self):
        self._total += self._process.memory_info().rss
        self._samples += 1

    def run(self):
        self._sample()
        while not self._stop_event.wait(self.interval):
            self._sample()

    def start_monitor(self):
        """Start sampling."""
        self.start()

    def stop_monitor(self):
        """Stop sampling and wait for the monitor thread to finish."""
        self._stop_event.set()
        self.join()
        logger.debug("Heap usage monitor took %d samples.", self._samples)

    @property
    def average_used_memory(self):
        """The average resident memory (bytes) over all samples taken.

        Raises
        ------
        RuntimeError
            If the monitor is still running.
        """
        if self.is_alive():
            raise RuntimeError(
                "Cannot read the average memory usage while monitoring.")
        if self._samples == 0:
            return 0.0
        return self._total / float(self._samples)

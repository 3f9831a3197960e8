"""A seedable linear congruential random number generator.

All random decisions made while mapping (initial placements, swap
candidates and the annealing acceptance test) are drawn from an instance of
:py:class:`LCG` so that a mapping run is exactly reproducible from its seed
on any platform. The class implements the subset of the
:py:class:`random.Random` interface used by the placers.
"""

import time


def _to_int32(value):
    """Wrap an integer into the signed 32-bit range."""
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


class LCG(object):
    """Linear congruential generator producing uniform values in [0, 1).

    The next state is ``|int32(A * state + C)| mod M``, with the product
    computed in 32-bit two's complement arithmetic.

    Parameters
    ----------
    seed : int or None
        The seed for the generator. If None, a seed is derived from the
        current time in milliseconds. The seed actually used is available as
        :py:attr:`seed`.
    """

    A = 147453245
    C = 226908347
    M = 1 << 30

    DEFAULT_SEED = 1234567

    def __init__(self, seed=None):
        if seed is None:
            seed = int(time.time() * 1000)
        self.seed = _to_int32(seed)
        self.state = self.seed

    def random(self):
        """Get the next uniformly distributed value in [0, 1)."""
        self.state = abs(_to_int32(self.A * self.state + self.C)) % self.M
        return self.state / float(self.M)

    def randint(self, a, b):
        """Get a uniformly distributed integer in the range [a, b]."""
        return a + int((b + 1 - a) * self.random())

    def choice(self, seq):
        """Get a uniformly chosen element of a non-empty sequence."""
        if len(seq) == 0:
            raise IndexError("Cannot choose from an empty sequence")
        return seq[self.randint(0, len(seq) - 1)]

    def getstate(self):
        return self.state

    def setstate(self, state):
        self.state = state

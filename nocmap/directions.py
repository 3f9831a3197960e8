"""Directions of the links leaving a node of a 2D mesh."""

from enum import IntEnum


class Directions(IntEnum):
    """Enumeration of the outgoing links of a mesh node.

    The integer values are used to index the per-node link usage counters
    and the adaptive routing tables. Rows grow northward and columns grow
    eastward.
    """

    north = 0
    south = 1
    east = 2
    west = 3

    @classmethod
    def from_vector(cls, vector):
        """Get the direction which moves by the given (row, column) offset.

        Raises
        ------
        ValueError
            If the vector does not describe a single step between neighbours.
        """
        try:
            return _vector_to_direction[tuple(vector)]
        except KeyError:
            raise ValueError(
                "{} is not a step between neighbours.".format(vector))

    def to_vector(self):
        """Get the (row, column) offset of a step in this direction."""
        return _direction_to_vector[self]

    @property
    def opposite(self):
        """Get the opposite direction."""
        return _opposites[self]

    @property
    def is_vertical(self):
        return self in (Directions.north, Directions.south)


_direction_to_vector = {
    Directions.north: (1, 0),
    Directions.south: (-1, 0),
    Directions.east: (0, 1),
    Directions.west: (0, -1),
}

_vector_to_direction = {v: d for d, v in _direction_to_vector.items()}

_opposites = {
    Directions.north: Directions.south,
    Directions.south: Directions.north,
    Directions.east: Directions.west,
    Directions.west: Directions.east,
}

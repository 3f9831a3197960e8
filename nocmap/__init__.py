"""Energy- and bandwidth-aware mapping of communicating cores onto 2D-mesh
networks-on-chip.
"""

from nocmap.version import __version__

"""Routing of traffic across the mesh.

Traffic is routed either along fixed dimension-order (XY) paths or
adaptively using a deadlock-free turn model. See
:py:mod:`nocmap.routing.strategy`.
"""

from nocmap.routing.strategy import \
    RoutingStrategy, StaticRouting, AdaptiveRouting, routing_strategy

from nocmap.routing.turn_model import TurnModel

"""Routing: the route table built at startup and matched per request.

Routes are installed during ``Server.start()`` and compiled into an
immutable lookup structure before the first request is served.
"""

from arbor.routing.route import InstalledRoute, RouteMatch
from arbor.routing.router import Router

__all__ = ["InstalledRoute", "RouteMatch", "Router"]

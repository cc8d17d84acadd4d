"""Routing: compiled route table, controllers, and the dispatcher.

Routes are registered during setup and compiled into an immutable
lookup structure when the app freezes. Each match yields a
``CompiledRoute`` that the ``Dispatcher`` runs.
"""

from perch.routing.controller import Controller
from perch.routing.dispatcher import Dispatcher
from perch.routing.route import CompiledRoute, Route
from perch.routing.router import Router

__all__ = ["CompiledRoute", "Controller", "Dispatcher", "Route", "Router"]

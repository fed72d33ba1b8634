"""Route state for the front end.

The front end reads ``Router.current`` to decide what to show. The only
transition the core layer makes on its own is back to the login route when a
session turns out to be invalid.
"""

import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)

LOGIN_ROUTE = "login"
HOME_ROUTE = "home"

RouteListener = Callable[[str, str], None]


class Router:
    """Holds the current route and notifies listeners when it changes."""

    def __init__(self, initial: str = LOGIN_ROUTE):
        """Initialize the router at ``initial``."""
        self.current = initial
        self._listeners: list[RouteListener] = []

    def subscribe(self, listener: RouteListener):
        """Register ``listener(previous, current)`` for route changes."""
        self._listeners.append(listener)

    def replace(self, route: str):
        """Replace the current route. Replacing with the same route is a no-op."""
        if route == self.current:
            return
        previous, self.current = self.current, route
        logger.debug(f"Route {previous} -> {route}")
        for listener in self._listeners:
            listener(previous, route)

    def to_login(self):
        """Go to the unauthenticated entry point."""
        self.replace(LOGIN_ROUTE)

    def to_home(self):
        """Go to the authenticated landing route."""
        self.replace(HOME_ROUTE)

    @property
    def is_authenticated_area(self) -> bool:
        """True when the current route is anything but login."""
        return self.current != LOGIN_ROUTE

"""
=============================================================================
URL ROUTER
=============================================================================

Maps (method, path) to a handler. Paths are matched EXACTLY - there are
only two resources, so no patterns, parameters or wildcards.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        ROUTING FLOW                                 │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   POST /chat                                                         │
    │        │                                                             │
    │        ▼                                                             │
    │   ┌──────────────────────────────────────────────┐                  │
    │   │  path known?  ── no ──►  404 Not Found        │                  │
    │   │      │ yes                                    │                  │
    │   │      ▼                                        │                  │
    │   │  method registered? ── no ──► 405 + Allow     │                  │
    │   │      │ yes                                    │                  │
    │   │      ▼                                        │                  │
    │   │  handler(request)                             │                  │
    │   └──────────────────────────────────────────────┘                  │
    │                                                                      │
    │   GET  /      → index.get          HEAD /chat → chat.head            │
    │   HEAD /      → index.head         GET  /chat → chat.stream          │
    │                                    POST /chat → chat.post            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
HANDLER CONTRACT
=============================================================================

A handler takes an HTTPRequest and either

- returns an HTTPResponse, which the server writes and flushes, or
- returns None after writing to request.connection itself (streaming).

=============================================================================
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from .request import HTTPRequest
from .response import HTTPResponse, method_not_allowed, not_found


logger = logging.getLogger(__name__)

Handler = Callable[[HTTPRequest], Optional[HTTPResponse]]


@dataclass
class Route:
    """
    A registered route.

    Attributes:
        path: Exact request target, e.g. "/chat".
        method: HTTP method, e.g. "POST".
        handler: Function called with the HTTPRequest.
        name: Route name, for logging.
    """

    path: str
    method: str
    handler: Handler
    name: Optional[str] = None


@dataclass
class RouteMatch:
    """Result of a successful match."""

    route: Route

    @property
    def handler(self) -> Handler:
        return self.route.handler


class Router:
    """
    Exact-path router with a method table per path.

    Usage:
        router = Router()

        @router.get("/")
        def index(request):
            return ok("<h1>hi</h1>", "text/html")

        router.add_route("/chat", chat.post, method="POST")

        response = router.handle(request)
    """

    def __init__(self):
        # path -> {method -> Route}, both in registration order
        self._routes: Dict[str, Dict[str, Route]] = {}

    def add_route(self, path: str, handler: Handler, method: str = "GET", name: Optional[str] = None) -> Route:
        """
        Register a handler for (method, path).

        Raises:
            ValueError: If the same method is registered twice for a path.
        """
        methods = self._routes.setdefault(path, {})
        if method in methods:
            raise ValueError(f"Duplicate route: {method} {path}")

        route = Route(path=path, method=method, handler=handler, name=name or handler.__name__)
        methods[method] = route
        logger.debug(f"Registered route {method} {path} -> {route.name}")
        return route

    def match(self, method: str, path: str) -> Optional[RouteMatch]:
        """Find the route for (method, path), or None."""
        route = self._routes.get(path, {}).get(method)
        return RouteMatch(route) if route else None

    def get_allowed_methods(self, path: str) -> List[str]:
        """Methods registered for a path, in registration order (for Allow)."""
        return list(self._routes.get(path, {}))

    def handle(self, request: HTTPRequest) -> Optional[HTTPResponse]:
        """
        Dispatch a request.

        Unknown paths answer 404 whatever the method; known paths with an
        unregistered method answer 405 with the Allow header.
        """
        if request.path not in self._routes:
            return not_found(request.response_version)

        match = self.match(request.method, request.path)
        if match is None:
            allowed = self.get_allowed_methods(request.path)
            return method_not_allowed(allowed, request.response_version)

        return match.handler(request)

    # =========================================================================
    # DECORATOR API
    # =========================================================================

    def route(self, path: str, method: str = "GET", name: Optional[str] = None) -> Callable[[Handler], Handler]:
        """Decorator form of add_route()."""
        def decorator(handler: Handler) -> Handler:
            self.add_route(path, handler, method=method, name=name)
            return handler
        return decorator

    def get(self, path: str, name: Optional[str] = None) -> Callable[[Handler], Handler]:
        return self.route(path, "GET", name)

    def head(self, path: str, name: Optional[str] = None) -> Callable[[Handler], Handler]:
        return self.route(path, "HEAD", name)

    def post(self, path: str, name: Optional[str] = None) -> Callable[[Handler], Handler]:
        return self.route(path, "POST", name)

    @property
    def routes(self) -> List[Route]:
        """All registered routes, flattened."""
        return [route for methods in self._routes.values() for route in methods.values()]

    def print_routes(self) -> None:
        """Print the route table (startup banner)."""
        print("Registered routes:")
        for route in self.routes:
            print(f"  {route.method:<6} {route.path:<10} -> {route.name}")

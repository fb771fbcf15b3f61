"""
=============================================================================
ROUTE REGISTRY
=============================================================================

Maps an exact request path to the handler that serves it.

=============================================================================
EXACT-PATH ROUTING
=============================================================================

There are no patterns, no ":id" segments and no wildcards. A route
matches only its own path, character for character:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   Registered:   /hello   /mañana   /euler   /editor   /greeting      │
    │                                                                      │
    │   /hello        → hello()                                            │
    │   /hello/       → not found  (static fallback)                       │
    │   /Hello        → not found  (static fallback)                       │
    │   /greeting     → greeting(name)                                     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Lookup is a single dict access, O(1) regardless of the number of routes.

=============================================================================
LIFECYCLE
=============================================================================

    declare                build                  serve
    ───────                ─────                  ─────
    ServiceTable    ──►    RouteRegistry   ──►    resolve(path)
    @table.get(...)        .build(decls)          (read-only, any thread)
                           │
                           ├── duplicate path?  → DuplicateRouteError
                           └── freeze()         → register() now raises

The registry is built once, before the server accepts connections, and
is never mutated afterwards. Worker threads read it without locking.

=============================================================================
"""

import importlib
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from .query import ParamSpec


logger = logging.getLogger(__name__)


# A handler takes one positional str per ParamSpec and returns the body.
Handler = Callable[..., str]

Declaration = Tuple[str, Handler, Sequence[ParamSpec]]


class RegistryError(Exception):
    """Base class for route registry errors."""


class DuplicateRouteError(RegistryError):
    """Two declarations claim the same path."""

    def __init__(self, path: str, first: str, second: str):
        super().__init__(
            f"Duplicate route for {path!r}: declared by {first!r} and {second!r}"
        )
        self.path = path


class RegistryFrozenError(RegistryError):
    """register() was called after the registry was frozen."""


@dataclass(frozen=True)
class Route:
    """
    A registered route.

        Route(
            path="/greeting",
            handler=greeting,
            params=(ParamSpec("name", "World"),),
            name="greeting",
        )
    """

    path: str
    handler: Handler
    params: Tuple[ParamSpec, ...] = field(default_factory=tuple)
    name: str = ""

    def __post_init__(self):
        if not self.path.startswith("/"):
            raise ValueError(f"Route path must start with '/': {self.path!r}")
        if not callable(self.handler):
            raise TypeError(f"Handler for {self.path!r} is not callable")
        # Normalise list → tuple and fill in the handler name.
        object.__setattr__(self, "params", tuple(self.params))
        if not self.name:
            object.__setattr__(
                self, "name", getattr(self.handler, "__name__", repr(self.handler))
            )


class RouteRegistry:
    """
    Exact-path route table.

    Usage:
        registry = RouteRegistry.build([
            ("/hello", hello, []),
            ("/greeting", greeting, [ParamSpec("name", "World")]),
        ])

        route = registry.resolve("/greeting")
        route.handler("Nicolas")    # "Hola, Nicolas"
        registry.resolve("/nope")   # None
    """

    def __init__(self):
        self._routes: Dict[str, Route] = {}
        self._frozen = False

    # =========================================================================
    # CONSTRUCTION
    # =========================================================================

    @classmethod
    def build(cls, declarations: Iterable[Union[Route, Declaration]]) -> "RouteRegistry":
        """
        Build a frozen registry from an ordered declaration list.

        Each declaration is a Route or a (path, handler, params) tuple.

        Raises:
            DuplicateRouteError: If two declarations share a path. The
                                 server refuses to start rather than pick one.
        """
        registry = cls()
        for declaration in declarations:
            route = declaration if isinstance(declaration, Route) else Route(*declaration)

            existing = registry._routes.get(route.path)
            if existing is not None:
                raise DuplicateRouteError(route.path, existing.name, route.name)

            registry._add(route)

        registry.freeze()
        return registry

    def register(
        self,
        path: str,
        handler: Handler,
        params: Sequence[ParamSpec] = (),
        name: Optional[str] = None,
    ) -> Route:
        """
        Add or replace the route for path.

        Unlike build(), a second register() for the same path replaces the
        first (last registration wins).

        Raises:
            RegistryFrozenError: If the registry has been frozen.
        """
        if self._frozen:
            raise RegistryFrozenError(f"Cannot register {path!r}: registry is frozen")

        route = Route(path=path, handler=handler, params=tuple(params), name=name or "")
        if path in self._routes:
            logger.warning(f"Route {path} re-registered: {self._routes[path].name} → {route.name}")
        self._add(route)
        return route

    def _add(self, route: Route) -> None:
        self._routes[route.path] = route
        logger.debug(f"Registered {route.path} → {route.name}({', '.join(p.name for p in route.params)})")

    def freeze(self) -> None:
        """Make the registry read-only. Idempotent."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    # =========================================================================
    # LOOKUP
    # =========================================================================

    def resolve(self, path: str) -> Optional[Route]:
        """
        Find the route registered for exactly this path.

        Returns:
            The Route, or None (the caller falls back to static files).
        """
        return self._routes.get(path)

    def __contains__(self, path: object) -> bool:
        return path in self._routes

    def __len__(self) -> int:
        return len(self._routes)

    def paths(self) -> List[str]:
        return list(self._routes)

    def routes(self) -> List[Route]:
        """All routes in registration order."""
        return list(self._routes.values())

    def print_routes(self) -> None:
        """
        Print the route table (startup banner).

            Registered Routes:
            ------------------------------------------------------------
              GET      /hello
              GET      /greeting?name=World
            ------------------------------------------------------------
        """
        print("\nRegistered Routes:")
        print("-" * 60)
        for route in self.routes():
            query = "&".join(f"{p.name}={p.default}" for p in route.params)
            print(f"  {'GET':8} {route.path}{'?' + query if query else ''}")
        print("-" * 60)


class ServiceTable:
    """
    Collects route declarations in the order they are written.

    This is the surface a service module uses to declare its handlers:

        services = ServiceTable()

        @services.get("/hello")
        def hello():
            return "Hello World!"

        @services.get("/greeting", ParamSpec("name", "World"))
        def greeting(name):
            return f"Hola, {name}"

        registry = RouteRegistry.build(services.declarations())

    The decorator returns the function unchanged, so handlers stay plain
    functions that can be called and tested directly.
    """

    def __init__(self):
        self._declarations: List[Route] = []

    def add(
        self,
        path: str,
        handler: Handler,
        params: Sequence[ParamSpec] = (),
        name: Optional[str] = None,
    ) -> Route:
        """Declare a route. Duplicates are reported when the registry is built."""
        route = Route(path=path, handler=handler, params=tuple(params), name=name or "")
        self._declarations.append(route)
        return route

    def get(self, path: str, *params: ParamSpec, name: Optional[str] = None) -> Callable[[Handler], Handler]:
        """Decorator form of add()."""
        def decorator(handler: Handler) -> Handler:
            self.add(path, handler, params, name)
            return handler
        return decorator

    def declarations(self) -> List[Route]:
        return list(self._declarations)

    def __len__(self) -> int:
        return len(self._declarations)


def load_service_table(import_string: str, default_attr: str = "services") -> ServiceTable:
    """
    Resolve a "module:attribute" string to a ServiceTable.

    This is how a deployment picks its services at startup without the
    server knowing about them in advance:

        load_service_table("myapp.routes:services")
        load_service_table("myapp.routes")              # attribute "services"
        load_service_table("myapp.routes:make_table")   # factory, called once

    Args:
        import_string: Dotted module path, optionally followed by
                       ":attribute".
        default_attr: Attribute used when the string has no ":" part.

    Returns:
        The resolved ServiceTable.

    Raises:
        ValueError: If the module path is empty.
        ModuleNotFoundError: If the module cannot be imported.
        AttributeError: If the attribute does not exist on the module.
        TypeError: If the attribute is not a ServiceTable (or a factory
                   returning one).
    """
    module_path, _, attr_name = import_string.partition(":")
    if not module_path:
        raise ValueError(f"No module in services reference {import_string!r}")

    module = importlib.import_module(module_path)
    obj = getattr(module, attr_name or default_attr)

    if callable(obj) and not isinstance(obj, ServiceTable):
        obj = obj()

    if not isinstance(obj, ServiceTable):
        raise TypeError(
            f"{import_string!r} resolved to {type(obj).__name__}, not a ServiceTable"
        )

    logger.info(f"Loaded {len(obj)} service(s) from {import_string}")
    return obj

"""
Demo services served by the default application.

Each handler is a plain function of its query parameters. They are pure:
the same arguments always produce the same text.
"""

from ..http.query import ParamSpec
from ..http.registry import ServiceTable


services = ServiceTable()


@services.get("/hello")
def hello() -> str:
    return "Hello World!"


@services.get("/mañana")
def manana() -> str:
    return "Mañana es viernes"


@services.get("/euler")
def euler() -> str:
    return "euler es igual a 2,7182818284590"


@services.get("/editor")
def editor() -> str:
    return "El editor es Nicolas Sebastian Achuri Macias"


@services.get("/greeting", ParamSpec("name", "World"))
def greeting(name: str) -> str:
    """Greets the `name` query parameter (default World)."""
    return f"Hola, {name}"

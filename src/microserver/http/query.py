"""
=============================================================================
QUERY BINDER
=============================================================================

Turns a query string into handler arguments.

    /greeting?name=Nicolas&lang=es
              ─────────────────────
                       │
             parse_query()
                       │
                       ▼
         {"name": "Nicolas", "lang": "es"}
                       │
      bind_arguments([ParamSpec("name", "World")], ...)
                       │
                       ▼
                 ["Nicolas"]   →   greeting("Nicolas")

=============================================================================
LENIENT PARSING
=============================================================================

This is NOT RFC 3986 decoding. The rules are:

    pair             kept?   why
    ──────────────   ─────   ──────────────────────────────
    name=Nicolas     yes     exactly two non-empty tokens
    name=            no      empty value
    =Nicolas         no      empty name
    name             no      no "=" at all
    a=b=c            no      three tokens
    name=A&name=B    "B"     last occurrence wins

Values are never percent-decoded or coerced: handlers always receive
strings, exactly as they appeared on the wire.

=============================================================================
"""

from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence


@dataclass(frozen=True)
class ParamSpec:
    """
    One handler input sourced from the query string.

    Attributes:
        name: Query parameter name.
        default: Value passed when the parameter is absent. Must be a str,
                 so a handler never receives None.
    """

    name: str
    default: str = ""

    def __post_init__(self):
        if not self.name:
            raise ValueError("ParamSpec name must not be empty")
        if not isinstance(self.default, str):
            raise TypeError(
                f"ParamSpec {self.name!r} default must be a str, "
                f"got {type(self.default).__name__}"
            )


def parse_query(query_string: Optional[str]) -> Dict[str, str]:
    """
    Parse a query string into a name → value mapping.

    Args:
        query_string: Text after the "?" (None or "" for no query).

    Returns:
        Mapping of retained pairs. Later duplicates overwrite earlier ones.

    Examples:
        >>> parse_query("name=Nicolas")
        {'name': 'Nicolas'}

        >>> parse_query("x=1&x=2&broken&y=")
        {'x': '2'}
    """
    params: Dict[str, str] = {}
    if not query_string:
        return params

    for pair in query_string.split("&"):
        parts = pair.split("=")
        if len(parts) == 2 and parts[0] and parts[1]:
            params[parts[0]] = parts[1]

    return params


def bind_arguments(
    params: Sequence[ParamSpec],
    query_params: Mapping[str, str],
) -> List[str]:
    """
    Resolve a route's parameters against parsed query values.

    Args:
        params: The route's ParamSpecs, in handler argument order.
        query_params: Output of parse_query().

    Returns:
        Positional arguments for the handler, one per ParamSpec.

    Example:
        >>> bind_arguments([ParamSpec("name", "World")], {})
        ['World']
    """
    return [query_params.get(spec.name, spec.default) for spec in params]

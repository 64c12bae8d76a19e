"""
Variable expansion for container configuration strings.

Macros take the form ``${NAME}`` or ``$NAME``. Expansion is lenient: a macro
nobody can resolve is left in the string exactly as written.

Example:
    env = Environment({"HOME": "/home/x"})
    expand_variable(env, MapResolver(env), "${HOME}/app")   # "/home/x/app"
    expand_variable(env, MapResolver(env), "${MISSING}")    # "${MISSING}"
"""

import re
from collections.abc import Mapping
from typing import Callable, Dict, Iterable, Iterator, Optional, Tuple, Union

MACRO_PATTERN = re.compile(r'\$\{([^}]+)\}|\$([A-Za-z_][A-Za-z0-9_]*)')

Resolver = Callable[[str], Optional[str]]


def replace_macro(value: Optional[str], resolver: Resolver) -> Optional[str]:
    """Replace every macro ``resolver`` knows; keep the rest verbatim."""
    if value is None:
        return None

    def _substitute(match: 're.Match') -> str:
        name = match.group(1) or match.group(2)
        resolved = resolver(name)
        return match.group(0) if resolved is None else resolved

    return MACRO_PATTERN.sub(_substitute, value)


class MapResolver:
    """Resolver backed by a mapping (typically the build environment)."""

    def __init__(self, values: Mapping):
        self.values = values

    def __call__(self, name: str) -> Optional[str]:
        return self.values.get(name)


class Environment(Mapping):
    """
    Immutable, ordered snapshot of a build's environment variables.

    The snapshot is taken from an explicit mapping; it never reads the
    current process environment on its own.
    """

    def __init__(self, values: Union[Mapping, Iterable[Tuple[str, str]], None] = None):
        self._values: Dict[str, str] = {}
        if values is None:
            return
        items = values.items() if isinstance(values, Mapping) else values
        for key, value in items:
            self._values[str(key)] = str(value)

    def __getitem__(self, key: str) -> str:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Environment({list(self._values)})"

    def expand(self, value: Optional[str]) -> Optional[str]:
        """Expand macros against this environment only."""
        return replace_macro(value, self._values.get)

    def to_dict(self) -> Dict[str, str]:
        return dict(self._values)


def expand_variable(environment: Environment, resolver: Resolver, raw: Optional[str]) -> Optional[str]:
    """
    Expand a raw configuration string.

    The environment's own expansion runs first, then ``resolver`` gets a pass
    over whatever macros are still unresolved.

    Args:
        environment: Build environment snapshot (may be empty)
        resolver: Secondary name lookup
        raw: String possibly containing macros (None passes through)

    Returns:
        The expanded string
    """
    return replace_macro(environment.expand(raw), resolver)

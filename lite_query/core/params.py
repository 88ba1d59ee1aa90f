"""Parameter binding.

Discovers the placeholders of a statement, normalizes the many shapes bind
values arrive in (nothing, a sequence, a mapping, loose positional values)
and validates them before anything reaches the engine.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

from lite_query.core.exceptions import BindingError, ParameterTypeError
from lite_query.core.lexer import PARAM, tokenize

# A normalized bind set: positional values, named values, or nothing.
BindVars = list[Any] | dict[str, Any] | None

_NAME_PREFIXES = ":@$"


class Blob(bytes):
    """Marks a value that must be bound as a blob, never as text.

    Accepts anything ``bytes`` accepts, plus ``str`` (UTF-8 encoded).
    """

    def __new__(cls, data: Any = b"") -> Blob:
        if isinstance(data, str):
            data = data.encode("utf-8")
        return super().__new__(cls, data)


@dataclass(frozen=True)
class PlaceholderSpec:
    """Placeholders of one statement, indexed the way the engine indexes them.

    ``?`` takes the previous highest index plus one, ``?NNN`` takes ``NNN``,
    and each distinct ``:name``/``@name``/``$name`` gets the next index on
    first appearance.
    """

    count: int = 0
    names: dict[str, int] = field(default_factory=dict)
    positional: bool = False

    @property
    def named(self) -> bool:
        return bool(self.names)

    @property
    def mixed(self) -> bool:
        return self.positional and self.named


def scan_placeholders(sql: str) -> PlaceholderSpec:
    """Collect the placeholders of a single statement."""
    highest = 0
    names: dict[str, int] = {}
    positional = False

    for token in tokenize(sql):
        if token.kind != PARAM:
            continue
        if token.text.startswith("?"):
            positional = True
            index = int(token.text[1:]) if len(token.text) > 1 else highest + 1
            highest = max(highest, index)
        else:
            name = token.text[1:]
            if name not in names:
                highest += 1
                names[name] = highest

    return PlaceholderSpec(count=highest, names=names, positional=positional)


def to_bindable(value: Any) -> Any:
    """Convert *value* to a type the engine binds natively.

    Raises:
        ParameterTypeError: If the value's type is not supported.
    """
    if value is None or isinstance(value, (str, float)):
        return value
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    raise ParameterTypeError(value)


def _flatten(values: Any) -> Iterator[Any]:
    # Nested lists/tuples are spliced into the positional values.
    for value in values:
        if isinstance(value, (list, tuple)):
            yield from _flatten(value)
        else:
            yield value


def normalize_bind_vars(bind_vars: tuple[Any, ...]) -> BindVars:
    """Normalize the variadic bind arguments of an execute-style call.

    * ``()`` → ``None`` (nothing bound).
    * a single mapping → named values.
    * anything else → the arguments as positional values, with nested
      lists/tuples flattened in order (``1, ["a", ["b"]]`` → ``[1, "a", "b"]``).

    Raises:
        BindingError: If a mapping is combined with other arguments.
    """
    if not bind_vars:
        return None
    if len(bind_vars) == 1 and isinstance(bind_vars[0], Mapping):
        return dict(bind_vars[0])
    if any(isinstance(v, Mapping) for v in bind_vars):
        raise BindingError("cannot mix named and positional bind values")
    return list(_flatten(bind_vars))


def resolve_index(placeholders: PlaceholderSpec, key: int | str) -> int:
    """Return the 1-based placeholder index for a position or a name."""
    if isinstance(key, bool) or not isinstance(key, (int, str)):
        raise BindingError(f"invalid bind parameter key: {key!r}")
    if isinstance(key, int):
        if not 1 <= key <= placeholders.count:
            raise BindingError(
                f"bind index {key} out of range (statement has {placeholders.count} parameters)"
            )
        return key
    name = key.lstrip(_NAME_PREFIXES)
    if name not in placeholders.names:
        raise BindingError(f"no such bind parameter: {key}")
    return placeholders.names[name]


def bind(placeholders: PlaceholderSpec, bind_vars: BindVars) -> dict[int, Any]:
    """Validate *bind_vars* against *placeholders* and return index → value.

    Raises:
        BindingError: On count mismatch, unknown names, or a mapping
            supplied for positional placeholders.
        ParameterTypeError: If a value cannot be bound.
    """
    if bind_vars is None:
        return {}

    if isinstance(bind_vars, dict):
        if placeholders.positional:
            raise BindingError("named values supplied for positional placeholders")
        return {
            resolve_index(placeholders, key): to_bindable(value)
            for key, value in bind_vars.items()
        }

    if len(bind_vars) != placeholders.count:
        raise BindingError(
            f"wrong number of bind values: statement expects {placeholders.count}, "
            f"got {len(bind_vars)}"
        )
    return {index: to_bindable(value) for index, value in enumerate(bind_vars, start=1)}


def engine_params(
    placeholders: PlaceholderSpec, values: dict[int, Any]
) -> dict[str, Any] | tuple[Any, ...]:
    """Lay out bound *values* as the engine expects them; unbound slots are NULL."""
    if placeholders.named:
        return {name: values.get(index) for name, index in placeholders.names.items()}
    return tuple(values.get(index) for index in range(1, placeholders.count + 1))

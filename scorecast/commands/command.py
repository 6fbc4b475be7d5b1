from __future__ import annotations

from types import MappingProxyType
from typing import Any, Iterator, Mapping

from .command_type import CommandType


class Command:
    """
    A typed mutation request with a flat, string-valued payload.

    Commands are immutable. ``put()`` returns a new command carrying the
    extra field, so requests read naturally as a chain:

        Command(CommandType.SET_SPEED).put("speed", 2.0)

    Fields are looked up by key, never by position.
    """

    __slots__ = (
        "_type",
        "_fields",
    )

    def __init__(
        self,
        command_type: CommandType,
        fields: Mapping[str, Any] | None = None,
    ) -> None:
        self._type = command_type
        self._fields: dict[str, str] = {}

        if fields:
            for key, value in fields.items():
                self._fields[_to_field_key(key)] = _to_field_value(value)

        self._fields.pop("type", None)

    @property
    def type(self) -> CommandType:
        return self._type

    @property
    def fields(self) -> Mapping[str, str]:
        return MappingProxyType(self._fields)

    def put(self, key: str, value: Any) -> Command:
        if key == "type":
            raise ValueError("Err. - the type field is set by the command type")

        fields = dict(self._fields)
        fields[_to_field_key(key)] = _to_field_value(value)

        return Command(self._type, fields)

    def get(self, key: str, default: str | None = None) -> str | None:
        return self._fields.get(key, default)

    def get_int(self, key: str, default: int) -> int:
        try:
            return int(self._fields[key])

        except (KeyError, TypeError, ValueError):
            return default

    def get_float(self, key: str, default: float) -> float:
        try:
            return float(self._fields[key])

        except (KeyError, TypeError, ValueError):
            return default

    def items(self) -> Iterator[tuple[str, str]]:
        yield "type", self._type.value

        for key, value in self._fields.items():
            yield key, value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Command):
            return NotImplemented

        return self._type == other._type and self._fields == other._fields

    def __hash__(self) -> int:
        return hash((self._type, frozenset(self._fields.items())))

    def __repr__(self) -> str:
        return f"Command(type={self._type.value}, fields={self._fields!r})"


def _to_field_key(key: Any) -> str:
    key = str(key)
    if not key:
        raise ValueError("Err. - command field keys must not be empty")

    return key


def _to_field_value(value: Any) -> str:
    if value is None:
        return ""

    return str(value)

from __future__ import annotations

from enum import Enum


class CommandType(Enum):
    ADJUST_ATTRIBUTE = "ADJUST_ATTRIBUTE"
    ADJUST_LEDGER = "ADJUST_LEDGER"
    SET_SPEED = "SET_SPEED"
    SET_MULTIPLIER = "SET_MULTIPLIER"

    @classmethod
    def to_type(cls, type_name: str) -> CommandType | None:
        return cls.__members__.get(type_name)

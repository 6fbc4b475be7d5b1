from __future__ import annotations

from enum import Enum
from typing import Literal


RoleName = Literal[
    "HOST",
    "SLAVE",
]


class Role(Enum):
    HOST = "HOST"
    SLAVE = "SLAVE"

    @classmethod
    def to_role(cls, role_name: str) -> Role:
        roles_map = {
            Role.HOST.value: Role.HOST,
            Role.SLAVE.value: Role.SLAVE,
        }

        role = roles_map.get(role_name.strip().upper())
        if role is None:
            raise ValueError(f"Err. - unknown role {role_name!r}")

        return role

import msgspec

from .entity import Entity
from .ledger import Ledger
from .session_time import SessionTime


class SessionState(msgspec.Struct, kw_only=True):
    name: str
    session_time: SessionTime = msgspec.field(default_factory=SessionTime)
    multiplier: float = 1.0
    entities: dict[int, Entity] = msgspec.field(default_factory=dict)
    ledgers: dict[str, Ledger] = msgspec.field(default_factory=dict)

    def find_entity(self, entity_id: int) -> Entity | None:
        return self.entities.get(entity_id)

    def find_ledger(self, name: str | None) -> Ledger | None:
        if name is None:
            return None

        return self.ledgers.get(name)

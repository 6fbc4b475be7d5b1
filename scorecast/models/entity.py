import msgspec


class Entity(msgspec.Struct, kw_only=True):
    entity_id: int
    name: str
    attributes: dict[str, float] = msgspec.field(default_factory=dict)

    def adjust(self, attribute: str, delta: float) -> float:
        value = self.attributes.get(attribute, 0.0) + delta
        self.attributes[attribute] = value

        return value

import msgspec


class Ledger(msgspec.Struct, kw_only=True):
    """
    Tracks resources contributed by entities toward a fixed need.

    ``needed`` holds the target per resource, ``paid`` the running total
    and ``contributions`` each entity's share of it.
    """

    needed: dict[str, int] = msgspec.field(default_factory=dict)
    paid: dict[str, int] = msgspec.field(default_factory=dict)
    contributions: dict[int, dict[str, int]] = msgspec.field(default_factory=dict)

    def remaining(self, resource: str) -> int:
        return max(
            self.needed.get(resource, 0) - self.paid.get(resource, 0),
            0,
        )

    def contribute(self, entity_id: int, resource: str, amount: int) -> int:
        free = self.remaining(resource)
        if amount <= 0 or free <= 0:
            return 0

        paid_amount = min(amount, free)

        self.paid[resource] = self.paid.get(resource, 0) + paid_amount

        entity_contributions = self.contributions.setdefault(entity_id, {})
        entity_contributions[resource] = entity_contributions.get(resource, 0) + paid_amount

        return paid_amount

    @property
    def complete(self) -> bool:
        return all(
            self.remaining(resource) == 0 for resource in self.needed
        )

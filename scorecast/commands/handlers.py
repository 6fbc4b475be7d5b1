import math

from scorecast.errors import InvalidConfigurationError
from scorecast.models import SessionState

from .command import Command


def adjust_attribute(state: SessionState, command: Command) -> bool:
    entity = state.find_entity(command.get_int("entity", -1))
    attribute = command.get("attribute")

    if entity is None or not attribute:
        return False

    delta = command.get_float("delta", 0.0)
    if not math.isfinite(delta):
        return False

    entity.adjust(attribute, delta)

    return True


def adjust_ledger(state: SessionState, command: Command) -> bool:
    entity = state.find_entity(command.get_int("entity", -1))
    ledger = state.find_ledger(command.get("ledger"))
    resource = command.get("resource")

    if entity is None or ledger is None or not resource:
        return False

    paid = ledger.contribute(
        entity.entity_id,
        resource,
        command.get_int("amount", 0),
    )

    return paid > 0


def set_speed(state: SessionState, command: Command) -> bool:
    speed = command.get_float("speed", 1.0)
    if not math.isfinite(speed) or speed <= 0:
        raise InvalidConfigurationError(
            f"Err. - speed must be > 0, got {command.get('speed')!r}"
        )

    state.session_time.speed = speed

    return True


def set_multiplier(state: SessionState, command: Command) -> bool:
    multiplier = command.get_float("multiplier", 1.0)
    if not math.isfinite(multiplier):
        return False

    state.multiplier = multiplier

    return True

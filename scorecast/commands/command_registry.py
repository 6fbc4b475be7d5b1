import threading
from typing import Callable, Dict

from scorecast.models import SessionState

from .command import Command
from .command_type import CommandType
from .handlers import (
    adjust_attribute,
    adjust_ledger,
    set_multiplier,
    set_speed,
)


CommandHandler = Callable[[SessionState, Command], bool]


class CommandRegistry:
    """
    Maps command types to the handlers that apply them to session state.

    Handlers are only ever invoked on the logic executor. Registration
    may happen from any thread.
    """

    def __init__(self) -> None:
        self._handlers: Dict[CommandType, CommandHandler] = {}
        self._lock = threading.Lock()

    @classmethod
    def with_defaults(cls):
        registry = cls()
        registry.register(CommandType.ADJUST_ATTRIBUTE, adjust_attribute)
        registry.register(CommandType.ADJUST_LEDGER, adjust_ledger)
        registry.register(CommandType.SET_SPEED, set_speed)
        registry.register(CommandType.SET_MULTIPLIER, set_multiplier)

        return registry

    def register(
        self,
        command_type: CommandType,
        handler: CommandHandler,
    ):
        with self._lock:
            self._handlers[command_type] = handler

    def unregister(self, command_type: CommandType):
        with self._lock:
            self._handlers.pop(command_type, None)

    def handles(self, command_type: CommandType) -> bool:
        with self._lock:
            return command_type in self._handlers

    def apply(
        self,
        state: SessionState | None,
        command: Command,
    ) -> bool:
        with self._lock:
            handler = self._handlers.get(command.type)

        if handler is None:
            raise KeyError(f"no handler registered for {command.type.value}")

        if state is None:
            return False

        return handler(state, command)

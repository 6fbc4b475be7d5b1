from .codec import (
    decode as decode,
    encode as encode,
)
from .command import Command as Command
from .command_registry import (
    CommandHandler as CommandHandler,
    CommandRegistry as CommandRegistry,
)
from .command_type import CommandType as CommandType

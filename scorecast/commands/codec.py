from urllib.parse import quote_plus, unquote_plus

from scorecast.errors import DecodeError

from .command import Command
from .command_type import CommandType


def encode(command: Command) -> str:
    """
    Encode a command as a single ``key=value&...`` line terminated by a
    newline. The ``type`` discriminator is always written first and every
    key and value is percent-encoded.
    """
    return "&".join(
        f"{quote_plus(key)}={quote_plus(value)}" for key, value in command.items()
    ) + "\n"


def decode(line: str | bytes) -> Command:
    if isinstance(line, (bytes, bytearray)):
        try:
            line = bytes(line).decode()

        except UnicodeDecodeError as err:
            raise DecodeError(f"Err. - line is not valid UTF-8: {err}") from err

    stripped = line.strip()
    fields: dict[str, str] = {}

    for part in stripped.split("&"):
        idx = part.find("=")
        if idx <= 0:
            continue

        key = unquote_plus(part[:idx])
        value = unquote_plus(part[idx + 1 :])
        fields[key] = value

    type_name = fields.pop("type", None)
    if type_name is None:
        raise DecodeError("missing type", line=stripped)

    command_type = CommandType.to_type(type_name)
    if command_type is None:
        raise DecodeError(f"unknown type {type_name}", line=stripped)

    return Command(command_type, fields)

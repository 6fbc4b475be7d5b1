import msgspec


class CommandAck(msgspec.Struct, frozen=True):
    ok: bool
    message: str | None = None

    @classmethod
    def parse(cls, line: str):
        line = line.strip()

        if line == "OK":
            return CommandAck(ok=True)

        if line.startswith("ERR"):
            return CommandAck(
                ok=False,
                message=line[3:].strip() or None,
            )

        return CommandAck(
            ok=False,
            message=f"unexpected acknowledgement {line!r}",
        )

    def to_line(self) -> str:
        if self.ok:
            return "OK\n"

        message = (self.message or "").replace("\r", " ").replace("\n", " ")
        return f"ERR {message}\n"

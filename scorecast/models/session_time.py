import math

import msgspec


class SessionTime(msgspec.Struct, kw_only=True):
    elapsed: float = 0.0
    speed: float = 1.0

    @property
    def whole_seconds(self) -> int:
        return int(math.floor(self.elapsed))

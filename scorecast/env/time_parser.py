import re
from datetime import timedelta


class TimeParser:
    def __init__(self, time_amount: str | int | float) -> None:
        self._units = {
            "s": "seconds",
            "m": "minutes",
            "h": "hours",
            "d": "days",
            "w": "weeks",
        }

        if isinstance(time_amount, (int, float)):
            self.time = float(time_amount)

        else:
            self.time = self.parse(time_amount)

    def parse(self, time_amount: str):
        matches = list(
            re.finditer(
                r"(?P<val>\d+(\.\d+)?)(?P<unit>[smhdw]?)",
                time_amount,
                flags=re.I,
            )
        )

        if len(matches) == 0:
            raise ValueError(f"Err. - could not parse time amount {time_amount!r}")

        total = timedelta()
        for m in matches:
            total += timedelta(
                **{
                    self._units.get(
                        m.group("unit").lower(),
                        "seconds"
                    ): float(
                        m.group("val")
                    )
                }
            )

        return total.total_seconds()

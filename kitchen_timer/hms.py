import math
import re


HMS_RE = re.compile(r"^(?:(?:(\d+):)?(\d{1,2}):)?(\d+)$")


class HMS:
    """Hours, minutes and seconds of a non-negative duration."""

    def __init__(self, total_seconds: int) -> None:
        self.total = max(int(total_seconds), 0)
        self.hours, remainder = divmod(self.total, 3600)
        self.minutes, self.seconds = divmod(remainder, 60)

    @classmethod
    def from_ms(cls, delta_ms: float) -> "HMS":
        # Round up so an armed timer never reads as zero.
        return cls(math.ceil(max(delta_ms, 0) / 1000))

    def to_string(self, compact: bool = False) -> str:
        if self.hours:
            return f"{self.hours}:{self.minutes:02d}:{self.seconds:02d}"
        if not compact:
            return f"{self.minutes:02d}:{self.seconds:02d}"
        if self.minutes:
            return f"{self.minutes}:{self.seconds:02d}"
        return f"{self.seconds}"

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        return f"HMS({self.total})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HMS):
            return NotImplemented
        return self.total == other.total


def format(total_seconds: int, compact: bool = False) -> str:
    return HMS(total_seconds).to_string(compact)


def parse(text: str) -> int:
    """Parse ``H:MM:SS``, ``MM:SS`` or ``SS`` back into seconds."""
    match = HMS_RE.match(text.strip())
    if not match:
        raise ValueError(f"Not a duration: {text!r}")
    hours, minutes, seconds = (int(part) if part else 0 for part in match.groups())
    if minutes > 59 and hours:
        raise ValueError(f"Minutes out of range: {text!r}")
    if seconds > 59 and ":" in text:
        raise ValueError(f"Seconds out of range: {text!r}")
    return hours * 3600 + minutes * 60 + seconds

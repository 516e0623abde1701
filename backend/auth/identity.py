from dataclasses import dataclass


@dataclass(frozen=True)
class Identity:
    """The authenticated caller. Services scope every query to ``user_id``."""

    user_id: int
    username: str = ""

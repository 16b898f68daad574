"""Typed identifiers for Steam accounts and apps.

Both are plain ``str`` subclasses so they can be joined onto paths and used
as dictionary keys directly, but construction rejects anything that is not
a run of ASCII digits.
"""

from typing import Iterable

from ..errors import InvalidIdentifierError


def is_numeric_name(name: str) -> bool:
    """Check if a folder name is a non-empty run of ASCII digits."""
    return bool(name) and name.isascii() and name.isdigit()


class _NumericId(str):
    kind = "identifier"

    def __new__(cls, value):
        if isinstance(value, int) and not isinstance(value, bool):
            value = str(value)
        if not isinstance(value, str):
            raise InvalidIdentifierError(f"Invalid {cls.kind}: {value!r}")
        value = value.strip()
        if not is_numeric_name(value):
            raise InvalidIdentifierError(f"Invalid {cls.kind}: {value!r}")
        return super().__new__(cls, value)

    def __repr__(self):
        return f"{type(self).__name__}({str.__repr__(self)})"

    @classmethod
    def parse_many(cls, values: Iterable) -> list:
        """Convert values to ids, dropping duplicates while keeping order.

        Raises:
            InvalidIdentifierError: If any value is not numeric
        """
        result = []
        seen = set()
        for value in values:
            ident = cls(value)
            if ident not in seen:
                seen.add(ident)
                result.append(ident)
        return result


class GameId(_NumericId):
    """Steam app id, e.g. ``GameId("570")``."""
    kind = "game id"


class ProfileId(_NumericId):
    """Steam account id (the SteamID3 folder name under userdata)."""
    kind = "profile id"

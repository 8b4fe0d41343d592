from pathlib import Path
from typing import Mapping


def resolve_input(path: str | Path, table: Mapping[str, str]) -> str | None:
    """Return the canned stdin for a script, or None if it is not interactive.

    An exact filename match wins over a substring match on the full path.
    """
    pure_path = Path(path)
    if pure_path.name in table:
        return table[pure_path.name]

    posix = pure_path.as_posix()
    for key, payload in table.items():
        if key in posix:
            return payload

    return None

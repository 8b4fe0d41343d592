from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Task:
    path: Path
    input: str | None = None

    @property
    def interactive(self) -> bool:
        return self.input is not None


class DiscoveryError(Exception):
    def __init__(self, *args: object) -> None:
        super().__init__(*args)

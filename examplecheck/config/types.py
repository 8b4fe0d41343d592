from dataclasses import dataclass, field

DEFAULT_INTERACTIVE_INPUTS = {
    "chatbot.ts": "Hello\n",
    "streaming-chat.ts": "Hello\n",
    "qa-program.ts": "What is 2+2?\n",
    "03-human-in-loop.ts": "yes\nno\nno\n",
}

# Scanned against stderr with re.MULTILINE
DEFAULT_ERROR_PATTERNS = (
    r"Error:",
    r"Error$",
    r"^\s*at ",
    r"(?i)exception",
)


@dataclass
class RunnerConfig:
    concurrency: int = 10
    timeout_ms: int = 90_000
    command: list[str] = field(default_factory=lambda: ["npx", "tsx"])
    extension: str = ".ts"
    excluded_names: list[str] = field(
        default_factory=lambda: ["node_modules", "dist", "future", "scripts"]
    )
    chapter_pattern: str | None = r"^\d{2}-"
    chapter_subdirs: list[str] = field(
        default_factory=lambda: ["code", "solution", "samples"]
    )
    interactive_inputs: dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_INTERACTIVE_INPUTS)
    )
    error_patterns: list[str] = field(
        default_factory=lambda: list(DEFAULT_ERROR_PATTERNS)
    )
    env: dict[str, str] = field(default_factory=lambda: {"CI": "true"})
    excerpt_lines: int = 3

    def is_excluded(self, name: str) -> bool:
        return name.startswith(".") or name in self.excluded_names


class ConfigError(Exception):
    def __init__(self, *args: object) -> None:
        super().__init__(*args)


class UnsupportedConfigFormatError(ConfigError):
    def __init__(self, *args: object) -> None:
        super().__init__(*args)

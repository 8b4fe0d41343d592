from .loader import CONFIG_FILENAMES, find_config, load_config, validate_config
from .types import ConfigError, RunnerConfig, UnsupportedConfigFormatError

__all__ = [
    "CONFIG_FILENAMES",
    "find_config",
    "load_config",
    "validate_config",
    "RunnerConfig",
    "ConfigError",
    "UnsupportedConfigFormatError",
]

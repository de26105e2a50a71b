"""things-undo configuration — loading, validation, and defaults."""

from things_undo.config.defaults import DEFAULT_CONFIG
from things_undo.config.loader import load_config, load_config_from_dict
from things_undo.config.schema import UndoConfig

__all__ = [
    "load_config",
    "load_config_from_dict",
    "UndoConfig",
    "DEFAULT_CONFIG",
]

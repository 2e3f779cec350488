from xproject.infrastructure.config.config_loader import (
    DEFAULT_CONFIG_FILE,
    load_configuration,
    resolve_config_path,
)

__all__ = ["DEFAULT_CONFIG_FILE", "load_configuration", "resolve_config_path"]

import os
from collections.abc import Mapping
from pathlib import Path

from loguru import logger
from pydantic import ValidationError

from xproject.domain.entities.configuration import XcodeConfiguration, XprojectConfiguration
from xproject.domain.errors import ConfigurationNotFoundError, InvalidConfigurationError

DEFAULT_CONFIG_FILE = "xproject.json"

# Environment variables that take precedence over the configured paths
ARTIFACTS_PATH_ENV = "ARTIFACTS_PATH"
TEST_REPORTS_PATH_ENV = "TEST_REPORTS_PATH"


def resolve_config_path(working_directory: Path, config_path: Path | None = None) -> Path:
    path = config_path or Path(DEFAULT_CONFIG_FILE)
    return path if path.is_absolute() else working_directory / path


def _describe(error: ValidationError) -> str:
    messages = []
    for item in error.errors():
        loc = ".".join(str(part) for part in item.get("loc", ()))
        msg = item.get("msg", "")
        if msg.startswith("Value error, "):
            msg = msg[13:]
        messages.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(messages)


def override_xcode(config: XprojectConfiguration, **updates: object) -> XprojectConfiguration:
    """Copy of config with the given xcode section fields replaced."""
    xcode = config.xcode or XcodeConfiguration()
    return config.model_copy(update={"xcode": xcode.model_copy(update=updates)})


def apply_environment_overrides(
    config: XprojectConfiguration,
    environ: Mapping[str, str] | None = None,
) -> XprojectConfiguration:
    env = os.environ if environ is None else environ
    updates: dict[str, str] = {}
    if env.get(ARTIFACTS_PATH_ENV):
        updates["build_path"] = env[ARTIFACTS_PATH_ENV]
    if env.get(TEST_REPORTS_PATH_ENV):
        updates["reports_path"] = env[TEST_REPORTS_PATH_ENV]
    if not updates:
        return config

    logger.debug("Path overrides from environment: {}", updates)
    return override_xcode(config, **updates)


def load_configuration(
    working_directory: Path,
    config_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> XprojectConfiguration:
    """Load and validate the project configuration file.

    Raises ConfigurationNotFoundError when the file does not exist and
    InvalidConfigurationError when it cannot be parsed or validated.
    """
    path = resolve_config_path(working_directory, config_path)
    if not path.is_file():
        raise ConfigurationNotFoundError(path)

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise InvalidConfigurationError(path, str(e)) from e

    try:
        config = XprojectConfiguration.model_validate_json(content)
    except ValidationError as e:
        raise InvalidConfigurationError(path, _describe(e)) from e

    logger.debug("Loaded configuration for '{}' from {}", config.app_name, path)
    return apply_environment_overrides(config, environ)

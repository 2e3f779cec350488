import json
from pathlib import Path

import pytest

from xproject.domain.errors import ConfigurationNotFoundError, InvalidConfigurationError
from xproject.domain.entities.configuration import XprojectConfiguration
from xproject.infrastructure.config.config_loader import (
    load_configuration,
    override_xcode,
    resolve_config_path,
)


def write_config(directory: Path, data: dict, name: str = "xproject.json") -> Path:
    path = directory / name
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestLoadConfiguration:
    def test_loads_default_file(self, project_dir: Path, config_data: dict) -> None:
        write_config(project_dir, config_data)

        config = load_configuration(project_dir, environ={})

        assert config.app_name == "Sample"
        assert [p.scheme for p in config.xcode.tests.schemes] == ["A", "B"]

    def test_loads_explicit_relative_path(self, project_dir: Path, config_data: dict) -> None:
        write_config(project_dir, config_data, name="ci.json")

        config = load_configuration(project_dir, Path("ci.json"), environ={})

        assert config.app_name == "Sample"

    def test_missing_file(self, project_dir: Path) -> None:
        with pytest.raises(ConfigurationNotFoundError) as exc_info:
            load_configuration(project_dir, environ={})

        assert exc_info.value.path == project_dir / "xproject.json"

    def test_invalid_json(self, project_dir: Path) -> None:
        (project_dir / "xproject.json").write_text("{not json", encoding="utf-8")

        with pytest.raises(InvalidConfigurationError):
            load_configuration(project_dir, environ={})

    def test_validation_errors_are_described(
        self, project_dir: Path, config_data: dict
    ) -> None:
        config_data["app_name"] = ""
        write_config(project_dir, config_data)

        with pytest.raises(InvalidConfigurationError) as exc_info:
            load_configuration(project_dir, environ={})

        assert "app_name: app_name cannot be empty" in exc_info.value.reason

    def test_environment_overrides_paths(self, project_dir: Path, config_data: dict) -> None:
        write_config(project_dir, config_data)

        config = load_configuration(
            project_dir,
            environ={"ARTIFACTS_PATH": "ci/build", "TEST_REPORTS_PATH": "ci/reports"},
        )

        assert config.build_path == "ci/build"
        assert config.reports_path == "ci/reports"
        assert config.xcode.tests is not None

    def test_overrides_without_xcode_section(
        self, project_dir: Path, config_data: dict
    ) -> None:
        del config_data["xcode"]
        write_config(project_dir, config_data)

        config = load_configuration(project_dir, environ={"ARTIFACTS_PATH": "ci/build"})

        assert config.build_path == "ci/build"
        assert config.reports_path == "reports"

    def test_override_xcode_keeps_other_fields(self, sample_config: XprojectConfiguration) -> None:
        config = override_xcode(sample_config, command_timeout_s=300.0)

        assert config.command_timeout_s == 300.0
        assert config.xcode.tests == sample_config.xcode.tests
        assert sample_config.command_timeout_s is None

    def test_resolve_absolute_path(self, project_dir: Path, tmp_path: Path) -> None:
        absolute = tmp_path / "elsewhere.json"

        assert resolve_config_path(project_dir, absolute) == absolute

from pathlib import Path

import pytest

from xproject.domain.entities.configuration import XprojectConfiguration

IPHONE_17 = "platform=iOS Simulator,OS=17.5,name=iPhone 15"
IPHONE_18 = "platform=iOS Simulator,OS=18.0,name=iPhone 16"
IPAD_17 = "platform=iOS Simulator,OS=17.5,name=iPad Air"


def _sample_config_data() -> dict:
    return {
        "app_name": "Sample",
        "workspace_path": "Sample.xcworkspace",
        "project_path": {"Sample": "Sample.xcodeproj"},
        "xcode": {
            "tests": {
                "schemes": [
                    {
                        "scheme": "A",
                        "build_destination": "generic/platform=iOS Simulator",
                        "test_destinations": [IPHONE_17, IPHONE_18],
                    },
                    {
                        "scheme": "B",
                        "build_destination": "generic/platform=iOS Simulator",
                        "test_destinations": [IPAD_17],
                    },
                ]
            },
            "release": {
                "production": {
                    "scheme": "Sample",
                    "configuration": "Release",
                    "output": "Sample-production",
                    "destination": "iOS",
                    "app_store_account": "ci@example.com",
                    "sign": {
                        "signingCertificate": "Apple Distribution",
                        "teamID": "ABCDE12345",
                        "signingStyle": "manual",
                        "provisioningProfiles": {"com.example.sample": "Sample AppStore"},
                    },
                },
                "staging": {
                    "scheme": "Sample Staging",
                    "output": "Sample-staging",
                    "destination": "iOS",
                    "sign": {"teamID": "ABCDE12345", "signingStyle": "automatic"},
                },
            },
        },
    }


@pytest.fixture
def config_data() -> dict:
    return _sample_config_data()


@pytest.fixture
def sample_config(config_data: dict) -> XprojectConfiguration:
    return XprojectConfiguration.model_validate(config_data)


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "project"
    directory.mkdir()
    return directory

"""Renders toolchain operations into concrete command lines.

Everything here is pure: no process is spawned and no file is touched.
Paths are rendered relative to the configured build and reports
directories, which are themselves relative to the executor's working
directory unless configured as absolute paths.
"""

import re
from pathlib import Path

from pydantic import BaseModel

from xproject.domain.entities.configuration import (
    ReleaseConfiguration,
    SigningConfiguration,
    SigningStyle,
    XprojectConfiguration,
)
from xproject.domain.errors import UnsafePathDeletionError
from xproject.domain.value_objects.command_types import CommandInvocation
from xproject.domain.value_objects.toolchain import ToolchainDescriptor

XCRUN = "xcrun"
UPLOAD_PASSWORD_ENV = "APP_STORE_PASS"
EXPORT_METHOD = "app-store-connect"

UNSIGNED_BUILD_SETTINGS = (
    "CODE_SIGNING_REQUIRED=NO",
    "CODE_SIGN_IDENTITY=",
    "PROVISIONING_PROFILE=",
)

RESULT_BUNDLE_VERSION = "3"

# System locations: neither these nor anything below them may be removed
SYSTEM_PATHS = (
    "/System",
    "/Library",
    "/Applications",
    "/bin",
    "/sbin",
    "/usr",
    "/etc",
)

# Shared roots: the root itself and its direct children (home directories,
# volumes) are protected, deeper project directories are not
SHARED_ROOTS = (
    "/",
    "/Users",
    "/Volumes",
    "/private",
    "/var",
    "/tmp",
)

# A removable path must look like a build artifact
ARTIFACT_INDICATORS = (
    "build",
    "reports",
    ".xcarchive",
    "-ipa",
    ".ipa",
    ".log",
    ".xml",
    ".xcresult",
)


class XcodebuildStep(BaseModel, frozen=True):
    """One xcodebuild run: stale outputs are removed, then the build runs and
    its raw log is kept at log_path."""

    report_name: str
    cleanup: CommandInvocation
    command: CommandInvocation
    log_path: str
    result_bundle_path: str


class ExportPlan(BaseModel, frozen=True):
    remove_previous_export: CommandInvocation
    options_path: str
    options: dict[str, object]
    step: XcodebuildStep


# -----------------------------------------------------------------------------
# Naming
# -----------------------------------------------------------------------------


def destination_slug(destination: str) -> str:
    """Short name for a destination descriptor.

    "platform=iOS Simulator,OS=17.5,name=iPhone 15" -> "17.5_iPhone15"
    """
    elements: dict[str, str] = {}
    for pair in destination.split(","):
        key, sep, value = pair.partition("=")
        if sep:
            elements[key.strip()] = value

    platform = elements.get("platform") or elements.get("generic/platform") or ""
    os_version = elements.get("OS", "")
    device = elements.get("name", "")

    name = os_version or platform
    if device:
        if name:
            name += "_"
        name += device

    return re.sub(r"\s+", "", name)


def scheme_slug(scheme: str) -> str:
    return re.sub(r"\s+", "_", scheme)


def build_report_name(scheme: str, destination: str) -> str:
    return f"tests-{scheme}-{destination_slug(destination)}-build"


def clean_report_name(scheme: str) -> str:
    return f"tests-{scheme}-clean"


def run_tests_report_name(scheme: str, destination: str) -> str:
    return f"tests-{scheme_slug(scheme)}-{destination_slug(destination)}"


def archive_path(config: XprojectConfiguration, output: str) -> str:
    return str(Path(config.build_path) / f"{output}.xcarchive")


def export_path(config: XprojectConfiguration, output: str) -> str:
    return str(Path(config.build_path) / f"{output}-ipa")


def export_options_path(config: XprojectConfiguration) -> str:
    return str(Path(config.build_path) / "export.plist")


def ipa_path(config: XprojectConfiguration, release: ReleaseConfiguration) -> str:
    return str(Path(export_path(config, release.output)) / f"{release.scheme}.ipa")


def log_path(config: XprojectConfiguration, report_name: str) -> str:
    return str(Path(config.build_path) / f"xcode-{report_name}.log")


def result_bundle_path(config: XprojectConfiguration, report_name: str) -> str:
    return str(Path(config.reports_path) / f"{report_name}.xcresult")


# -----------------------------------------------------------------------------
# Safety
# -----------------------------------------------------------------------------


def ensure_safe_to_delete(path: str) -> None:
    normalized = path.strip()
    if not normalized:
        raise UnsafePathDeletionError(path)
    if normalized != "/":
        normalized = normalized.rstrip("/")

    for system_path in SYSTEM_PATHS:
        if normalized == system_path or normalized.startswith(system_path + "/"):
            raise UnsafePathDeletionError(path)

    # "/Users/ci" is protected, "/Users/ci/work/app/build" is not
    for root in SHARED_ROOTS:
        prefix = root.rstrip("/") + "/"
        if normalized == root or (
            normalized.startswith(prefix) and "/" not in normalized[len(prefix) :]
        ):
            raise UnsafePathDeletionError(path)

    lowered = normalized.lower()
    if not any(indicator in lowered for indicator in ARTIFACT_INDICATORS):
        raise UnsafePathDeletionError(path)


def validated_export_path(config: XprojectConfiguration, release: ReleaseConfiguration) -> str:
    destination = export_path(config, release.output)
    ensure_safe_to_delete(destination)
    return destination


def remove_command(
    working_directory: Path, *paths: str, checked: bool = True
) -> CommandInvocation:
    """rm -rf of the given paths.

    Unchecked removal is reserved for paths this module derives itself,
    such as per-step logs and result bundles.
    """
    if checked:
        for path in paths:
            ensure_safe_to_delete(path)
    return CommandInvocation(
        program="rm",
        arguments=("-rf", *paths),
        working_directory=working_directory,
    )


# -----------------------------------------------------------------------------
# xcodebuild
# -----------------------------------------------------------------------------


def toolchain_environment(toolchain: ToolchainDescriptor | None) -> dict[str, str]:
    if toolchain is None:
        return {}
    return {"DEVELOPER_DIR": str(toolchain.developer_dir)}


def xcodebuild_step(
    config: XprojectConfiguration,
    working_directory: Path,
    arguments: list[str],
    report_name: str,
    toolchain: ToolchainDescriptor | None,
) -> XcodebuildStep:
    log_file = log_path(config, report_name)
    result_file = result_bundle_path(config, report_name)

    all_arguments = [
        "xcodebuild",
        *arguments,
        "-resultBundlePath",
        result_file,
        "-resultBundleVersion",
        RESULT_BUNDLE_VERSION,
        "-skipPackagePluginValidation",
        "-skipMacroValidation",
    ]

    return XcodebuildStep(
        report_name=report_name,
        cleanup=remove_command(working_directory, log_file, result_file, checked=False),
        command=CommandInvocation(
            program=XCRUN,
            arguments=tuple(all_arguments),
            working_directory=working_directory,
            environment=toolchain_environment(toolchain),
            timeout_s=config.command_timeout_s,
        ),
        log_path=log_file,
        result_bundle_path=result_file,
    )


def _test_build_arguments(
    config: XprojectConfiguration, scheme: str, build_destination: str
) -> list[str]:
    return [
        *UNSIGNED_BUILD_SETTINGS,
        *config.project_locator(),
        "-parallelizeTargets",
        "-scheme",
        scheme,
        "-destination",
        build_destination,
    ]


def build_for_testing_steps(
    config: XprojectConfiguration,
    working_directory: Path,
    scheme: str,
    build_destination: str,
    clean: bool = False,
    toolchain: ToolchainDescriptor | None = None,
) -> list[XcodebuildStep]:
    """Optional clean pass, then analyze + build-for-testing with coverage."""
    base = _test_build_arguments(config, scheme, build_destination)
    steps: list[XcodebuildStep] = []

    if clean:
        steps.append(
            xcodebuild_step(
                config,
                working_directory,
                ["clean", *base],
                clean_report_name(scheme),
                toolchain,
            )
        )

    steps.append(
        xcodebuild_step(
            config,
            working_directory,
            ["analyze", "build-for-testing", "-enableCodeCoverage", "YES", *base],
            build_report_name(scheme, build_destination),
            toolchain,
        )
    )
    return steps


def run_tests_step(
    config: XprojectConfiguration,
    working_directory: Path,
    scheme: str,
    destination: str,
    toolchain: ToolchainDescriptor | None = None,
) -> XcodebuildStep:
    arguments = [
        *UNSIGNED_BUILD_SETTINGS,
        *config.project_locator(),
        "-scheme",
        scheme,
        "-parallel-testing-enabled",
        "NO",
        "test-without-building",
        "-destination",
        destination,
    ]
    return xcodebuild_step(
        config,
        working_directory,
        arguments,
        run_tests_report_name(scheme, destination),
        toolchain,
    )


def archive_step(
    config: XprojectConfiguration,
    working_directory: Path,
    environment: str,
    release: ReleaseConfiguration,
    toolchain: ToolchainDescriptor | None = None,
) -> XcodebuildStep:
    arguments = list(config.project_locator())

    if release.configuration and release.configuration.strip():
        arguments += ["-configuration", release.configuration]

    arguments += [
        "-archivePath",
        archive_path(config, release.output),
        "-destination",
        f"generic/platform={release.destination}",
        "-scheme",
        release.scheme,
        "-parallelizeTargets",
        "clean",
        "archive",
    ]
    return xcodebuild_step(
        config, working_directory, arguments, f"archive-{environment}", toolchain
    )


def export_options(signing: SigningConfiguration | None) -> dict[str, object]:
    """Export options plist content.

    Manual signing maps certificate and provisioning profiles explicitly;
    automatic signing leaves the profile mapping to the toolchain.
    """
    options: dict[str, object] = {"method": EXPORT_METHOD}
    if signing is None:
        return options

    if signing.team_id:
        options["teamID"] = signing.team_id
    if signing.signing_style:
        options["signingStyle"] = signing.signing_style.value
    if signing.signing_certificate:
        options["signingCertificate"] = signing.signing_certificate
    if signing.signing_style != SigningStyle.AUTOMATIC and signing.provisioning_profiles:
        options["provisioningProfiles"] = dict(signing.provisioning_profiles)
    return options


def export_plan(
    config: XprojectConfiguration,
    working_directory: Path,
    environment: str,
    release: ReleaseConfiguration,
    toolchain: ToolchainDescriptor | None = None,
) -> ExportPlan:
    # Validated first so an unsafe path never reaches any command
    destination = validated_export_path(config, release)

    options_file = export_options_path(config)
    arguments = [
        "-exportArchive",
        "-archivePath",
        archive_path(config, release.output),
        "-exportPath",
        destination,
        "-exportOptionsPlist",
        options_file,
    ]
    if release.signing is not None and release.signing.is_automatic:
        arguments.append("-allowProvisioningUpdates")

    return ExportPlan(
        remove_previous_export=remove_command(working_directory, destination),
        options_path=options_file,
        options=export_options(release.signing),
        step=xcodebuild_step(
            config, working_directory, arguments, f"export-{environment}", toolchain
        ),
    )


def upload_command(
    config: XprojectConfiguration,
    working_directory: Path,
    release: ReleaseConfiguration,
    toolchain: ToolchainDescriptor | None = None,
    credential: str | None = None,
) -> CommandInvocation:
    """altool upload; the credential travels in the environment, never in
    argv."""
    # --use-old-altool until https://github.com/fastlane/fastlane/issues/29698 is fixed
    arguments = [
        "altool",
        "--upload-app",
        "--use-old-altool",
        "--type",
        release.type,
        "-f",
        ipa_path(config, release),
    ]
    if release.app_store_account:
        arguments += ["-u", release.app_store_account]

    environment = toolchain_environment(toolchain)
    if credential:
        arguments += ["-p", f"@env:{UPLOAD_PASSWORD_ENV}"]
        environment[UPLOAD_PASSWORD_ENV] = credential

    return CommandInvocation(
        program=XCRUN,
        arguments=tuple(arguments),
        working_directory=working_directory,
        environment=environment,
        timeout_s=config.command_timeout_s,
    )

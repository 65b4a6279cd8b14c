"""Flutter detector.

Every ``pubspec.yaml`` in the snapshot marks a Flutter project. Each
project gets its own configuration, named after its test and platform
setup and numbered in discovery order.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

import yaml

from ciscout.core.logging import get_logger
from ciscout.core.models import DetectorName, Icon, SSHKeyActivation
from ciscout.detection.direntry import DirEntry, TreeSnapshot
from ciscout.detectors.base import ConfigMap, PlatformDetector
from ciscout.generation import ConfigBuilder, render_yaml
from ciscout.generation import steps
from ciscout.generation.config_builder import DEPLOY_WORKFLOW_ID, PRIMARY_WORKFLOW_ID
from ciscout.options import USER_INPUT_DEFAULT_VALUE, Decision, InputType

LOGGER = get_logger(__name__)

CONFIG_NAME_PREFIX = "flutter-config"
PUBSPEC_NAME = "pubspec.yaml"
PUB_CACHE_DIR_NAME = ".pub-cache"

PROJECT_LOCATION_INPUT_KEY = "project_location"
PROJECT_LOCATION_ENV_KEY = "BITRISE_FLUTTER_PROJECT_LOCATION"
PROJECT_LOCATION_TITLE = "Project location"
PROJECT_LOCATION_SUMMARY = (
    "The path to your Flutter project, stored as an Environment Variable. In your Workflows, "
    "you can specify paths relative to this path. You can change this at any time."
)
PLATFORM_INPUT_KEY = "platform"
PLATFORM_TITLE = "Platform"
PLATFORM_SUMMARY = (
    "The target platform for your first build. Your options are iOS, Android, both, or neither. "
    "You can change this in your Env Vars at any time."
)
IOS_OUTPUT_TYPE_KEY = "ios_output_type"
IOS_OUTPUT_TYPE_ARCHIVE = "archive"

PRIMARY_WORKFLOW_DESCRIPTION = """Builds project and runs tests.

Next steps:
- Check out [Getting started with Flutter apps](https://devcenter.bitrise.io/en/getting-started/getting-started-with-flutter-apps.html).
"""

DEPLOY_WORKFLOW_DESCRIPTION = """Builds and deploys app using [Deploy to bitrise.io Step](https://devcenter.bitrise.io/en/getting-started/getting-started-with-flutter-apps.html#deploying-a-flutter-app).

If you build for iOS, make sure to set up code signing secrets on Bitrise for a successful build.

Next steps:
- Check out [Getting started with Flutter apps](https://devcenter.bitrise.io/en/getting-started/getting-started-with-flutter-apps.html) for signing and deployment options.
- Check out the [Code signing guide](https://devcenter.bitrise.io/en/code-signing.html) for iOS and Android
"""

PINNED_VERSION_PATTERN = re.compile(r"^\d+\.\d+\.\d+(?:[-+][0-9A-Za-z.\-]+)?$")


@dataclass
class FlutterProject:
    """Facts about a single Flutter project."""

    index: int
    root_dir: str
    has_test: bool = False
    has_ios: bool = False
    has_android: bool = False
    flutter_version: str = ""

    @property
    def platform(self) -> str:
        """``both``, ``ios``, ``android`` or empty when neither is present."""
        if self.has_android and self.has_ios:
            return "both"
        if self.has_ios:
            return "ios"
        if self.has_android:
            return "android"
        return ""

    @property
    def config_name(self) -> str:
        name = CONFIG_NAME_PREFIX + ("-test" if self.has_test else "-notest")
        if self.platform:
            name += f"-{self.platform}"
        return f"{name}-{self.index}"


DEFAULT_PROJECTS = (
    FlutterProject(index=0, root_dir="", has_test=True, has_ios=True, has_android=True),
    FlutterProject(index=1, root_dir="", has_test=True, has_ios=True, has_android=False),
    FlutterProject(index=2, root_dir="", has_test=True, has_ios=False, has_android=True),
)


def _has_test(project_dir: DirEntry) -> bool:
    test_dir = project_dir.find_immediate_child("test", is_dir=True)
    if test_dir is None:
        return False
    return any(
        not entry.is_dir and entry.name.endswith("_test.dart")
        for entry in test_dir.iter_breadth_first()
    )


def _has_ios(project_dir: DirEntry) -> bool:
    return project_dir.find_by_path_components("ios", "Runner.xcworkspace", is_dir=True) is not None


def _has_android(project_dir: DirEntry) -> bool:
    return any(
        project_dir.find_by_path_components("android", name) is not None
        for name in ("build.gradle", "build.gradle.kts")
    )


def _read_fvm_version(path: Path, key: str) -> str:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid {path}: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"Invalid {path}: expected a JSON object")
    return str(data.get(key) or "")


def read_flutter_version(project_dir: Path) -> str:
    """Find the Flutter SDK version a project pins.

    Sources, in order: FVM (``.fvmrc``, ``.fvm/fvm_config.json``), asdf
    (``.tool-versions``), then ``environment.flutter`` in pubspec.yaml when
    it is an exact version rather than a constraint.

    Raises:
        ValueError: If a version file is malformed.
    """
    for path, key in (
        (project_dir / ".fvmrc", "flutter"),
        (project_dir / ".fvm" / "fvm_config.json", "flutterSdkVersion"),
    ):
        if path.is_file():
            version = _read_fvm_version(path, key)
            if version:
                return version

    tool_versions = project_dir / ".tool-versions"
    if tool_versions.is_file():
        for line in tool_versions.read_text(encoding="utf-8").splitlines():
            fields = line.split()
            if len(fields) >= 2 and fields[0] == "flutter":
                return fields[1]

    pubspec = project_dir / PUBSPEC_NAME
    try:
        data = yaml.safe_load(pubspec.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid {pubspec}: {e}") from e

    environment = data.get("environment") if isinstance(data, dict) else None
    if isinstance(environment, dict):
        constraint = str(environment.get("flutter", "")).strip()
        if PINNED_VERSION_PATTERN.match(constraint):
            return constraint
    return ""


def flutter_config(ssh_key_activation: SSHKeyActivation, project: FlutterProject) -> str:
    builder = ConfigBuilder()
    location = f"${PROJECT_LOCATION_ENV_KEY}"
    prepare = steps.default_prepare_step_list(ssh_key_activation)
    installer = steps.flutter_installer(project.flutter_version)
    deploy = steps.default_deploy_step_list()

    builder.set_workflow_description(PRIMARY_WORKFLOW_ID, PRIMARY_WORKFLOW_DESCRIPTION)
    builder.append_steps(PRIMARY_WORKFLOW_ID, *prepare)
    builder.append_steps(PRIMARY_WORKFLOW_ID, installer)
    # Restoring after the installer keeps the pub system cache intact
    builder.append_steps(PRIMARY_WORKFLOW_ID, steps.restore_dart_cache())
    if project.has_test:
        builder.append_steps(PRIMARY_WORKFLOW_ID, steps.flutter_test(location))
    else:
        builder.append_steps(PRIMARY_WORKFLOW_ID, steps.flutter_analyze(location))
    builder.append_steps(PRIMARY_WORKFLOW_ID, steps.save_dart_cache())
    builder.append_steps(PRIMARY_WORKFLOW_ID, *deploy)

    if project.platform:
        builder.set_workflow_description(DEPLOY_WORKFLOW_ID, DEPLOY_WORKFLOW_DESCRIPTION)
        builder.append_steps(DEPLOY_WORKFLOW_ID, *prepare)
        if project.has_ios:
            builder.append_steps(DEPLOY_WORKFLOW_ID, steps.certificate_and_profile_installer())
        builder.append_steps(DEPLOY_WORKFLOW_ID, installer)
        builder.append_steps(DEPLOY_WORKFLOW_ID, steps.flutter_analyze(location))
        if project.has_test:
            builder.append_steps(DEPLOY_WORKFLOW_ID, steps.flutter_test(location))

        build_inputs = [
            (PROJECT_LOCATION_INPUT_KEY, location),
            (PLATFORM_INPUT_KEY, project.platform),
        ]
        if project.has_ios:
            build_inputs.append((IOS_OUTPUT_TYPE_KEY, IOS_OUTPUT_TYPE_ARCHIVE))
        builder.append_steps(DEPLOY_WORKFLOW_ID, steps.flutter_build(*build_inputs))
        builder.append_steps(DEPLOY_WORKFLOW_ID, *deploy)

    return render_yaml(builder.generate(DetectorName.FLUTTER.value))


class FlutterDetector(PlatformDetector):
    """Detects Flutter projects through their pubspec.yaml."""

    def __init__(self) -> None:
        self._projects: List[FlutterProject] = []
        self._warnings: List[str] = []

    @property
    def name(self) -> str:
        return DetectorName.FLUTTER.value

    @property
    def projects(self) -> List[FlutterProject]:
        return list(self._projects)

    def detect_platform(self, snapshot: TreeSnapshot) -> bool:
        LOGGER.info("Searching for Flutter projects...")
        pubspecs = [
            entry
            for entry in snapshot.root.find_all_by_name(PUBSPEC_NAME)
            if PUB_CACHE_DIR_NAME not in entry.rel_path.split("/")
        ]
        LOGGER.info(f"{len(pubspecs)} pubspec.yaml file(s) found")

        self._projects = []
        self._warnings = []
        for pubspec in pubspecs:
            project_dir: Optional[DirEntry] = snapshot.parent(pubspec)
            if project_dir is None:
                continue

            try:
                version = read_flutter_version(Path(project_dir.abs_path))
            except ValueError as e:
                message = f"Failed to read Flutter version for {project_dir.rel_path}: {e}"
                LOGGER.warning(message)
                self._warnings.append(message)
                version = ""

            project = FlutterProject(
                index=len(self._projects),
                root_dir=project_dir.rel_path,
                has_test=_has_test(project_dir),
                has_ios=_has_ios(project_dir),
                has_android=_has_android(project_dir),
                flutter_version=version,
            )
            self._projects.append(project)

            LOGGER.info(f"Flutter project found: {project.root_dir}")
            LOGGER.debug(
                f"  test: {project.has_test}, android: {project.has_android}, "
                f"ios: {project.has_ios}, flutter version: {project.flutter_version or 'unpinned'}"
            )

        return bool(self._projects)

    def excluded_detector_names(self) -> List[str]:
        return [DetectorName.IOS.value, DetectorName.ANDROID.value]

    def options(self) -> Tuple[Decision, List[str], List[Icon]]:
        location = Decision(PROJECT_LOCATION_TITLE, PROJECT_LOCATION_SUMMARY, PROJECT_LOCATION_ENV_KEY)
        for project in self._projects:
            location.add_config_leaf(project.root_dir, project.config_name)
        return location, list(self._warnings), []

    def default_options(self) -> Decision:
        location = Decision(
            PROJECT_LOCATION_TITLE,
            PROJECT_LOCATION_SUMMARY,
            PROJECT_LOCATION_ENV_KEY,
            InputType.USER_INPUT,
        )
        platform = location.add_option(
            USER_INPUT_DEFAULT_VALUE,
            Decision(PLATFORM_TITLE, PLATFORM_SUMMARY),
        )
        for project in DEFAULT_PROJECTS:
            platform.add_config_leaf(project.platform, project.config_name)
        return location

    def configs(self, ssh_key_activation: SSHKeyActivation) -> ConfigMap:
        return {
            project.config_name: flutter_config(ssh_key_activation, project)
            for project in self._projects
        }

    def default_configs(self) -> ConfigMap:
        return {
            project.config_name: flutter_config(SSHKeyActivation.CONDITIONAL, project)
            for project in DEFAULT_PROJECTS
        }

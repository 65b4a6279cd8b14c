"""iOS detector.

Projects and workspaces come from Xcode project discovery. Every scheme and
distribution method pair is a leaf; leaves that would render the same
document share a config name built from the dependency managers in use
and whether the scheme runs tests. Leaves carry the icon of the scheme's
app target.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Tuple

from ciscout.core.logging import get_logger
from ciscout.core.models import DetectorName, Icon, SSHKeyActivation
from ciscout.detection.direntry import TreeSnapshot
from ciscout.detection.icons import lookup_ios_icons
from ciscout.detection.xcode import Scheme, XcodeProject, find_xcode_projects
from ciscout.detectors.base import ConfigMap, PlatformDetector
from ciscout.generation import ConfigBuilder, render_yaml
from ciscout.generation import steps
from ciscout.options import USER_INPUT_DEFAULT_VALUE, Decision, InputType

LOGGER = get_logger(__name__)

DEFAULT_CONFIG_NAME = "default-ios-config"

PROJECT_PATH_INPUT_KEY = "project_path"
PROJECT_PATH_ENV_KEY = "BITRISE_PROJECT_PATH"
PROJECT_PATH_TITLE = "Project or Workspace path"
PROJECT_PATH_SUMMARY = (
    "The location of your Xcode project or Xcode workspace files, stored as an Environment Variable. "
    "In your Workflows, you can specify paths relative to this path."
)

SCHEME_INPUT_KEY = "scheme"
SCHEME_ENV_KEY = "BITRISE_SCHEME"
SCHEME_TITLE = "Scheme name"
SCHEME_SUMMARY = (
    "An Xcode scheme defines a collection of targets to build, a configuration to use when building, "
    "and a collection of tests to execute. Only shared schemes are detected automatically but you can "
    "use any scheme as a target. You can change the scheme at any time in your Env Vars."
)

DISTRIBUTION_METHOD_INPUT_KEY = "distribution_method"
DISTRIBUTION_METHOD_ENV_KEY = "BITRISE_DISTRIBUTION_METHOD"
DISTRIBUTION_METHOD_TITLE = "Distribution method"
DISTRIBUTION_METHOD_SUMMARY = (
    "The export method used to create an .ipa file in your builds, stored as an Environment Variable. "
    "You can change this at any time, or even create several .ipa files with different export methods "
    "in the same build."
)
EXPORT_METHODS = ("app-store", "ad-hoc", "enterprise", "development")

AUTOMATIC_CODE_SIGNING_INPUT_KEY = "automatic_code_signing"
AUTOMATIC_CODE_SIGNING_API_KEY = "api-key"
CONFIGURATION_INPUT_KEY = "configuration"
RELEASE_CONFIGURATION = "Release"
TEST_REPETITION_MODE_INPUT_KEY = "test_repetition_mode"
TEST_REPETITION_MODE_RETRY_ON_FAILURE = "retry_on_failure"
DESTINATION_INPUT_KEY = "destination"
GENERIC_SIMULATOR_DESTINATION = "generic/platform=iOS Simulator"
CACHE_LEVEL_INPUT_KEY = "cache_level"
CACHE_LEVEL_NONE = "none"

TEST_WORKFLOW_ID = "run_tests"
TEST_WORKFLOW_SUMMARY = "Run your Xcode tests and get the test report."
TEST_WORKFLOW_DESCRIPTION = (
    "The workflow will first clone your Git repository, cache and install your project's dependencies "
    "if any, run your Xcode tests and save the test results."
)

BUILD_WORKFLOW_ID = "build"
BUILD_WORKFLOW_SUMMARY = "Build your Xcode project."
BUILD_WORKFLOW_DESCRIPTION = (
    "The workflow will first clone your Git repository, cache and install your project's dependencies "
    "if any and build your project."
)

ARCHIVE_WORKFLOW_ID = "archive_and_export_app"
ARCHIVE_WITH_TESTS_SUMMARY = (
    "Run your Xcode tests and create an IPA file to install your app on a device or share it with your team."
)
ARCHIVE_WITH_TESTS_DESCRIPTION = (
    "The workflow will first clone your Git repository, cache and install your project's dependencies "
    "if any, run your Xcode tests, export an IPA file from the project and save it."
)
ARCHIVE_WITHOUT_TESTS_SUMMARY = "Create an IPA file to install your app on a device or share it with your team."
ARCHIVE_WITHOUT_TESTS_DESCRIPTION = (
    "The workflow will first clone your Git repository, cache and install your project's dependencies "
    "if any, export an IPA file from the project and save it."
)


@dataclass(frozen=True)
class ConfigDescriptor:
    """The facts that decide the content of an iOS configuration."""

    has_podfile: bool = False
    carthage_command: str = ""
    has_test: bool = False
    missing_shared_schemes: bool = False

    @property
    def config_name(self) -> str:
        qualifiers = ""
        if self.has_podfile:
            qualifiers += "-pod"
        if self.carthage_command:
            qualifiers += "-carthage"
        if self.has_test:
            qualifiers += "-test"
        if self.missing_shared_schemes:
            qualifiers += "-missing-shared-schemes"
        return f"ios{qualifiers}-config"


DEFAULT_DESCRIPTOR = ConfigDescriptor(has_podfile=True, has_test=True)


def _descriptor(project: XcodeProject, scheme: Scheme) -> ConfigDescriptor:
    return ConfigDescriptor(
        has_podfile=project.is_pod_workspace,
        carthage_command=project.carthage_command,
        has_test=scheme.has_tests,
        missing_shared_schemes=scheme.missing,
    )


def _base_xcode_inputs() -> List[Tuple[str, str]]:
    return [
        (PROJECT_PATH_INPUT_KEY, f"${PROJECT_PATH_ENV_KEY}"),
        (SCHEME_INPUT_KEY, f"${SCHEME_ENV_KEY}"),
    ]


def _append_dependency_steps(
    builder: ConfigBuilder,
    workflow_id: str,
    descriptor: ConfigDescriptor,
    include_cache: bool,
) -> None:
    if include_cache:
        if descriptor.has_podfile:
            builder.append_steps(workflow_id, steps.restore_cocoapods_cache())
        if descriptor.carthage_command:
            builder.append_steps(workflow_id, steps.restore_carthage_cache())
    if descriptor.missing_shared_schemes:
        builder.append_steps(workflow_id, steps.recreate_user_schemes(f"${PROJECT_PATH_ENV_KEY}"))
    if descriptor.has_podfile:
        builder.append_steps(workflow_id, steps.cocoapods_install())
    if descriptor.carthage_command:
        builder.append_steps(workflow_id, steps.carthage(descriptor.carthage_command))


def _append_cache_teardown_steps(builder: ConfigBuilder, workflow_id: str, descriptor: ConfigDescriptor) -> None:
    if descriptor.has_podfile:
        builder.append_steps(workflow_id, steps.save_cocoapods_cache())
    if descriptor.carthage_command:
        builder.append_steps(workflow_id, steps.save_carthage_cache())


def _xcode_test_step() -> steps.StepListItem:
    return steps.xcode_test(
        *_base_xcode_inputs(),
        (TEST_REPETITION_MODE_INPUT_KEY, TEST_REPETITION_MODE_RETRY_ON_FAILURE),
        (CACHE_LEVEL_INPUT_KEY, CACHE_LEVEL_NONE),
    )


def ios_config(ssh_key_activation: SSHKeyActivation, descriptor: ConfigDescriptor) -> str:
    builder = ConfigBuilder()

    # Verification: tests when the scheme has any, a simulator build otherwise
    if descriptor.has_test:
        verify_id, summary, description = TEST_WORKFLOW_ID, TEST_WORKFLOW_SUMMARY, TEST_WORKFLOW_DESCRIPTION
    else:
        verify_id, summary, description = BUILD_WORKFLOW_ID, BUILD_WORKFLOW_SUMMARY, BUILD_WORKFLOW_DESCRIPTION

    builder.append_steps(verify_id, *steps.default_prepare_step_list(ssh_key_activation))
    _append_dependency_steps(builder, verify_id, descriptor, include_cache=True)
    if descriptor.has_test:
        builder.append_steps(verify_id, _xcode_test_step())
    else:
        builder.append_steps(
            verify_id,
            steps.xcode_build_for_simulator(
                *_base_xcode_inputs(),
                (DESTINATION_INPUT_KEY, GENERIC_SIMULATOR_DESTINATION),
                (CACHE_LEVEL_INPUT_KEY, CACHE_LEVEL_NONE),
            ),
        )
    _append_cache_teardown_steps(builder, verify_id, descriptor)
    builder.append_steps(verify_id, *steps.default_deploy_step_list())
    builder.set_workflow_summary(verify_id, summary)
    builder.set_workflow_description(verify_id, description)

    # Archive: no caches
    builder.append_steps(ARCHIVE_WORKFLOW_ID, *steps.default_prepare_step_list(ssh_key_activation))
    _append_dependency_steps(builder, ARCHIVE_WORKFLOW_ID, descriptor, include_cache=False)
    if descriptor.has_test:
        builder.append_steps(ARCHIVE_WORKFLOW_ID, _xcode_test_step())
    builder.append_steps(
        ARCHIVE_WORKFLOW_ID,
        steps.xcode_archive(
            *_base_xcode_inputs(),
            (DISTRIBUTION_METHOD_INPUT_KEY, f"${DISTRIBUTION_METHOD_ENV_KEY}"),
            (AUTOMATIC_CODE_SIGNING_INPUT_KEY, AUTOMATIC_CODE_SIGNING_API_KEY),
            (CACHE_LEVEL_INPUT_KEY, CACHE_LEVEL_NONE),
        ),
    )
    builder.append_steps(ARCHIVE_WORKFLOW_ID, *steps.default_deploy_step_list())
    if descriptor.has_test:
        builder.set_workflow_summary(ARCHIVE_WORKFLOW_ID, ARCHIVE_WITH_TESTS_SUMMARY)
        builder.set_workflow_description(ARCHIVE_WORKFLOW_ID, ARCHIVE_WITH_TESTS_DESCRIPTION)
    else:
        builder.set_workflow_summary(ARCHIVE_WORKFLOW_ID, ARCHIVE_WITHOUT_TESTS_SUMMARY)
        builder.set_workflow_description(ARCHIVE_WORKFLOW_ID, ARCHIVE_WITHOUT_TESTS_DESCRIPTION)

    return render_yaml(builder.generate(DetectorName.IOS.value))


class IOSDetector(PlatformDetector):
    """Detects iOS Xcode projects and workspaces."""

    def __init__(self) -> None:
        self._projects: List[XcodeProject] = []
        self._descriptors: Dict[str, ConfigDescriptor] = {}
        self._scheme_icons: Dict[Tuple[str, str], List[Icon]] = {}
        self._warnings: List[str] = []

    @property
    def name(self) -> str:
        return DetectorName.IOS.value

    @property
    def projects(self) -> List[XcodeProject]:
        return list(self._projects)

    def _lookup_icons(self, project: XcodeProject, scheme: Scheme, search_dir: Path) -> List[Icon]:
        if project.dir_entry is None:
            return []
        try:
            return lookup_ios_icons(project.dir_entry, scheme.app_target, search_dir)
        except (ValueError, OSError) as e:
            message = f"Failed to find icons for scheme {scheme.name}: {e}"
            LOGGER.warning(message)
            self._warnings.append(message)
            return []

    def detect_platform(self, snapshot: TreeSnapshot) -> bool:
        LOGGER.info("Searching for Xcode project files...")
        self._projects = find_xcode_projects(snapshot)
        LOGGER.info(f"{len(self._projects)} Xcode project(s) found")
        self._descriptors = {}
        self._scheme_icons = {}
        self._warnings = []
        for project in self._projects:
            LOGGER.debug(f"- {project.rel_path}: {', '.join(s.name for s in project.schemes)}")
            for scheme in project.schemes:
                descriptor = _descriptor(project, scheme)
                # First project wins when two differ only in the Carthage command
                self._descriptors.setdefault(descriptor.config_name, descriptor)
                icons = self._lookup_icons(project, scheme, Path(snapshot.root_dir))
                LOGGER.debug(f"{len(icons)} icon(s) found for scheme {scheme.name}")
                self._scheme_icons[(project.rel_path, scheme.name)] = icons
        return bool(self._projects)

    def options(self) -> Tuple[Decision, List[str], List[Icon]]:
        warnings: List[str] = []
        all_icons: Dict[str, Icon] = {}

        project_path = Decision(PROJECT_PATH_TITLE, PROJECT_PATH_SUMMARY, PROJECT_PATH_ENV_KEY)
        for project in self._projects:
            warnings.extend(project.warnings)
            scheme_decision = project_path.add_option(
                project.rel_path,
                Decision(SCHEME_TITLE, SCHEME_SUMMARY, SCHEME_ENV_KEY),
            )
            for scheme in project.schemes:
                config_name = _descriptor(project, scheme).config_name
                icons = self._scheme_icons.get((project.rel_path, scheme.name), [])
                for icon in icons:
                    all_icons.setdefault(icon.filename, icon)
                method_decision = scheme_decision.add_option(
                    scheme.name,
                    Decision(DISTRIBUTION_METHOD_TITLE, DISTRIBUTION_METHOD_SUMMARY, DISTRIBUTION_METHOD_ENV_KEY),
                )
                for method in EXPORT_METHODS:
                    method_decision.add_config_leaf(method, config_name, [icon.filename for icon in icons])

        warnings.extend(self._warnings)
        return project_path, warnings, list(all_icons.values())

    def default_options(self) -> Decision:
        project_path = Decision(
            PROJECT_PATH_TITLE,
            PROJECT_PATH_SUMMARY,
            PROJECT_PATH_ENV_KEY,
            InputType.USER_INPUT,
        )
        scheme = project_path.add_option(
            USER_INPUT_DEFAULT_VALUE,
            Decision(SCHEME_TITLE, SCHEME_SUMMARY, SCHEME_ENV_KEY, InputType.USER_INPUT),
        )
        method_decision = scheme.add_option(
            USER_INPUT_DEFAULT_VALUE,
            Decision(DISTRIBUTION_METHOD_TITLE, DISTRIBUTION_METHOD_SUMMARY, DISTRIBUTION_METHOD_ENV_KEY),
        )
        for method in EXPORT_METHODS:
            method_decision.add_config_leaf(method, DEFAULT_CONFIG_NAME)
        return project_path

    def configs(self, ssh_key_activation: SSHKeyActivation) -> ConfigMap:
        return {
            name: ios_config(ssh_key_activation, descriptor)
            for name, descriptor in self._descriptors.items()
        }

    def default_configs(self) -> ConfigMap:
        return {DEFAULT_CONFIG_NAME: ios_config(SSHKeyActivation.CONDITIONAL, DEFAULT_DESCRIPTOR)}

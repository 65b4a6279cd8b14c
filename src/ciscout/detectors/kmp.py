"""Kotlin Multiplatform detector.

A Gradle build applying the ``org.jetbrains.kotlin.multiplatform`` plugin.
The first non-Wear sub-project applying the Android application plugin is
used as the Android app target, and the shallowest Xcode project inside
the Gradle root as the iOS app target. Each target found adds a build
workflow; with both, a ``build`` pipeline runs them side by side.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from ciscout.core.logging import get_logger
from ciscout.core.models import DetectorName, Icon, SSHKeyActivation
from ciscout.detection.direntry import TreeSnapshot
from ciscout.detection.gradle import GradleProject, SubProject, find_gradle_projects, plugin_accessor
from ciscout.detection.xcode import PROJECT_EXTENSION, XcodeProject, find_xcode_projects
from ciscout.detectors import android, ios
from ciscout.detectors.base import ConfigMap, PlatformDetector
from ciscout.detectors.java import (
    GRADLE_ROOT_DIR_SUMMARY,
    GRADLE_ROOT_DIR_TITLE,
    PROJECT_ROOT_DIR_ENV_KEY,
)
from ciscout.generation import ConfigBuilder, render_yaml
from ciscout.generation import steps
from ciscout.options import USER_INPUT_DEFAULT_VALUE, Decision, InputType

LOGGER = get_logger(__name__)

CONFIG_NAME = "kotlin-multiplatform-config"
DEFAULT_CONFIG_NAME = "default-kotlin-multiplatform-config"
DEFAULT_ANDROID_CONFIG_NAME = "default-kotlin-multiplatform-config-android"
DEFAULT_IOS_CONFIG_NAME = "default-kotlin-multiplatform-config-ios"
DEFAULT_ANDROID_IOS_CONFIG_NAME = "default-kotlin-multiplatform-config-android-ios"

TEST_WORKFLOW_ID = "run_tests"
ANDROID_BUILD_WORKFLOW_ID = "android_build"
IOS_BUILD_WORKFLOW_ID = "ios_build"
BUILD_PIPELINE_ID = "build"

KMP_DEPENDENCIES = ("org.jetbrains.kotlin.multiplatform", 'kotlin("multiplatform")')
ANDROID_APPLICATION_PLUGIN_ID = "com.android.application"
WEAR_FEATURE = "android.hardware.type.watch"

HAS_ANDROID_TARGET_TITLE = "Has Android app target?"
HAS_ANDROID_TARGET_SUMMARY = "Indicates whether the project contains an Android app target."
HAS_IOS_TARGET_TITLE = "Has iOS app target?"
HAS_IOS_TARGET_SUMMARY = "Indicates whether the project contains an iOS app target."


@dataclass(frozen=True)
class AndroidTarget:
    """The Android application module of a multiplatform build."""

    module_path: str
    build_script_rel_path: str


@dataclass(frozen=True)
class IOSTarget:
    """The Xcode project of a multiplatform build."""

    project: XcodeProject
    warnings: Tuple[str, ...] = ()

    @property
    def descriptor(self) -> ios.ConfigDescriptor:
        return ios.ConfigDescriptor(
            has_podfile=self.project.is_pod_workspace,
            carthage_command=self.project.carthage_command,
        )


def _is_wear_app(snapshot: TreeSnapshot, project: SubProject) -> bool:
    module_dir = snapshot.parent(project.build_script_file_entry)
    if module_dir is None:
        return False
    for manifest in module_dir.find_all_by_name("AndroidManifest.xml"):
        content = Path(manifest.abs_path).read_text(encoding="utf-8", errors="replace")
        if WEAR_FEATURE in content:
            return True
    return False


def find_android_target(snapshot: TreeSnapshot, project: GradleProject) -> Optional[AndroidTarget]:
    """Return the Android app target of a multiplatform build, if any.

    Raises:
        ValueError: If the version catalog is malformed.
        OSError: If a build script or manifest cannot be read.
    """
    dependencies = [f'"{ANDROID_APPLICATION_PLUGIN_ID}"']
    alias = project.get_plugin_alias_from_version_catalog(ANDROID_APPLICATION_PLUGIN_ID)
    if alias:
        dependencies.append(f"alias({plugin_accessor(alias)})")

    candidates = [
        sub_project
        for sub_project in project.find_sub_projects_with_any_dependency(dependencies)
        if not _is_wear_app(snapshot, sub_project)
    ]
    if not candidates:
        return None

    build_script = candidates[0].build_script_file_entry
    module_path = os.path.relpath(
        os.path.dirname(build_script.abs_path),
        project.root_dir_entry.abs_path,
    ).replace(os.sep, "/")
    if len(candidates) > 1:
        LOGGER.warning(
            f"{len(candidates)} Android targets found in the Gradle project, using the first one: {module_path}"
        )
    return AndroidTarget(module_path=module_path, build_script_rel_path=build_script.rel_path)


def _is_within(rel_path: str, dir_rel_path: str) -> bool:
    if dir_rel_path.endswith("/"):
        return rel_path.startswith(dir_rel_path)
    return rel_path == dir_rel_path or rel_path.startswith(dir_rel_path + "/")


def find_ios_target(snapshot: TreeSnapshot, project: GradleProject) -> Optional[IOSTarget]:
    """Return the iOS app target of a multiplatform build, if any.

    Only Xcode projects inside the Gradle root count, and there must be an
    ``.xcodeproj`` among them. When there are several, the shallowest one
    is used and a warning is recorded.
    """
    if project.root_dir_entry.find_first_by_extension(PROJECT_EXTENSION) is None:
        return None

    root_rel_path = project.root_dir_entry.rel_path
    candidates = [
        xcode_project
        for xcode_project in find_xcode_projects(snapshot)
        if xcode_project.dir_entry is not None and _is_within(xcode_project.dir_entry.rel_path, root_rel_path)
    ]
    if not candidates:
        return None

    xcode_project = candidates[0]
    warnings = list(xcode_project.warnings)
    if len(candidates) > 1:
        message = (
            f"{len(candidates)} iOS projects found in the Gradle project, using the first one: {xcode_project.rel_path}"
        )
        LOGGER.warning(message)
        warnings.append(message)
    return IOSTarget(project=xcode_project, warnings=tuple(warnings))


def _append_ios_build_workflow(
    builder: ConfigBuilder,
    ssh_key_activation: SSHKeyActivation,
    descriptor: ios.ConfigDescriptor,
) -> None:
    workflow_id = IOS_BUILD_WORKFLOW_ID
    builder.append_steps(workflow_id, *steps.default_prepare_step_list(ssh_key_activation))

    if descriptor.has_podfile:
        builder.append_steps(workflow_id, steps.restore_cocoapods_cache(), steps.cocoapods_install())
    if descriptor.carthage_command:
        builder.append_steps(
            workflow_id,
            steps.restore_carthage_cache(),
            steps.carthage(descriptor.carthage_command),
        )

    builder.append_steps(
        workflow_id,
        steps.xcode_archive(
            (ios.PROJECT_PATH_INPUT_KEY, f"${ios.PROJECT_PATH_ENV_KEY}"),
            (ios.SCHEME_INPUT_KEY, f"${ios.SCHEME_ENV_KEY}"),
            (ios.DISTRIBUTION_METHOD_INPUT_KEY, f"${ios.DISTRIBUTION_METHOD_ENV_KEY}"),
            (ios.CONFIGURATION_INPUT_KEY, ios.RELEASE_CONFIGURATION),
            (ios.AUTOMATIC_CODE_SIGNING_INPUT_KEY, ios.AUTOMATIC_CODE_SIGNING_API_KEY),
        ),
    )

    if descriptor.has_podfile:
        builder.append_steps(workflow_id, steps.save_cocoapods_cache())
    if descriptor.carthage_command:
        builder.append_steps(workflow_id, steps.save_carthage_cache())
    builder.append_steps(workflow_id, *steps.default_deploy_step_list())


def kmp_config(
    ssh_key_activation: SSHKeyActivation,
    with_android_target: bool,
    ios_descriptor: Optional[ios.ConfigDescriptor] = None,
) -> str:
    """Render the multiplatform config.

    Args:
        ssh_key_activation: How the SSH key step is added.
        with_android_target: Add the ``android_build`` workflow.
        ios_descriptor: Dependency managers of the iOS target; None when
            there is no iOS target.
    """
    builder = ConfigBuilder()
    project_root_dir = f"${PROJECT_ROOT_DIR_ENV_KEY}"

    builder.append_steps(TEST_WORKFLOW_ID, *steps.default_prepare_step_list(ssh_key_activation))
    builder.append_steps(TEST_WORKFLOW_ID, steps.restore_gradle_cache())
    builder.append_steps(TEST_WORKFLOW_ID, steps.gradle_unit_test(project_root_dir))
    builder.append_steps(TEST_WORKFLOW_ID, steps.save_gradle_cache())
    builder.append_steps(TEST_WORKFLOW_ID, *steps.default_deploy_step_list())

    if with_android_target:
        builder.append_steps(ANDROID_BUILD_WORKFLOW_ID, *steps.default_prepare_step_list(ssh_key_activation))
        builder.append_steps(ANDROID_BUILD_WORKFLOW_ID, steps.restore_gradle_cache())
        builder.append_steps(
            ANDROID_BUILD_WORKFLOW_ID,
            steps.android_build(
                (android.PROJECT_LOCATION_INPUT_KEY, project_root_dir),
                (android.MODULE_INPUT_KEY, f"${android.MODULE_ENV_KEY}"),
                (android.VARIANT_INPUT_KEY, f"${android.VARIANT_ENV_KEY}"),
            ),
        )
        builder.append_steps(ANDROID_BUILD_WORKFLOW_ID, steps.save_gradle_cache())
        builder.append_steps(ANDROID_BUILD_WORKFLOW_ID, *steps.default_deploy_step_list())

    if ios_descriptor is not None:
        _append_ios_build_workflow(builder, ssh_key_activation, ios_descriptor)

    if with_android_target and ios_descriptor is not None:
        builder.set_pipeline_workflow(BUILD_PIPELINE_ID, ANDROID_BUILD_WORKFLOW_ID)
        builder.set_pipeline_workflow(BUILD_PIPELINE_ID, IOS_BUILD_WORKFLOW_ID)

    return render_yaml(builder.generate(DetectorName.KOTLIN_MULTIPLATFORM.value))


def _add_default_ios_decisions(
    parent: Decision,
    value: str,
    with_target_config: str,
    without_target_config: str,
) -> None:
    has_ios = parent.add_option(value, Decision(HAS_IOS_TARGET_TITLE, HAS_IOS_TARGET_SUMMARY))
    project_path = has_ios.add_option(
        "yes",
        Decision(ios.PROJECT_PATH_TITLE, ios.PROJECT_PATH_SUMMARY, ios.PROJECT_PATH_ENV_KEY, InputType.USER_INPUT),
    )
    scheme = project_path.add_option(
        USER_INPUT_DEFAULT_VALUE,
        Decision(ios.SCHEME_TITLE, ios.SCHEME_SUMMARY, ios.SCHEME_ENV_KEY, InputType.USER_INPUT),
    )
    method = scheme.add_option(
        USER_INPUT_DEFAULT_VALUE,
        Decision(ios.DISTRIBUTION_METHOD_TITLE, ios.DISTRIBUTION_METHOD_SUMMARY, ios.DISTRIBUTION_METHOD_ENV_KEY),
    )
    for export_method in ios.EXPORT_METHODS:
        method.add_config_leaf(export_method, with_target_config)
    has_ios.add_config_leaf("no", without_target_config)


class KotlinMultiplatformDetector(PlatformDetector):
    """Detects Kotlin Multiplatform Gradle builds."""

    def __init__(self) -> None:
        self._gradle_project: Optional[GradleProject] = None
        self._android_target: Optional[AndroidTarget] = None
        self._ios_target: Optional[IOSTarget] = None

    @property
    def name(self) -> str:
        return DetectorName.KOTLIN_MULTIPLATFORM.value

    def detect_platform(self, snapshot: TreeSnapshot) -> bool:
        LOGGER.info("Searching for Gradle project files...")
        gradle_projects = find_gradle_projects(snapshot)
        if not gradle_projects:
            return False
        project = gradle_projects[0]

        LOGGER.info("Searching for Kotlin Multiplatform dependencies...")
        detected = project.detect_any_dependency(KMP_DEPENDENCIES)
        LOGGER.info(f"Kotlin Multiplatform dependencies found: {detected}")
        if not detected:
            return False

        self._gradle_project = project
        try:
            self._android_target = find_android_target(snapshot, project)
        except (OSError, ValueError) as e:
            LOGGER.warning(f"Failed to scan Android project: {e}")
            self._android_target = None

        try:
            self._ios_target = find_ios_target(snapshot, project)
        except OSError as e:
            LOGGER.warning(f"Failed to scan iOS project: {e}")
            self._ios_target = None

        if self._android_target is not None:
            LOGGER.info(f"Android app target: {self._android_target.module_path}")
        if self._ios_target is not None:
            LOGGER.info(f"iOS app target: {self._ios_target.project.rel_path}")
        return True

    def excluded_detector_names(self) -> List[str]:
        return [
            DetectorName.ANDROID.value,
            DetectorName.IOS.value,
            DetectorName.JAVA.value,
        ]

    def options(self) -> Tuple[Decision, List[str], List[Icon]]:
        if self._gradle_project is None:
            raise RuntimeError("options() called before a successful detect_platform()")

        root_dir = Decision(GRADLE_ROOT_DIR_TITLE, GRADLE_ROOT_DIR_SUMMARY, PROJECT_ROOT_DIR_ENV_KEY)
        root_value = self._gradle_project.root_dir_entry.rel_path

        # The iOS decisions (or the leaf) hang off the last Android decision
        next_decision, next_value = root_dir, root_value
        if self._android_target is not None:
            module = root_dir.add_option(
                root_value,
                Decision(android.MODULE_TITLE, android.MODULE_SUMMARY, android.MODULE_ENV_KEY),
            )
            next_decision = module.add_option(
                self._android_target.module_path,
                Decision(
                    android.VARIANT_TITLE,
                    android.VARIANT_SUMMARY,
                    android.VARIANT_ENV_KEY,
                    InputType.OPTIONAL_USER_INPUT,
                ),
            )
            next_value = USER_INPUT_DEFAULT_VALUE

        if self._ios_target is None:
            next_decision.add_config_leaf(next_value, CONFIG_NAME)
            return root_dir, [], []

        xcode_project = self._ios_target.project
        project_path = next_decision.add_option(
            next_value,
            Decision(ios.PROJECT_PATH_TITLE, ios.PROJECT_PATH_SUMMARY, ios.PROJECT_PATH_ENV_KEY),
        )
        scheme_decision = project_path.add_option(
            xcode_project.rel_path,
            Decision(ios.SCHEME_TITLE, ios.SCHEME_SUMMARY, ios.SCHEME_ENV_KEY),
        )
        for scheme in xcode_project.schemes:
            method = scheme_decision.add_option(
                scheme.name,
                Decision(
                    ios.DISTRIBUTION_METHOD_TITLE,
                    ios.DISTRIBUTION_METHOD_SUMMARY,
                    ios.DISTRIBUTION_METHOD_ENV_KEY,
                ),
            )
            for export_method in ios.EXPORT_METHODS:
                method.add_config_leaf(export_method, CONFIG_NAME)
        return root_dir, list(self._ios_target.warnings), []

    def default_options(self) -> Decision:
        root_dir = Decision(
            GRADLE_ROOT_DIR_TITLE,
            GRADLE_ROOT_DIR_SUMMARY,
            PROJECT_ROOT_DIR_ENV_KEY,
            InputType.USER_INPUT,
        )
        has_android = root_dir.add_option(
            USER_INPUT_DEFAULT_VALUE,
            Decision(HAS_ANDROID_TARGET_TITLE, HAS_ANDROID_TARGET_SUMMARY),
        )

        module = has_android.add_option(
            "yes",
            Decision(
                android.MODULE_TITLE,
                android.MODULE_SUMMARY,
                android.MODULE_ENV_KEY,
                InputType.USER_INPUT,
            ),
        )
        variant = module.add_option(
            USER_INPUT_DEFAULT_VALUE,
            Decision(
                android.VARIANT_TITLE,
                android.VARIANT_SUMMARY,
                android.VARIANT_ENV_KEY,
                InputType.OPTIONAL_USER_INPUT,
            ),
        )
        _add_default_ios_decisions(
            variant,
            USER_INPUT_DEFAULT_VALUE,
            DEFAULT_ANDROID_IOS_CONFIG_NAME,
            DEFAULT_ANDROID_CONFIG_NAME,
        )
        _add_default_ios_decisions(has_android, "no", DEFAULT_IOS_CONFIG_NAME, DEFAULT_CONFIG_NAME)
        return root_dir

    def configs(self, ssh_key_activation: SSHKeyActivation) -> ConfigMap:
        ios_descriptor = self._ios_target.descriptor if self._ios_target is not None else None
        return {CONFIG_NAME: kmp_config(ssh_key_activation, self._android_target is not None, ios_descriptor)}

    def default_configs(self) -> ConfigMap:
        ssh = SSHKeyActivation.CONDITIONAL
        no_dependencies = ios.ConfigDescriptor()
        return {
            DEFAULT_CONFIG_NAME: kmp_config(ssh, False),
            DEFAULT_ANDROID_CONFIG_NAME: kmp_config(ssh, True),
            DEFAULT_IOS_CONFIG_NAME: kmp_config(ssh, False, no_dependencies),
            DEFAULT_ANDROID_IOS_CONFIG_NAME: kmp_config(ssh, True, no_dependencies),
        }

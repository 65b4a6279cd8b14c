"""Android detector.

Every Gradle project in the snapshot that applies the
``com.android.application`` plugin is an Android project. Its modules are
the included projects of the settings file or, without one, every
non-root build script.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Tuple

from ciscout.core.logging import get_logger
from ciscout.core.models import DetectorName, Icon, SSHKeyActivation
from ciscout.detection.direntry import TreeSnapshot
from ciscout.detection.gradle import GradleProject, find_gradle_projects
from ciscout.detection.icons import lookup_android_icons
from ciscout.detectors.base import ConfigMap, PlatformDetector
from ciscout.generation import ConfigBuilder, render_yaml
from ciscout.generation import steps
from ciscout.options import USER_INPUT_DEFAULT_VALUE, Decision, InputType

LOGGER = get_logger(__name__)

CONFIG_NAME = "android-config"
CONFIG_NAME_KOTLIN_SCRIPT = "android-config-kts"
DEFAULT_CONFIG_NAME = "default-android-config"
DEFAULT_CONFIG_NAME_KOTLIN_SCRIPT = "default-android-config-kts"

ANDROID_DEPENDENCIES = ("com.android.application",)

TESTS_WORKFLOW_ID = "run_tests"
TESTS_WORKFLOW_SUMMARY = "Run your Android unit tests and get the test report."
TESTS_WORKFLOW_DESCRIPTION = (
    "The workflow will first clone your Git repository, cache your Gradle dependencies, "
    "install Android tools, run your Android unit tests and save the test report."
)
TESTS_PIPELINE_ID = "run_tests"

INSTRUMENTED_TESTS_WORKFLOW_ID = "run_instrumented_tests"
INSTRUMENTED_TESTS_WORKFLOW_SUMMARY = "Run your Android instrumented tests and get the test report."
INSTRUMENTED_TESTS_WORKFLOW_DESCRIPTION = (
    "The workflow will first clone your Git repository, cache your Gradle dependencies, "
    "install Android tools, run your Android instrumented tests and save the test report."
)
TEST_SHARD_COUNT_ENV_KEY = "TEST_SHARD_COUNT"
TEST_SHARD_COUNT_ENV_VALUE = 2
PARALLEL_TOTAL_ENV_KEY = "BITRISE_IO_PARALLEL_TOTAL"
PARALLEL_INDEX_ENV_KEY = "BITRISE_IO_PARALLEL_INDEX"

BUILD_WORKFLOW_ID = "build_apk"
BUILD_WORKFLOW_SUMMARY = (
    "Run your Android unit tests and create an APK file to install your app on a device "
    "or share it with your team."
)
BUILD_WORKFLOW_DESCRIPTION = (
    "The workflow will first clone your Git repository, install Android tools, set the project's "
    "version code based on the build number, run Android lint and unit tests, build the project's "
    "APK file and save it."
)

PROJECT_LOCATION_INPUT_KEY = "project_location"
PROJECT_LOCATION_ENV_KEY = "PROJECT_LOCATION"
PROJECT_LOCATION_TITLE = "The root directory of an Android project"
PROJECT_LOCATION_SUMMARY = (
    "The root directory of your Android project, stored as an Environment Variable. In your "
    "Workflows, you can specify paths relative to this path. You can change this at any time."
)

VARIANT_INPUT_KEY = "variant"
VARIANT_ENV_KEY = "VARIANT"
VARIANT_TITLE = "Variant"
VARIANT_SUMMARY = (
    "Your Android build variant. You can add variants at any time, as well as further configure "
    "your existing variants later."
)

MODULE_INPUT_KEY = "module"
MODULE_ENV_KEY = "MODULE"
MODULE_TITLE = "Module"
MODULE_SUMMARY = (
    "Modules provide a container for your Android project's source code, resource files, and app "
    "level settings, such as the module-level build file and Android manifest file. Each module can "
    "be independently built, tested, and debugged. You can add new modules to your builds at any time."
)

BUILD_SCRIPT_TITLE = "Does your app use Kotlin build scripts?"
BUILD_SCRIPT_SUMMARY = (
    "The workflow configuration slightly differs based on what language (Groovy or Kotlin) "
    "you used in your build scripts."
)

BUILD_GRADLE_PATH_INPUT_KEY = "build_gradle_path"
CACHE_LEVEL_INPUT_KEY = "cache_level"
CACHE_LEVEL_NONE = "none"
KOTLIN_SCRIPT_SUFFIX = ".kts"


@dataclass(frozen=True)
class GradleModule:
    """A module of an Android Gradle project."""

    module_path: str
    """Module directory relative to the project root, e.g. ``app``."""

    build_script_rel_path: str

    @property
    def uses_kotlin_dsl(self) -> bool:
        return self.build_script_rel_path.endswith(KOTLIN_SCRIPT_SUFFIX)


@dataclass
class AndroidProject:
    """A detected Android project with its modules and launcher icons."""

    gradle_project: GradleProject
    modules: List[GradleModule] = field(default_factory=list)
    icons: List[Icon] = field(default_factory=list)


def module_path_from_build_script_path(project_root_rel_path: str, build_script_rel_path: str) -> str:
    """Derive the module directory of a build script.

    ``./app/build.gradle`` under the ``./`` root gives ``app``. The root
    build script gives an empty string.
    """
    rel = build_script_rel_path
    if rel.startswith(project_root_rel_path):
        rel = rel[len(project_root_rel_path):]
    components = rel.lstrip("/").split("/")
    if len(components) < 2:
        return ""
    return "/".join(components[:-1])


def _scan_modules(project: GradleProject) -> List[GradleModule]:
    root_rel_path = project.root_dir_entry.rel_path
    if project.included_projects:
        build_scripts = [p.build_script_file_entry for p in project.included_projects]
    else:
        build_scripts = project.all_build_script_file_entries

    modules: List[GradleModule] = []
    for build_script in build_scripts:
        module_path = module_path_from_build_script_path(root_rel_path, build_script.rel_path)
        if not module_path:
            continue
        modules.append(GradleModule(module_path=module_path, build_script_rel_path=build_script.rel_path))
    return modules


def android_config(ssh_key_activation: SSHKeyActivation, use_kotlin_script: bool) -> str:
    builder = ConfigBuilder()
    project_location = f"${PROJECT_LOCATION_ENV_KEY}"
    gradlew_path = f"${PROJECT_LOCATION_ENV_KEY}/gradlew"
    module = f"${MODULE_ENV_KEY}"
    variant = f"${VARIANT_ENV_KEY}"
    cache_level = (CACHE_LEVEL_INPUT_KEY, CACHE_LEVEL_NONE)

    builder.append_steps(TESTS_WORKFLOW_ID, *steps.default_prepare_step_list(ssh_key_activation))
    builder.append_steps(TESTS_WORKFLOW_ID, steps.restore_gradle_cache())
    builder.append_steps(TESTS_WORKFLOW_ID, steps.install_missing_android_tools(gradlew_path))
    builder.append_steps(
        TESTS_WORKFLOW_ID,
        steps.android_unit_test(
            (PROJECT_LOCATION_INPUT_KEY, project_location),
            (VARIANT_INPUT_KEY, variant),
            cache_level,
        ),
    )
    builder.append_steps(TESTS_WORKFLOW_ID, steps.save_gradle_cache())
    builder.append_steps(TESTS_WORKFLOW_ID, *steps.default_deploy_step_list())
    builder.set_workflow_summary(TESTS_WORKFLOW_ID, TESTS_WORKFLOW_SUMMARY)
    builder.set_workflow_description(TESTS_WORKFLOW_ID, TESTS_WORKFLOW_DESCRIPTION)

    builder.append_steps(INSTRUMENTED_TESTS_WORKFLOW_ID, *steps.default_prepare_step_list(ssh_key_activation))
    builder.append_steps(INSTRUMENTED_TESTS_WORKFLOW_ID, steps.restore_gradle_cache())
    builder.append_steps(INSTRUMENTED_TESTS_WORKFLOW_ID, steps.install_missing_android_tools(gradlew_path))
    builder.append_steps(INSTRUMENTED_TESTS_WORKFLOW_ID, steps.avd_manager())
    builder.append_steps(INSTRUMENTED_TESTS_WORKFLOW_ID, steps.wait_for_android_emulator())
    builder.append_steps(
        INSTRUMENTED_TESTS_WORKFLOW_ID,
        steps.gradle_runner(
            gradlew_path,
            "connectedAndroidTest \\\n"
            f"  -Pandroid.testInstrumentationRunnerArguments.numShards=${PARALLEL_TOTAL_ENV_KEY} \\\n"
            f"  -Pandroid.testInstrumentationRunnerArguments.shardIndex=${PARALLEL_INDEX_ENV_KEY}",
        ),
    )
    builder.append_steps(INSTRUMENTED_TESTS_WORKFLOW_ID, steps.save_gradle_cache())
    builder.append_steps(INSTRUMENTED_TESTS_WORKFLOW_ID, *steps.default_deploy_step_list())
    builder.set_workflow_summary(INSTRUMENTED_TESTS_WORKFLOW_ID, INSTRUMENTED_TESTS_WORKFLOW_SUMMARY)
    builder.set_workflow_description(INSTRUMENTED_TESTS_WORKFLOW_ID, INSTRUMENTED_TESTS_WORKFLOW_DESCRIPTION)

    builder.set_pipeline_workflow(
        TESTS_PIPELINE_ID,
        INSTRUMENTED_TESTS_WORKFLOW_ID,
        parallel=f"${TEST_SHARD_COUNT_ENV_KEY}",
    )

    build_script_name = "build.gradle.kts" if use_kotlin_script else "build.gradle"
    builder.append_steps(BUILD_WORKFLOW_ID, *steps.default_prepare_step_list(ssh_key_activation))
    builder.append_steps(BUILD_WORKFLOW_ID, steps.install_missing_android_tools(gradlew_path))
    builder.append_steps(
        BUILD_WORKFLOW_ID,
        steps.change_android_version_code_and_name(f"{project_location}/{module}/{build_script_name}"),
    )
    builder.append_steps(
        BUILD_WORKFLOW_ID,
        steps.android_lint(
            (PROJECT_LOCATION_INPUT_KEY, project_location),
            (VARIANT_INPUT_KEY, variant),
            cache_level,
        ),
    )
    builder.append_steps(
        BUILD_WORKFLOW_ID,
        steps.android_unit_test(
            (PROJECT_LOCATION_INPUT_KEY, project_location),
            (VARIANT_INPUT_KEY, variant),
            cache_level,
        ),
    )
    builder.append_steps(
        BUILD_WORKFLOW_ID,
        steps.android_build(
            (PROJECT_LOCATION_INPUT_KEY, project_location),
            (MODULE_INPUT_KEY, module),
            (VARIANT_INPUT_KEY, variant),
            cache_level,
        ),
    )
    builder.append_steps(BUILD_WORKFLOW_ID, steps.sign_apk())
    builder.append_steps(BUILD_WORKFLOW_ID, *steps.default_deploy_step_list())
    builder.set_workflow_description(BUILD_WORKFLOW_ID, BUILD_WORKFLOW_DESCRIPTION)
    builder.set_workflow_summary(BUILD_WORKFLOW_ID, BUILD_WORKFLOW_SUMMARY)

    document = builder.generate(
        DetectorName.ANDROID.value,
        {TEST_SHARD_COUNT_ENV_KEY: TEST_SHARD_COUNT_ENV_VALUE},
    )
    return render_yaml(document)


class AndroidDetector(PlatformDetector):
    """Detects Android application projects."""

    def __init__(self) -> None:
        self._projects: List[AndroidProject] = []
        self._warnings: List[str] = []

    @property
    def name(self) -> str:
        return DetectorName.ANDROID.value

    @property
    def projects(self) -> List[AndroidProject]:
        return list(self._projects)

    def detect_platform(self, snapshot: TreeSnapshot) -> bool:
        LOGGER.info("Searching for Gradle project files...")
        self._projects = []
        self._warnings = []

        for gradle_project in find_gradle_projects(snapshot):
            if not gradle_project.all_build_script_file_entries:
                raise ValueError(
                    f"No Gradle build script file found in {gradle_project.root_dir_entry.rel_path}"
                )

            LOGGER.info("Searching for Android dependencies...")
            detected = gradle_project.detect_any_dependency(ANDROID_DEPENDENCIES)
            LOGGER.info(f"Android dependencies found: {detected}")
            if not detected:
                LOGGER.info("No Android dependencies found, skipping this project")
                continue

            if gradle_project.settings_file_entry is not None and not gradle_project.included_projects:
                LOGGER.warning("No included projects found in settings.gradle file")

            project = AndroidProject(gradle_project=gradle_project, modules=_scan_modules(gradle_project))
            LOGGER.info(f"{len(project.modules)} module(s) found")
            for module in project.modules:
                LOGGER.debug(f"- {module.module_path}")
            if not project.modules:
                message = f"No modules found in Android project {gradle_project.root_dir_entry.rel_path}"
                LOGGER.warning(message)
                self._warnings.append(message)
                continue

            LOGGER.info("Searching for project icons...")
            try:
                project.icons = lookup_android_icons(gradle_project.root_dir_entry, Path(snapshot.root_dir))
            except ValueError as e:
                LOGGER.warning(f"Failed to find icons: {e}")
                self._warnings.append(f"Failed to find icons: {e}")
            LOGGER.info(f"{len(project.icons)} icon(s) found")

            self._projects.append(project)

        if not self._projects:
            LOGGER.info("No Android projects found")
        return bool(self._projects)

    def excluded_detector_names(self) -> List[str]:
        return [DetectorName.JAVA.value]

    def options(self) -> Tuple[Decision, List[str], List[Icon]]:
        location = Decision(PROJECT_LOCATION_TITLE, PROJECT_LOCATION_SUMMARY, PROJECT_LOCATION_ENV_KEY)
        all_icons: List[Icon] = []

        for project in self._projects:
            icon_ids = [icon.filename for icon in project.icons]
            all_icons.extend(project.icons)

            module_decision = location.add_option(
                project.gradle_project.root_dir_entry.rel_path,
                Decision(MODULE_TITLE, MODULE_SUMMARY, MODULE_ENV_KEY, InputType.USER_INPUT),
            )
            for module in project.modules:
                if module.module_path in module_decision.children:
                    continue
                variant = module_decision.add_option(
                    module.module_path,
                    Decision(VARIANT_TITLE, VARIANT_SUMMARY, VARIANT_ENV_KEY, InputType.OPTIONAL_USER_INPUT),
                )
                config_name = CONFIG_NAME_KOTLIN_SCRIPT if module.uses_kotlin_dsl else CONFIG_NAME
                variant.add_config_leaf(USER_INPUT_DEFAULT_VALUE, config_name, icon_ids)

        return location, list(self._warnings), all_icons

    def default_options(self) -> Decision:
        location = Decision(
            PROJECT_LOCATION_TITLE,
            PROJECT_LOCATION_SUMMARY,
            PROJECT_LOCATION_ENV_KEY,
            InputType.USER_INPUT,
        )
        module = location.add_option(
            USER_INPUT_DEFAULT_VALUE,
            Decision(MODULE_TITLE, MODULE_SUMMARY, MODULE_ENV_KEY, InputType.USER_INPUT),
        )
        variant = module.add_option(
            USER_INPUT_DEFAULT_VALUE,
            Decision(VARIANT_TITLE, VARIANT_SUMMARY, VARIANT_ENV_KEY, InputType.OPTIONAL_USER_INPUT),
        )
        build_script = variant.add_option(
            USER_INPUT_DEFAULT_VALUE,
            Decision(BUILD_SCRIPT_TITLE, BUILD_SCRIPT_SUMMARY),
        )
        build_script.add_config_leaf("yes", DEFAULT_CONFIG_NAME_KOTLIN_SCRIPT)
        build_script.add_config_leaf("no", DEFAULT_CONFIG_NAME)
        return location

    def configs(self, ssh_key_activation: SSHKeyActivation) -> ConfigMap:
        modules = [module for project in self._projects for module in project.modules]
        configs: ConfigMap = {}
        if any(not module.uses_kotlin_dsl for module in modules):
            configs[CONFIG_NAME] = android_config(ssh_key_activation, use_kotlin_script=False)
        if any(module.uses_kotlin_dsl for module in modules):
            configs[CONFIG_NAME_KOTLIN_SCRIPT] = android_config(ssh_key_activation, use_kotlin_script=True)
        return configs

    def default_configs(self) -> ConfigMap:
        return {
            DEFAULT_CONFIG_NAME: android_config(SSHKeyActivation.CONDITIONAL, use_kotlin_script=False),
            DEFAULT_CONFIG_NAME_KOTLIN_SCRIPT: android_config(SSHKeyActivation.CONDITIONAL, use_kotlin_script=True),
        }

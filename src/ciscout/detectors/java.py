"""Java detector.

Detects a Gradle build first and falls back to a Maven build with a
checked-in wrapper. Only the shallowest project of either kind is used.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from ciscout.core.logging import get_logger
from ciscout.core.models import DetectorName, Icon, SSHKeyActivation
from ciscout.detection.direntry import TreeSnapshot
from ciscout.detection.gradle import GradleProject, find_gradle_projects
from ciscout.detection.maven import POM_FILE_NAME, MavenProject, scan_maven_project
from ciscout.detectors.base import ConfigMap, PlatformDetector
from ciscout.generation import ConfigBuilder, render_yaml
from ciscout.generation import steps
from ciscout.options import USER_INPUT_DEFAULT_VALUE, Decision, InputType

LOGGER = get_logger(__name__)

BUILD_TOOL_TITLE = "Build tool"
BUILD_TOOL_SUMMARY = "The build tool used in the project. Supported options: Gradle, Maven."
BUILD_TOOL_GRADLE = "Gradle"
BUILD_TOOL_MAVEN = "Maven"

TEST_WORKFLOW_ID = "run_tests"

PROJECT_ROOT_DIR_ENV_KEY = "PROJECT_ROOT_DIR"

GRADLE_CONFIG_NAME = "java-gradle-config"
DEFAULT_GRADLE_CONFIG_NAME = "default-java-gradle-config"
GRADLE_ROOT_DIR_TITLE = "The root directory of the Gradle project."
GRADLE_ROOT_DIR_SUMMARY = (
    "The root directory of the Gradle project, which contains all source files from your project, "
    "as well as Gradle files, including the Gradle Wrapper (`gradlew`) file."
)

MAVEN_CONFIG_NAME = "java-maven-config"
DEFAULT_MAVEN_CONFIG_NAME = "default-java-maven-config"
MAVEN_ROOT_DIR_TITLE = "The root directory of the Maven project."
MAVEN_ROOT_DIR_SUMMARY = (
    "The root directory of the Maven project, which contains all source files from your project, "
    "as well as Maven files, including the Maven Wrapper (`mvnw`) file."
)
MAVEN_TEST_SCRIPT_TITLE = "Run Maven tests"
MAVEN_TEST_SCRIPT_CONTENT = """#!/usr/bin/env bash
# fail if any commands fails
set -e
# make pipelines' return status equal the last command to exit with a non-zero status, or zero if all commands exit successfully
set -o pipefail
# debug log
set -x

./mvnw test
"""


def gradle_test_config(ssh_key_activation: SSHKeyActivation) -> str:
    builder = ConfigBuilder()
    builder.append_steps(TEST_WORKFLOW_ID, *steps.default_prepare_step_list(ssh_key_activation))
    builder.append_steps(TEST_WORKFLOW_ID, steps.gradle_unit_test(f"${PROJECT_ROOT_DIR_ENV_KEY}"))
    builder.append_steps(TEST_WORKFLOW_ID, *steps.default_deploy_step_list())
    return render_yaml(builder.generate(DetectorName.JAVA.value))


def maven_test_config(ssh_key_activation: SSHKeyActivation) -> str:
    builder = ConfigBuilder()
    builder.append_steps(TEST_WORKFLOW_ID, *steps.default_prepare_step_list(ssh_key_activation))
    builder.append_steps(
        TEST_WORKFLOW_ID,
        steps.script_step(
            MAVEN_TEST_SCRIPT_TITLE,
            MAVEN_TEST_SCRIPT_CONTENT,
            working_dir=f"${PROJECT_ROOT_DIR_ENV_KEY}",
        ),
    )
    builder.append_steps(TEST_WORKFLOW_ID, *steps.default_deploy_step_list())
    return render_yaml(builder.generate(DetectorName.JAVA.value))


class JavaDetector(PlatformDetector):
    """Detects plain JVM projects built with Gradle or Maven."""

    def __init__(self) -> None:
        self._gradle_project: Optional[GradleProject] = None
        self._maven_project: Optional[MavenProject] = None

    @property
    def name(self) -> str:
        return DetectorName.JAVA.value

    def detect_platform(self, snapshot: TreeSnapshot) -> bool:
        LOGGER.info("Searching for Gradle project files...")
        gradle_projects = find_gradle_projects(snapshot)
        if gradle_projects:
            self._gradle_project = gradle_projects[0]
            return True

        LOGGER.info("Searching for Maven project files...")
        poms = snapshot.root.find_all_by_name(POM_FILE_NAME)
        LOGGER.info(f"{len(poms)} POM file(s) found")
        if not poms:
            return False

        project_dir = snapshot.parent(poms[0])
        if project_dir is None:
            return False

        LOGGER.info(f"Scanning project with POM file: {poms[0].rel_path}")
        self._maven_project = scan_maven_project(project_dir)
        if self._maven_project is None:
            LOGGER.warning(f"No Maven project found in {project_dir.rel_path}")
            return False

        LOGGER.debug(f"Maven POM file: {self._maven_project.pom_file_entry.rel_path}")
        LOGGER.debug(f"Maven wrapper file: {self._maven_project.wrapper_file_entry.rel_path}")
        return True

    def options(self) -> Tuple[Decision, List[str], List[Icon]]:
        if self._gradle_project is not None:
            root = Decision(GRADLE_ROOT_DIR_TITLE, GRADLE_ROOT_DIR_SUMMARY, PROJECT_ROOT_DIR_ENV_KEY)
            root.add_config_leaf(self._gradle_project.root_dir_entry.rel_path, GRADLE_CONFIG_NAME)
            return root, [], []

        if self._maven_project is not None:
            root = Decision(MAVEN_ROOT_DIR_TITLE, MAVEN_ROOT_DIR_SUMMARY, PROJECT_ROOT_DIR_ENV_KEY)
            root.add_config_leaf(self._maven_project.root_dir_entry.rel_path, MAVEN_CONFIG_NAME)
            return root, [], []

        raise RuntimeError("options() called before a successful detect_platform()")

    def default_options(self) -> Decision:
        build_tool = Decision(BUILD_TOOL_TITLE, BUILD_TOOL_SUMMARY)

        gradle_root = build_tool.add_option(
            BUILD_TOOL_GRADLE,
            Decision(
                GRADLE_ROOT_DIR_TITLE,
                GRADLE_ROOT_DIR_SUMMARY,
                PROJECT_ROOT_DIR_ENV_KEY,
                InputType.USER_INPUT,
            ),
        )
        gradle_root.add_config_leaf(USER_INPUT_DEFAULT_VALUE, DEFAULT_GRADLE_CONFIG_NAME)

        maven_root = build_tool.add_option(
            BUILD_TOOL_MAVEN,
            Decision(
                MAVEN_ROOT_DIR_TITLE,
                MAVEN_ROOT_DIR_SUMMARY,
                PROJECT_ROOT_DIR_ENV_KEY,
                InputType.USER_INPUT,
            ),
        )
        maven_root.add_config_leaf(USER_INPUT_DEFAULT_VALUE, DEFAULT_MAVEN_CONFIG_NAME)

        return build_tool

    def configs(self, ssh_key_activation: SSHKeyActivation) -> ConfigMap:
        configs: ConfigMap = {}
        if self._gradle_project is not None:
            configs[GRADLE_CONFIG_NAME] = gradle_test_config(ssh_key_activation)
        if self._maven_project is not None:
            configs[MAVEN_CONFIG_NAME] = maven_test_config(ssh_key_activation)
        return configs

    def default_configs(self) -> ConfigMap:
        return {
            DEFAULT_GRADLE_CONFIG_NAME: gradle_test_config(SSHKeyActivation.CONDITIONAL),
            DEFAULT_MAVEN_CONFIG_NAME: maven_test_config(SSHKeyActivation.CONDITIONAL),
        }

"""Node.js detector.

Every ``package.json`` outside ``node_modules`` marks a project. The
package manager follows the committed lock file, and the ``build``, ``lint``
and ``test`` scripts decide which steps the generated workflow runs.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import List, Optional, Tuple

from ciscout.core.logging import get_logger
from ciscout.core.models import DetectorName, Icon, SSHKeyActivation
from ciscout.detection.direntry import ROOT_REL_PATH, DirEntry, TreeSnapshot
from ciscout.detectors.base import ConfigMap, PlatformDetector
from ciscout.generation import ConfigBuilder, render_yaml
from ciscout.generation import steps
from ciscout.options import USER_INPUT_DEFAULT_VALUE, Decision, InputType

LOGGER = get_logger(__name__)

PACKAGE_JSON_NAME = "package.json"
TEST_WORKFLOW_ID = "run_tests"

PROJECT_DIR_TITLE = "Project Directory"
PROJECT_DIR_SUMMARY = "The directory containing the package.json file"
PROJECT_DIR_ENV_KEY = "NODEJS_PROJECT_DIR"

NODE_VERSION_TITLE = "Node Version"
NODE_VERSION_SUMMARY = "The version of Node.js used in the project. Leave it empty to use the latest Node version"
NODE_VERSION_ENV_KEY = "NODEJS_VERSION"

PACKAGE_MANAGER_TITLE = "Package Manager"
PACKAGE_MANAGER_SUMMARY = "The package manager used in the project"

NPM = "npm"
YARN = "yarn"

# Package manager -> lock file, in detection order
LOCK_FILES = ((NPM, "package-lock.json"), (YARN, "yarn.lock"))
PACKAGE_MANAGERS = tuple(manager for manager, _ in LOCK_FILES)

NVMRC_NAME = ".nvmrc"
NODE_VERSION_FILES = (NVMRC_NAME, ".node-version", ".tool-versions")


@dataclass
class NodeProject:
    """Facts about a single package.json."""

    rel_dir: str
    node_version: str = ""
    version_file: str = ""
    package_manager: str = ""
    scripts: List[str] = field(default_factory=list)

    @property
    def has_build(self) -> bool:
        return "build" in self.scripts

    @property
    def has_lint(self) -> bool:
        return "lint" in self.scripts

    @property
    def has_test(self) -> bool:
        return "test" in self.scripts


@dataclass(frozen=True)
class ConfigDescriptor:
    """The facts a Node.js configuration document depends on."""

    package_manager: str
    workdir: str = f"${PROJECT_DIR_ENV_KEY}"
    """Empty when package.json sits in the scan root."""

    node_version: str = f"${NODE_VERSION_ENV_KEY}"
    """Empty when nvm reads the version from .nvmrc itself."""

    has_build: bool = False
    has_lint: bool = False
    has_test: bool = False
    is_default: bool = False

    @property
    def config_name(self) -> str:
        name = "node-js"
        if self.package_manager:
            name += f"-{self.package_manager}"
        if self.is_default:
            return f"default-{name}-config"
        if not self.workdir:
            name += "-root"
        if not self.node_version:
            name += "-nvm"
        if self.has_build:
            name += "-build"
        if self.has_lint:
            name += "-lint"
        if self.has_test:
            name += "-test"
        return f"{name}-config"

    @classmethod
    def for_project(cls, project: NodeProject) -> "ConfigDescriptor":
        return cls(
            package_manager=project.package_manager,
            workdir="" if project.rel_dir == ROOT_REL_PATH else f"${PROJECT_DIR_ENV_KEY}",
            node_version="" if project.version_file == NVMRC_NAME else f"${NODE_VERSION_ENV_KEY}",
            has_build=project.has_build,
            has_lint=project.has_lint,
            has_test=project.has_test,
        )

    @classmethod
    def default(cls, package_manager: str) -> "ConfigDescriptor":
        return cls(
            package_manager=package_manager,
            has_build=True,
            has_lint=True,
            has_test=True,
            is_default=True,
        )


def _node_version_from_tool_versions(content: str) -> str:
    for line in content.splitlines():
        fields = line.split()
        if len(fields) == 2 and fields[0] == "nodejs":
            return fields[1]
    return ""


def read_node_version(project_dir: DirEntry) -> Tuple[str, str]:
    """Return ``(version, file name)`` from the first version file present.

    A version file that cannot be read is skipped.
    """
    for file_name in NODE_VERSION_FILES:
        entry = project_dir.find_immediate_child(file_name)
        if entry is None:
            LOGGER.debug(f"- {file_name} - not found")
            continue
        try:
            content = Path(entry.abs_path).read_text(encoding="utf-8")
        except OSError as e:
            LOGGER.warning(f"Failed to read node version from {entry.rel_path}: {e}")
            continue

        if file_name == ".tool-versions":
            version = _node_version_from_tool_versions(content)
        else:
            version = content.strip()
        LOGGER.debug(f"- {file_name} - found, node version: {version}")
        return version, file_name
    return "", ""


def detect_package_manager(project_dir: DirEntry) -> str:
    """Name the package manager whose lock file is committed, or empty."""
    for manager, lock_file in LOCK_FILES:
        if project_dir.find_immediate_child(lock_file) is not None:
            LOGGER.debug(f"- {lock_file} - found")
            return manager
    return ""


def read_scripts(package_json: Path) -> List[str]:
    """List the script names of a package.json.

    Raises:
        ValueError: If the file is not a JSON object.
        OSError: If the file cannot be read.
    """
    try:
        data = json.loads(package_json.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid {package_json}: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"Invalid {package_json}: expected a JSON object")
    scripts = data.get("scripts") or {}
    if not isinstance(scripts, dict):
        return []
    return list(scripts.keys())


def nodejs_config(ssh_key_activation: SSHKeyActivation, descriptor: ConfigDescriptor) -> str:
    builder = ConfigBuilder()
    builder.append_steps(TEST_WORKFLOW_ID, *steps.default_prepare_step_list(ssh_key_activation))
    builder.append_steps(TEST_WORKFLOW_ID, steps.nvm(descriptor.node_version, descriptor.workdir))
    builder.append_steps(TEST_WORKFLOW_ID, steps.restore_npm_cache())

    run = steps.yarn if descriptor.package_manager == YARN else steps.npm
    builder.append_steps(TEST_WORKFLOW_ID, run("install", descriptor.workdir))
    if descriptor.has_lint:
        builder.append_steps(TEST_WORKFLOW_ID, run("run lint", descriptor.workdir))
    if descriptor.has_test:
        builder.append_steps(TEST_WORKFLOW_ID, run("run test", descriptor.workdir))

    builder.append_steps(TEST_WORKFLOW_ID, steps.save_npm_cache())
    return render_yaml(builder.generate(DetectorName.NODE_JS.value))


def _project_descriptors(project: NodeProject) -> List[Tuple[str, ConfigDescriptor]]:
    """Package manager and descriptor pairs offered for a project.

    Both managers are offered when no lock file is committed.
    """
    descriptor = ConfigDescriptor.for_project(project)
    if project.package_manager:
        return [(project.package_manager, descriptor)]
    return [(manager, replace(descriptor, package_manager=manager)) for manager in PACKAGE_MANAGERS]


class NodeJSDetector(PlatformDetector):
    """Detects Node.js projects through their package.json."""

    def __init__(self) -> None:
        self._projects: List[NodeProject] = []

    @property
    def name(self) -> str:
        return DetectorName.NODE_JS.value

    @property
    def projects(self) -> List[NodeProject]:
        return list(self._projects)

    def detect_platform(self, snapshot: TreeSnapshot) -> bool:
        LOGGER.info("Searching for package.json files...")
        package_jsons = snapshot.root.find_all_by_name(PACKAGE_JSON_NAME)
        LOGGER.info(f"{len(package_jsons)} package.json file(s) found")

        self._projects = []
        for package_json in package_jsons:
            project_dir: Optional[DirEntry] = snapshot.parent(package_json)
            if project_dir is None:
                continue
            LOGGER.info(f"Checking: {package_json.rel_path}")

            try:
                scripts = read_scripts(Path(package_json.abs_path))
            except (OSError, ValueError) as e:
                LOGGER.warning(f"Failed to check package scripts: {e}")
                continue

            version, version_file = read_node_version(project_dir)
            project = NodeProject(
                rel_dir=project_dir.rel_path,
                node_version=version,
                version_file=version_file,
                package_manager=detect_package_manager(project_dir),
                scripts=scripts,
            )
            self._projects.append(project)
            LOGGER.debug(
                f"  package manager: {project.package_manager or 'unknown'}, "
                f"node version: {project.node_version or 'unpinned'}, scripts: {', '.join(scripts)}"
            )

        return bool(self._projects)

    def options(self) -> Tuple[Decision, List[str], List[Icon]]:
        if not self._projects:
            raise RuntimeError("No package.json files found")

        project_dir = Decision(PROJECT_DIR_TITLE, PROJECT_DIR_SUMMARY, PROJECT_DIR_ENV_KEY)
        for project in self._projects:
            input_type = InputType.SELECTOR if project.node_version else InputType.OPTIONAL_USER_INPUT
            node_version = project_dir.add_option(
                project.rel_dir,
                Decision(NODE_VERSION_TITLE, NODE_VERSION_SUMMARY, NODE_VERSION_ENV_KEY, input_type),
            )
            package_manager = node_version.add_option(
                project.node_version,
                Decision(PACKAGE_MANAGER_TITLE, PACKAGE_MANAGER_SUMMARY),
            )
            for manager, descriptor in _project_descriptors(project):
                package_manager.add_config_leaf(manager, descriptor.config_name)

        return project_dir, [], []

    def default_options(self) -> Decision:
        project_dir = Decision(
            PROJECT_DIR_TITLE,
            PROJECT_DIR_SUMMARY,
            PROJECT_DIR_ENV_KEY,
            InputType.USER_INPUT,
        )
        node_version = project_dir.add_option(
            USER_INPUT_DEFAULT_VALUE,
            Decision(NODE_VERSION_TITLE, NODE_VERSION_SUMMARY, NODE_VERSION_ENV_KEY, InputType.OPTIONAL_USER_INPUT),
        )
        package_manager = node_version.add_option(
            USER_INPUT_DEFAULT_VALUE,
            Decision(PACKAGE_MANAGER_TITLE, PACKAGE_MANAGER_SUMMARY),
        )
        for manager in PACKAGE_MANAGERS:
            package_manager.add_config_leaf(manager, ConfigDescriptor.default(manager).config_name)
        return project_dir

    def configs(self, ssh_key_activation: SSHKeyActivation) -> ConfigMap:
        if not self._projects:
            raise RuntimeError("No package.json files found")

        configs: ConfigMap = {}
        for project in self._projects:
            for _, descriptor in _project_descriptors(project):
                configs[descriptor.config_name] = nodejs_config(ssh_key_activation, descriptor)
        return configs

    def default_configs(self) -> ConfigMap:
        return {
            ConfigDescriptor.default(manager).config_name: nodejs_config(
                SSHKeyActivation.CONDITIONAL,
                ConfigDescriptor.default(manager),
            )
            for manager in PACKAGE_MANAGERS
        }

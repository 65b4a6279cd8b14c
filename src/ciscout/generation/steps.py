"""Step list item factories.

A step list item is a single-key mapping ``{"<step id>@<version>": {...}}``
whose body holds the optional ``title``, ``run_if`` and ``inputs`` fields.
Inputs are a list of single-key mappings, in the order given.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from ciscout.core.models import SSHKeyActivation

StepListItem = Dict[str, Dict[str, Any]]
Input = Tuple[str, Any]

ACTIVATE_SSH_KEY_RUN_IF = '{{getenv "SSH_RSA_PRIVATE_KEY" | ne ""}}'

# Step id -> pinned major version
STEP_VERSIONS: Dict[str, str] = {
    "activate-ssh-key": "4",
    "git-clone": "8",
    "deploy-to-bitrise-io": "2",
    "script": "1",
    "restore-gradle-cache": "2",
    "save-gradle-cache": "1",
    "install-missing-android-tools": "3",
    "android-unit-test": "1",
    "android-lint": "0",
    "android-build": "1",
    "sign-apk": "1",
    "change-android-versioncode-and-versionname": "1",
    "avd-manager": "2",
    "wait-for-android-emulator": "1",
    "gradle-runner": "2",
    "gradle-unit-test": "1",
    "flutter-installer": "0",
    "flutter-analyze": "0",
    "flutter-test": "1",
    "flutter-build": "0",
    "restore-dart-cache": "2",
    "save-dart-cache": "1",
    "certificate-and-profile-installer": "1",
    "xcode-test": "5",
    "xcode-build-for-simulator": "0",
    "xcode-archive": "5",
    "recreate-user-schemes": "1",
    "cocoapods-install": "2",
    "restore-cocoapods-cache": "1",
    "save-cocoapods-cache": "1",
    "carthage": "3",
    "restore-carthage-cache": "1",
    "save-carthage-cache": "1",
    "nvm": "1",
    "restore-npm-cache": "2",
    "save-npm-cache": "1",
    "npm": "1",
    "yarn": "0",
}


def step_list_item(
    step_id: str,
    *inputs: Input,
    title: str = "",
    run_if: str = "",
) -> StepListItem:
    """Build a step list item pinned to the step's known major version."""
    body: Dict[str, Any] = {}
    if title:
        body["title"] = title
    if run_if:
        body["run_if"] = run_if
    if inputs:
        body["inputs"] = [{key: value} for key, value in inputs]
    return {f"{step_id}@{STEP_VERSIONS[step_id]}": body}


def default_prepare_step_list(ssh_key_activation: SSHKeyActivation) -> List[StepListItem]:
    """Repository access steps every workflow starts with."""
    items: List[StepListItem] = []
    if ssh_key_activation == SSHKeyActivation.CONDITIONAL:
        items.append(step_list_item("activate-ssh-key", run_if=ACTIVATE_SSH_KEY_RUN_IF))
    elif ssh_key_activation == SSHKeyActivation.MANDATORY:
        items.append(step_list_item("activate-ssh-key"))
    items.append(step_list_item("git-clone"))
    return items


def default_deploy_step_list() -> List[StepListItem]:
    """Artifact upload steps every workflow ends with."""
    return [step_list_item("deploy-to-bitrise-io")]


def script_step(title: str, content: str, working_dir: Optional[str] = None) -> StepListItem:
    inputs: List[Input] = [("content", content)]
    if working_dir:
        inputs.append(("working_dir", working_dir))
    return step_list_item("script", *inputs, title=title)


# Gradle / Android

def restore_gradle_cache() -> StepListItem:
    return step_list_item("restore-gradle-cache")


def save_gradle_cache() -> StepListItem:
    return step_list_item("save-gradle-cache")


def gradle_unit_test(project_root_dir: str) -> StepListItem:
    return step_list_item("gradle-unit-test", ("project_root_dir", project_root_dir))


def gradle_runner(gradlew_path: str, task: str) -> StepListItem:
    return step_list_item("gradle-runner", ("gradlew_path", gradlew_path), ("gradle_task", task))


def install_missing_android_tools(gradlew_path: str) -> StepListItem:
    return step_list_item("install-missing-android-tools", ("gradlew_path", gradlew_path))


def android_unit_test(*inputs: Input) -> StepListItem:
    return step_list_item("android-unit-test", *inputs)


def android_lint(*inputs: Input) -> StepListItem:
    return step_list_item("android-lint", *inputs)


def android_build(*inputs: Input) -> StepListItem:
    return step_list_item("android-build", *inputs)


def change_android_version_code_and_name(build_gradle_path: str) -> StepListItem:
    return step_list_item("change-android-versioncode-and-versionname", ("build_gradle_path", build_gradle_path))


def sign_apk() -> StepListItem:
    return step_list_item("sign-apk", run_if='{{getenv "BITRISEIO_ANDROID_KEYSTORE_URL" | ne ""}}')


def avd_manager() -> StepListItem:
    return step_list_item("avd-manager")


def wait_for_android_emulator() -> StepListItem:
    return step_list_item("wait-for-android-emulator")


# Flutter

def flutter_installer(version: str = "") -> StepListItem:
    inputs: List[Input] = [("is_update", "false")]
    if version:
        inputs.insert(0, ("version", version))
    return step_list_item("flutter-installer", *inputs)


def flutter_analyze(project_location: str) -> StepListItem:
    return step_list_item("flutter-analyze", ("project_location", project_location))


def flutter_test(project_location: str) -> StepListItem:
    return step_list_item("flutter-test", ("project_location", project_location))


def flutter_build(*inputs: Input) -> StepListItem:
    return step_list_item("flutter-build", *inputs)


def restore_dart_cache() -> StepListItem:
    return step_list_item("restore-dart-cache")


def save_dart_cache() -> StepListItem:
    return step_list_item("save-dart-cache")


# Xcode

def certificate_and_profile_installer() -> StepListItem:
    return step_list_item("certificate-and-profile-installer")


def xcode_test(*inputs: Input) -> StepListItem:
    return step_list_item("xcode-test", *inputs)


def xcode_build_for_simulator(*inputs: Input) -> StepListItem:
    return step_list_item("xcode-build-for-simulator", *inputs)


def xcode_archive(*inputs: Input) -> StepListItem:
    return step_list_item("xcode-archive", *inputs)


def recreate_user_schemes(project_path: str) -> StepListItem:
    return step_list_item("recreate-user-schemes", ("project_path", project_path))


def cocoapods_install() -> StepListItem:
    return step_list_item("cocoapods-install")


def restore_cocoapods_cache() -> StepListItem:
    return step_list_item("restore-cocoapods-cache")


def save_cocoapods_cache() -> StepListItem:
    return step_list_item("save-cocoapods-cache")


def carthage(command: str) -> StepListItem:
    return step_list_item("carthage", ("carthage_command", command))


def restore_carthage_cache() -> StepListItem:
    return step_list_item("restore-carthage-cache")


def save_carthage_cache() -> StepListItem:
    return step_list_item("save-carthage-cache")


# Node.js

def nvm(node_version: str = "", working_dir: str = "") -> StepListItem:
    inputs: List[Input] = []
    if node_version:
        inputs.append(("node_version", node_version))
    if working_dir:
        inputs.append(("working_dir", working_dir))
    return step_list_item("nvm", *inputs)


def restore_npm_cache() -> StepListItem:
    return step_list_item("restore-npm-cache")


def save_npm_cache() -> StepListItem:
    return step_list_item("save-npm-cache")


def npm(command: str, workdir: str = "") -> StepListItem:
    inputs: List[Input] = [("command", command)]
    if workdir:
        inputs.append(("workdir", workdir))
    return step_list_item("npm", *inputs)


def yarn(command: str, workdir: str = "") -> StepListItem:
    inputs: List[Input] = [("command", command)]
    if workdir:
        inputs.append(("workdir", workdir))
    return step_list_item("yarn", *inputs)

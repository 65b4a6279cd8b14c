"""Tests for step list item factories."""

from __future__ import annotations

import pytest

from ciscout.core.models import SSHKeyActivation
from ciscout.generation import steps


class TestStepListItem:
    """Tests for step_list_item."""

    def test_pinned_version_and_body(self) -> None:
        item = steps.step_list_item("script", ("content", "echo"), title="Say")

        assert item == {"script@1": {"title": "Say", "inputs": [{"content": "echo"}]}}

    def test_empty_body(self) -> None:
        assert steps.restore_npm_cache() == {"restore-npm-cache@2": {}}

    def test_unknown_step_raises(self) -> None:
        with pytest.raises(KeyError):
            steps.step_list_item("no-such-step")


class TestPrepareSteps:
    """Tests for default_prepare_step_list."""

    def test_conditional_ssh_key(self) -> None:
        items = steps.default_prepare_step_list(SSHKeyActivation.CONDITIONAL)

        assert items[0] == {"activate-ssh-key@4": {"run_if": steps.ACTIVATE_SSH_KEY_RUN_IF}}
        assert items[1] == {"git-clone@8": {}}

    def test_mandatory_ssh_key(self) -> None:
        items = steps.default_prepare_step_list(SSHKeyActivation.MANDATORY)

        assert items == [{"activate-ssh-key@4": {}}, {"git-clone@8": {}}]

    def test_no_ssh_key(self) -> None:
        assert steps.default_prepare_step_list(SSHKeyActivation.NONE) == [{"git-clone@8": {}}]


class TestNodeSteps:
    """Tests for the Node.js step factories."""

    def test_nvm_inputs_are_optional(self) -> None:
        assert steps.nvm() == {"nvm@1": {}}
        assert steps.nvm("18", "$NODEJS_PROJECT_DIR") == {
            "nvm@1": {"inputs": [{"node_version": "18"}, {"working_dir": "$NODEJS_PROJECT_DIR"}]}
        }

    def test_npm_and_yarn_workdir(self) -> None:
        assert steps.npm("install") == {"npm@1": {"inputs": [{"command": "install"}]}}
        assert steps.yarn("run test", "web") == {
            "yarn@0": {"inputs": [{"command": "run test"}, {"workdir": "web"}]}
        }


class TestXcodeSteps:
    """Tests for the Xcode step factories."""

    def test_recreate_user_schemes_takes_project_path(self) -> None:
        assert steps.recreate_user_schemes("$BITRISE_PROJECT_PATH") == {
            "recreate-user-schemes@1": {"inputs": [{"project_path": "$BITRISE_PROJECT_PATH"}]}
        }

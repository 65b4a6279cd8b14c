"""Tests for the option tree."""

from __future__ import annotations

import pytest

from ciscout.core.errors import OptionResolutionError
from ciscout.options import ConfigLeaf, Decision, InputType


def _android_tree() -> Decision:
    location = Decision("Project location", env_key="PROJECT_LOCATION")
    module = location.add_option(
        "./",
        Decision("Module", env_key="MODULE", input_type=InputType.USER_INPUT),
    )
    variant = module.add_option(
        "",
        Decision("Variant", env_key="VARIANT", input_type=InputType.OPTIONAL_USER_INPUT),
    )
    variant.add_config_leaf("", "android-config", icon_ids=["icon.png"])
    return location


class TestDecision:
    """Tests for building option trees."""

    def test_add_option_returns_child(self) -> None:
        root = Decision("Root")
        child = root.add_option("a", Decision("Child"))

        assert root.child("a") is child
        assert root.values() == ["a"]

    def test_duplicate_value_raises(self) -> None:
        root = Decision("Root")
        root.add_config_leaf("a", "config-a")

        with pytest.raises(ValueError, match="already has a child"):
            root.add_config_leaf("a", "config-b")

    def test_child_with_unknown_path(self) -> None:
        assert _android_tree().child("./", "app") is None

    def test_leaves_and_names(self) -> None:
        root = Decision("Root")
        first = root.add_option("a", Decision("First"))
        first.add_config_leaf("x", "config-1")
        first.add_config_leaf("y", "config-2")
        root.add_config_leaf("b", "config-1")

        assert [path for path, _ in root.leaves()] == [("a", "x"), ("a", "y"), ("b",)]
        assert root.leaf_names() == ["config-1", "config-2"]

    def test_dead_ends(self) -> None:
        root = Decision("Root")
        root.add_option("a", Decision("Empty"))
        root.add_config_leaf("b", "config")

        assert root.dead_ends() == [("a",)]
        assert _android_tree().dead_ends() == []

    def test_is_user_input(self) -> None:
        assert Decision("Q", input_type=InputType.OPTIONAL_USER_INPUT).is_user_input
        assert not Decision("Q", input_type=InputType.OPTIONAL_SELECTOR).is_user_input


class TestResolve:
    """Tests for Decision.resolve."""

    def test_user_input_accepts_any_value(self) -> None:
        resolution = _android_tree().resolve(["./", "app", "release"])

        assert resolution.config_name == "android-config"
        assert resolution.envs == [
            ("PROJECT_LOCATION", "./"),
            ("MODULE", "app"),
            ("VARIANT", "release"),
        ]
        assert resolution.icon_ids == ("icon.png",)

    def test_single_selector_is_taken_automatically(self) -> None:
        root = Decision("Location", env_key="LOCATION")
        root.add_config_leaf("./", "config")

        resolution = root.resolve()

        assert resolution.config_name == "config"
        assert resolution.envs == [("LOCATION", "./")]

    def test_optional_user_input_defaults_when_choices_run_out(self) -> None:
        resolution = _android_tree().resolve(["./", "app"])

        assert resolution.envs[-1] == ("VARIANT", "")

    def test_required_user_input_needs_a_value(self) -> None:
        with pytest.raises(OptionResolutionError, match="Module"):
            _android_tree().resolve(["./"])

    def test_selector_with_several_values_needs_a_choice(self) -> None:
        root = Decision("Manager")
        root.add_config_leaf("npm", "npm-config")
        root.add_config_leaf("yarn", "yarn-config")

        with pytest.raises(OptionResolutionError, match="'npm', 'yarn'"):
            root.resolve()

    def test_unknown_selector_value(self) -> None:
        with pytest.raises(OptionResolutionError, match="Unknown value"):
            _android_tree().resolve(["./missing"])

    def test_leftover_choices(self) -> None:
        root = Decision("Location")
        root.add_config_leaf("./", "config")

        with pytest.raises(OptionResolutionError, match="unused choices"):
            root.resolve(["./", "extra"])

    def test_decision_without_env_key_adds_no_env(self) -> None:
        root = Decision("Manager")
        root.add_config_leaf("npm", "npm-config")

        assert root.resolve(["npm"]).envs == []


class TestToDict:
    """Tests for serialisation."""

    def test_decision_layout(self) -> None:
        data = _android_tree().to_dict()

        assert data["title"] == "Project location"
        assert data["env_key"] == "PROJECT_LOCATION"
        assert data["type"] == "selector"
        module = data["value_map"]["./"]
        assert module["type"] == "user_input"
        leaf = module["value_map"][""]["value_map"][""]
        assert leaf == {"config": "android-config", "icons": ["icon.png"]}

    def test_leaf_without_icons(self) -> None:
        assert ConfigLeaf("config").to_dict() == {"config": "config"}

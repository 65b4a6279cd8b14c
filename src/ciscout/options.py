"""Decision-tree option model.

A detector describes every valid build variant of a platform as a tree.
Internal nodes are Decisions: a question with one child per answer. If a
Decision carries an env key, the chosen answer becomes an environment
variable of the generated config. Terminal nodes are ConfigLeafs naming the
rendered configuration document that applies.

Usage:
    root = Decision("Project location", env_key="PROJECT_LOCATION")
    module = root.add_option("./", Decision("Module", env_key="MODULE",
                                            input_type=InputType.USER_INPUT))
    module.add_config_leaf("", "android-config")

    resolution = root.resolve(["./", "app"])
    resolution.config_name  # "android-config"
    resolution.envs         # [("PROJECT_LOCATION", "./"), ("MODULE", "app")]
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from ciscout.core.errors import OptionResolutionError

USER_INPUT_DEFAULT_VALUE = ""
"""Child value used under user-input decisions; any typed answer follows it."""


class InputType(str, Enum):
    """How a Decision's value is obtained."""

    SELECTOR = "selector"
    OPTIONAL_SELECTOR = "optional_selector"
    USER_INPUT = "user_input"
    OPTIONAL_USER_INPUT = "optional_user_input"


@dataclass
class ConfigLeaf:
    """Terminal node naming a configuration document."""

    config_name: str
    icon_ids: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"config": self.config_name}
        if self.icon_ids:
            data["icons"] = list(self.icon_ids)
        return data


@dataclass
class Decision:
    """Internal node: a question whose answers lead to child nodes."""

    title: str
    """Question shown to the user."""

    summary: str = ""
    """Longer explanation of the question."""

    env_key: Optional[str] = None
    """Environment variable receiving the answer; None for a pure choice."""

    input_type: InputType = InputType.SELECTOR
    """Selector over the known values, or free user input."""

    children: Dict[str, "OptionNode"] = field(default_factory=dict)
    """Child node per answer, in insertion order."""

    @property
    def is_user_input(self) -> bool:
        """Check whether the answer is typed rather than selected."""
        return self.input_type in (InputType.USER_INPUT, InputType.OPTIONAL_USER_INPUT)

    def add_option(self, value: str, child: "Decision") -> "Decision":
        """Attach a follow-up decision for ``value`` and return it."""
        self._attach(value, child)
        return child

    def add_config_leaf(self, value: str, config_name: str, icon_ids: Iterable[str] = ()) -> ConfigLeaf:
        """Attach a terminal config name for ``value`` and return the leaf."""
        leaf = ConfigLeaf(config_name=config_name, icon_ids=tuple(icon_ids))
        self._attach(value, leaf)
        return leaf

    def _attach(self, value: str, child: "OptionNode") -> None:
        if value in self.children:
            raise ValueError(f"Option {self.title!r} already has a child for value {value!r}")
        self.children[value] = child

    def values(self) -> List[str]:
        """Answers accepted by this decision."""
        return list(self.children.keys())

    def child(self, *values: str) -> Optional["OptionNode"]:
        """Follow ``values`` down the tree; None if any value is unknown."""
        node: OptionNode = self
        for value in values:
            if not isinstance(node, Decision) or value not in node.children:
                return None
            node = node.children[value]
        return node

    def leaves(self) -> List[Tuple[Tuple[str, ...], ConfigLeaf]]:
        """Every leaf together with the answers leading to it, depth first."""
        found: List[Tuple[Tuple[str, ...], ConfigLeaf]] = []

        def walk(node: OptionNode, path: Tuple[str, ...]) -> None:
            if isinstance(node, ConfigLeaf):
                found.append((path, node))
                return
            for value, child in node.children.items():
                walk(child, path + (value,))

        walk(self, ())
        return found

    def leaf_names(self) -> List[str]:
        """Distinct config names reachable from this node, in walk order."""
        names: List[str] = []
        for _, leaf in self.leaves():
            if leaf.config_name not in names:
                names.append(leaf.config_name)
        return names

    def dead_ends(self) -> List[Tuple[str, ...]]:
        """Paths to decisions without any child; a complete tree has none."""
        paths: List[Tuple[str, ...]] = []

        def walk(node: OptionNode, path: Tuple[str, ...]) -> None:
            if isinstance(node, ConfigLeaf):
                return
            if not node.children:
                paths.append(path)
            for value, child in node.children.items():
                walk(child, path + (value,))

        walk(self, ())
        return paths

    def resolve(self, choices: Iterable[str] = ()) -> "Resolution":
        """Walk the tree non-interactively.

        Choices are consumed one per decision. When they run out, a
        selector with a single value is taken automatically. A user-input
        decision accepts any answer and follows its default child.

        Raises:
            OptionResolutionError: If a choice is unknown, missing, or left
                over after reaching a leaf.
        """
        remaining = list(choices)
        envs: List[Tuple[str, str]] = []
        node: OptionNode = self

        while isinstance(node, Decision):
            if remaining:
                value = remaining.pop(0)
            elif len(node.children) == 1 and node.input_type != InputType.USER_INPUT:
                value = next(iter(node.children))
            else:
                raise OptionResolutionError(
                    f"A value is required for {node.title!r}; available: {_format_values(node)}"
                )

            if value in node.children:
                child = node.children[value]
            elif node.is_user_input and USER_INPUT_DEFAULT_VALUE in node.children:
                child = node.children[USER_INPUT_DEFAULT_VALUE]
            else:
                raise OptionResolutionError(
                    f"Unknown value {value!r} for {node.title!r}; available: {_format_values(node)}"
                )

            if node.env_key:
                envs.append((node.env_key, value))
            node = child

        if remaining:
            raise OptionResolutionError(
                f"Config {node.config_name!r} reached with unused choices: {remaining}"
            )
        return Resolution(config_name=node.config_name, envs=envs, icon_ids=node.icon_ids)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"title": self.title}
        if self.summary:
            data["summary"] = self.summary
        if self.env_key:
            data["env_key"] = self.env_key
        data["type"] = self.input_type.value
        data["value_map"] = {value: child.to_dict() for value, child in self.children.items()}
        return data


OptionNode = Union[Decision, ConfigLeaf]


@dataclass(frozen=True)
class Resolution:
    """Outcome of walking an option tree."""

    config_name: str
    envs: List[Tuple[str, str]]
    icon_ids: Tuple[str, ...] = ()


def _format_values(node: Decision) -> str:
    values = [repr(v) for v in node.values()]
    if node.is_user_input:
        values.append("<any>")
    return ", ".join(values) if values else "<none>"

"""Non-interactive resolution of a scan result into one configuration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

from ciscout.core.errors import OptionResolutionError
from ciscout.core.models import ScanResult, result_key
from ciscout.generation import add_app_envs
from ciscout.options import ConfigLeaf, Resolution


@dataclass(frozen=True)
class ResolvedConfig:
    """The configuration chosen for a platform, with its answers applied."""

    platform: str
    config_name: str
    envs: List[Tuple[str, str]]
    document: str
    """Rendered YAML with the collected envs appended to ``app.envs``."""


def resolve_config(result: ScanResult, platform: str, choices: Sequence[str] = ()) -> ResolvedConfig:
    """Walk the option tree of ``platform`` with ``choices``.

    Raises:
        OptionResolutionError: If the platform has no option tree, a choice
            does not match, or the reached config was not rendered.
    """
    key = result_key(platform)
    root = result.options.get(key)
    if root is None:
        available = ", ".join(result.options) or "<none>"
        raise OptionResolutionError(f"No options for platform {key!r}; available: {available}")

    if isinstance(root, ConfigLeaf):
        if choices:
            raise OptionResolutionError(
                f"Config {root.config_name!r} reached with unused choices: {list(choices)}"
            )
        resolution = Resolution(config_name=root.config_name, envs=[], icon_ids=root.icon_ids)
    else:
        resolution = root.resolve(choices)

    document = result.configs.get(key, {}).get(resolution.config_name)
    if document is None:
        raise OptionResolutionError(f"Config {resolution.config_name!r} was not generated for {key!r}")

    return ResolvedConfig(
        platform=key,
        config_name=resolution.config_name,
        envs=list(resolution.envs),
        document=add_app_envs(document, resolution.envs),
    )

"""CI configuration generation module.

This module provides:
- ConfigBuilder for assembling ordered workflows and pipelines
- Step list item factories shared by the platform detectors
- YAML rendering of the resulting documents
"""

from ciscout.generation.config_builder import (
    ConfigBuilder,
    ConfigDocument,
    add_app_envs,
    render_yaml,
)

__all__ = [
    "ConfigBuilder",
    "ConfigDocument",
    "add_app_envs",
    "render_yaml",
]

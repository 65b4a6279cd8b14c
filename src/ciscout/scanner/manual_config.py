"""Option trees and configs that need no detection.

Used when a repository has no recognisable platform, or when the user
wants to pick a platform by hand. Every detector contributes its default
tree, answered by user input, plus a generic ``other`` configuration.
"""

from __future__ import annotations

from typing import List

from ciscout.core.errors import SynthesisError
from ciscout.core.logging import get_logger
from ciscout.core.models import DetectorName, ScanResult, SSHKeyActivation
from ciscout.detectors.base import ConfigMap, PlatformDetector
from ciscout.generation import ConfigBuilder, render_yaml
from ciscout.generation import steps
from ciscout.generation.config_builder import PRIMARY_WORKFLOW_ID
from ciscout.options import ConfigLeaf

LOGGER = get_logger(__name__)

OTHER_CONFIG_NAME = "other-config"


def other_configs() -> ConfigMap:
    """Generic configuration: clone the repository and deploy artifacts."""
    builder = ConfigBuilder()
    builder.append_steps(PRIMARY_WORKFLOW_ID, *steps.default_prepare_step_list(SSHKeyActivation.CONDITIONAL))
    builder.append_steps(PRIMARY_WORKFLOW_ID, *steps.default_deploy_step_list())
    return {OTHER_CONFIG_NAME: render_yaml(builder.generate(DetectorName.OTHER.value))}


def manual_config(detectors: List[PlatformDetector]) -> ScanResult:
    """Collect the default option trees and configs of ``detectors``.

    Raises:
        SynthesisError: If a detector fails to build its defaults.
    """
    result = ScanResult()
    for detector in detectors:
        name = detector.name
        try:
            result.options[name] = detector.default_options()
            result.configs[name] = detector.default_configs()
        except Exception as e:
            raise SynthesisError(name, str(e)) from e
        LOGGER.debug(f"Default options of {name}: {', '.join(result.options[name].leaf_names())}")

    other = DetectorName.OTHER.value
    result.options[other] = ConfigLeaf(config_name=OTHER_CONFIG_NAME)
    result.configs[other] = other_configs()
    return result

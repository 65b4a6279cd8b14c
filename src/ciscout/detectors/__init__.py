"""Platform detectors.

Built-in detectors are registered under the ``ciscout.detectors`` entry
point group and loaded in precedence order by
``ciscout.plugins.default_detectors``.
"""

from ciscout.detectors.base import ConfigMap, PlatformDetector
from ciscout.detectors.flutter import FlutterDetector
from ciscout.detectors.kmp import KotlinMultiplatformDetector
from ciscout.detectors.ios import IOSDetector
from ciscout.detectors.android import AndroidDetector
from ciscout.detectors.java import JavaDetector
from ciscout.detectors.nodejs import NodeJSDetector

__all__ = [
    "ConfigMap",
    "PlatformDetector",
    "FlutterDetector",
    "KotlinMultiplatformDetector",
    "IOSDetector",
    "AndroidDetector",
    "JavaDetector",
    "NodeJSDetector",
]

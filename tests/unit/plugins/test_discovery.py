"""Tests for detector discovery."""

from __future__ import annotations

from typing import Optional
from unittest.mock import MagicMock, patch

from ciscout.detectors import AndroidDetector, JavaDetector
from ciscout.detectors.base import PlatformDetector
from ciscout.plugins import (
    DETECTOR_ENTRY_POINT_GROUP,
    DETECTOR_ORDER,
    default_detectors,
    discover_detectors,
    discover_plugins,
    list_available_detectors,
)


def _entry_point(name: str, loaded=None, error: Optional[Exception] = None) -> MagicMock:
    ep = MagicMock()
    ep.name = name
    if error is not None:
        ep.load.side_effect = error
    else:
        ep.load.return_value = loaded
    return ep


class TestDiscoverPlugins:
    """Tests for generic discover_plugins function."""

    def test_discovers_detector_plugins(self) -> None:
        """Test discovering the built-in detectors."""
        plugins = discover_plugins(DETECTOR_ENTRY_POINT_GROUP)
        assert set(DETECTOR_ORDER) <= set(plugins)

    def test_validates_base_class(self) -> None:
        plugins = discover_plugins(DETECTOR_ENTRY_POINT_GROUP, PlatformDetector)
        for plugin_class in plugins.values():
            assert issubclass(plugin_class, PlatformDetector)

    def test_returns_empty_dict_for_unknown_group(self) -> None:
        """Test that unknown group returns empty dict."""
        plugins = discover_plugins("ciscout.nonexistent")
        assert plugins == {}

    def test_skips_plugins_that_fail_to_load(self) -> None:
        eps = [
            _entry_point("broken", error=ImportError("no module")),
            _entry_point("java", JavaDetector),
        ]
        with patch("ciscout.plugins.discovery.entry_points", return_value=eps):
            plugins = discover_plugins(DETECTOR_ENTRY_POINT_GROUP, PlatformDetector)

        assert plugins == {"java": JavaDetector}

    def test_skips_plugins_with_wrong_base_class(self) -> None:
        eps = [_entry_point("dict", dict), _entry_point("function", len)]
        with patch("ciscout.plugins.discovery.entry_points", return_value=eps):
            plugins = discover_plugins(DETECTOR_ENTRY_POINT_GROUP, PlatformDetector)

        assert plugins == {}


class TestDefaultDetectors:
    """Tests for default_detectors."""

    def test_precedence_order(self) -> None:
        names = [detector.name for detector in default_detectors()]
        assert names == DETECTOR_ORDER

    def test_fresh_instances(self) -> None:
        first = default_detectors()
        second = default_detectors()
        assert all(a is not b for a, b in zip(first, second))

    def test_enabled_subset_keeps_order(self) -> None:
        names = [detector.name for detector in default_detectors(enabled=["java", "flutter"])]
        assert names == ["flutter", "java"]

    def test_disabled(self) -> None:
        names = [detector.name for detector in default_detectors(disabled=["android", "ios"])]
        assert names == ["flutter", "kotlin-multiplatform", "java", "node-js"]

    def test_unknown_entry_point_is_ignored(self) -> None:
        eps = [_entry_point("android", AndroidDetector), _entry_point("cobol", JavaDetector)]
        with patch("ciscout.plugins.discovery.entry_points", return_value=eps):
            detectors = default_detectors()

        assert [detector.name for detector in detectors] == ["android"]


class TestListAvailableDetectors:
    """Tests for list_available_detectors."""

    def test_lists_built_in_detectors(self) -> None:
        assert list_available_detectors() == DETECTOR_ORDER

    def test_returns_only_installed(self) -> None:
        with patch("ciscout.plugins.discovery.entry_points", return_value=[_entry_point("java", JavaDetector)]):
            assert list_available_detectors() == ["java"]

    def test_discover_detectors(self) -> None:
        assert discover_detectors()["android"] is AndroidDetector

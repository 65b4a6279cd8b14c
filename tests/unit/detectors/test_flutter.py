"""Tests for the Flutter detector."""

from __future__ import annotations

import pytest
import yaml

from ciscout.core.models import SSHKeyActivation
from ciscout.detectors.flutter import FlutterDetector, read_flutter_version
from ciscout.scanner import DetectionOrchestrator

FLUTTER_APP = {
    "pubspec.yaml": "name: demo\nenvironment:\n  sdk: '>=3.0.0 <4.0.0'\n",
    "test/widget_test.dart": "",
    "ios/Runner.xcworkspace/contents.xcworkspacedata": "",
    "android/build.gradle": "",
}


class TestReadFlutterVersion:
    """Tests for read_flutter_version."""

    def test_fvmrc(self, make_tree) -> None:
        root = make_tree({"pubspec.yaml": "", ".fvmrc": '{"flutter": "3.19.0"}'})

        assert read_flutter_version(root) == "3.19.0"

    def test_fvm_config(self, make_tree) -> None:
        root = make_tree({"pubspec.yaml": "", ".fvm/fvm_config.json": '{"flutterSdkVersion": "3.16.5"}'})

        assert read_flutter_version(root) == "3.16.5"

    def test_tool_versions(self, make_tree) -> None:
        root = make_tree({"pubspec.yaml": "", ".tool-versions": "ruby 3.2.0\nflutter 3.13.9-stable\n"})

        assert read_flutter_version(root) == "3.13.9-stable"

    def test_pinned_pubspec_version(self, make_tree) -> None:
        root = make_tree({"pubspec.yaml": "environment:\n  flutter: 3.22.1\n"})

        assert read_flutter_version(root) == "3.22.1"

    def test_constraint_is_not_a_version(self, make_tree) -> None:
        root = make_tree({"pubspec.yaml": "environment:\n  flutter: '>=3.10.0'\n"})

        assert read_flutter_version(root) == ""

    def test_malformed_fvmrc(self, make_tree) -> None:
        root = make_tree({"pubspec.yaml": "", ".fvmrc": "{"})

        with pytest.raises(ValueError):
            read_flutter_version(root)

    @pytest.mark.parametrize("version_file", [".fvmrc", ".fvm/fvm_config.json"])
    def test_version_file_must_be_an_object(self, make_tree, version_file) -> None:
        root = make_tree({"pubspec.yaml": "", version_file: "[]"})

        with pytest.raises(ValueError, match="expected a JSON object"):
            read_flutter_version(root)

    def test_empty_fvmrc_falls_through(self, make_tree) -> None:
        root = make_tree({"pubspec.yaml": "", ".fvmrc": "{}", ".tool-versions": "flutter 3.10.0\n"})

        assert read_flutter_version(root) == "3.10.0"


class TestFlutterDetector:
    """Tests for FlutterDetector."""

    def test_name_and_exclusions(self) -> None:
        detector = FlutterDetector()

        assert detector.name == "flutter"
        assert detector.excluded_detector_names() == ["ios", "android"]

    def test_no_pubspec(self, snapshot_of) -> None:
        assert not FlutterDetector().detect_platform(snapshot_of({"README.md": ""}))

    def test_full_app(self, snapshot_of) -> None:
        detector = FlutterDetector()

        assert detector.detect_platform(snapshot_of(FLUTTER_APP))

        project = detector.projects[0]
        assert project.has_test and project.has_ios and project.has_android
        assert project.config_name == "flutter-config-test-both-0"

    def test_test_dir_without_dart_tests(self, snapshot_of) -> None:
        detector = FlutterDetector()
        detector.detect_platform(snapshot_of({"pubspec.yaml": "", "test/README.md": ""}))

        assert detector.projects[0].config_name == "flutter-config-notest-0"

    def test_pub_cache_is_skipped(self, snapshot_of) -> None:
        detector = FlutterDetector()

        assert not detector.detect_platform(snapshot_of({".pub-cache/hosted/pkg/pubspec.yaml": ""}))

    def test_projects_are_numbered(self, snapshot_of) -> None:
        detector = FlutterDetector()
        detector.detect_platform(snapshot_of({
            "pubspec.yaml": "",
            "packages/core/pubspec.yaml": "",
            "packages/core/android/build.gradle.kts": "",
        }))

        assert [p.config_name for p in detector.projects] == [
            "flutter-config-notest-0",
            "flutter-config-notest-android-1",
        ]

    def test_options_and_configs(self, snapshot_of) -> None:
        detector = FlutterDetector()
        detector.detect_platform(snapshot_of(FLUTTER_APP))

        root, warnings, icons = detector.options()
        configs = detector.configs(SSHKeyActivation.CONDITIONAL)

        assert warnings == [] and icons == []
        assert root.env_key == "BITRISE_FLUTTER_PROJECT_LOCATION"
        assert root.resolve().config_name == "flutter-config-test-both-0"
        assert set(root.leaf_names()) == set(configs)

        document = yaml.safe_load(configs["flutter-config-test-both-0"])
        assert list(document["workflows"]) == ["primary", "deploy"]
        build = document["workflows"]["deploy"]["steps"][-2]["flutter-build@0"]
        assert {"platform": "both"} in build["inputs"]
        assert {"ios_output_type": "archive"} in build["inputs"]

    def test_no_platform_has_no_deploy_workflow(self, snapshot_of) -> None:
        detector = FlutterDetector()
        detector.detect_platform(snapshot_of({"pubspec.yaml": ""}))

        document = yaml.safe_load(detector.configs(SSHKeyActivation.NONE)["flutter-config-notest-0"])

        assert list(document["workflows"]) == ["primary"]
        step_ids = [next(iter(step)) for step in document["workflows"]["primary"]["steps"]]
        assert step_ids == [
            "git-clone@8",
            "flutter-installer@0",
            "restore-dart-cache@2",
            "flutter-analyze@0",
            "save-dart-cache@1",
            "deploy-to-bitrise-io@2",
        ]

    def test_default_options(self) -> None:
        detector = FlutterDetector()
        root = detector.default_options()

        resolution = root.resolve(["./app", "ios"])

        assert resolution.config_name == "flutter-config-test-ios-1"
        assert set(root.leaf_names()) == set(detector.default_configs())


def test_unreadable_version_file_is_a_warning(make_tree) -> None:
    """A bad version file leaves the project detected and unpinned."""
    root = make_tree({"pubspec.yaml": "", ".fvmrc": "[]"})

    result = DetectionOrchestrator([FlutterDetector()]).run(str(root))

    assert result.detected_platforms == ["flutter"]
    assert not result.has_errors
    assert "expected a JSON object" in result.warnings["flutter"][0]

    document = yaml.safe_load(result.configs["flutter"]["flutter-config-notest-0"])
    installer = document["workflows"]["primary"]["steps"][2]["flutter-installer@0"]
    assert installer["inputs"] == [{"is_update": "false"}]


def test_malformed_pubspec_leaves_version_unpinned(snapshot_of) -> None:
    detector = FlutterDetector()
    detector.detect_platform(snapshot_of({"pubspec.yaml": "environment: [\n"}))

    assert detector.projects[0].flutter_version == ""

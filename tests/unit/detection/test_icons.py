"""Tests for app icon lookup."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from ciscout.detection.direntry import build_snapshot
from ciscout.detection.icons import (
    largest_app_icon_name,
    lookup_android_icons,
    lookup_ios_icons,
    parse_android_icon_reference,
)
from ciscout.detection.ignore import IgnorePatterns

MANIFEST = """<?xml version="1.0" encoding="utf-8"?>
<manifest xmlns:android="http://schemas.android.com/apk/res/android">
    <application android:icon="@mipmap/ic_launcher" android:label="Demo"/>
</manifest>
"""

MANIFEST_WITHOUT_ICON = """<?xml version="1.0" encoding="utf-8"?>
<manifest xmlns:android="http://schemas.android.com/apk/res/android">
    <application android:label="Demo"/>
</manifest>
"""

MANIFEST_WITH_ENTITY = """<?xml version="1.0" encoding="utf-8"?>
<!DOCTYPE manifest [<!ENTITY label "Demo">]>
<manifest xmlns:android="http://schemas.android.com/apk/res/android">
    <application android:icon="@mipmap/ic_launcher" android:label="&label;"/>
</manifest>
"""

APP_ICON_CONTENTS = json.dumps({
    "images": [
        {"idiom": "iphone", "size": "60x60", "scale": "3x", "filename": "icon-180.png"},
        {"idiom": "ios-marketing", "size": "1024x1024", "scale": "1x", "filename": "icon-1024.png"},
        {"idiom": "iphone", "size": "20x20", "scale": "2x"},
    ],
})


class TestParseAndroidIconReference:
    """Tests for parse_android_icon_reference."""

    def test_mipmap_reference(self, tmp_path: Path) -> None:
        manifest = tmp_path / "AndroidManifest.xml"
        manifest.write_text(MANIFEST)

        assert parse_android_icon_reference(manifest) == ("mipmap", "ic_launcher")

    def test_no_icon(self, tmp_path: Path) -> None:
        manifest = tmp_path / "AndroidManifest.xml"
        manifest.write_text(MANIFEST_WITHOUT_ICON)

        assert parse_android_icon_reference(manifest) is None

    def test_malformed_manifest(self, tmp_path: Path) -> None:
        manifest = tmp_path / "AndroidManifest.xml"
        manifest.write_text("<manifest>")

        with pytest.raises(ValueError):
            parse_android_icon_reference(manifest)

    def test_entity_declaration_is_a_value_error(self, tmp_path: Path) -> None:
        manifest = tmp_path / "AndroidManifest.xml"
        manifest.write_text(MANIFEST_WITH_ENTITY)

        with pytest.raises(ValueError, match="Invalid manifest"):
            parse_android_icon_reference(manifest)


class TestLookupAndroidIcons:
    """Tests for lookup_android_icons."""

    def test_prefers_highest_density(self, snapshot_of) -> None:
        snapshot = snapshot_of({
            "app/src/main/AndroidManifest.xml": MANIFEST,
            "app/src/main/res/mipmap-hdpi/ic_launcher.png": "h",
            "app/src/main/res/mipmap-xxxhdpi/ic_launcher.png": "x",
        })

        icons = lookup_android_icons(snapshot.root, Path(snapshot.root_dir))

        assert len(icons) == 1
        assert icons[0].path.endswith("mipmap-xxxhdpi/ic_launcher.png")
        assert icons[0].filename.endswith(".png")

    def test_manifest_without_png(self, snapshot_of) -> None:
        snapshot = snapshot_of({"app/src/main/AndroidManifest.xml": MANIFEST})

        assert lookup_android_icons(snapshot.root, Path(snapshot.root_dir)) == []

    def test_ignored_manifest_is_not_read(self, make_tree) -> None:
        root = make_tree({
            "app/src/main/AndroidManifest.xml": "<manifest>",
            "app/src/main/res/mipmap-hdpi/ic_launcher.png": "h",
        })
        snapshot = build_snapshot(root, 6, IgnorePatterns(["app/src/main/AndroidManifest.xml"]))

        assert lookup_android_icons(snapshot.root, root) == []

    def test_icons_beyond_scan_depth_are_not_used(self, snapshot_of) -> None:
        snapshot = snapshot_of(
            {
                "app/src/main/AndroidManifest.xml": MANIFEST,
                "app/src/main/res/mipmap-hdpi/ic_launcher.png": "h",
            },
            max_depth=4,
        )

        assert lookup_android_icons(snapshot.root, Path(snapshot.root_dir)) == []

    def test_nested_manifests_are_not_modules(self, snapshot_of) -> None:
        snapshot = snapshot_of({
            "libs/app/src/main/AndroidManifest.xml": MANIFEST,
            "libs/app/src/main/res/mipmap-hdpi/ic_launcher.png": "h",
        })

        assert lookup_android_icons(snapshot.root, Path(snapshot.root_dir)) == []


class TestLargestAppIconName:
    """Tests for largest_app_icon_name."""

    def test_largest_image_with_a_file(self, tmp_path: Path) -> None:
        contents = tmp_path / "Contents.json"
        contents.write_text(APP_ICON_CONTENTS)

        assert largest_app_icon_name(contents) == "icon-1024.png"

    def test_no_images(self, tmp_path: Path) -> None:
        contents = tmp_path / "Contents.json"
        contents.write_text('{"info": {"version": 1}}')

        assert largest_app_icon_name(contents) is None

    @pytest.mark.parametrize("content", ["{", "[]"])
    def test_malformed_contents(self, tmp_path: Path, content: str) -> None:
        contents = tmp_path / "Contents.json"
        contents.write_text(content)

        with pytest.raises(ValueError):
            largest_app_icon_name(contents)


class TestLookupIOSIcons:
    """Tests for lookup_ios_icons."""

    def test_app_icon_set_of_the_target(self, snapshot_of) -> None:
        snapshot = snapshot_of({
            "Demo/Assets.xcassets/AppIcon.appiconset/Contents.json": APP_ICON_CONTENTS,
            "Demo/Assets.xcassets/AppIcon.appiconset/icon-180.png": "a",
            "Demo/Assets.xcassets/AppIcon.appiconset/icon-1024.png": "b",
        })

        icons = lookup_ios_icons(snapshot.root, "Demo", Path(snapshot.root_dir))

        assert len(icons) == 1
        assert icons[0].path.endswith("AppIcon.appiconset/icon-1024.png")
        assert icons[0].filename.endswith(".png")

    def test_other_target_directory(self, snapshot_of) -> None:
        snapshot = snapshot_of({
            "Widget/Assets.xcassets/AppIcon.appiconset/Contents.json": APP_ICON_CONTENTS,
            "Widget/Assets.xcassets/AppIcon.appiconset/icon-1024.png": "b",
        })

        assert lookup_ios_icons(snapshot.root, "Demo", Path(snapshot.root_dir)) == []

    def test_icon_set_outside_an_asset_catalog(self, snapshot_of) -> None:
        snapshot = snapshot_of({
            "Demo/Resources/AppIcon.appiconset/Contents.json": APP_ICON_CONTENTS,
            "Demo/Resources/AppIcon.appiconset/icon-1024.png": "b",
        })

        assert lookup_ios_icons(snapshot.root, "Demo", Path(snapshot.root_dir)) == []

    def test_listed_image_must_exist(self, snapshot_of) -> None:
        snapshot = snapshot_of({
            "Demo/Assets.xcassets/AppIcon.appiconset/Contents.json": APP_ICON_CONTENTS,
        })

        assert lookup_ios_icons(snapshot.root, "Demo", Path(snapshot.root_dir)) == []

    def test_empty_target_name(self, snapshot_of) -> None:
        snapshot = snapshot_of({"Demo/main.swift": ""})

        assert lookup_ios_icons(snapshot.root, "", Path(snapshot.root_dir)) == []

"""Rendering and writing of scan results."""

from __future__ import annotations

import json
import shutil
from pathlib import Path

import yaml

from ciscout.core.logging import get_logger
from ciscout.core.models import ScanResult

LOGGER = get_logger(__name__)

RESULT_FILE_NAMES = {"yaml": "result.yml", "json": "result.json"}
ICONS_DIR_NAME = "icons"


def render_result(result: ScanResult, output_format: str) -> str:
    """Serialise a scan result as YAML or JSON."""
    data = result.to_dict()
    if output_format == "json":
        return json.dumps(data, indent=2) + "\n"
    return yaml.dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)


def write_result(result: ScanResult, output_format: str, output_dir: Path) -> Path:
    """Write the rendered result and its icons into ``output_dir``.

    Icons are copied to ``<output_dir>/icons/<icon filename>``.

    Returns:
        Path of the written result file.

    Raises:
        OSError: If the directory or a file cannot be written.
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    result_path = output_dir / RESULT_FILE_NAMES[output_format]
    result_path.write_text(render_result(result, output_format), encoding="utf-8")
    LOGGER.info(f"Result written to {result_path}")

    if result.icons:
        icons_dir = output_dir / ICONS_DIR_NAME
        icons_dir.mkdir(exist_ok=True)
        for icon in result.icons:
            shutil.copyfile(icon.path, icons_dir / icon.filename)
        LOGGER.info(f"{len(result.icons)} icon(s) copied to {icons_dir}")

    return result_path

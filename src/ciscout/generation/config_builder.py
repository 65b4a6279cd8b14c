"""CI configuration document assembly.

A ConfigBuilder collects ordered step lists per workflow and pipeline
membership, then freezes them into a ConfigDocument. Step order is
execution order: lists are append-only and never sorted. Rendering keeps
insertion order as well, so identical append sequences always render to
byte-identical YAML.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

import yaml

from ciscout.generation.steps import StepListItem

FORMAT_VERSION = "13"
DEFAULT_STEP_LIB_SOURCE = "https://github.com/bitrise-io/bitrise-steplib.git"

PRIMARY_WORKFLOW_ID = "primary"
DEPLOY_WORKFLOW_ID = "deploy"

EnvItem = Dict[str, Any]


@dataclass
class _WorkflowBuilder:
    steps: List[StepListItem] = field(default_factory=list)
    summary: str = ""
    description: str = ""

    def generate(self) -> Dict[str, Any]:
        workflow: Dict[str, Any] = {}
        if self.summary:
            workflow["summary"] = self.summary
        if self.description:
            workflow["description"] = self.description
        workflow["steps"] = copy.deepcopy(self.steps)
        return workflow


@dataclass(frozen=True)
class ConfigDocument:
    """An immutable CI configuration ready for rendering."""

    project_type: str
    workflows: Dict[str, Dict[str, Any]]
    pipelines: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    app_envs: Tuple[EnvItem, ...] = ()
    format_version: str = FORMAT_VERSION
    default_step_lib_source: str = DEFAULT_STEP_LIB_SOURCE

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the serialised layout, omitting empty sections."""
        data: Dict[str, Any] = {
            "format_version": self.format_version,
            "default_step_lib_source": self.default_step_lib_source,
            "project_type": self.project_type,
        }
        if self.pipelines:
            data["pipelines"] = copy.deepcopy(self.pipelines)
        data["workflows"] = copy.deepcopy(self.workflows)
        if self.app_envs:
            data["app"] = {"envs": [dict(env) for env in self.app_envs]}
        return data


class ConfigBuilder:
    """Accumulates workflows and pipelines for one configuration."""

    def __init__(self) -> None:
        self._workflows: Dict[str, _WorkflowBuilder] = {}
        self._pipelines: Dict[str, Dict[str, Dict[str, Any]]] = {}

    def _workflow(self, workflow_id: str) -> _WorkflowBuilder:
        if workflow_id not in self._workflows:
            self._workflows[workflow_id] = _WorkflowBuilder()
        return self._workflows[workflow_id]

    def append_steps(self, workflow_id: str, *items: StepListItem) -> None:
        """Append step list items to a workflow, creating it on first use."""
        self._workflow(workflow_id).steps.extend(items)

    def set_workflow_summary(self, workflow_id: str, summary: str) -> None:
        self._workflow(workflow_id).summary = summary

    def set_workflow_description(self, workflow_id: str, description: str) -> None:
        self._workflow(workflow_id).description = description

    def set_pipeline_workflow(
        self,
        pipeline_id: str,
        workflow_id: str,
        parallel: Optional[str] = None,
        depends_on: Optional[List[str]] = None,
    ) -> None:
        """Add (or replace) a workflow in a graph pipeline."""
        item: Dict[str, Any] = {}
        if parallel:
            item["parallel"] = parallel
        if depends_on:
            item["depends_on"] = list(depends_on)
        self._pipelines.setdefault(pipeline_id, {})[workflow_id] = item

    @property
    def workflow_ids(self) -> List[str]:
        return list(self._workflows.keys())

    def generate(self, project_type: str, *app_envs: EnvItem) -> ConfigDocument:
        """Freeze the accumulated state into a ConfigDocument.

        Args:
            project_type: Project type label written into the document.
            app_envs: App-level environment items, e.g. ``{"TEST_SHARD_COUNT": 2}``.
        """
        pipelines = {
            pipeline_id: {"workflows": copy.deepcopy(workflows)}
            for pipeline_id, workflows in self._pipelines.items()
        }
        workflows = {
            workflow_id: builder.generate()
            for workflow_id, builder in self._workflows.items()
        }
        return ConfigDocument(
            project_type=project_type,
            workflows=workflows,
            pipelines=pipelines,
            app_envs=tuple(dict(env) for env in app_envs),
        )


def render_yaml(document: ConfigDocument) -> str:
    """Render a document to YAML, keeping insertion order."""
    return yaml.dump(
        document.to_dict(),
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True,
    )


def add_app_envs(document_text: str, envs: Iterable[Tuple[str, str]]) -> str:
    """Append resolved environment variables to a rendered document.

    Args:
        document_text: YAML produced by render_yaml.
        envs: ``(key, value)`` pairs collected while resolving an option tree.

    Returns:
        Re-rendered YAML with the pairs appended to ``app.envs``.
    """
    data = yaml.safe_load(document_text) or {}
    env_items = [{key: value} for key, value in envs]
    if env_items:
        app = data.setdefault("app", {}) or {}
        app.setdefault("envs", [])
        app["envs"].extend(env_items)
        data["app"] = app
    return yaml.dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)

"""
Build definitions generated from a component's declared state.

Both generators are pure: the same component always yields the same
TriggerTemplate and the same initial PipelineRun. The trigger template
embeds the PipelineRun template as canonical JSON.
"""

from __future__ import annotations

import json
from typing import List

from .errors import InvalidComponentError
from .resources import (
    Component,
    ObjectMeta,
    Param,
    ParamSpec,
    PersistentVolumeClaimSpec,
    PipelineRef,
    PipelineRun,
    PipelineRunSpec,
    Quantity,
    ResourceRequirements,
    SecretVolumeSource,
    TriggerResourceTemplate,
    TriggerTemplate,
    TriggerTemplateSpec,
    VolumeClaimTemplate,
    WorkspaceBinding,
)

COMPONENT_LABEL = "build.appstudio.openshift.io/component"
APPLICATION_LABEL = "build.appstudio.openshift.io/application"

BUILD_PIPELINE = "docker-build"
BUILD_SERVICE_ACCOUNT = "pipeline"
WORKSPACE_STORAGE = "1Gi"
DEFAULT_REVISION = "main"
DEFAULT_IMAGE_REGISTRY = "image-registry.openshift-image-registry.svc:5000"


def _git_url(component: Component) -> str:
    source = component.git_source
    if source is None or not source.url:
        raise InvalidComponentError(f"component {component.key} has no git source URL")
    return source.url


def output_image(component: Component) -> str:
    """Image reference the build pushes to."""
    if component.spec.container_image:
        return component.spec.container_image
    return f"{DEFAULT_IMAGE_REGISTRY}/{component.metadata.namespace}/{component.metadata.name}"


def revision(component: Component) -> str:
    source = component.git_source
    return (source.revision if source and source.revision else DEFAULT_REVISION)


def build_labels(component: Component) -> dict:
    labels = {COMPONENT_LABEL: component.metadata.name}
    if component.spec.application:
        labels[APPLICATION_LABEL] = component.spec.application
    return labels


def _workspaces(component: Component) -> List[WorkspaceBinding]:
    workspaces = [
        WorkspaceBinding(
            name="workspace",
            volume_claim_template=VolumeClaimTemplate(
                spec=PersistentVolumeClaimSpec(
                    access_modes=["ReadWriteOnce"],
                    resources=ResourceRequirements(requests={"storage": Quantity(WORKSPACE_STORAGE)}),
                )
            ),
        )
    ]
    if component.git_secret_name:
        workspaces.append(
            WorkspaceBinding(
                name="git-auth",
                secret=SecretVolumeSource(secret_name=component.git_secret_name),
            )
        )
    return workspaces


def _pipeline_run(component: Component, params: List[Param]) -> PipelineRun:
    return PipelineRun(
        metadata=ObjectMeta(
            generate_name=f"{component.metadata.name}-",
            namespace=component.metadata.namespace,
            labels=build_labels(component),
        ),
        spec=PipelineRunSpec(
            pipeline_ref=PipelineRef(name=BUILD_PIPELINE),
            params=params,
            workspaces=_workspaces(component),
            service_account_name=BUILD_SERVICE_ACCOUNT,
        ),
    )


def serialize_payload(pipeline_run: PipelineRun) -> str:
    """Canonical JSON for embedding a PipelineRun in a trigger template."""
    return json.dumps(pipeline_run.to_dict(), sort_keys=True, separators=(",", ":"))


def generate_trigger_template(component: Component) -> TriggerTemplate:
    """Generate the TriggerTemplate a component's builds should be started from."""
    git_url = _git_url(component)

    template_run = _pipeline_run(
        component,
        [
            Param(name="git-url", value="$(tt.params.git-repo-url)"),
            Param(name="output-image", value="$(tt.params.output-image)"),
            Param(name="revision", value="$(tt.params.revision)"),
        ],
    )

    return TriggerTemplate(
        metadata=ObjectMeta(
            name=component.metadata.name,
            namespace=component.metadata.namespace,
            labels=build_labels(component),
        ),
        spec=TriggerTemplateSpec(
            params=[
                ParamSpec(name="git-repo-url", description="The git repository url", default=git_url),
                ParamSpec(name="output-image", description="Image to push", default=output_image(component)),
                ParamSpec(name="revision", description="The git revision", default=revision(component)),
            ],
            resource_templates=[TriggerResourceTemplate(raw=serialize_payload(template_run))],
        ),
    )


def generate_initial_build_pipeline_run(component: Component) -> PipelineRun:
    """Generate a PipelineRun that builds the component's current source."""
    return _pipeline_run(
        component,
        [
            Param(name="git-url", value=_git_url(component)),
            Param(name="output-image", value=output_image(component)),
            Param(name="revision", value=revision(component)),
        ],
    )

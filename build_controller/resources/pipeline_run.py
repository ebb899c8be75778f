"""PipelineRun: a single build execution request."""

from __future__ import annotations

from typing import ClassVar, Dict, List, Optional, Union

from pydantic import Field

from .meta import ObjectMeta, Resource, ResourceModel
from .quantity import Quantity


class Param(ResourceModel):
    name: str
    value: Union[str, List[str]]


class PipelineRef(ResourceModel):
    name: str
    bundle: Optional[str] = None


class ResourceRequirements(ResourceModel):
    requests: Dict[str, Quantity] = Field(default_factory=dict)
    limits: Dict[str, Quantity] = Field(default_factory=dict)


class PersistentVolumeClaimSpec(ResourceModel):
    access_modes: List[str] = Field(default_factory=list)
    resources: ResourceRequirements = Field(default_factory=ResourceRequirements)


class VolumeClaimTemplate(ResourceModel):
    metadata: ObjectMeta = Field(default_factory=ObjectMeta)
    spec: PersistentVolumeClaimSpec = Field(default_factory=PersistentVolumeClaimSpec)


class SecretVolumeSource(ResourceModel):
    secret_name: str


class WorkspaceBinding(ResourceModel):
    name: str
    volume_claim_template: Optional[VolumeClaimTemplate] = None
    secret: Optional[SecretVolumeSource] = None


class PipelineRunSpec(ResourceModel):
    pipeline_ref: Optional[PipelineRef] = None
    params: List[Param] = Field(default_factory=list)
    workspaces: List[WorkspaceBinding] = Field(default_factory=list)
    service_account_name: Optional[str] = None
    timeout: Optional[str] = None


class PipelineRun(Resource):
    API_VERSION: ClassVar[str] = "tekton.dev/v1beta1"
    KIND: ClassVar[str] = "PipelineRun"

    spec: PipelineRunSpec = Field(default_factory=PipelineRunSpec)

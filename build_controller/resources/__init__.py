"""Resource kinds the build controller reads and writes."""

from .component import Component, ComponentSource, ComponentSpec, ComponentStatus, GitSource
from .core import Secret, ServiceAccount
from .meta import (
    ObjectMeta,
    ObjectReference,
    OwnerReference,
    Resource,
    is_owned_by,
    set_owner_reference,
)
from .pipeline_run import (
    Param,
    PersistentVolumeClaimSpec,
    PipelineRef,
    PipelineRun,
    PipelineRunSpec,
    ResourceRequirements,
    SecretVolumeSource,
    VolumeClaimTemplate,
    WorkspaceBinding,
)
from .quantity import Quantity, quantities_equal
from .trigger_template import (
    ParamSpec,
    TriggerResourceTemplate,
    TriggerTemplate,
    TriggerTemplateSpec,
)

__all__ = [
    "Component",
    "ComponentSource",
    "ComponentSpec",
    "ComponentStatus",
    "GitSource",
    "ObjectMeta",
    "ObjectReference",
    "OwnerReference",
    "Param",
    "ParamSpec",
    "PersistentVolumeClaimSpec",
    "PipelineRef",
    "PipelineRun",
    "PipelineRunSpec",
    "Quantity",
    "RESOURCE_KINDS",
    "Resource",
    "ResourceRequirements",
    "Secret",
    "SecretVolumeSource",
    "ServiceAccount",
    "TriggerResourceTemplate",
    "TriggerTemplate",
    "TriggerTemplateSpec",
    "VolumeClaimTemplate",
    "WorkspaceBinding",
    "is_owned_by",
    "quantities_equal",
    "resource_from_dict",
    "set_owner_reference",
]

RESOURCE_KINDS = {
    kind.KIND: kind
    for kind in (Component, Secret, ServiceAccount, PipelineRun, TriggerTemplate)
}


def resource_from_dict(data: dict) -> Resource:
    """Decode a wire document into the model for its kind."""
    kind = data.get("kind")
    if kind not in RESOURCE_KINDS:
        raise ValueError(f"unsupported resource kind: {kind!r}")
    return RESOURCE_KINDS[kind].model_validate(data)

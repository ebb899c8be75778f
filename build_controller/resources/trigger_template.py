"""
TriggerTemplate: what gets created whenever a build is triggered.

Each resource template carries a PipelineRun, but only as serialized JSON in
`raw`. Decoding happens in the drift detector, which must fail loudly on a
payload it cannot read.
"""

from __future__ import annotations

import json
from typing import Any, ClassVar, List, Optional

from pydantic import Field, model_validator

from .meta import Resource, ResourceModel


class ParamSpec(ResourceModel):
    name: str
    description: Optional[str] = None
    default: Optional[str] = None


class TriggerResourceTemplate(ResourceModel):
    raw: str = ""

    @model_validator(mode="before")
    @classmethod
    def _accept_inline_object(cls, data: Any) -> Any:
        # An embedded object given inline is stored in its serialized form.
        if isinstance(data, dict) and "raw" not in data:
            return {"raw": json.dumps(data, sort_keys=True, separators=(",", ":"))}
        return data


class TriggerTemplateSpec(ResourceModel):
    params: List[ParamSpec] = Field(default_factory=list)
    resource_templates: List[TriggerResourceTemplate] = Field(
        default_factory=list, alias="resourcetemplates"
    )


class TriggerTemplate(Resource):
    API_VERSION: ClassVar[str] = "triggers.tekton.dev/v1alpha1"
    KIND: ClassVar[str] = "TriggerTemplate"

    spec: TriggerTemplateSpec = Field(default_factory=TriggerTemplateSpec)

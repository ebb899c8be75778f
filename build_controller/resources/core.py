"""Core kinds: Secret holds repository credentials, ServiceAccount runs builds."""

from __future__ import annotations

from typing import ClassVar, Dict, List

from pydantic import Field

from .meta import ObjectReference, Resource


class Secret(Resource):
    API_VERSION: ClassVar[str] = "v1"
    KIND: ClassVar[str] = "Secret"

    type: str = "Opaque"
    data: Dict[str, str] = Field(default_factory=dict)
    string_data: Dict[str, str] = Field(default_factory=dict)


class ServiceAccount(Resource):
    API_VERSION: ClassVar[str] = "v1"
    KIND: ClassVar[str] = "ServiceAccount"

    secrets: List[ObjectReference] = Field(default_factory=list)
    image_pull_secrets: List[ObjectReference] = Field(default_factory=list)

    @property
    def secret_names(self) -> List[str]:
        return [ref.name for ref in self.secrets]

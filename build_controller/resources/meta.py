"""
Object metadata shared by every resource kind.

Resources are pydantic models that serialize to the camelCase JSON shape the
cluster API uses, so a stored body can be re-read as the same model.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, ClassVar, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..errors import OwnershipError


class ResourceModel(BaseModel):
    """
    Shared base model for resource configuration objects.

    Fields without a declared attribute are kept as extras under their wire
    name, so an object read and written back loses nothing another owner set.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the wire shape (camelCase, no unset optionals)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class OwnerReference(ResourceModel):
    """Back-reference from a dependent object to the object that caused it."""

    api_version: str
    kind: str
    name: str
    uid: str
    controller: Optional[bool] = None
    block_owner_deletion: Optional[bool] = None


class ObjectReference(ResourceModel):
    """Reference to another object, by name."""

    name: str
    namespace: Optional[str] = None
    kind: Optional[str] = None


class ObjectMeta(ResourceModel):
    name: str = ""
    generate_name: Optional[str] = None
    namespace: str = ""
    uid: Optional[str] = None
    resource_version: Optional[str] = None
    creation_timestamp: Optional[datetime] = None
    labels: Dict[str, str] = Field(default_factory=dict)
    annotations: Dict[str, str] = Field(default_factory=dict)
    owner_references: List[OwnerReference] = Field(default_factory=list)


class Resource(ResourceModel):
    """A namespaced API object: type information plus metadata."""

    API_VERSION: ClassVar[str] = "v1"
    KIND: ClassVar[str] = ""

    api_version: str = ""
    kind: str = ""
    metadata: ObjectMeta = Field(default_factory=ObjectMeta)

    def model_post_init(self, __context: Any) -> None:
        if not self.api_version:
            self.api_version = self.API_VERSION
        if not self.kind:
            self.kind = self.KIND

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def namespace(self) -> str:
        return self.metadata.namespace

    @property
    def key(self) -> str:
        return f"{self.metadata.namespace}/{self.metadata.name}"


def _api_group(api_version: str) -> str:
    return api_version.split("/", 1)[0] if "/" in api_version else ""


def _same_owner(ref: OwnerReference, owner: Resource) -> bool:
    return (
        _api_group(ref.api_version) == _api_group(owner.api_version)
        and ref.kind == owner.kind
        and ref.name == owner.metadata.name
    )


def set_owner_reference(owner: Resource, obj: Resource) -> None:
    """
    Record `owner` as an owner of `obj`, replacing any existing reference to it.

    Raises:
        OwnershipError: The owner has not been persisted yet (no uid), or the
            two objects live in different namespaces.
    """
    if not owner.metadata.uid:
        raise OwnershipError(f"{owner.kind} {owner.key} has no uid")
    if obj.metadata.namespace and owner.metadata.namespace != obj.metadata.namespace:
        raise OwnershipError(
            f"cross-namespace owner references are disallowed: owner's namespace "
            f"{owner.metadata.namespace}, obj's namespace {obj.metadata.namespace}"
        )

    reference = OwnerReference(
        api_version=owner.api_version,
        kind=owner.kind,
        name=owner.metadata.name,
        uid=owner.metadata.uid,
    )
    references = obj.metadata.owner_references
    for index, existing in enumerate(references):
        if _same_owner(existing, owner):
            references[index] = reference
            return
    references.append(reference)


def is_owned_by(obj: Resource, owner: Resource) -> bool:
    """True if `obj` carries an owner reference to `owner`."""
    return any(
        _same_owner(ref, owner) and (owner.metadata.uid is None or ref.uid == owner.metadata.uid)
        for ref in obj.metadata.owner_references
    )

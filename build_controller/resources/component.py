"""Component: the declaratively managed unit a build is produced for."""

from __future__ import annotations

from typing import ClassVar, Optional

from pydantic import Field

from .meta import Resource, ResourceModel


class GitSource(ResourceModel):
    url: str
    secret: Optional[str] = None
    revision: Optional[str] = None
    context: Optional[str] = None


class ComponentSource(ResourceModel):
    git_source: Optional[GitSource] = None


class ComponentSpec(ResourceModel):
    component_name: str = ""
    application: str = ""
    source: ComponentSource = Field(default_factory=ComponentSource)
    container_image: Optional[str] = None


class ComponentStatus(ResourceModel):
    # Set by the component controller once the devfile model is computed.
    devfile: str = ""


class Component(Resource):
    API_VERSION: ClassVar[str] = "appstudio.redhat.com/v1alpha1"
    KIND: ClassVar[str] = "Component"

    spec: ComponentSpec = Field(default_factory=ComponentSpec)
    status: ComponentStatus = Field(default_factory=ComponentStatus)

    @property
    def git_source(self) -> Optional[GitSource]:
        return self.spec.source.git_source

    @property
    def git_secret_name(self) -> str:
        """Name of the declared repository credential, or "" if none."""
        source = self.git_source
        return (source.secret or "") if source else ""

    @property
    def is_ready(self) -> bool:
        return bool(self.status.devfile)

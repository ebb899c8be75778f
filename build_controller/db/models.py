"""
SQLAlchemy models for the build controller.

All resource kinds share one table. The body column holds the full JSON
document; identity and concurrency columns are kept outside of it and are
merged back into the metadata on read.
"""

from datetime import datetime, timezone
from typing import Any, Dict

from sqlalchemy import JSON, Column, DateTime, Integer, String, UniqueConstraint

from .base import Base


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ResourceModel(Base):
    """SQLAlchemy model for a stored resource."""

    __tablename__ = "resources"

    uid = Column(String(36), primary_key=True)
    api_version = Column(String(128), nullable=False)
    kind = Column(String(64), nullable=False, index=True)
    namespace = Column(String(253), nullable=False, index=True)
    name = Column(String(253), nullable=False)
    labels = Column(JSON, nullable=False, default=dict)
    body = Column(JSON, nullable=False)

    # Optimistic concurrency: every UPDATE is guarded by the version it read.
    resource_version = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utc_now)

    __table_args__ = (
        UniqueConstraint("kind", "namespace", "name", name="uq_resources_kind_namespace_name"),
    )

    __mapper_args__ = {"version_id_col": resource_version}

    def to_dict(self) -> Dict[str, Any]:
        """Return the stored body with identity fields filled in."""
        body = dict(self.body or {})
        metadata = dict(body.get("metadata") or {})
        metadata.update(
            {
                "name": self.name,
                "namespace": self.namespace,
                "uid": self.uid,
                "resourceVersion": str(self.resource_version),
            }
        )
        if self.created_at is not None and "creationTimestamp" not in metadata:
            metadata["creationTimestamp"] = self.created_at.isoformat()
        body["metadata"] = metadata
        body.setdefault("apiVersion", self.api_version)
        body.setdefault("kind", self.kind)
        return body

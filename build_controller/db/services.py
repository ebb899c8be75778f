"""
Resource persistence service.

Provides get/create/update/list/delete for every resource kind, with
optimistic concurrency on update: the caller's metadata.resourceVersion must
match the stored version, and the ORM version column guards the write itself.
"""

from __future__ import annotations

import random
import uuid
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Type, TypeVar

import structlog
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ..errors import AlreadyExistsError, ConflictError, NotFoundError, PersistenceError
from ..resources import Resource
from .models import ResourceModel

logger = structlog.get_logger()

T = TypeVar("T", bound=Resource)
R = TypeVar("R")

_GENERATE_NAME_ALPHABET = "bcdfghjklmnpqrstvwxz2456789"
_GENERATE_NAME_SUFFIX_LENGTH = 5


def _generated_name(prefix: str) -> str:
    suffix = "".join(random.choice(_GENERATE_NAME_ALPHABET) for _ in range(_GENERATE_NAME_SUFFIX_LENGTH))
    return f"{prefix}{suffix}"


def _labels_match(labels: Optional[Dict[str, str]], selector: Dict[str, str]) -> bool:
    labels = labels or {}
    return all(labels.get(key) == value for key, value in selector.items())


class ResourceService:
    """Service for storing resources of any kind."""

    def __init__(self, db: Session):
        self.db = db

    def _row(self, kind: str, namespace: str, name: str) -> Optional[ResourceModel]:
        try:
            return (
                self.db.query(ResourceModel)
                .filter(
                    ResourceModel.kind == kind,
                    ResourceModel.namespace == namespace,
                    ResourceModel.name == name,
                )
                .populate_existing()
                .first()
            )
        except SQLAlchemyError as e:
            raise PersistenceError(f"failed to read {kind} {namespace}/{name}: {e}") from e

    def _commit(self, description: str) -> None:
        try:
            self.db.commit()
        except StaleDataError as e:
            self.db.rollback()
            raise ConflictError(
                f"operation cannot be fulfilled on {description}: the object has been modified; "
                "please apply your changes to the latest version and try again"
            ) from e
        except IntegrityError as e:
            self.db.rollback()
            raise AlreadyExistsError(f"{description} already exists") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"failed to write {description}: {e}") from e

    def find(self, resource_type: Type[T], namespace: str, name: str) -> Optional[T]:
        """Get a resource, or None if it does not exist."""
        row = self._row(resource_type.KIND, namespace, name)
        if row is None:
            return None
        return resource_type.model_validate(row.to_dict())

    def get(self, resource_type: Type[T], namespace: str, name: str) -> T:
        """Get a resource by namespace and name."""
        resource = self.find(resource_type, namespace, name)
        if resource is None:
            raise NotFoundError(resource_type.KIND, namespace, name)
        return resource

    def create(self, obj: T) -> T:
        """
        Create a new resource.

        The returned copy has uid, resourceVersion and creationTimestamp set;
        a missing name is generated from metadata.generateName.
        """
        name = obj.metadata.name
        if not name:
            if not obj.metadata.generate_name:
                raise PersistenceError(f"{obj.kind}: name or generateName is required")
            name = _generated_name(obj.metadata.generate_name)

        now = datetime.now(timezone.utc)
        uid = str(uuid.uuid4())
        body = obj.to_dict()
        metadata = body.setdefault("metadata", {})
        metadata.pop("resourceVersion", None)
        metadata.update({"name": name, "uid": uid, "creationTimestamp": now.isoformat()})

        row = ResourceModel(
            uid=uid,
            api_version=obj.api_version,
            kind=obj.kind,
            namespace=obj.metadata.namespace,
            name=name,
            labels=dict(obj.metadata.labels),
            body=body,
            created_at=now,
            updated_at=now,
        )
        self.db.add(row)
        self._commit(f"{obj.kind} {obj.metadata.namespace}/{name}")
        self.db.refresh(row)

        logger.debug("resource created", kind=obj.kind, namespace=row.namespace, name=row.name)
        return type(obj).model_validate(row.to_dict())

    def update(self, obj: T) -> T:
        """
        Replace a stored resource.

        Raises:
            NotFoundError: The resource does not exist.
            ConflictError: obj was read before the latest write.
        """
        description = f"{obj.kind} {obj.metadata.namespace}/{obj.metadata.name}"
        row = self._row(obj.kind, obj.metadata.namespace, obj.metadata.name)
        if row is None:
            raise NotFoundError(obj.kind, obj.metadata.namespace, obj.metadata.name)
        if obj.metadata.resource_version != str(row.resource_version):
            raise ConflictError(
                f"operation cannot be fulfilled on {description}: the object has been modified; "
                "please apply your changes to the latest version and try again"
            )

        body = obj.to_dict()
        metadata = body.setdefault("metadata", {})
        metadata.pop("resourceVersion", None)
        metadata["uid"] = row.uid
        metadata["creationTimestamp"] = row.created_at.isoformat()

        row.body = body
        row.labels = dict(obj.metadata.labels)
        row.updated_at = datetime.now(timezone.utc)
        self._commit(description)
        self.db.refresh(row)

        logger.debug(
            "resource updated",
            kind=obj.kind,
            namespace=row.namespace,
            name=row.name,
            resource_version=row.resource_version,
        )
        return type(obj).model_validate(row.to_dict())

    def list(
        self,
        resource_type: Type[T],
        namespace: Optional[str] = None,
        labels: Optional[Dict[str, str]] = None,
    ) -> List[T]:
        """List resources of a kind, optionally by namespace and label selector."""
        try:
            query = self.db.query(ResourceModel).filter(ResourceModel.kind == resource_type.KIND)
            if namespace is not None:
                query = query.filter(ResourceModel.namespace == namespace)
            rows = (
                query.order_by(ResourceModel.namespace.asc(), ResourceModel.created_at.asc())
                .populate_existing()
                .all()
            )
        except SQLAlchemyError as e:
            raise PersistenceError(f"failed to list {resource_type.KIND}: {e}") from e

        selector = labels or {}
        return [
            resource_type.model_validate(row.to_dict())
            for row in rows
            if _labels_match(row.labels, selector)
        ]

    def delete(self, resource_type: Type[T], namespace: str, name: str) -> None:
        """Delete a resource by namespace and name."""
        row = self._row(resource_type.KIND, namespace, name)
        if row is None:
            raise NotFoundError(resource_type.KIND, namespace, name)
        self.db.delete(row)
        self._commit(f"{resource_type.KIND} {namespace}/{name}")


def retry_on_conflict(fn: Callable[[], R], attempts: int = 5) -> R:
    """
    Run a read-modify-write closure, re-running it on ConflictError.

    `fn` must re-read the object it modifies on every call. The last
    ConflictError is re-raised once `attempts` runs have failed.
    """
    for attempt in range(1, attempts + 1):
        try:
            return fn()
        except ConflictError:
            if attempt >= attempts:
                raise
            logger.info("write conflict, retrying", attempt=attempt, attempts=attempts)
    raise ValueError("attempts must be at least 1")

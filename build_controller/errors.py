"""
Error taxonomy for the component build controller.

Every failure raised by the controller derives from BuildControllerError and
carries a stable code. How each kind is treated is decided by ERROR_POLICY,
not by the individual call sites:

- defer: prerequisite state is not there yet; retry after a fixed delay
- log_and_continue: best-effort step; log and carry on with a fallback value
- retry_locally: re-fetch and re-run the read-modify-write, bounded
- propagate: fail the invocation and let the caller's backoff retry it
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional, Type


class Disposition(str, Enum):
    """What a caller does with an error of a given kind."""

    DEFER = "defer"
    LOG_AND_CONTINUE = "log_and_continue"
    RETRY_LOCALLY = "retry_locally"
    PROPAGATE = "propagate"


class BuildControllerError(Exception):
    """
    Base class for all controller errors.

    Attributes:
        code: Stable error code for programmatic handling
        message: Human-readable error description
    """

    code = "BUILD_CONTROLLER_ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(f"{self.code}: {message}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON serialization."""
        return {
            "error": type(self).__name__,
            "code": self.code,
            "message": self.message,
        }


class NotReadyError(BuildControllerError):
    """Prerequisite state (devfile model, synced trigger template) is missing."""

    code = "NOT_READY"


class InvalidURLError(BuildControllerError):
    """A repository URL failed to parse or has no scheme."""

    code = "INVALID_URL"

    def __init__(self, url: str, reason: str = "scheme is empty"):
        self.url = url
        super().__init__(f"failed to parse {url!r} into a URL: {reason}")


class PayloadDecodeError(BuildControllerError):
    """A trigger resource template payload is not a valid PipelineRun."""

    code = "PAYLOAD_DECODE_FAILED"


class MissingDependencyError(BuildControllerError):
    """A Secret or ServiceAccount the build needs does not exist."""

    code = "MISSING_DEPENDENCY"

    def __init__(self, kind: str, namespace: str, name: str):
        self.kind = kind
        self.namespace = namespace
        self.name = name
        super().__init__(f"{kind} {namespace}/{name} is missing")


class ConflictError(BuildControllerError):
    """An update was rejected because the stored object changed since it was read."""

    code = "CONFLICT"


class PersistenceError(BuildControllerError):
    """Generic storage failure."""

    code = "PERSISTENCE_FAILED"


class NotFoundError(PersistenceError):
    """The requested object does not exist."""

    code = "NOT_FOUND"

    def __init__(self, kind: str, namespace: str, name: str):
        self.kind = kind
        self.namespace = namespace
        self.name = name
        super().__init__(f"{kind} {namespace}/{name} not found")


class AlreadyExistsError(PersistenceError):
    """An object with the same kind, namespace and name already exists."""

    code = "ALREADY_EXISTS"


class OwnershipError(BuildControllerError):
    """An owner reference could not be attached."""

    code = "OWNERSHIP_FAILED"


class InvalidComponentError(BuildControllerError):
    """The component's declared state cannot produce build definitions."""

    code = "INVALID_COMPONENT"


ERROR_POLICY: Dict[Type[BuildControllerError], Disposition] = {
    NotReadyError: Disposition.DEFER,
    InvalidURLError: Disposition.LOG_AND_CONTINUE,
    OwnershipError: Disposition.LOG_AND_CONTINUE,
    ConflictError: Disposition.RETRY_LOCALLY,
    PayloadDecodeError: Disposition.PROPAGATE,
    MissingDependencyError: Disposition.PROPAGATE,
    PersistenceError: Disposition.PROPAGATE,
    InvalidComponentError: Disposition.PROPAGATE,
}


def disposition_for(exc: BaseException) -> Disposition:
    """Look up how an error should be handled, most specific class first."""
    for klass in type(exc).__mro__:
        disposition: Optional[Disposition] = ERROR_POLICY.get(klass)  # type: ignore[arg-type]
        if disposition is not None:
            return disposition
    return Disposition.PROPAGATE

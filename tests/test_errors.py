"""Unit tests for the error taxonomy and its handling policy."""

import pytest

from build_controller.errors import (
    ERROR_POLICY,
    AlreadyExistsError,
    BuildControllerError,
    ConflictError,
    Disposition,
    InvalidComponentError,
    InvalidURLError,
    MissingDependencyError,
    NotFoundError,
    NotReadyError,
    OwnershipError,
    PayloadDecodeError,
    PersistenceError,
    disposition_for,
)


class TestPolicyTable:
    @pytest.mark.parametrize(
        "error, disposition",
        [
            (NotReadyError("trigger template not synced"), Disposition.DEFER),
            (InvalidURLError("git@github.com:foo/bar"), Disposition.LOG_AND_CONTINUE),
            (OwnershipError("no uid"), Disposition.LOG_AND_CONTINUE),
            (ConflictError("stale"), Disposition.RETRY_LOCALLY),
            (PayloadDecodeError("bad json"), Disposition.PROPAGATE),
            (MissingDependencyError("Secret", "ns", "creds"), Disposition.PROPAGATE),
            (PersistenceError("io"), Disposition.PROPAGATE),
            (InvalidComponentError("no source"), Disposition.PROPAGATE),
        ],
    )
    def test_dispositions(self, error, disposition):
        assert disposition_for(error) is disposition

    def test_subclasses_inherit_their_parent_policy(self):
        assert disposition_for(NotFoundError("Secret", "ns", "creds")) is Disposition.PROPAGATE
        assert disposition_for(AlreadyExistsError("exists")) is Disposition.PROPAGATE

    def test_unknown_errors_propagate(self):
        assert disposition_for(RuntimeError("boom")) is Disposition.PROPAGATE

    def test_every_policy_entry_is_a_controller_error(self):
        assert all(issubclass(kind, BuildControllerError) for kind in ERROR_POLICY)


class TestErrorShape:
    def test_to_dict(self):
        error = MissingDependencyError("ServiceAccount", "default", "pipeline")

        assert error.to_dict() == {
            "error": "MissingDependencyError",
            "code": "MISSING_DEPENDENCY",
            "message": "ServiceAccount default/pipeline is missing",
        }

    def test_str_includes_code(self):
        assert str(ConflictError("stale read")) == "CONFLICT: stale read"

    def test_invalid_url_keeps_the_url(self):
        error = InvalidURLError("not-even-a-url")

        assert error.url == "not-even-a-url"
        assert "scheme is empty" in error.message

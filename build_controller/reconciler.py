"""
Component build reconciliation.

Invoked once per component create/update event. Decides whether the
component's deployed trigger template has drifted from the one its declared
state generates and, if so, submits a new build.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

import structlog

from .config import Settings, get_settings
from .db.services import ResourceService
from .drift import detect_drift
from .errors import BuildControllerError, Disposition, NotFoundError, NotReadyError, disposition_for
from .gitops import generate_trigger_template
from .resources import Component, TriggerTemplate
from .submitter import BuildSubmitter

logger = structlog.get_logger()

TriggerTemplateGenerator = Callable[[Component], TriggerTemplate]


class ReconcileOutcome(str, Enum):
    """Observable outcome of a reconciliation that did not fail."""

    NO_OP = "no-op"
    DEFERRED = "deferred"
    BUILD_SUBMITTED = "build-submitted"


@dataclass
class ReconcileResult:
    outcome: ReconcileOutcome
    requeue_after: Optional[float] = None
    pipeline_run: Optional[str] = None


class ComponentBuildReconciler:
    """Submits builds for components whose build trigger is out of date."""

    def __init__(
        self,
        resources: ResourceService,
        settings: Optional[Settings] = None,
        trigger_template_generator: TriggerTemplateGenerator = generate_trigger_template,
        submitter: Optional[BuildSubmitter] = None,
    ):
        self.resources = resources
        self.settings = settings or get_settings()
        self.trigger_template_generator = trigger_template_generator
        self.submitter = submitter or BuildSubmitter(resources, self.settings)

    def reconcile(self, namespace: str, name: str) -> ReconcileResult:
        """
        Reconcile one component.

        Any exception raised is fatal for this invocation; the caller is
        expected to retry it with backoff.
        """
        log = logger.bind(component_key=f"{namespace}/{name}")

        component = self.resources.find(Component, namespace, name)
        if component is None:
            # Deleted after the event was queued; owned builds are garbage collected.
            return ReconcileResult(ReconcileOutcome.NO_OP)

        if not component.is_ready:
            # A status update with the devfile model triggers the next reconcile.
            log.info("waiting for devfile model in component")
            return ReconcileResult(ReconcileOutcome.NO_OP)

        expected = self.trigger_template_generator(component)
        try:
            existing = self._synced_trigger_template(expected)
        except BuildControllerError as e:
            if disposition_for(e) is not Disposition.DEFER:
                raise
            log.info("waiting for build resources to be synced", reason=e.message)
            return ReconcileResult(
                ReconcileOutcome.DEFERRED,
                requeue_after=self.settings.trigger_template_requeue_seconds,
            )

        if not self.is_new_build_required(component, existing, expected):
            return ReconcileResult(ReconcileOutcome.NO_OP)

        build = self.submitter.submit_new_build(component)
        return ReconcileResult(ReconcileOutcome.BUILD_SUBMITTED, pipeline_run=build.metadata.name)

    def _synced_trigger_template(self, expected: TriggerTemplate) -> TriggerTemplate:
        namespace, name = expected.metadata.namespace, expected.metadata.name
        try:
            return self.resources.get(TriggerTemplate, namespace, name)
        except NotFoundError as e:
            raise NotReadyError(f"trigger template {namespace}/{name} has not been synced yet") from e

    def is_new_build_required(
        self, component: Component, existing: TriggerTemplate, expected: TriggerTemplate
    ) -> bool:
        """Detect whether a new image should be built for the component."""
        log = logger.bind(
            namespace=component.metadata.namespace,
            application=component.spec.application,
            component=component.metadata.name,
        )

        report = detect_drift(existing, expected)
        if report.stage == "trigger_template":
            log.info("trigger template is not up to date, rebuild", diff=report.describe())
        elif report.stage == "trigger_resource_template":
            log.info("trigger resource template is not up to date, rebuild", diff=report.describe())
        else:
            log.info("trigger template is up to date, rebuild is not needed")
        return report.drifted

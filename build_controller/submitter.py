"""
Submitting a new build for a component.

Steps, each failing on its own:
1. Annotate the component's git secret with its provider host so the
   pipeline runtime can use it.
2. Link the secret to the namespace's pipeline service account.
3. Create the PipelineRun, owned by the component.

Everything before the PipelineRun is created is idempotent, so a failure
part way leaves state that the next reconciliation finishes cleanly.
"""

from __future__ import annotations

from typing import Callable, List, Optional

import structlog

from .config import Settings, get_settings
from .db.services import ResourceService, retry_on_conflict
from .errors import (
    BuildControllerError,
    Disposition,
    MissingDependencyError,
    NotFoundError,
    disposition_for,
)
from .gitops import COMPONENT_LABEL, generate_initial_build_pipeline_run
from .linker import link_secret_if_absent
from .providers import get_git_provider
from .resources import Component, PipelineRun, Secret, ServiceAccount, is_owned_by, set_owner_reference

logger = structlog.get_logger()

PipelineRunGenerator = Callable[[Component], PipelineRun]


class BuildSubmitter:
    """Creates build PipelineRuns and the credential wiring they depend on."""

    def __init__(
        self,
        resources: ResourceService,
        settings: Optional[Settings] = None,
        pipeline_run_generator: PipelineRunGenerator = generate_initial_build_pipeline_run,
    ):
        self.resources = resources
        self.settings = settings or get_settings()
        self.pipeline_run_generator = pipeline_run_generator

    def submit_new_build(self, component: Component) -> PipelineRun:
        """
        Create a new PipelineRun to build the given component.

        Raises:
            MissingDependencyError: The declared git secret or the pipeline
                service account does not exist.
            ConflictError: Writes kept conflicting after all retries.
            PersistenceError: Any other storage failure.
        """
        log = logger.bind(
            namespace=component.metadata.namespace,
            application=component.spec.application,
            component=component.metadata.name,
        )
        log.info("new build submitted")

        secret_name = component.git_secret_name
        if secret_name:
            self._annotate_git_secret(component, secret_name, log)

        self._link_secret_to_service_account(component, secret_name, log)

        build = self.pipeline_run_generator(component)
        try:
            set_owner_reference(component, build)
        except BuildControllerError as e:
            if disposition_for(e) is not Disposition.LOG_AND_CONTINUE:
                raise
            log.error("unable to set owner reference", error=str(e), pipeline_run=build.metadata.generate_name)

        created = self.resources.create(build)
        log.info("pipeline run created", pipeline_run=created.metadata.name)
        return created

    def _provider_for(self, component: Component, log) -> str:
        git_url = component.git_source.url if component.git_source else ""
        try:
            return get_git_provider(git_url)
        except BuildControllerError as e:
            if disposition_for(e) is not Disposition.LOG_AND_CONTINUE:
                raise
            log.warning("unable to determine git provider", url=git_url, error=str(e))
            return ""

    def _annotate_git_secret(self, component: Component, secret_name: str, log) -> None:
        namespace = component.metadata.namespace
        annotation = self.settings.git_provider_annotation
        git_host = self._provider_for(component, log)

        def annotate() -> Secret:
            try:
                secret = self.resources.get(Secret, namespace, secret_name)
            except NotFoundError as e:
                log.error("secret is missing", secret=secret_name)
                raise MissingDependencyError("Secret", namespace, secret_name) from e
            # Always overwritten, whatever was there before.
            secret.metadata.annotations[annotation] = git_host
            return self.resources.update(secret)

        try:
            retry_on_conflict(annotate, self.settings.conflict_retry_attempts)
        except BuildControllerError as e:
            if not isinstance(e, MissingDependencyError):
                log.error("secret update failed", secret=secret_name, error=str(e))
            raise

    def _link_secret_to_service_account(self, component: Component, secret_name: str, log) -> None:
        namespace = component.metadata.namespace
        account_name = self.settings.pipeline_service_account

        def link() -> None:
            try:
                service_account = self.resources.get(ServiceAccount, namespace, account_name)
            except NotFoundError as e:
                log.error("pipeline service account is missing", service_account=account_name)
                raise MissingDependencyError("ServiceAccount", namespace, account_name) from e
            if not secret_name:
                # No declared secret: nothing is linked, the account only has to exist.
                return
            if link_secret_if_absent(secret_name, service_account):
                updated = self.resources.update(service_account)
                log.info(
                    "service account updated",
                    service_account=account_name,
                    secrets=updated.secret_names,
                )

        try:
            retry_on_conflict(link, self.settings.conflict_retry_attempts)
        except BuildControllerError as e:
            if not isinstance(e, MissingDependencyError):
                log.error("unable to update pipeline service account", service_account=account_name, error=str(e))
            raise


def list_component_builds(resources: ResourceService, component: Component) -> List[PipelineRun]:
    """PipelineRuns labelled for and owned by the component."""
    runs = resources.list(
        PipelineRun,
        namespace=component.metadata.namespace,
        labels={COMPONENT_LABEL: component.metadata.name},
    )
    return [run for run in runs if is_owned_by(run, component)]

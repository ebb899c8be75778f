"""Scenario tests for component build reconciliation."""

import pytest

from build_controller.errors import InvalidComponentError, MissingDependencyError, PayloadDecodeError
from build_controller.gitops import generate_trigger_template
from build_controller.reconciler import ComponentBuildReconciler, ReconcileOutcome
from build_controller.resources import (
    Component,
    PipelineRun,
    ServiceAccount,
    TriggerResourceTemplate,
    TriggerTemplate,
    is_owned_by,
)

from conftest import NAMESPACE, make_component, make_secret, make_service_account, sync_trigger_template


def builds(resources):
    return resources.list(PipelineRun, namespace=NAMESPACE)


@pytest.fixture
def reconciler(resources, settings) -> ComponentBuildReconciler:
    return ComponentBuildReconciler(resources, settings)


class TestShortCircuits:
    def test_missing_component_is_a_no_op(self, reconciler, resources):
        result = reconciler.reconcile(NAMESPACE, "gone")

        assert result.outcome is ReconcileOutcome.NO_OP
        assert result.requeue_after is None

    def test_component_without_devfile_model_waits(self, reconciler, resources, service_account):
        resources.create(make_component(devfile=""))

        result = reconciler.reconcile(NAMESPACE, "test-component")

        assert result.outcome is ReconcileOutcome.NO_OP
        assert result.requeue_after is None
        assert builds(resources) == []

    def test_unsynced_trigger_template_defers(self, reconciler, resources, component, service_account):
        result = reconciler.reconcile(NAMESPACE, "test-component")

        assert result.outcome is ReconcileOutcome.DEFERRED
        assert result.requeue_after == 5.0
        assert builds(resources) == []

    def test_requeue_delay_comes_from_settings(self, resources, settings, component):
        settings.trigger_template_requeue_seconds = 12.5

        result = ComponentBuildReconciler(resources, settings).reconcile(NAMESPACE, "test-component")

        assert result.requeue_after == 12.5


class TestBuildDecision:
    def test_up_to_date_trigger_template_submits_nothing(self, reconciler, resources, component, service_account):
        sync_trigger_template(resources, component)

        result = reconciler.reconcile(NAMESPACE, "test-component")

        assert result.outcome is ReconcileOutcome.NO_OP
        assert builds(resources) == []

    def test_changed_parameter_submits_one_owned_build(self, reconciler, resources, component, service_account):
        observed = sync_trigger_template(resources, component)
        observed.spec.params[0].name = "new-param"
        resources.update(observed)

        result = reconciler.reconcile(NAMESPACE, "test-component")

        assert result.outcome is ReconcileOutcome.BUILD_SUBMITTED
        runs = builds(resources)
        assert len(runs) == 1
        assert runs[0].name == result.pipeline_run
        assert is_owned_by(runs[0], component)

    def test_changed_payload_submits_a_build(self, reconciler, resources, component, service_account):
        observed = sync_trigger_template(resources, component)
        run = PipelineRun.model_validate_json(observed.spec.resource_templates[0].raw)
        run.metadata.generate_name = "test-"
        observed.spec.resource_templates[0] = TriggerResourceTemplate(raw=run.model_dump_json(by_alias=True))
        resources.update(observed)

        result = reconciler.reconcile(NAMESPACE, "test-component")

        assert result.outcome is ReconcileOutcome.BUILD_SUBMITTED
        assert len(builds(resources)) == 1

    def test_component_source_change_submits_a_build(self, reconciler, resources, component, service_account):
        sync_trigger_template(resources, component)
        component.spec.source.git_source.url = "https://github.com/devfile-samples/another-repo"
        resources.update(component)

        result = reconciler.reconcile(NAMESPACE, "test-component")

        assert result.outcome is ReconcileOutcome.BUILD_SUBMITTED

    def test_each_reconcile_against_a_stale_template_submits_again(
        self, reconciler, resources, component, service_account
    ):
        observed = sync_trigger_template(resources, component)
        observed.spec.params.pop()
        resources.update(observed)

        reconciler.reconcile(NAMESPACE, "test-component")
        reconciler.reconcile(NAMESPACE, "test-component")

        assert len(builds(resources)) == 2

    def test_secret_gets_linked_on_submission(self, reconciler, resources, service_account):
        component = resources.create(make_component(secret="git-creds"))
        resources.create(make_secret())
        observed = sync_trigger_template(resources, component)
        observed.spec.params[0].name = "new-param"
        resources.update(observed)

        reconciler.reconcile(NAMESPACE, "test-component")

        account = resources.get(ServiceAccount, NAMESPACE, "pipeline")
        assert sorted(account.secret_names) == ["git-creds", "other"]


class TestFatalErrors:
    def test_undecodable_payload_propagates(self, reconciler, resources, component, service_account):
        observed = sync_trigger_template(resources, component)
        observed.spec.resource_templates[0] = TriggerResourceTemplate(raw="{broken")
        resources.update(observed)

        with pytest.raises(PayloadDecodeError):
            reconciler.reconcile(NAMESPACE, "test-component")
        assert builds(resources) == []

    def test_missing_service_account_propagates(self, reconciler, resources, component):
        observed = sync_trigger_template(resources, component)
        observed.spec.params[0].name = "new-param"
        resources.update(observed)

        with pytest.raises(MissingDependencyError):
            reconciler.reconcile(NAMESPACE, "test-component")
        assert builds(resources) == []

    def test_component_without_git_source_propagates(self, reconciler, resources):
        component = make_component()
        component.spec.source.git_source = None
        resources.create(component)

        with pytest.raises(InvalidComponentError):
            reconciler.reconcile(NAMESPACE, "test-component")


class TestInjectedGenerator:
    def test_uses_the_given_trigger_template_generator(self, resources, settings, component, service_account):
        sync_trigger_template(resources, component)
        calls = []

        def generator(owner: Component) -> TriggerTemplate:
            calls.append(owner.name)
            template = generate_trigger_template(owner)
            template.spec.params[0].default = "https://example.com/other"
            return template

        result = ComponentBuildReconciler(
            resources, settings, trigger_template_generator=generator
        ).reconcile(NAMESPACE, "test-component")

        assert calls == ["test-component"]
        assert result.outcome is ReconcileOutcome.BUILD_SUBMITTED

    def test_is_new_build_required_is_read_only(self, reconciler, resources, component):
        expected = generate_trigger_template(component)
        observed = expected.model_copy(deep=True)
        before = observed.model_dump()

        assert reconciler.is_new_build_required(component, observed, expected) is False
        assert observed.model_dump() == before

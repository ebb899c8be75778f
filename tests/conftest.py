"""Test configuration and fixtures."""

from typing import Generator, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from build_controller.config import Settings
from build_controller.db.base import Base
from build_controller.db.services import ResourceService
from build_controller.gitops import generate_trigger_template
from build_controller.resources import (
    Component,
    ComponentSource,
    ComponentSpec,
    ComponentStatus,
    GitSource,
    ObjectMeta,
    ObjectReference,
    Secret,
    ServiceAccount,
    TriggerTemplate,
)

NAMESPACE = "default"
SAMPLE_REPO_LINK = "https://github.com/devfile-samples/devfile-sample-java-springboot-basic"


@pytest.fixture
def engine():
    """A fresh in-memory database for each test."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine) -> sessionmaker:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db_session(session_factory) -> Generator[Session, None, None]:
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def resources(db_session) -> ResourceService:
    return ResourceService(db_session)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        database_url="sqlite:///:memory:",
        trigger_template_requeue_seconds=5.0,
        conflict_retry_attempts=3,
        requeue_base_delay_seconds=1.0,
        requeue_max_delay_seconds=8.0,
    )


def make_component(
    name: str = "test-component",
    namespace: str = NAMESPACE,
    url: str = SAMPLE_REPO_LINK,
    secret: Optional[str] = None,
    devfile: str = "schemaVersion: 2.2.0",
    application: str = "test-application",
) -> Component:
    """Create a component with optional overrides."""
    return Component(
        metadata=ObjectMeta(name=name, namespace=namespace),
        spec=ComponentSpec(
            component_name="backend",
            application=application,
            source=ComponentSource(git_source=GitSource(url=url, secret=secret)),
        ),
        status=ComponentStatus(devfile=devfile),
    )


def make_secret(name: str = "git-creds", namespace: str = NAMESPACE, **annotations: str) -> Secret:
    return Secret(
        metadata=ObjectMeta(name=name, namespace=namespace, annotations=dict(annotations)),
        data={"username": "dXNlcg==", "password": "cGFzcw=="},
    )


def make_service_account(
    secrets=("other",), name: str = "pipeline", namespace: str = NAMESPACE
) -> ServiceAccount:
    return ServiceAccount(
        metadata=ObjectMeta(name=name, namespace=namespace),
        secrets=[ObjectReference(name=secret) for secret in secrets],
    )


def sync_trigger_template(resources: ResourceService, component: Component) -> TriggerTemplate:
    """Store the generated trigger template the way the sync agent would."""
    return resources.create(generate_trigger_template(component))


@pytest.fixture
def component(resources) -> Component:
    return resources.create(make_component())


@pytest.fixture
def service_account(resources) -> ServiceAccount:
    return resources.create(make_service_account())

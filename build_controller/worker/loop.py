"""
Controller loop - turns component changes into reconciliations.

Flow per cycle:
1. Poll: List components and compare resource versions with the last cycle
2. Events: New components are "created", changed ones "updated", vanished
   ones "deleted" (ignored; owned builds are garbage collected)
3. Queue: Event keys plus keys whose requeue time has come, one entry per key
4. Reconcile: Run the reconciler for each queued key
5. Requeue: Deferred results come back after their requeue delay, failures
   after an exponential backoff
"""
from __future__ import annotations

import signal
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Set

import structlog
from sqlalchemy.orm import Session, sessionmaker

from ..config import Settings, get_settings
from ..db.base import get_session_local
from ..db.services import ResourceService
from ..logs import configure_logging
from ..reconciler import ComponentBuildReconciler, ReconcileResult
from ..resources import Component

logger = structlog.get_logger()


class EventType(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


@dataclass(frozen=True)
class ComponentEvent:
    type: EventType
    namespace: str
    name: str

    @property
    def key(self) -> str:
        return f"{self.namespace}/{self.name}"


def should_reconcile(event: ComponentEvent) -> bool:
    """Only create and update events start a reconciliation."""
    return event.type in (EventType.CREATED, EventType.UPDATED)


ReconcilerFactory = Callable[[ResourceService], ComponentBuildReconciler]


class ControllerLoop:
    """Main loop for reconciling component builds."""

    def __init__(
        self,
        session_factory: Optional[sessionmaker] = None,
        settings: Optional[Settings] = None,
        reconciler_factory: Optional[ReconcilerFactory] = None,
        poll_interval: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize controller loop.

        Args:
            session_factory: Sessionmaker for the resource store (default from config)
            settings: Settings to use (default: global settings)
            reconciler_factory: Builds a reconciler around a ResourceService
            poll_interval: Seconds between poll cycles (default from config)
            clock: Monotonic time source
        """
        self.settings = settings or get_settings()
        self.session_factory = session_factory or get_session_local()
        self.reconciler_factory = reconciler_factory or (
            lambda resources: ComponentBuildReconciler(resources, self.settings)
        )
        self.poll_interval = poll_interval or self.settings.poll_interval
        self.clock = clock
        self.running = False

        self._seen: Dict[str, Optional[str]] = {}
        self._due: Dict[str, float] = {}
        self._failures: Dict[str, int] = {}

        logger.info("controller loop initialized", poll_interval=self.poll_interval)

    def start(self) -> None:
        """Start the loop. Runs until stopped."""
        self.running = True
        logger.info("controller loop starting")

        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

        try:
            while self.running:
                try:
                    self.run_once()
                except Exception:
                    logger.exception("error in controller loop")
                time.sleep(self.poll_interval)
        finally:
            logger.info("controller loop stopped")

    def stop(self) -> None:
        """Signal the loop to stop after the current cycle."""
        logger.info("controller loop stopping")
        self.running = False

    def _signal_handler(self, signum, frame) -> None:
        logger.info("received signal, shutting down", signum=signum)
        self.stop()

    def poll_events(self, resources: ResourceService) -> List[ComponentEvent]:
        """Diff the current components against the previous poll."""
        events: List[ComponentEvent] = []
        current: Dict[str, Optional[str]] = {}

        for component in resources.list(Component):
            key = component.key
            version = component.metadata.resource_version
            current[key] = version
            if key not in self._seen:
                events.append(ComponentEvent(EventType.CREATED, component.namespace, component.name))
            elif self._seen[key] != version:
                events.append(ComponentEvent(EventType.UPDATED, component.namespace, component.name))

        for key in self._seen.keys() - current.keys():
            namespace, _, name = key.partition("/")
            events.append(ComponentEvent(EventType.DELETED, namespace, name))

        self._seen = current
        return events

    def run_once(self) -> int:
        """Poll once and reconcile everything queued.

        Returns:
            Number of reconciliations run
        """
        db: Session = self.session_factory()
        try:
            resources = ResourceService(db)
            queue: Set[str] = set()

            for event in self.poll_events(resources):
                if should_reconcile(event):
                    queue.add(event.key)
                else:
                    self._forget(event.key)

            now = self.clock()
            queue.update(key for key, due in self._due.items() if due <= now)

            reconciler = self.reconciler_factory(resources)
            for key in sorted(queue):
                self._reconcile_key(reconciler, key)
            return len(queue)
        finally:
            db.close()

    def backoff_delay(self, failures: int) -> float:
        """Exponential backoff for the given number of consecutive failures."""
        delay = self.settings.requeue_base_delay_seconds * (2 ** max(failures - 1, 0))
        return min(delay, self.settings.requeue_max_delay_seconds)

    def _reconcile_key(self, reconciler: ComponentBuildReconciler, key: str) -> None:
        namespace, _, name = key.partition("/")
        log = logger.bind(component_key=key)
        self._due.pop(key, None)

        try:
            result: ReconcileResult = reconciler.reconcile(namespace, name)
        except Exception as e:
            failures = self._failures.get(key, 0) + 1
            self._failures[key] = failures
            delay = self.backoff_delay(failures)
            self._due[key] = self.clock() + delay
            log.exception("reconcile failed", failures=failures, retry_in=delay, error=str(e))
            return

        self._failures.pop(key, None)
        if result.requeue_after is not None:
            self._due[key] = self.clock() + result.requeue_after
        log.info(
            "reconciled",
            outcome=result.outcome.value,
            requeue_after=result.requeue_after,
            pipeline_run=result.pipeline_run,
        )

    def _forget(self, key: str) -> None:
        self._due.pop(key, None)
        self._failures.pop(key, None)

    def pending(self) -> Dict[str, float]:
        """Keys waiting for a requeue, with the time they are due."""
        return dict(self._due)


def run_controller(poll_interval: Optional[float] = None) -> None:
    """Run the controller loop.

    Args:
        poll_interval: Seconds between poll cycles
    """
    configure_logging()

    loop = ControllerLoop(poll_interval=poll_interval)
    loop.start()

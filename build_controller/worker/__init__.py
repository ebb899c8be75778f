"""
Controller process: polls components and reconciles their builds.
"""
from .loop import ComponentEvent, ControllerLoop, EventType, run_controller, should_reconcile

__all__ = [
    "ComponentEvent",
    "ControllerLoop",
    "EventType",
    "run_controller",
    "should_reconcile",
]

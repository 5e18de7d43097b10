"""Approval event system for observer pattern notifications."""

from apwf.domain.events.event_types import ApprovalEventType
from apwf.domain.events.event import ApprovalEvent
from apwf.domain.events.emitter import ApprovalEventEmitter, ApprovalObserver
from apwf.domain.events.stderr_observer import StderrEventObserver

__all__ = [
    "ApprovalEventType",
    "ApprovalEvent",
    "ApprovalObserver",
    "ApprovalEventEmitter",
    "StderrEventObserver",
]

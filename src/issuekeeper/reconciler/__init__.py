"""
IssueKeeper - Reconciliation

This module contains the reconciliation engine and its parts:

- matching: resolve a record to its remote ticket
- status: project IsOpen/HasPr conditions
- finalizer: gate record deletion on ticket close
- engine: one reconcile invocation
- queue, controller: scheduling, retries and backoff
"""

from issuekeeper.reconciler.controller import RETRYABLE_ERRORS, Controller
from issuekeeper.reconciler.engine import (
    ClientFactory,
    ReconcileOutcome,
    ReconcileResult,
    Reconciler,
)
from issuekeeper.reconciler.finalizer import Finalizer
from issuekeeper.reconciler.matching import match_ticket, resolve_ticket
from issuekeeper.reconciler.queue import WorkQueue
from issuekeeper.reconciler.status import (
    CONDITION_TEXT,
    make_condition,
    project_conditions,
    set_condition,
)

__all__ = [
    # Engine
    "ClientFactory",
    "ReconcileOutcome",
    "ReconcileResult",
    "Reconciler",
    # Parts
    "Finalizer",
    "match_ticket",
    "resolve_ticket",
    "CONDITION_TEXT",
    "make_condition",
    "project_conditions",
    "set_condition",
    # Scheduling
    "Controller",
    "RETRYABLE_ERRORS",
    "WorkQueue",
]

"""Release lifecycle components.

Each concern lives in its own module:

- preflight: tool, cluster and namespace checks
- release: install-vs-upgrade, validation and atomic apply
- secret_manager: idempotent managed secret create/delete
- poller: bounded readiness polling
- teardown: confirmation-gated selective removal
- status_display: plan and summary rendering

The ReleaseOrchestrator in deployer.py wires them into the install and
uninstall flows.

Usage:
    from edge_deployer.deployment import ReleaseOrchestrator

    orchestrator = ReleaseOrchestrator(settings, console, commands)
    orchestrator.install(InstallOptions(dry_run=True))
"""

from .deployer import InstallResult, ReleaseOrchestrator
from .plan import ApplyAction, InstallOptions, OperationPlan, RemovalPlan, TeardownOptions
from .poller import PollOutcome, PollResult, VerificationPoller
from .preflight import PreflightChecker, PreflightResult
from .release import ApplyResult, ReleaseReconciler
from .secret_manager import (
    ConfiguredSecretSource,
    SecretBatchResult,
    SecretKind,
    SecretLifecycleManager,
    SecretPayload,
    SecretSource,
)
from .status_display import StatusDisplay
from .teardown import TeardownCoordinator, TeardownOutcome, TeardownResult

__all__ = [
    "ReleaseOrchestrator",
    "InstallResult",
    # Component classes for testing/extension
    "PreflightChecker",
    "PreflightResult",
    "ReleaseReconciler",
    "ApplyResult",
    "SecretLifecycleManager",
    "SecretBatchResult",
    "SecretSource",
    "SecretPayload",
    "SecretKind",
    "ConfiguredSecretSource",
    "VerificationPoller",
    "PollResult",
    "PollOutcome",
    "TeardownCoordinator",
    "TeardownResult",
    "TeardownOutcome",
    "StatusDisplay",
    # Plans
    "ApplyAction",
    "InstallOptions",
    "OperationPlan",
    "TeardownOptions",
    "RemovalPlan",
]

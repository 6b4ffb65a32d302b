"""Post-apply readiness polling.

Readiness here is best-effort observation: the atomic apply has already
guaranteed the release was accepted without regressing, so a timeout is
reported to the caller and never raised.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from loguru import logger

if TYPE_CHECKING:
    from ..shared.console import CLIConsole
    from ..shell_commands import PodStatus, ShellCommands


class PollOutcome(str, Enum):
    HEALTHY = "healthy"
    TIMED_OUT = "timed-out"


@dataclass
class PollResult:
    """Terminal result of a poll.

    Attributes:
        outcome: HEALTHY or TIMED_OUT
        pods: Last observed pod statuses (the partial status on timeout)
        attempts: Number of queries issued
        elapsed: Seconds spent polling
    """

    outcome: PollOutcome
    pods: list[PodStatus] = field(default_factory=list)
    attempts: int = 0
    elapsed: float = 0.0

    @property
    def healthy(self) -> bool:
        return self.outcome is PollOutcome.HEALTHY

    @property
    def not_ready(self) -> list[str]:
        return [pod.name for pod in self.pods if not pod.ready]


class VerificationPoller:
    """Bounded-retry poller for pod readiness under a label selector."""

    def __init__(
        self,
        commands: ShellCommands,
        console: CLIConsole,
        *,
        interval: float = 5.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the poller.

        Args:
            commands: Shell command executor
            console: CLI console for output
            interval: Seconds between queries
            clock: Monotonic time source
            sleep: Sleep function
        """
        self.commands = commands
        self.console = console
        self.interval = interval
        self._clock = clock
        self._sleep = sleep

    def await_healthy(self, namespace: str, selector: str, timeout: float) -> PollResult:
        """Poll until every matched pod is ready or the deadline passes.

        A selector matching no pods is not considered healthy; the poll
        keeps waiting for pods to appear.

        Args:
            namespace: Namespace to query
            selector: Label selector for the release's pods
            timeout: Deadline in seconds

        Returns:
            PollResult (HEALTHY, or TIMED_OUT with the last snapshot)
        """
        start = self._clock()
        deadline = start + timeout
        attempts = 0
        pods: list[PodStatus] = []

        with self.console.status(f"[cyan]Waiting for pods ({selector}) to be ready...[/cyan]"):
            while True:
                attempts += 1
                pods = self.commands.kubectl.get_pods(namespace, selector)
                ready = sum(1 for pod in pods if pod.ready)
                logger.debug("Poll {}: {}/{} pods ready", attempts, ready, len(pods))

                if pods and ready == len(pods):
                    return PollResult(PollOutcome.HEALTHY, pods, attempts, self._clock() - start)

                remaining = deadline - self._clock()
                if remaining <= 0:
                    break
                self._sleep(min(self.interval, remaining))

        return PollResult(PollOutcome.TIMED_OUT, pods, attempts, self._clock() - start)

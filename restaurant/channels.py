"""
Mock push notification channel.

Stands in for the push provider (Firebase Cloud Messaging, OneSignal)
that delivers campaign messages to customers' devices. Nothing leaves the
process: every push is logged and recorded so tests can inspect it.

Design decisions:
- One send() per recipient; send_batch() fans a campaign out and tallies it
- Failures are simulated with a fail rate, never raised
- Recipients are addressed by phone, falling back to email
"""

import logging
import random
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional
from uuid import uuid4

logger = logging.getLogger("push")
handler = logging.StreamHandler()
handler.setFormatter(logging.Formatter(
    "%(asctime)s | PUSH | %(levelname)s | %(message)s",
    datefmt="%H:%M:%S"
))
logger.addHandler(handler)
logger.setLevel(logging.INFO)


@dataclass
class PushResult:
    """Outcome of pushing one message to one device."""
    success: bool
    recipient: str
    title: str
    body: str
    message_id: str = field(default_factory=lambda: uuid4().hex[:12])
    timestamp: datetime = field(default_factory=datetime.now)
    error: Optional[str] = None

    def __str__(self) -> str:
        outcome = "delivered" if self.success else f"failed ({self.error})"
        return f"push {self.message_id} to {self.recipient} '{self.title}': {outcome}"


@dataclass
class BatchResult:
    """Tally of one campaign fan-out."""
    results: list[PushResult] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return len(self.results)

    @property
    def delivered(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return self.attempted - self.delivered


class PushChannel:
    """
    In-process push provider.

    Example:
        channel = PushChannel()
        batch = channel.send_batch(["+1-555-0101", "bob@example.com"], "Hi", "Open today")
        assert batch.delivered == 2
    """

    # Providers truncate bodies past this length on most devices
    MAX_BODY_LENGTH = 240

    def __init__(self, fail_rate: float = 0.0):
        """
        Args:
            fail_rate: Chance (0.0 to 1.0) that a single push fails
        """
        self.fail_rate = fail_rate
        self.sent_messages: list[PushResult] = []

    def send(self, to: str, title: str, body: str) -> PushResult:
        """Push one message to one recipient's device."""
        if len(body) > self.MAX_BODY_LENGTH:
            logger.warning(f"Body for '{title}' is {len(body)} chars and will be truncated on device")

        if random.random() < self.fail_rate:
            result = PushResult(False, to, title, body, error="device unreachable")
            logger.error(f"{result}")
        else:
            result = PushResult(True, to, title, body)
            logger.info(f"{result}")

        self.sent_messages.append(result)
        return result

    def send_batch(self, recipients: Iterable[str], title: str, body: str) -> BatchResult:
        """Push the same message to every recipient."""
        batch = BatchResult([self.send(to, title, body) for to in recipients])
        logger.info(f"Batch '{title}': {batch.delivered}/{batch.attempted} delivered")
        return batch

    def get_sent_count(self) -> int:
        return len(self.sent_messages)

    def get_successful_sends(self) -> list[PushResult]:
        return [r for r in self.sent_messages if r.success]

    def sent_to(self, recipient: str) -> list[PushResult]:
        """Every push addressed to `recipient`, oldest first."""
        return [r for r in self.sent_messages if r.recipient == recipient]

    def find_message_to(self, recipient: str) -> Optional[PushResult]:
        """Most recent push addressed to `recipient`."""
        matches = self.sent_to(recipient)
        return matches[-1] if matches else None

    def clear_history(self) -> None:
        self.sent_messages.clear()

"""Notification Dispatcher — group posts plus batched, failure-tolerant email fan-out.

Invariants:
    - One recipient's failure never aborts the batch or the pass
    - EmailHealth.should_skip is consulted before every send and
      EmailHealth.record_outcome after every attempted send
    - A raising health lookup or write is logged per recipient and never leaves
      send_emails; a failed lookup counts as healthy
    - Sends within a batch run concurrently; batches run sequentially with a
      fixed delay between them
    - Health checks and outcome writes stay sequential: they share one DB session

Design Decisions:
    - Only transport calls are gathered; the transport owns its own timeouts
    - sleep is injectable so tests do not wait out the inter-batch delay
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Sequence

from reading_cohorts.core.domain_types import (
    CohortId, MemberId, MessageType, Recipient, RenderedMessage, SendOutcome,
)
from reading_cohorts.core.notification_rules import batched
from reading_cohorts.core.repository_protocols import EmailHealth, MailTransport, MessageBoard

logger = logging.getLogger(__name__)


@dataclass
class DispatchReport:
    sent: int = 0
    failed: int = 0
    skipped: int = 0

    @property
    def attempted(self) -> int:
        return self.sent + self.failed


class NotificationDispatcher:
    """Delivers rendered notifications to a cohort's board and members' inboxes."""

    def __init__(
        self,
        transport: MailTransport,
        health: EmailHealth,
        board: MessageBoard,
        batch_size: int = 10,
        batch_delay_seconds: float = 1.0,
        system_actor_id: MemberId | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.transport = transport
        self.health = health
        self.board = board
        self.batch_size = batch_size
        self.batch_delay_seconds = batch_delay_seconds
        self.system_actor_id = system_actor_id
        self._sleep = sleep

    async def post_announcement(
        self,
        cohort_id: CohortId,
        message: RenderedMessage,
        message_type: MessageType = MessageType.ANNOUNCEMENT,
    ) -> int:
        post_id = await self.board.post(
            cohort_id, message.subject, message.body,
            MessageType(message_type).value, self.system_actor_id,
        )
        logger.info(f"Posted '{message.subject}'", extra={"cohort_id": cohort_id})
        return post_id

    async def send_emails(
        self,
        recipients: Sequence[Recipient],
        render: Callable[[Recipient], RenderedMessage],
    ) -> DispatchReport:
        report = DispatchReport()
        batches = list(batched(recipients, self.batch_size))
        for index, batch in enumerate(batches):
            due = []
            for recipient in batch:
                if await self._should_skip(recipient):
                    report.skipped += 1
                    logger.info("Skipping unhealthy address", extra={"recipient": recipient.email})
                else:
                    due.append(recipient)
            outcomes = await asyncio.gather(*(self._send_one(r, render) for r in due))
            for recipient, outcome in zip(due, outcomes):
                if outcome.success:
                    report.sent += 1
                else:
                    report.failed += 1
                await self._record_outcome(recipient, outcome)
            if index < len(batches) - 1:
                await self._sleep(self.batch_delay_seconds)
        logger.info(
            f"Email fan-out done: {report.sent} sent, {report.failed} failed, "
            f"{report.skipped} skipped",
        )
        return report

    async def _should_skip(self, recipient: Recipient) -> bool:
        """Health lookup for one address; a failing lookup sends anyway."""
        try:
            return await self.health.should_skip(recipient.email)
        except Exception:
            logger.exception(
                "Email health lookup failed", extra={"recipient": recipient.email},
            )
            return False

    async def _record_outcome(self, recipient: Recipient, outcome: SendOutcome) -> None:
        try:
            await self.health.record_outcome(
                recipient.email, outcome.success, outcome.reason, outcome.permanent,
            )
        except Exception:
            logger.exception(
                "Email health update failed", extra={"recipient": recipient.email},
            )

    async def _send_one(
        self, recipient: Recipient, render: Callable[[Recipient], RenderedMessage],
    ) -> SendOutcome:
        try:
            return await self.transport.send(recipient, render(recipient))
        except Exception as e:
            logger.exception(
                "Email send raised", extra={"recipient": recipient.email, "member_id": recipient.member_id},
            )
            return SendOutcome(success=False, reason=type(e).__name__)

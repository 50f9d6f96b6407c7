"""
Offer events.

Two events per recommendation, matching what the analytics backend expects:
- offer_iap: an offer was shown to the player
- offer_accepted: the player accepted the shown offer

Both carry `offer_type` (the recommended label) and `offer_id` (the session
id). Events are emitted as structured log records; shipping them to an
analytics sink is left to the log pipeline.
"""

from typing import Any, Optional

import structlog

from iap_optimizer.exceptions import OptimizerStateError
from iap_optimizer.models.session import SessionContext
from iap_optimizer.monitoring.metrics import offer_events_total


OFFER_SHOWN_EVENT = "offer_iap"
OFFER_ACCEPTED_EVENT = "offer_accepted"


class OfferEventLogger:
    """Report offer events for one player session."""

    def __init__(self, session: SessionContext, record_metrics: bool = True):
        self.session = session
        self.record_metrics = record_metrics
        self.last_offer: Optional[str] = None
        self._logger = structlog.get_logger(__name__).bind(
            session_id=session.session_id,
            user_id=session.user_id,
        )

    def offer_shown(self, offer_type: str) -> dict[str, Any]:
        """Report that `offer_type` was shown; returns the event parameters."""
        self.last_offer = offer_type
        return self._emit(OFFER_SHOWN_EVENT, offer_type)

    def offer_accepted(self, offer_type: Optional[str] = None) -> dict[str, Any]:
        """
        Report that the player accepted an offer.

        Args:
            offer_type: Accepted offer (default: the last shown offer)

        Raises:
            OptimizerStateError: no offer has been shown in this session
        """
        offer_type = offer_type or self.last_offer
        if offer_type is None:
            raise OptimizerStateError(
                "No offer has been shown in this session",
                {"session_id": self.session.session_id},
            )
        return self._emit(OFFER_ACCEPTED_EVENT, offer_type)

    def _emit(self, event: str, offer_type: str) -> dict[str, Any]:
        params = {"offer_type": offer_type, "offer_id": self.session.session_id}
        self._logger.info(event, **params)
        if self.record_metrics:
            offer_events_total.labels(event=event, offer_type=offer_type).inc()
        return params

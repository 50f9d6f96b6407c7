"""Offer event reporting tagged with an explicit SessionContext."""

from iap_optimizer.telemetry.events import OFFER_ACCEPTED_EVENT, OFFER_SHOWN_EVENT, OfferEventLogger

__all__ = ["OfferEventLogger", "OFFER_SHOWN_EVENT", "OFFER_ACCEPTED_EVENT"]

"""
Command-line entry point: recommend an offer for one player.

    iap-optimizer --model optimizer.tflite --features player.json --session-id 42

The features file is a JSON object (keys kept in file order) or a list of
[name, value] pairs. Without --features the built-in sample player is used.
The recommended offer is printed on stdout; logs go to stderr.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Optional, Sequence

import structlog

from iap_optimizer.config import Settings
from iap_optimizer.exceptions import IapOptimizerError
from iap_optimizer.logging_config import configure_logging
from iap_optimizer.models.prediction import FeatureInput
from iap_optimizer.models.session import SessionContext
from iap_optimizer.optimizer import IapOptimizer
from iap_optimizer.telemetry.events import OfferEventLogger

logger = structlog.get_logger(__name__)


SAMPLE_FEATURES: list[tuple[str, object]] = [
    ("coins_spent", 2048.0),
    ("distance_avg", 1234.0),
    ("device_os", "ANDROID"),
    ("game_day", 10.0),
    ("geo_country", "Canada"),
    ("last_run_end_reason", "laser"),
]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="iap-optimizer",
        description="Recommend an in-app-purchase offer with an on-device model",
    )
    parser.add_argument("--model", required=True, type=Path, help="Model package (.tflite with preprocess.json)")
    parser.add_argument("--metadata", type=Path, help="Separately shipped preprocess.json")
    parser.add_argument("--features", type=Path, help="JSON file with the player's features")
    parser.add_argument("--session-id", help="Offer id reported with events (default: random)")
    parser.add_argument("--user-id", help="Player id reported with events")
    parser.add_argument("--accept", action="store_true", help="Also report the offer as accepted")
    return parser


def load_features(path: Path) -> FeatureInput:
    """
    Read a features file.

    Raises:
        ValueError: file is neither a JSON object nor a list of pairs
    """
    with open(path, encoding="utf-8") as f:
        data = json.load(f)

    if isinstance(data, dict):
        return data
    if isinstance(data, list) and all(isinstance(p, list) and len(p) == 2 for p in data):
        return [(str(name), value) for name, value in data]
    raise ValueError(f"{path}: expected a JSON object or a list of [name, value] pairs")


async def run(args: argparse.Namespace, settings: Settings) -> str:
    features = load_features(args.features) if args.features else SAMPLE_FEATURES
    session = SessionContext(session_id=args.session_id) if args.session_id else SessionContext()
    if args.user_id:
        session = session.model_copy(update={"user_id": args.user_id})
    events = OfferEventLogger(session, record_metrics=settings.PROMETHEUS_ENABLED)

    async with IapOptimizer(settings) as optimizer:
        await optimizer.initialize(args.model, metadata_path=args.metadata)
        offer = optimizer.predict(features)

    events.offer_shown(offer)
    if args.accept:
        events.offer_accepted(offer)
    return offer


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = Settings()
    configure_logging(
        settings.LOG_LEVEL,
        settings.ENVIRONMENT,
        app_name=settings.APP_NAME,
        app_version=settings.APP_VERSION,
    )

    try:
        offer = asyncio.run(run(args, settings))
    except (IapOptimizerError, ValueError, OSError) as e:
        logger.error("Recommendation failed", error_type=type(e).__name__, error=str(e))
        return 1

    print(offer)
    return 0


if __name__ == "__main__":
    sys.exit(main())

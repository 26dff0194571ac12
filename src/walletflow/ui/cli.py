from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from datetime import timedelta
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from walletflow.app import check_tier_level, poll_card_status, poll_kyc_state, poll_order_status
from walletflow.config import configure_logging, get_polling_config
from walletflow.domain.polling import Terminal

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from walletflow.config import PollingConfig

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Wait for custodial account state to settle")
    subparsers = parser.add_subparsers(dest="command", required=True)

    kyc = subparsers.add_parser("kyc", help="Poll the KYC tiers until a decision is reached")
    kyc.add_argument(
        "--interval",
        type=float,
        help="Seconds between samples (defaults to config)",
    )

    subparsers.add_parser("tier", help="Classify the KYC tiers once")

    order = subparsers.add_parser("order", help="Poll a buy order until it settles")
    order.add_argument("order_id", type=str, help="Identifier of the buy order")
    order.add_argument(
        "--interval",
        type=float,
        help="Seconds between samples (defaults to config)",
    )

    card = subparsers.add_parser("card", help="Poll a card until activation settles")
    card.add_argument("card_id", type=str, help="Identifier of the card")
    card.add_argument(
        "--interval",
        type=float,
        help="Seconds between samples (defaults to config)",
    )

    return parser.parse_args(list(argv))


def _polling_config(args: argparse.Namespace) -> PollingConfig:
    polling = get_polling_config()
    interval = getattr(args, "interval", None)
    if interval is None:
        return polling
    if interval <= 0:
        raise ValueError("Interval must be positive")
    return replace(polling, interval_override=timedelta(seconds=interval))


def _identifier(value: str, label: str) -> str:
    stripped = value.strip()
    if not stripped:
        raise ValueError(f"Missing {label}")
    return stripped


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        polling = _polling_config(parsed_args)
        if parsed_args.command == "order":
            parsed_args.order_id = _identifier(parsed_args.order_id, "order id")
        elif parsed_args.command == "card":
            parsed_args.card_id = _identifier(parsed_args.card_id, "card id")
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "kyc":
            outcome = poll_kyc_state(polling=polling)
            log.info("KYC state: %s (samples=%s)", outcome.value, outcome.attempts)
        elif parsed_args.command == "tier":
            outcome = check_tier_level()
            log.info("KYC tier state: %s", outcome.value)
        elif parsed_args.command == "order":
            order_outcome = poll_order_status(parsed_args.order_id, polling=polling)
            order = order_outcome.value
            log.info(
                "Order %s: %s (settled=%s, samples=%s)",
                parsed_args.order_id,
                order.state if order is not None else "unavailable",
                isinstance(order_outcome, Terminal),
                order_outcome.attempts,
            )
        elif parsed_args.command == "card":
            card_outcome = poll_card_status(parsed_args.card_id, polling=polling)
            card = card_outcome.value
            log.info(
                "Card %s: %s (settled=%s, samples=%s)",
                parsed_args.card_id,
                card.status if card is not None else "unavailable",
                isinstance(card_outcome, Terminal),
                card_outcome.attempts,
            )
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error while polling")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()

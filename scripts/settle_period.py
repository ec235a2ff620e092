"""Attempt to settle the period that just closed.

Intended to be run by a scheduler shortly after each ``next_drawing_time``.
Exits with status 0 when the drawing completed and 1 when it was refused; a
refused attempt changes nothing and can be retried.
"""

from __future__ import annotations

import argparse
import logging
import sys

from dailydraw.config import LotteryConfig
from dailydraw.db.engine import get_sessionmaker, make_engine
from dailydraw.db.utils import ts_iso
from dailydraw.entropy import ChainEntropySource, SystemClock, SystemEntropySource
from dailydraw.errors import LotteryError
from dailydraw.ledger import SqlLedger
from dailydraw.service import LotteryService

logger = logging.getLogger("settle_period")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--chain-entropy",
        action="store_true",
        help="read entropy from the chain API configured by ENTROPY_BASE_FQDN",
    )
    parser.add_argument("--verbose", "-v", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    entropy = ChainEntropySource() if args.chain_entropy else SystemEntropySource()
    service = LotteryService(
        get_sessionmaker(make_engine()),
        LotteryConfig.from_env(),
        ledger=SqlLedger(),
        clock=SystemClock(),
        entropy=entropy,
    )

    try:
        settlement = service.conduct_drawing()
    except LotteryError as exc:
        logger.error(f"Drawing refused: {exc}")
        return 1

    drawing = settlement.drawing
    print(
        f"Settled period {drawing.period_key} ({ts_iso(drawing.period_key)}): "
        f"winning digits {drawing.winning_digits}, pot {drawing.pot}, "
        f"{len(drawing.winners)} winner(s), rollover {settlement.rollover}"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())

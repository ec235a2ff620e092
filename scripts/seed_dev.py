"""Reset the development database and populate one open period."""

import logging

from dailydraw.config import WEI_PER_UNIT, LotteryConfig
from dailydraw.db.engine import get_sessionmaker, make_engine
from dailydraw.entropy import SystemClock, SystemEntropySource
from dailydraw.ledger import SqlLedger
from dailydraw.models import Base
from dailydraw.service import LotteryService

OWNER = "owner"
PLAYERS = ["alice", "bob", "carol", "dave"]


def main() -> None:
    """Seed the development database with a running lottery and a few entries."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    engine = make_engine()

    # Drop and recreate all tables with foreign key checks off so SQLite can
    # drop dependent tables in any order.
    with engine.connect() as conn:
        if engine.dialect.name == "sqlite":
            conn.exec_driver_sql("PRAGMA foreign_keys=OFF")
        Base.metadata.drop_all(bind=conn)
        if engine.dialect.name == "sqlite":
            conn.exec_driver_sql("PRAGMA foreign_keys=ON")
        conn.commit()

    Base.metadata.create_all(engine)
    Session = get_sessionmaker(engine)

    config = LotteryConfig.from_env()
    clock = SystemClock()
    ledger = SqlLedger()
    service = LotteryService(
        Session, config, ledger=ledger, clock=clock, entropy=SystemEntropySource()
    )

    # Leave the whole entry window open: the current period ends one interval from now.
    service.initialize(OWNER, clock.now() + config.drawing_interval)

    with Session.begin() as session:
        ledger.deposit(session, OWNER, 10 * WEI_PER_UNIT)
        for player in PLAYERS:
            ledger.deposit(session, player, WEI_PER_UNIT)

    service.top_up_reserve(OWNER, WEI_PER_UNIT)
    for player in PLAYERS:
        entry = service.submit_entry(player, config.entry_fee)
        print(f"{player}: entry #{entry.sequence} digits {entry.match_digest}")

    state = service.state()
    print(
        f"Seeded lottery: jackpot={state.jackpot} reserve={state.reserve_fund} "
        f"next_drawing_time={state.next_drawing_time}"
    )


if __name__ == "__main__":
    main()

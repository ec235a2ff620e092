from __future__ import annotations

from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import inspect

from dailydraw.db.engine import make_engine


def upgrade_db(target_revision: str = "head") -> None:
    """Apply the lottery schema migrations up to ``target_revision``."""
    project_root = Path(__file__).resolve().parents[1]
    alembic_cfg = Config(str(project_root / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(project_root / "alembic"))
    command.upgrade(alembic_cfg, target_revision)


def main() -> None:
    upgrade_db()
    insp = inspect(make_engine())
    print("Lottery tables:", ", ".join(sorted(insp.get_table_names())))


if __name__ == "__main__":
    main()

from __future__ import annotations

import sys

from alembic.autogenerate import api as ag_api
from alembic.runtime.migration import MigrationContext
from sqlalchemy import String

from dailydraw.db.engine import make_engine
from dailydraw.models import Base
from dailydraw.models.amount_type import Amount


def _print_ops(ops, indent: int = 0) -> None:
    prefix = "  " * indent
    for op in ops:
        print(f"{prefix}- {op}")
        sub_ops = getattr(op, "ops", None)
        if sub_ops:
            _print_ops(sub_ops, indent + 1)


def _compare_type(context, inspected_column, metadata_column, inspected_type, metadata_type):
    # Amount columns are stored as VARCHAR(80)
    if isinstance(metadata_type, Amount):
        return not (isinstance(inspected_type, String) and inspected_type.length == 80)
    return None


def main() -> int:
    """Compare the live database schema against the lottery models.

    Exit status is 0 when they match, 1 when differences exist and 2 on error.
    """
    engine = make_engine()
    url_display = engine.url.render_as_string(hide_password=True)
    try:
        with engine.connect() as connection:
            context = MigrationContext.configure(
                connection=connection,
                opts={
                    "compare_type": _compare_type,
                    "compare_server_default": True,
                    "render_as_batch": connection.dialect.name == "sqlite",
                },
            )
            migration = ag_api.produce_migrations(context, Base.metadata)
            upgrade_ops = migration.upgrade_ops
            if upgrade_ops is None:
                print(f"Schema drift: ERROR for {url_display}: no upgrade operations produced.")
                return 2
            if upgrade_ops.is_empty():
                print(f"Schema drift: none detected for {url_display}.")
                return 0
            print(f"Schema drift: models and {url_display} differ:")
            _print_ops(upgrade_ops.ops or [])
            return 1
    except Exception as exc:
        print(f"Schema drift: ERROR for {url_display}: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())

"""Versioned schema migrations.

Migration scripts ship inside the package as ``migrations/<NNNN>_<name>.up.sql``.
The ``_migrations`` ledger records every applied version; on startup every
script whose version is greater than the highest recorded one is applied in
ascending order, each in its own transaction together with its ledger row.
"""

from dataclasses import dataclass
from importlib import resources
import logging
import re
from typing import Iterable, List

from sqlalchemy import text
from sqlalchemy.engine import Connection, Engine

logger = logging.getLogger(__name__)

MIGRATIONS_PACKAGE = "printmanager.storage"
MIGRATIONS_DIR = "migrations"
MIGRATION_FILE_RE = re.compile(r"^(?P<version>\d+)_(?P<name>[\w-]+)\.up\.sql$")

CREATE_LEDGER_SQL = (
    "CREATE TABLE IF NOT EXISTS _migrations ("
    "version VARCHAR(50) NOT NULL, "
    "run_on TIMESTAMP DEFAULT CURRENT_TIMESTAMP NOT NULL)"
)


@dataclass(frozen=True, order=True)
class Migration:
    version: int
    name: str
    sql: str

    def statements(self) -> List[str]:
        """Split the script into individual statements.

        Scripts must not contain semicolons inside literals or comments.
        """
        return [part.strip() for part in self.sql.split(";") if part.strip()]


def load_migrations() -> List[Migration]:
    """Load the embedded migration scripts, sorted by version."""
    migrations = []
    for entry in resources.files(MIGRATIONS_PACKAGE).joinpath(MIGRATIONS_DIR).iterdir():
        match = MIGRATION_FILE_RE.match(entry.name)
        if not match:
            continue
        migrations.append(
            Migration(
                version=int(match.group("version")),
                name=match.group("name"),
                sql=entry.read_text(encoding="utf-8"),
            )
        )

    versions = [m.version for m in migrations]
    if len(versions) != len(set(versions)):
        raise RuntimeError(f"Duplicate migration versions found: {sorted(versions)}")
    return sorted(migrations)


def ensure_ledger(connection: Connection) -> None:
    connection.exec_driver_sql(CREATE_LEDGER_SQL)


def current_version(connection: Connection) -> int:
    """Return the highest applied migration version, or 0 for a new database."""
    result = connection.execute(
        text("SELECT MAX(CAST(version AS INTEGER)) FROM _migrations")
    ).scalar()
    return int(result) if result is not None else 0


def run_migrations(
    engine: Engine, migrations: Iterable[Migration] | None = None
) -> List[int]:
    """Apply pending migrations and return the versions that were applied."""
    if migrations is None:
        migrations = load_migrations()

    with engine.begin() as connection:
        ensure_ledger(connection)
        version = current_version(connection)
    logger.debug(f"Current schema version: {version}")

    applied = []
    for migration in sorted(migrations):
        if migration.version <= version:
            continue
        logger.info(f"Running migration {migration.version:04d} ({migration.name})")
        with engine.begin() as connection:
            # pysqlite does not open a transaction before DDL on its own
            connection.exec_driver_sql("BEGIN")
            for statement in migration.statements():
                connection.exec_driver_sql(statement)
            connection.execute(
                text("INSERT INTO _migrations (version) VALUES (:version)"),
                {"version": str(migration.version)},
            )
        applied.append(migration.version)

    return applied

from pathlib import Path

import pytest
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.exc import OperationalError

from printmanager.storage.migrator import (
    Migration,
    current_version,
    ensure_ledger,
    load_migrations,
    run_migrations,
)


@pytest.fixture
def engine(tmp_path: Path):
    engine = create_engine(f"sqlite:///{tmp_path / 'migrations.db'}")
    yield engine
    engine.dispose()


def _ledger(engine):
    with engine.connect() as connection:
        return [
            row[0]
            for row in connection.execute(
                text("SELECT version FROM _migrations ORDER BY CAST(version AS INTEGER)")
            )
        ]


class TestLoadMigrations:
    def test_embedded_scripts_are_ordered(self):
        migrations = load_migrations()
        assert [m.version for m in migrations] == [1, 2, 3, 4]
        assert migrations[0].name == "create_projects"
        assert all(m.sql.strip() for m in migrations)

    def test_statements_split_on_semicolons(self):
        migration = Migration(1, "two", "CREATE TABLE a (x INT);\n\nCREATE TABLE b (y INT);\n")
        assert migration.statements() == ["CREATE TABLE a (x INT)", "CREATE TABLE b (y INT)"]


class TestRunMigrations:
    def test_new_database_runs_everything(self, engine):
        assert run_migrations(engine) == [1, 2, 3, 4]
        assert _ledger(engine) == ["1", "2", "3", "4"]

        tables = set(inspect(engine).get_table_names())
        assert {"projects", "project_files", "tags", "projects_tags", "project_sources"} <= tables
        columns = {c["name"] for c in inspect(engine).get_columns("project_files")}
        assert "isdefault" in columns

    def test_second_run_is_noop(self, engine):
        run_migrations(engine)
        assert run_migrations(engine) == []
        assert _ledger(engine) == ["1", "2", "3", "4"]

    def test_only_newer_versions_run(self, engine):
        first = [Migration(1, "a", "CREATE TABLE a (x INT)")]
        run_migrations(engine, first)

        later = first + [
            Migration(3, "c", "CREATE TABLE c (x INT)"),
            Migration(2, "b", "CREATE TABLE b (x INT)"),
        ]
        assert run_migrations(engine, later) == [2, 3]
        assert _ledger(engine) == ["1", "2", "3"]

    def test_versions_below_current_are_skipped(self, engine):
        run_migrations(engine, [Migration(5, "e", "CREATE TABLE e (x INT)")])

        applied = run_migrations(engine, [Migration(4, "d", "CREATE TABLE d (x INT)")])

        assert applied == []
        assert "d" not in inspect(engine).get_table_names()

    def test_failing_script_leaves_nothing_behind(self, engine):
        broken = Migration(1, "broken", "CREATE TABLE a (id INTEGER); CREATE TABLE a (id INTEGER)")

        with pytest.raises(OperationalError):
            run_migrations(engine, [broken])

        assert inspect(engine).get_table_names() == ["_migrations"]
        assert _ledger(engine) == []

        fixed = Migration(1, "fixed", "CREATE TABLE a (id INTEGER); CREATE TABLE b (id INTEGER)")
        assert run_migrations(engine, [fixed]) == [1]
        assert {"a", "b"} <= set(inspect(engine).get_table_names())

    def test_failing_later_script_keeps_earlier_ones(self, engine):
        migrations = [
            Migration(1, "a", "CREATE TABLE a (x INT)"),
            Migration(2, "bad", "ALTER TABLE a ADD COLUMN y INT; ALTER TABLE a ADD COLUMN y INT"),
        ]

        with pytest.raises(OperationalError):
            run_migrations(engine, migrations)

        assert _ledger(engine) == ["1"]
        assert {c["name"] for c in inspect(engine).get_columns("a")} == {"x"}

    def test_current_version_of_empty_ledger(self, engine):
        with engine.begin() as connection:
            ensure_ledger(connection)
            assert current_version(connection) == 0

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import create_engine, inspect

from protrecon.adapters.sqlalchemy import create_all_tables, metadata
from protrecon.adapters.sqlalchemy.migrations import upgrade_head

if TYPE_CHECKING:
    from pathlib import Path


def _columns(uri: str) -> dict[str, set[str]]:
    engine = create_engine(uri, future=True)
    try:
        inspector = inspect(engine)
        return {
            table: {column["name"] for column in inspector.get_columns(table)}
            for table in inspector.get_table_names()
            if table != "alembic_version"
        }
    finally:
        engine.dispose()


def test_migrations_match_table_metadata(tmp_path: Path) -> None:
    migrated_uri = f"sqlite+pysqlite:///{tmp_path / 'migrated.db'}"
    created_uri = f"sqlite+pysqlite:///{tmp_path / 'created.db'}"

    upgrade_head(database_uri=migrated_uri)
    engine = create_engine(created_uri, future=True)
    create_all_tables(engine)
    engine.dispose()

    migrated = _columns(migrated_uri)
    assert set(migrated) == set(metadata.tables)
    assert migrated == _columns(created_uri)


def test_upgrade_is_repeatable(tmp_path: Path) -> None:
    uri = f"sqlite+pysqlite:///{tmp_path / 'twice.db'}"

    upgrade_head(database_uri=uri)
    upgrade_head(database_uri=uri)

    assert "protein" in _columns(uri)

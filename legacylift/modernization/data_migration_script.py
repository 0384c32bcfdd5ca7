#!/usr/bin/env python3
# CUI // SP-CTI
"""Data Migration Script Generator — expand/backfill/contract SQL skeletons.

Every script follows the same eight steps:

  1. Backup source table             reversible
  2. Create target schema            reversible
  3. Add columns (expand)            reversible
  4. Backfill data                   IRREVERSIBLE
  5. Validate integrity              reversible (read-only)
  6. Rebuild indexes                 reversible
  7. Add constraints                 reversible
  8. Final verification              reversible (read-only)

The rollback script holds the rollback SQL of the reversible steps in
reverse order. Five validation queries accompany every script: row count
comparison, checksum, spot sample, null check and foreign-key integrity.

Output is PostgreSQL-flavoured text for review. Nothing is executed.
"""

import logging
import math
import re
from typing import Any, Iterable, List, Mapping, NamedTuple, Optional, Sequence, Tuple, Union

from legacylift.compat.datetime_utils import file_stamp, utc_now_iso
from legacylift.config import DataMigrationConfig
from legacylift.schemas.artifacts import DataMigrationScript, MigrationStep, ValidationQuery

logger = logging.getLogger("legacylift.modernization.data_migration_script")

CUI_BANNER = "CUI // SP-CTI"
SQL_CUI_HEADER = (
    f"-- {'=' * 68}\n"
    f"-- {CUI_BANNER}\n"
    f"-- {'=' * 68}\n"
)
SQL_CUI_FOOTER = (
    f"\n-- {'=' * 68}\n"
    f"-- {CUI_BANNER}\n"
    f"-- {'=' * 68}\n"
)

READ_ONLY = "-- No-op: read-only step"

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class Column(NamedTuple):
    name: str
    data_type: str
    nullable: bool = True
    source: str = ""


class ForeignKey(NamedTuple):
    column: str
    ref_table: str
    ref_column: str = "id"


ColumnInput = Union[Column, Mapping[str, Any], Sequence[Any]]


def _identifier(value: str, what: str) -> str:
    if not isinstance(value, str) or not _IDENTIFIER_RE.match(value):
        raise ValueError(f"Invalid {what} identifier: {value!r}")
    return value


def _qualified_ref(value: str) -> str:
    for part in value.split("."):
        _identifier(part, "table")
    return value


def _coerce_column(column: ColumnInput) -> Column:
    if isinstance(column, Column):
        col = column
    elif isinstance(column, Mapping):
        col = Column(
            name=column.get("name", ""),
            data_type=str(column.get("type") or column.get("data_type") or "TEXT"),
            nullable=bool(column.get("nullable", True)),
            source=column.get("source", "") or "",
        )
    else:
        col = Column(*column)
    _identifier(col.name, "column")
    if col.source:
        _identifier(col.source, "column")
    if not re.match(r"^[A-Za-z][A-Za-z0-9_ (),]*$", col.data_type):
        raise ValueError(f"Invalid data type for column {col.name}: {col.data_type!r}")
    return col._replace(source=col.source or col.name)


def _backfill_duration(estimated_rows: Optional[int], rows_per_minute: int) -> str:
    if not estimated_rows:
        return "30 minutes - 4 hours"
    minutes = max(1, math.ceil(estimated_rows / rows_per_minute))
    return f"{minutes}-{minutes * 3} minutes"


def _build_steps(table, src, tgt, columns: List[Column], primary_key: str,
                 foreign_keys: List[ForeignKey], estimated_rows,
                 rows_per_minute: int) -> List[MigrationStep]:
    source_table = f"{src}.{table}"
    target_table = f"{tgt}.{table}"
    backup_table = f"{src}.{table}_backup_{file_stamp().lower()}"
    target_cols = ", ".join(c.name for c in columns)
    source_cols = ", ".join(c.source for c in columns)
    required = [c for c in columns if not c.nullable and c.name != primary_key]
    indexed = [primary_key] + [fk.column for fk in foreign_keys if fk.column != primary_key]
    pk_type = next((c.data_type for c in columns if c.name == primary_key), "BIGINT")

    add_columns = "\n".join(
        f"ALTER TABLE {target_table} ADD COLUMN IF NOT EXISTS {c.name} {c.data_type};"
        for c in columns if c.name != primary_key
    )
    drop_columns = "\n".join(
        f"ALTER TABLE {target_table} DROP COLUMN IF EXISTS {c.name};"
        for c in reversed(columns) if c.name != primary_key
    )
    create_indexes = "\n".join(
        f"CREATE INDEX IF NOT EXISTS idx_{table}_{col} ON {target_table} ({col});"
        for col in indexed
    )
    drop_indexes = "\n".join(
        f"DROP INDEX IF EXISTS {tgt}.idx_{table}_{col};" for col in reversed(indexed)
    )
    constraints = [f"ALTER TABLE {target_table} ADD CONSTRAINT pk_{table} PRIMARY KEY ({primary_key});"]
    constraints += [f"ALTER TABLE {target_table} ALTER COLUMN {c.name} SET NOT NULL;" for c in required]
    constraints += [
        f"ALTER TABLE {target_table} ADD CONSTRAINT fk_{table}_{fk.column} "
        f"FOREIGN KEY ({fk.column}) REFERENCES {fk.ref_table} ({fk.ref_column});"
        for fk in foreign_keys
    ]
    drop_constraints = [
        f"ALTER TABLE {target_table} DROP CONSTRAINT IF EXISTS fk_{table}_{fk.column};"
        for fk in reversed(foreign_keys)
    ]
    drop_constraints += [f"ALTER TABLE {target_table} ALTER COLUMN {c.name} DROP NOT NULL;"
                         for c in reversed(required)]
    drop_constraints += [f"ALTER TABLE {target_table} DROP CONSTRAINT IF EXISTS pk_{table};"]

    count_compare = (
        f"SELECT (SELECT COUNT(*) FROM {source_table}) AS source_rows,\n"
        f"       (SELECT COUNT(*) FROM {target_table}) AS target_rows;"
    )

    templates = [
        ("Backup source table",
         f"Snapshot {source_table} before any change.",
         f"CREATE TABLE {backup_table} AS SELECT * FROM {source_table};",
         True, "5-30 minutes",
         f"DROP TABLE IF EXISTS {backup_table};"),
        ("Create target schema",
         f"Create {tgt} and an empty {table} table keyed by {primary_key}.",
         f"CREATE SCHEMA IF NOT EXISTS {tgt};\n"
         f"CREATE TABLE IF NOT EXISTS {target_table} ({primary_key} {pk_type});",
         True, "1-5 minutes",
         f"DROP TABLE IF EXISTS {target_table};"),
        ("Add columns (expand)",
         "Add every target column as nullable; constraints come after the backfill.",
         add_columns or READ_ONLY,
         True, "1-5 minutes",
         drop_columns or READ_ONLY),
        ("Backfill data",
         f"Copy rows from {source_table} into {target_table}.",
         f"INSERT INTO {target_table} ({target_cols})\n"
         f"    SELECT {source_cols}\n"
         f"    FROM {source_table};",
         False, _backfill_duration(estimated_rows, rows_per_minute),
         None),
        ("Validate integrity",
         "Compare source and target row counts before constraints are applied.",
         count_compare,
         True, "5-15 minutes",
         READ_ONLY),
        ("Rebuild indexes",
         "Create indexes on the primary key and foreign key columns.",
         create_indexes,
         True, "10-60 minutes",
         drop_indexes),
        ("Add constraints",
         "Apply primary key, NOT NULL and foreign key constraints (contract).",
         "\n".join(constraints),
         True, "5-30 minutes",
         "\n".join(drop_constraints)),
        ("Final verification",
         "Re-run row counts and confirm constraints hold on the populated table.",
         count_compare,
         True, "5-15 minutes",
         READ_ONLY),
    ]
    return [
        MigrationStep(
            order=order,
            name=name,
            description=description,
            sql=sql,
            reversible=reversible,
            estimated_duration=duration,
            rollback_sql=rollback_sql if reversible else None,
        )
        for order, (name, description, sql, reversible, duration, rollback_sql)
        in enumerate(templates, start=1)
    ]


def _rollback_steps(steps: Sequence[MigrationStep]) -> List[MigrationStep]:
    reversible = [s for s in steps if s.reversible]
    return [
        MigrationStep(
            order=order,
            name=f"Rollback: {step.name}",
            description=f"Undo step {step.order} ({step.name}).",
            sql=step.rollback_sql or READ_ONLY,
            reversible=False,
            estimated_duration=step.estimated_duration,
        )
        for order, step in enumerate(reversed(reversible), start=1)
    ]


def _validation_queries(table, src, tgt, columns: List[Column], primary_key: str,
                        foreign_keys: List[ForeignKey]) -> List[ValidationQuery]:
    source_table = f"{src}.{table}"
    target_table = f"{tgt}.{table}"
    cols = ", ".join(c.name for c in columns)
    src_cols = ", ".join(f"{c.source} AS {c.name}" for c in columns)
    src_row = ", ".join(c.source for c in columns)
    pk_source = next((c.source for c in columns if c.name == primary_key), primary_key)
    required = [c for c in columns if not c.nullable]

    if required:
        null_sql = "SELECT\n" + ",\n".join(
            f"    SUM(CASE WHEN {c.name} IS NULL THEN 1 ELSE 0 END) AS {c.name}_nulls"
            for c in required
        ) + f"\nFROM {target_table};"
    else:
        null_sql = f"SELECT 0 AS required_nulls FROM {target_table} LIMIT 1;  -- no required columns"

    if foreign_keys:
        fk_sql = "\nUNION ALL\n".join(
            f"SELECT '{fk.column}' AS fk_column, COUNT(*) AS orphaned_rows\n"
            f"FROM {target_table} t\n"
            f"LEFT JOIN {fk.ref_table} r ON t.{fk.column} = r.{fk.ref_column}\n"
            f"WHERE t.{fk.column} IS NOT NULL AND r.{fk.ref_column} IS NULL"
            for fk in foreign_keys
        ) + ";"
    else:
        fk_sql = "SELECT 'none' AS fk_column, 0 AS orphaned_rows;  -- no foreign keys declared"

    return [
        ValidationQuery(
            name="row_count",
            description="Source and target row counts must match.",
            sql=(f"SELECT (SELECT COUNT(*) FROM {source_table}) AS source_rows,\n"
                 f"       (SELECT COUNT(*) FROM {target_table}) AS target_rows;"),
        ),
        ValidationQuery(
            name="checksum",
            description="Ordered row checksums of source and target must match.",
            sql=(f"SELECT md5(string_agg(row_text, '' ORDER BY {primary_key})) AS source_checksum\n"
                 f"FROM (SELECT {pk_source} AS {primary_key}, ROW({src_row})::text AS row_text\n"
                 f"      FROM {source_table}) s;\n"
                 f"SELECT md5(string_agg(row_text, '' ORDER BY {primary_key})) AS target_checksum\n"
                 f"FROM (SELECT {primary_key}, ROW({cols})::text AS row_text FROM {target_table}) t;"),
        ),
        ValidationQuery(
            name="spot_sample",
            description="A random sample of source rows must exist unchanged in the target.",
            sql=(f"SELECT s.*\n"
                 f"FROM (SELECT {src_cols} FROM {source_table} ORDER BY random() LIMIT 100) s\n"
                 f"EXCEPT\n"
                 f"SELECT {cols} FROM {target_table};"),
        ),
        ValidationQuery(
            name="null_check",
            description="Columns that become NOT NULL must contain no nulls after backfill.",
            sql=null_sql,
        ),
        ValidationQuery(
            name="foreign_key_integrity",
            description="Every foreign key value must reference an existing row.",
            sql=fk_sql,
        ),
    ]


def generate_data_migration_script(table: str, source_schema: str, target_schema: str,
                                   columns: Iterable[ColumnInput],
                                   primary_key: str = "id",
                                   foreign_keys: Iterable[Any] = (),
                                   estimated_rows: Optional[int] = None,
                                   config=None) -> DataMigrationScript:
    """Generate the eight-step migration for one table.

    Args:
        table: Table name (same in both schemas).
        source_schema: Schema holding the legacy table.
        target_schema: Schema receiving the migrated table.
        columns: Column specs as Column, mappings with name/type/nullable/
            source keys, or (name, type[, nullable[, source]]) tuples.
        primary_key: Primary key column; added to the column list when absent.
        foreign_keys: ForeignKey tuples or (column, ref_table[, ref_column]).
        estimated_rows: Optional row count used to size the backfill step.
        config: DataMigrationConfig; defaults apply when omitted.

    Raises:
        ValueError: Invalid identifiers or an empty column list.
    """
    _identifier(table, "table")
    _identifier(source_schema, "schema")
    _identifier(target_schema, "schema")
    _identifier(primary_key, "column")
    config = config or DataMigrationConfig()
    if config.rows_per_minute <= 0:
        raise ValueError(f"rows_per_minute must be positive, got {config.rows_per_minute}")

    cols = [_coerce_column(c) for c in columns]
    if not cols:
        raise ValueError(f"No columns given for table {table}")
    if primary_key not in {c.name for c in cols}:
        cols.insert(0, Column(primary_key, "BIGINT", False, primary_key))

    fks = []
    for fk in foreign_keys:
        fk = fk if isinstance(fk, ForeignKey) else ForeignKey(*fk)
        _identifier(fk.column, "column")
        _qualified_ref(fk.ref_table)
        _identifier(fk.ref_column, "column")
        fks.append(fk)

    steps = _build_steps(table, source_schema, target_schema, cols, primary_key, fks,
                         estimated_rows, config.rows_per_minute)
    script = DataMigrationScript(
        table=table,
        source_schema=source_schema,
        target_schema=target_schema,
        steps=tuple(steps),
        rollback_steps=tuple(_rollback_steps(steps)),
        validation_queries=tuple(_validation_queries(
            table, source_schema, target_schema, cols, primary_key, fks
        )),
        generated_at=utc_now_iso(),
    )
    logger.info("Generated data migration script for %s.%s -> %s.%s (%d steps)",
                source_schema, table, target_schema, table, len(steps))
    return script


def render_sql(script: DataMigrationScript) -> Tuple[str, str]:
    """Render (migration_sql, rollback_sql) text for review."""

    def section(title, steps):
        lines = [SQL_CUI_HEADER, f"-- {title}",
                 f"-- Table: {script.source_schema}.{script.table} -> "
                 f"{script.target_schema}.{script.table}",
                 f"-- Generated: {script.generated_at}",
                 "-- WARNING: Review before execution. Do NOT run unreviewed.", ""]
        for step in steps:
            flag = "" if step.reversible else "  [IRREVERSIBLE]"
            lines.append(f"-- Step {step.order}: {step.name}{flag} ({step.estimated_duration})")
            lines.append(f"-- {step.description}")
            lines.append(step.sql)
            lines.append("")
        if title == "Data Migration Script":
            lines.append(f"-- {'=' * 68}")
            lines.append("-- VALIDATION QUERIES")
            lines.append(f"-- {'=' * 68}")
            for query in script.validation_queries:
                lines.append(f"-- {query.name}: {query.description}")
                lines.append(query.sql)
                lines.append("")
        lines.append(SQL_CUI_FOOTER)
        return "\n".join(lines)

    return section("Data Migration Script", script.steps), section("Rollback Script", script.rollback_steps)

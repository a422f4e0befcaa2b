"""Tabular store over SQL tables addressed by ``Row_ID``."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import Column, MetaData, Table, bindparam, delete, insert, inspect, select, update

from etisync.domain.errors import MissingColumnError, TableNotFoundError
from etisync.domain.model import Row, TableSnapshot

from .mappings import INTERNAL_TABLES, ROW_ID, declared_table

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from sqlalchemy.orm import Session

    from etisync.domain.model import CellValue

log = logging.getLogger(__name__)

_ROW_KEY = "row_id_"


class SqlAlchemyTabularStore:
    """Reads the stored columns by reflection so the database, not the code, decides the header."""

    def __init__(self, session: Session) -> None:
        self.session = session
        self._metadata = MetaData()
        self._tables: dict[str, Table] = {}

    def _table(self, name: str) -> Table:
        cached = self._tables.get(name)
        if cached is not None:
            return cached

        inspector = inspect(self.session.connection())
        if name in INTERNAL_TABLES or not inspector.has_table(name):
            raise TableNotFoundError(name)
        declared = declared_table(name)
        columns: list[Column[object]] = []
        for info in inspector.get_columns(name):
            column_name = info["name"]
            column_type = (
                declared.c[column_name].type
                if declared is not None and column_name in declared.c
                else info["type"]
            )
            columns.append(Column(column_name, column_type, primary_key=column_name == ROW_ID))
        if not any(column.name == ROW_ID for column in columns):
            raise MissingColumnError(name, (ROW_ID,))

        table = Table(name, self._metadata, *columns)
        self._tables[name] = table
        return table

    @staticmethod
    def _data_columns(table: Table) -> tuple[str, ...]:
        return tuple(column.name for column in table.columns if column.name != ROW_ID)

    def _check_columns(self, table: Table, columns: Iterable[str]) -> None:
        missing = tuple(sorted(set(columns) - set(self._data_columns(table))))
        if missing:
            raise MissingColumnError(table.name, missing)

    def read_header(self, name: str) -> tuple[str, ...]:
        return self._data_columns(self._table(name))

    def read_table(self, name: str) -> TableSnapshot:
        table = self._table(name)
        columns = self._data_columns(table)
        result = self.session.execute(select(table).order_by(table.c[ROW_ID]))
        rows = [
            Row(
                number=record[ROW_ID],
                values={column: record[column] for column in columns},
            )
            for record in result.mappings()
        ]
        log.debug("Read %d rows from %s", len(rows), name)
        return TableSnapshot(name=name, columns=columns, rows=rows)

    def write_rows(self, name: str, rows: Sequence[Row]) -> None:
        if not rows:
            return
        table = self._table(name)
        groups: dict[tuple[str, ...], list[Row]] = {}
        for row in rows:
            groups.setdefault(tuple(sorted(row.values)), []).append(row)

        for columns, members in groups.items():
            if not columns:
                continue
            self._check_columns(table, columns)
            binds = {column: f"v_{index}" for index, column in enumerate(columns)}
            statement = (
                update(table)
                .where(table.c[ROW_ID] == bindparam(_ROW_KEY))
                .values({column: bindparam(bind) for column, bind in binds.items()})
            )
            self.session.execute(
                statement,
                [
                    {_ROW_KEY: row.number, **{binds[column]: row[column] for column in columns}}
                    for row in members
                ],
            )
        log.debug("Updated %d rows in %s", len(rows), name)

    def append_rows(self, name: str, rows: Sequence[Mapping[str, CellValue]]) -> None:
        if not rows:
            return
        table = self._table(name)
        self._check_columns(table, {column for row in rows for column in row})
        columns = self._data_columns(table)
        self.session.execute(
            insert(table),
            [{column: row.get(column) for column in columns} for row in rows],
        )
        log.debug("Appended %d rows to %s", len(rows), name)

    def clear_cells(self, name: str, cells: Sequence[tuple[int, str]]) -> None:
        if not cells:
            return
        table = self._table(name)
        self._check_columns(table, {column for _, column in cells})
        by_column: dict[str, list[int]] = {}
        for number, column in cells:
            by_column.setdefault(column, []).append(number)
        for column, numbers in by_column.items():
            self.session.execute(
                update(table).where(table.c[ROW_ID].in_(numbers)).values({column: None})
            )

    def clear_rows(self, name: str, row_numbers: Sequence[int]) -> None:
        if not row_numbers:
            return
        table = self._table(name)
        self.session.execute(
            update(table)
            .where(table.c[ROW_ID].in_(list(row_numbers)))
            .values(dict.fromkeys(self._data_columns(table)))
        )

    def delete_rows(self, name: str, row_numbers: Sequence[int]) -> None:
        if not row_numbers:
            return
        table = self._table(name)
        self.session.execute(delete(table).where(table.c[ROW_ID].in_(list(row_numbers))))
        log.debug("Deleted %d rows from %s", len(row_numbers), name)

    def list_tables(self) -> list[str]:
        inspector = inspect(self.session.connection())
        return [name for name in inspector.get_table_names() if name not in INTERNAL_TABLES]

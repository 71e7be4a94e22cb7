# dumptk/writers/sql.py
"""
SQL dump writer producing batched multi-row INSERT statements.
"""

import logging
from typing import Any, Optional, Sequence

from .base import BaseDumpWriter, BoundedFileSink, FOREIGN_KEY_CHECKS_COMMENT, SET_NAMES_COMMENT
from ..sources import RowSource, RowStream
from ..utils import quote_identifier, sql_literal

logger = logging.getLogger(__name__)

ROW_SEPARATOR = ',\n'
STATEMENT_TERMINATOR = ';\n'


class SQLDumpWriter(BaseDumpWriter):
    """
    Dump writer for ``.sql`` files.

    Each file begins with the session comments and is followed by statements
    such as::

        INSERT INTO `film` VALUES
        (1,'ACADEMY DINOSAUR',2006),
        (2,'ACE GOLDFINGER',2006);

    A statement is closed and a new one started when the next row would make
    it larger than ``statement_size`` bytes. Every statement holds at least
    one row, so a single oversized row becomes a statement of its own.
    Rows go to the file as they are accepted; nothing larger than one row is
    held in memory.

    Options used from the config: ``escape_backslash`` selects MySQL
    backslash escapes instead of doubled quotes and ``complete_insert`` adds
    the column list to each statement when column names are known.
    """

    extension = '.sql'
    file_header = f"{SET_NAMES_COMMENT}\n{FOREIGN_KEY_CHECKS_COMMENT}\n"

    def encode_row(self, row: Sequence[Any]) -> str:
        """Render one row as a parenthesized VALUES tuple."""
        escape_backslash = self.config.escape_backslash
        return '(' + ','.join(sql_literal(value, escape_backslash) for value in row) + ')'

    def insert_prefix(self, source: RowSource) -> str:
        table = quote_identifier(source.table_name)
        columns = source.column_names()
        if self.config.complete_insert and columns:
            column_list = ','.join(quote_identifier(col) for col in columns)
            return f"INSERT INTO {table} ({column_list}) VALUES\n"
        return f"INSERT INTO {table} VALUES\n"

    def encode(self, source: RowSource, stream: RowStream, sink: BoundedFileSink,
               statement_size: Optional[int]) -> int:
        prefix = None
        prefix_bytes = separator_bytes = terminator_bytes = 0
        statement_bytes = 0     # size of the open statement once terminated, 0 when none is open
        count = 0

        for row in stream:
            if prefix is None:
                # column names of some sources are only known after the first row
                prefix = self.insert_prefix(source)
                prefix_bytes = sink.size_of(prefix)
                separator_bytes = sink.size_of(ROW_SEPARATOR)
                terminator_bytes = sink.size_of(STATEMENT_TERMINATOR)

            text = self.encode_row(row)
            row_bytes = sink.size_of(text)

            if statement_bytes and statement_size is not None \
                    and statement_bytes + separator_bytes + row_bytes > statement_size:
                sink.write(STATEMENT_TERMINATOR)
                statement_bytes = 0

            if statement_bytes:
                # the open statement's terminator is not on disk yet
                pending = terminator_bytes
                cost = separator_bytes + row_bytes
            else:
                pending = 0
                cost = prefix_bytes + row_bytes + terminator_bytes

            if count and not sink.has_room(pending + cost):
                stream.push_back(row)
                break

            if statement_bytes:
                sink.write(ROW_SEPARATOR + text)
            elif count == 0:
                sink.write(self.file_header + prefix + text)
            else:
                sink.write(prefix + text)
            statement_bytes += cost
            count += 1

        if statement_bytes:
            sink.write(STATEMENT_TERMINATOR)
        return count

# dumptk/sources.py
"""
Row sources consumed by the dump writers.

A row source is a forward-only stream of rows for one table, or one chunk of
a table, together with the chunk identity used to name its output files.
Executing the query, retrying it, and managing the connection are the
caller's business; the writers only pull rows and release the source when
they are done with it.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Iterable, Iterator, List, Optional, Sequence

logger = logging.getLogger(__name__)

__all__ = ['RowSource', 'IterableRowSource', 'CursorRowSource', 'RowStream',
           'RowDecodeError', 'DumpCancelled']


class RowDecodeError(OSError):
    """A row could not be read from the row source."""


class DumpCancelled(RuntimeError):
    """The dump was cancelled by the caller."""


class RowSource(ABC):
    """
    Abstract row source for one table or chunk.

    Parameters
    ----------
    database_name : str
        Database (schema) the rows belong to
    table_name : str
        Table the rows belong to
    chunk_index : int, default 0
        Sequence number of this chunk. The first data file is named with this
        index and each further file adds one.
    columns : List[str], optional
        Column names, used for CSV headers and complete INSERT statements

    Subclasses must implement:

    * ``rows()`` - Return an iterator of row sequences
    * ``_release()`` - Free the underlying resources (optional)
    """

    def __init__(self, database_name: str, table_name: str, chunk_index: int = 0,
                 columns: Optional[List[str]] = None):
        self._database_name = database_name
        self._table_name = table_name
        self._chunk_index = chunk_index
        self._columns = list(columns) if columns else []
        self.closed = False

    @property
    def database_name(self) -> str:
        return self._database_name

    @property
    def table_name(self) -> str:
        return self._table_name

    @property
    def chunk_index(self) -> int:
        return self._chunk_index

    def column_names(self) -> List[str]:
        """Column names, or an empty list if they are unknown."""
        return list(self._columns)

    @abstractmethod
    def rows(self) -> Iterator[Sequence[Any]]:
        """Return an iterator over the rows, each a sequence of column values."""
        pass

    def _release(self) -> None:
        pass

    def close(self) -> None:
        """Release the underlying resources. Calling close() again does nothing."""
        if self.closed:
            return
        self.closed = True
        self._release()
        logger.debug(f"Closed row source for {self.database_name}.{self.table_name}")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __repr__(self):
        return (f"{self.__class__.__name__}({self.database_name!r}, {self.table_name!r}, "
                f"chunk_index={self.chunk_index})")


class IterableRowSource(RowSource):
    """
    Row source over any iterable of records.

    Accepts lists, tuples, namedtuples and dicts (or any mapping). For mappings
    the column order comes from ``columns`` when given, otherwise from the keys
    of the first row. Generators are consumed lazily.

    Example
    -------
    ::

        rows = [(1, 'Aang'), (2, 'Katara')]
        source = IterableRowSource(rows, 'avatar', 'benders', columns=['id', 'name'])
    """

    def __init__(self, data: Iterable, database_name: str, table_name: str,
                 chunk_index: int = 0, columns: Optional[List[str]] = None):
        super().__init__(database_name, table_name, chunk_index, columns)
        self.data = data

    def _resolve_columns(self, record) -> None:
        if self._columns:
            return
        if hasattr(record, 'keys') and callable(record.keys):
            self._columns = list(record.keys())
        elif hasattr(record, '_fields'):
            self._columns = list(record._fields)

    def _row_values(self, record) -> List[Any]:
        if hasattr(record, 'keys') and callable(record.keys) and not isinstance(record, (list, tuple)):
            return [record[col] for col in self._columns]
        return list(record)

    def rows(self) -> Iterator[List[Any]]:
        for record in self.data:
            self._resolve_columns(record)
            yield self._row_values(record)

    def _release(self) -> None:
        close = getattr(self.data, 'close', None)
        if callable(close):
            close()


class CursorRowSource(RowSource):
    """
    Row source over a DB-API cursor that has already executed its query.

    Rows are pulled with ``fetchmany()`` so the full result set is never held
    in memory. Column names come from ``cursor.description``. Closing the
    source closes the cursor.

    Example
    -------
    ::

        cursor = conn.cursor()
        cursor.execute("SELECT * FROM film WHERE film_id BETWEEN 1 AND 5000")
        source = CursorRowSource(cursor, 'sakila', 'film', chunk_index=0)
    """

    def __init__(self, cursor, database_name: str, table_name: str, chunk_index: int = 0,
                 arraysize: Optional[int] = None):
        columns = [col[0] for col in cursor.description] if getattr(cursor, 'description', None) else None
        super().__init__(database_name, table_name, chunk_index, columns)
        self.cursor = cursor
        # DB-API default arraysize is 1
        self.arraysize = arraysize or 1000

    def rows(self) -> Iterator[List[Any]]:
        while True:
            batch = self.cursor.fetchmany(self.arraysize)
            if not batch:
                break
            for row in batch:
                yield list(row)

    def _release(self) -> None:
        self.cursor.close()


class RowStream:
    """
    Iterator over a source's rows with one-row push back.

    Encoders use ``push_back()`` to return a row that does not fit into the
    current file, so the next file starts with it. ``exhausted`` becomes True
    only once the underlying iterator has really ended and no row is pending.

    Failures raised while pulling a row surface as ``RowDecodeError``. If a
    ``cancel`` event is given, it is checked before every pull and a set event
    raises ``DumpCancelled``.
    """

    def __init__(self, rows: Iterable, cancel=None):
        self._iterator = iter(rows)
        self._pending = None
        self._has_pending = False
        self._exhausted = False
        self.cancel = cancel
        self.rows_read = 0

    def __iter__(self):
        return self

    def __next__(self):
        if self._has_pending:
            self._has_pending = False
            row, self._pending = self._pending, None
            return row
        if self._exhausted:
            raise StopIteration
        if self.cancel is not None and self.cancel.is_set():
            raise DumpCancelled("Dump cancelled while reading rows")
        try:
            row = next(self._iterator)
        except StopIteration:
            self._exhausted = True
            raise
        except OSError:
            raise
        except Exception as e:
            raise RowDecodeError(f"Failed to read row {self.rows_read + 1}: {e}") from e
        self.rows_read += 1
        return row

    def push_back(self, row) -> None:
        """Return a row to the stream; the next pull yields it again."""
        if self._has_pending:
            raise RuntimeError("Only one row can be pushed back")
        self._pending = row
        self._has_pending = True

    @property
    def exhausted(self) -> bool:
        return self._exhausted and not self._has_pending

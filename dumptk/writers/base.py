# dumptk/writers/base.py
"""
Base class for dump writers with the shared file rollover loop.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

from ..naming import OutputFileNamer
from ..sources import RowSource, RowStream
from ..utils import UNSPECIFIED_SIZE

logger = logging.getLogger(__name__)

# Session comments written at the top of SQL files
SET_NAMES_COMMENT = '/*!40101 SET NAMES binary*/;'
FOREIGN_KEY_CHECKS_COMMENT = '/*!40014 SET FOREIGN_KEY_CHECKS=0*/;'


class BoundedFileSink:
    """
    Text sink for one output file with a byte limit.

    The file is opened on the first non-empty write, so a sink that never
    receives data leaves nothing on disk. ``written`` tells the caller whether
    that happened; ``has_room()`` tells an encoder whether more bytes still fit
    under ``limit``.

    Parameters
    ----------
    path : str or Path
        Destination file, created or truncated on first write
    limit : int, optional
        Maximum file size in bytes. None means unbounded.
    encoding : str, default 'utf-8'
        Text encoding; sizes are counted in encoded bytes

    Example
    -------
    ::

        with BoundedFileSink('film.0.sql', limit=1024) as sink:
            if sink.has_room(sink.size_of(text)):
                sink.write(text)
        if not sink.written:
            print('nothing was written')
    """

    def __init__(self, path: Union[str, Path], limit: Optional[int] = None, encoding: str = 'utf-8'):
        self.path = Path(path)
        self.limit = limit
        self.encoding = encoding
        self.bytes_written = 0
        self.written = False
        self._file = None
        self._closed = False

    def size_of(self, text: str) -> int:
        """Encoded size of text in bytes."""
        return len(text.encode(self.encoding))

    def has_room(self, nbytes: int) -> bool:
        """True if nbytes more can be written without passing the limit."""
        if self.limit is None:
            return True
        return self.bytes_written + nbytes <= self.limit

    def write(self, text: str) -> int:
        """Write text, opening the file first if needed. Returns the number of bytes written."""
        if self._closed:
            raise ValueError(f"I/O operation on closed sink: {self.path}")
        if not text:
            return 0
        data = text.encode(self.encoding)
        if self._file is None:
            self._file = open(self.path, 'wb')
            logger.debug(f"Opened {self.path}")
        self._file.write(data)
        self.bytes_written += len(data)
        self.written = True
        return len(data)

    def close(self) -> None:
        """Close the file handle. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        if self._file is not None:
            self._file.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            self.close()
        except OSError as e:
            if exc_type is None:
                raise
            # keep the original exception
            logger.warning(f"Failed to close {self.path} after error: {e}")
        return None


@dataclass
class DumpStats:
    """Result of dumping one row source."""
    database: str
    table: str
    rows: int = 0
    files: List[Path] = field(default_factory=list)

    @property
    def file_count(self) -> int:
        return len(self.files)


def write_meta_to_file(target: str, meta_sql: str, path: Union[str, Path], encoding: str = 'utf-8') -> Path:
    """
    Write a single DDL statement to its own file.

    Args:
        target: Database or table the statement belongs to (for logging)
        meta_sql: CREATE statement, with or without a trailing semicolon
        path: Destination file
        encoding: File encoding

    Returns:
        Path of the written file
    """
    path = Path(path)
    logger.debug(f"Start dumping meta data for {target}")
    statement = meta_sql.rstrip()
    if not statement.endswith(';'):
        statement += ';'
    with open(path, 'w', encoding=encoding, newline='') as fp:
        fp.write(f"{SET_NAMES_COMMENT}\n")
        fp.write(f"{statement}\n")
    logger.debug(f"Finished dumping meta data for {target} to {path}")
    return path


class BaseDumpWriter(ABC):
    """
    Abstract base class for dump writers.

    A dump writer turns row sources into data files in one format and writes
    the schema files that go with them. Subclasses only supply the format:
    a file extension and an ``encode()`` method. The rollover loop in
    ``write_table_data()`` is shared.

    Parameters
    ----------
    config : DumpConfig
        Output directory, size limits, file name template and format options.
        The output directory is created if missing.

    Rollover
    --------
    Data files are filled one at a time. ``encode()`` writes rows into the
    current file until the row stream ends or the next row would push the
    file past ``config.file_size``; that row is handed back to the stream and
    the next file starts with it. A row is never split across files and a
    row larger than the limit still gets a file of its own. A file that
    received nothing is never created, so a table with no rows produces no
    data file at all.

    Subclasses must implement:

    * ``extension`` - File extension including the dot
    * ``encode()`` - Write rows from the stream to a sink
    """

    extension = ''

    def __init__(self, config):
        self.config = config
        Path(config.output_dir).mkdir(parents=True, exist_ok=True)

    def _path(self, file_name: str) -> Path:
        return Path(self.config.output_dir) / file_name

    def write_database_meta(self, db: str, create_sql: str) -> Path:
        """Write ``<db>-schema-create.sql``."""
        return write_meta_to_file(db, create_sql, self._path(f"{db}-schema-create.sql"), self.config.encoding)

    def write_table_meta(self, db: str, table: str, create_sql: str) -> Path:
        """Write ``<db>.<table>-schema.sql``."""
        return write_meta_to_file(f"{db}.{table}", create_sql, self._path(f"{db}.{table}-schema.sql"),
                                  self.config.encoding)

    @abstractmethod
    def encode(self, source: RowSource, stream: RowStream, sink: BoundedFileSink,
               statement_size: Optional[int]) -> int:
        """
        Write rows from stream to sink.

        Stops when the stream is exhausted or when the next row does not fit
        in the sink, in which case that row must be pushed back onto the
        stream. Nothing may be written unless at least one row is.

        Returns:
            Number of rows written
        """
        pass

    def write_table_data(self, source: RowSource, cancel=None) -> DumpStats:
        """
        Dump all rows of a row source into one or more data files.

        The source is closed when this returns or raises.

        Args:
            source: Rows and chunk identity to dump
            cancel: Optional threading.Event; once set the dump stops with
                DumpCancelled before the next row is read

        Returns:
            DumpStats with the row count and the files written
        """
        failed = True
        try:
            stats = self._dump_rows(source, cancel)
            failed = False
            return stats
        except Exception as e:
            logger.error(f"Error dumping {source.database_name}.{source.table_name}: {e}")
            raise
        finally:
            self._close_source(source, failed)

    def _dump_rows(self, source: RowSource, cancel) -> DumpStats:
        logger.debug(f"Start dumping table {source.table_name} as {self.config.file_type}...")
        stats = DumpStats(source.database_name, source.table_name)
        namer = OutputFileNamer.for_source(self.config.template, source)
        stream = RowStream(source.rows(), cancel=cancel)

        while True:
            path = self._path(namer.next_name() + self.extension)
            with BoundedFileSink(path, self.config.file_size, self.config.encoding) as sink:
                rows = self.encode(source, stream, sink, self.config.statement_size)
            if not sink.written:
                # no rows at all
                break
            stats.rows += rows
            stats.files.append(path)
            logger.debug(f"Wrote {rows} rows ({sink.bytes_written:,} bytes) to {path}")
            if self.config.file_size is UNSPECIFIED_SIZE or stream.exhausted:
                break

        logger.info(f"Dumped {stats.rows} rows of {source.database_name}.{source.table_name} "
                    f"to {stats.file_count} file(s)")
        return stats

    @staticmethod
    def _close_source(source: RowSource, failed: bool) -> None:
        try:
            source.close()
        except Exception as e:
            if not failed:
                raise
            logger.warning(f"Failed to close row source {source!r} after error: {e}")

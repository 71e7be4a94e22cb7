# dumptk/writers/csv.py

import csv
import io
import logging
from typing import Any, List, Optional, Sequence

from .base import BaseDumpWriter, BoundedFileSink
from ..sources import RowSource, RowStream
from ..utils import to_string

logger = logging.getLogger(__name__)


class CSVDumpWriter(BaseDumpWriter):
    """
    Dump writer for ``.csv`` files, one record per row.

    Fields are quoted (or escaped, when the delimiter is empty) by the
    standard ``csv`` module one at a time, so the null token is written
    exactly as configured and a field holding ``\\r`` or ``\\n`` is always
    delimited, whatever the record terminator. Binary values are written as
    hex.
    """

    extension = '.csv'

    def __init__(self, config):
        super().__init__(config)
        self.options = config.csv_options
        # line break characters always force quoting
        self._field_end = '\r\n' + self.options.line_terminator
        kwargs = self.options.writer_kwargs()
        kwargs['lineterminator'] = self._field_end
        self._buffer = io.StringIO()
        self._writer = csv.writer(self._buffer, **kwargs)

    def to_string(self, obj: Any) -> str:
        """Convert a non-null value for CSV output."""
        if isinstance(obj, (bytes, bytearray, memoryview)):
            return bytes(obj).hex()
        return to_string(obj)

    def encode_field(self, text: str) -> str:
        """Quote or escape one field as needed."""
        if not text:
            return ''
        self._buffer.seek(0)
        self._buffer.truncate()
        self._writer.writerow([text])
        return self._buffer.getvalue()[:-len(self._field_end)]

    def encode_record(self, values: Sequence[Any]) -> str:
        """Render one record, terminator included. None becomes the null value."""
        fields = [self.options.null_value if value is None else self.encode_field(self.to_string(value))
                  for value in values]
        return self.options.separator.join(fields) + self.options.line_terminator

    def encode(self, source: RowSource, stream: RowStream, sink: BoundedFileSink,
               statement_size: Optional[int]) -> int:
        batch: List[str] = []
        batch_bytes = 0
        count = 0

        def flush():
            nonlocal batch, batch_bytes
            sink.write(''.join(batch))
            batch = []
            batch_bytes = 0

        for row in stream:
            text = self.encode_record(row)
            size = sink.size_of(text)

            if count and not sink.has_room(batch_bytes + size):
                stream.push_back(row)
                break

            if count == 0 and self.options.include_header:
                # header only goes into files that get at least one row
                columns = source.column_names()
                if columns:
                    header = self.encode_record(columns)
                    batch.append(header)
                    batch_bytes += sink.size_of(header)
                else:
                    logger.debug(f"No column names for {source.table_name}, header skipped")

            if count and statement_size is not None and batch_bytes + size > statement_size:
                flush()
            batch.append(text)
            batch_bytes += size
            count += 1
            if statement_size is None:
                flush()

        if batch:
            flush()
        return count

# dumptk/writers/__init__.py
"""
Dump writers for SQL and CSV output.

Every writer offers the same three operations:

- ``write_database_meta(db, create_sql)`` -> ``<db>-schema-create.sql``
- ``write_table_meta(db, table, create_sql)`` -> ``<db>.<table>-schema.sql``
- ``write_table_data(source)`` -> one or more data files named from the
  output file template, split by ``file_size``

Example
-------
::
    from dumptk import DumpConfig, IterableRowSource
    from dumptk.writers import new_writer, dump_table

    config = DumpConfig(output_dir='/backups', file_type='csv', file_size='64MiB')
    writer = new_writer(config)
    writer.write_table_meta('sakila', 'film', create_sql)
    writer.write_table_data(IterableRowSource(rows, 'sakila', 'film', columns=cols))

    # One-off dump of a single source
    dump_table(source, output_dir='/backups', file_type='sql', file_size='256MiB')
"""

from typing import Optional

from ..config import DumpConfig
from .base import BaseDumpWriter, BoundedFileSink, DumpStats, write_meta_to_file
from .csv import CSVDumpWriter
from .sql import SQLDumpWriter

WRITERS = {
    'sql': SQLDumpWriter,
    'csv': CSVDumpWriter,
}


def new_writer(config: DumpConfig) -> BaseDumpWriter:
    """Create the writer for ``config.file_type``."""
    return WRITERS[config.file_type](config)


def dump_table(source, config: Optional[DumpConfig] = None, cancel=None, **options) -> DumpStats:
    """
    Dump one row source with a one-off writer.

    Args:
        source: RowSource to dump (closed afterwards)
        config: DumpConfig to use. If None, one is built from the settings
            with ``options`` as overrides.
        cancel: Optional threading.Event to stop the dump
        **options: DumpConfig options, e.g. ``output_dir``, ``file_type``, ``file_size``

    Returns:
        DumpStats for the source
    """
    try:
        if config is None:
            config = DumpConfig.from_settings(**options)
        elif options:
            raise ValueError("Pass either config or options, not both")
        writer = new_writer(config)
    except Exception:
        source.close()
        raise
    return writer.write_table_data(source, cancel=cancel)


__all__ = ['BaseDumpWriter', 'BoundedFileSink', 'CSVDumpWriter', 'SQLDumpWriter', 'DumpStats',
           'new_writer', 'dump_table', 'write_meta_to_file']

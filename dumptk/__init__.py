# dumptk/__init__.py
"""
dumptk - Dump ToolKit

The output stage of a database dump: turns a stream of table rows into
size-bounded SQL or CSV files.

- Batched multi-row INSERT statements or delimited CSV records
- Statement size and file size limits with automatic file rollover
- File names from a template over ``{{.DB}}``, ``{{.Table}}`` and ``{{.Index}}``
- Schema (DDL) files per database and per table
- YAML-based configuration and logging helpers

Basic usage::

    import dumptk

    config = dumptk.DumpConfig(output_dir='/backups', file_size='256MiB')
    writer = dumptk.new_writer(config)

    cursor.execute("SELECT * FROM film")
    writer.write_table_meta('sakila', 'film', create_film_sql)
    writer.write_table_data(dumptk.CursorRowSource(cursor, 'sakila', 'film'))
"""

__version__ = '0.3.0'

from .config import DumpConfig, CSVOptions, get_setting, set_config_file
from .naming import FileNameTemplate, OutputFileNamer, TemplateError
from .sources import RowSource, IterableRowSource, CursorRowSource, RowDecodeError, DumpCancelled
from .logging_utils import setup_logging, errors_logged
from .writers import new_writer, dump_table, SQLDumpWriter, CSVDumpWriter, DumpStats
from . import writers

__all__ = [
    'DumpConfig',
    'CSVOptions',
    'get_setting',
    'set_config_file',
    'FileNameTemplate',
    'OutputFileNamer',
    'TemplateError',
    'RowSource',
    'IterableRowSource',
    'CursorRowSource',
    'RowDecodeError',
    'DumpCancelled',
    'new_writer',
    'dump_table',
    'SQLDumpWriter',
    'CSVDumpWriter',
    'DumpStats',
    'writers',
    'setup_logging',
    'errors_logged',
]

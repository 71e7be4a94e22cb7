# dumptk/defaults.py
"""Default settings - no imports to avoid circular dependencies."""

settings = {
    'null_string': '',       # how null is represented by to_string()
    'date_format': '%Y-%m-%d',
    'time_format': '%H:%M:%S',
    'datetime_format': '%Y-%m-%d %H:%M:%S',
    'timestamp_format': '%Y-%m-%d %H:%M:%S.%f',  # with microseconds
    'tz_suffix': ' %z',
    'dump': {
        'output_dir': './export',
        'file_type': 'sql',             # sql or csv
        'file_size': None,              # None / 0 / 'unspecified' = one file per chunk
        'statement_size': 1000000,      # bytes per INSERT statement
        'output_file_template': '{{.DB}}.{{.Table}}.{{.Index}}',
        'encoding': 'utf-8',
        'escape_backslash': True,
        'complete_insert': False,
        'csv_null_value': '\\N',
        'csv_separator': ',',
        'csv_delimiter': '"',
        'csv_no_header': False,
        'csv_line_terminator': '\r\n',
    },
    'logging': {
        'directory': './logs',
        'level': 'INFO',
        'format': '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        'timestamp_format': '%Y-%m-%d %H:%M:%S',
        'filename_format': '%Y%m%d_%H%M%S',  # Set to '' for single log file (no timestamp)
        'split_errors': True,
        'console': True,
    }
}

# dumptk/utils.py
"""
Utility functions for dumptk.
"""

import re
import datetime as dt
from decimal import Decimal
from typing import Any, Optional, Union

from .defaults import settings

# cache format strings for performance
_format_cache = None

UNSPECIFIED_SIZE = None

_SIZE_PATTERN = re.compile(r'^\s*(\d+(?:\.\d+)?)\s*([kmgt]?)(?:i?b)?\s*$', re.IGNORECASE)
_SIZE_UNITS = {'': 1, 'k': 1024, 'm': 1024 ** 2, 'g': 1024 ** 3, 't': 1024 ** 4}

# MySQL escapes used when escape_backslash is enabled
_BACKSLASH_ESCAPES = {
    '\x00': '\\0',
    '\n': '\\n',
    '\r': '\\r',
    '\\': '\\\\',
    "'": "\\'",
    '"': '\\"',
    '\x1a': '\\Z',
}
_BACKSLASH_PATTERN = re.compile('[\x00\n\r\\\\\'"\x1a]')


def _build_format_strings():
    """Build format strings for datetime and date objects."""
    return {
        'date': settings.get('date_format', '%Y-%m-%d'),
        'datetime': settings.get('datetime_format', '%Y-%m-%d %H:%M:%S'),
        'datetime_tz': settings.get('datetime_format', '%Y-%m-%d %H:%M:%S') + \
                       settings.get('tz_suffix', ' %z'),
        'timestamp': settings.get('timestamp_format', '%Y-%m-%d %H:%M:%S.%f'),
        'timestamp_tz': settings.get('timestamp_format', '%Y-%m-%d %H:%M:%S.%f') + \
                        settings.get('tz_suffix', ' %z'),
        'time': settings.get('time_format', '%H:%M:%S'),
        'time_micro': settings.get('time_format', '%H:%M:%S') + '.%f',
        'null': settings.get('null_string', ''),
    }


def reset_format_cache():
    """Clear format cache to force rebuilding on next call."""
    global _format_cache
    _format_cache = None


def _get_format_strings():
    global _format_cache
    if _format_cache is None:
        _format_cache = _build_format_strings()
    return _format_cache


def to_string(obj: Any) -> str:
    """
    Convert a database value to its text representation.

    Datetimes keep their time part even at midnight so a dumped DATETIME
    column reloads to the same value.

    Args:
        obj: Value to convert

    Returns:
        String representation
    """
    fmts = _get_format_strings()
    if obj is None:
        return fmts['null']
    elif isinstance(obj, dt.datetime):
        if obj.microsecond:
            return obj.strftime(fmts['timestamp_tz'] if obj.tzinfo else fmts['timestamp'])
        return obj.strftime(fmts['datetime_tz'] if obj.tzinfo else fmts['datetime'])
    elif isinstance(obj, dt.date):
        return obj.strftime(fmts['date'])
    elif isinstance(obj, dt.time):
        return obj.strftime(fmts['time_micro'] if obj.microsecond else fmts['time'])
    elif isinstance(obj, bool):
        return '1' if obj else '0'
    elif isinstance(obj, (int, float, Decimal)):
        return str(obj)
    elif isinstance(obj, str):
        return obj
    elif isinstance(obj, (bytes, bytearray, memoryview)):
        return bytes(obj).decode('utf-8', errors='replace')
    elif hasattr(obj, 'read'):
        # Handle LOB objects
        return to_string(obj.read())
    else:
        return str(obj)


def escape_sql_string(text: str, escape_backslash: bool = True) -> str:
    """
    Escape text for use inside a single-quoted SQL string literal.

    Args:
        text: Raw text
        escape_backslash: Use MySQL backslash escapes. If False, only single
            quotes are escaped, by doubling them.
    """
    if escape_backslash:
        return _BACKSLASH_PATTERN.sub(lambda m: _BACKSLASH_ESCAPES[m.group(0)], text)
    return text.replace("'", "''")


def sql_literal(value: Any, escape_backslash: bool = True) -> str:
    """
    Render a Python value as a SQL literal for an INSERT statement.

    Example
    -------
    ::
        >>> sql_literal(None)
        'NULL'
        >>> sql_literal("it's", escape_backslash=False)
        "'it''s'"
        >>> sql_literal(b'\x01\xff')
        "x'01ff'"
    """
    if value is None:
        return 'NULL'
    if isinstance(value, bool):
        return '1' if value else '0'
    if isinstance(value, (int, Decimal)):
        return str(value)
    if isinstance(value, float):
        if value != value or value in (float('inf'), float('-inf')):
            # no SQL literal for nan/inf
            return 'NULL'
        return repr(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return f"x'{bytes(value).hex()}'"
    return f"'{escape_sql_string(to_string(value), escape_backslash)}'"


def quote_identifier(identifier: str) -> str:
    """Wrap an identifier in backticks, doubling embedded backticks."""
    return '`' + identifier.replace('`', '``') + '`'


def parse_size(value: Union[int, str, None]) -> Optional[int]:
    """
    Parse a byte size setting.

    Accepts integers and strings with an optional binary unit suffix
    (``512``, ``64k``, ``256MiB``, ``1GB``). ``None``, ``0``, ``''`` and
    ``'unspecified'`` all mean no limit and return ``UNSPECIFIED_SIZE``.

    Raises:
        ValueError: If the value cannot be parsed or is negative
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid size: {value!r}")
    if value is None:
        return UNSPECIFIED_SIZE
    if isinstance(value, int):
        if value < 0:
            raise ValueError(f"Invalid size: {value} (must not be negative)")
        return value or UNSPECIFIED_SIZE
    text = str(value).strip()
    if text == '' or text.lower() == 'unspecified':
        return UNSPECIFIED_SIZE
    match = _SIZE_PATTERN.match(text)
    if not match:
        raise ValueError(f"Invalid size: {value!r}")
    number, unit = match.groups()
    size = int(float(number) * _SIZE_UNITS[unit.lower()])
    return size or UNSPECIFIED_SIZE

# dumptk/naming.py
"""
Output file naming.

Data file names come from a small template language with exactly three
fields::

    {{.DB}}.{{.Table}}.{{.Index}}      ->  sakila.film.0
    {{.Table}}-{{.Index:05d}}          ->  film-00000

A placeholder is ``{{.Field}}`` or ``{{.Field:spec}}`` where ``spec`` is a
Python format spec. Templates are checked when they are compiled, so a bad
field or format spec fails while the configuration is loaded rather than in
the middle of a dump.
"""

import os
import re
from typing import List, Tuple, Union

__all__ = ['TemplateError', 'FileNameTemplate', 'OutputFileNamer', 'DEFAULT_TEMPLATE']

DEFAULT_TEMPLATE = '{{.DB}}.{{.Table}}.{{.Index}}'

FIELDS = ('Index', 'DB', 'Table')
_SAMPLE_VALUES = {'Index': 0, 'DB': 'db', 'Table': 'table'}

_PLACEHOLDER = re.compile(r'\{\{\s*\.?(?P<field>[A-Za-z_]\w*)\s*(?::(?P<spec>[^{}]*))?\}\}')
_FORBIDDEN = ('/', '\\', '\x00')


class TemplateError(ValueError):
    """Raised for a malformed file name template or a name that cannot be rendered."""


class FileNameTemplate:
    """
    Compiled file name template.

    Parameters
    ----------
    source : str
        Template text, e.g. ``'{{.DB}}.{{.Table}}.{{.Index}}'``

    Raises
    ------
    TemplateError
        If the template is empty, references a field other than ``Index``,
        ``DB`` or ``Table``, has unbalanced braces, contains a path separator
        or uses a format spec that does not apply to the field.
    """

    def __init__(self, source: str):
        if not source or not source.strip():
            raise TemplateError("Output file template cannot be empty")
        self.source = source
        self._parts = self._compile(source)

    def __repr__(self):
        return f"FileNameTemplate({self.source!r})"

    @staticmethod
    def _check_literal(text: str, source: str) -> None:
        if '{{' in text or '}}' in text:
            raise TemplateError(f"Malformed placeholder in output file template: {source!r}")
        for char in _FORBIDDEN:
            if char in text:
                raise TemplateError(f"Output file template must not contain {char!r}: {source!r}")

    def _compile(self, source: str) -> List[Union[str, Tuple[str, str]]]:
        parts = []
        pos = 0
        for match in _PLACEHOLDER.finditer(source):
            literal = source[pos:match.start()]
            self._check_literal(literal, source)
            if literal:
                parts.append(literal)

            field = match.group('field')
            spec = (match.group('spec') or '').strip()
            if field not in FIELDS:
                raise TemplateError(
                    f"Unknown field '{field}' in output file template {source!r}. "
                    f"Available fields: {', '.join(FIELDS)}"
                )
            try:
                format(_SAMPLE_VALUES[field], spec)
            except (ValueError, TypeError) as e:
                raise TemplateError(f"Invalid format spec '{spec}' for field '{field}': {e}") from e
            parts.append((field, spec))
            pos = match.end()

        tail = source[pos:]
        self._check_literal(tail, source)
        if tail:
            parts.append(tail)
        return parts

    @property
    def fields(self) -> List[str]:
        """Fields referenced by the template, in order of appearance."""
        return [part[0] for part in self._parts if isinstance(part, tuple)]

    def render(self, index: int, db: str, table: str) -> str:
        """
        Render the template for one file.

        Raises:
            TemplateError: If a value cannot be formatted or the result is not
                a usable file name
        """
        values = {'Index': index, 'DB': db, 'Table': table}
        pieces = []
        for part in self._parts:
            if isinstance(part, str):
                pieces.append(part)
                continue
            field, spec = part
            try:
                pieces.append(format(values[field], spec))
            except (ValueError, TypeError) as e:
                raise TemplateError(f"Cannot render field '{field}' with value {values[field]!r}: {e}") from e

        name = ''.join(pieces)
        if not name or name in (os.curdir, os.pardir):
            raise TemplateError(f"Output file template {self.source!r} rendered an invalid name: {name!r}")
        for char in _FORBIDDEN:
            if char in name:
                raise TemplateError(f"Rendered file name {name!r} contains {char!r}")
        return name


class OutputFileNamer:
    """
    Produces successive data file names for one table or chunk export.

    The sequence starts at the chunk's index and moves forward by one on every
    call to ``next_name()``, whether or not rendering succeeded, so an index is
    never handed out twice.

    Example
    -------
    ::

        namer = OutputFileNamer(FileNameTemplate('{{.DB}}.{{.Table}}.{{.Index}}'), 'd', 't', index=2)
        namer.next_name()   # 'd.t.2'
        namer.next_name()   # 'd.t.3'
    """

    def __init__(self, template: Union[FileNameTemplate, str], db: str, table: str, index: int = 0):
        if not isinstance(template, FileNameTemplate):
            template = FileNameTemplate(template)
        self.template = template
        self.db = db
        self.table = table
        self.index = index

    @classmethod
    def for_source(cls, template: Union[FileNameTemplate, str], source) -> 'OutputFileNamer':
        """Build a namer seeded from a row source's chunk identity."""
        return cls(template, source.database_name, source.table_name, source.chunk_index)

    def next_name(self) -> str:
        """Render the current index, then advance it. Returns the name without extension."""
        try:
            return self.template.render(self.index, self.db, self.table)
        finally:
            self.index += 1

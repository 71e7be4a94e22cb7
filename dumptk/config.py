# dumptk/config.py
"""
Configuration management for dumps.
Supports YAML configuration files whose ``settings`` section overrides the
package defaults, and builds the validated ``DumpConfig`` the writers use.
"""

import codecs
import csv
import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from .defaults import settings
from .naming import DEFAULT_TEMPLATE, FileNameTemplate, TemplateError
from .utils import UNSPECIFIED_SIZE, parse_size, reset_format_cache

try:
    import yaml
except ImportError:
    raise ImportError("PyYAML is required. Install with: pip install PyYAML")

logger = logging.getLogger(__name__)

FILE_TYPES = ('sql', 'csv')


def _lookup(source: Dict[str, Any], key: str, default: Any = None) -> Any:
    """Resolve a dot-notation key like 'dump.file_size' in nested dicts."""
    value = source
    for k in key.split('.'):
        if isinstance(value, dict) and k in value:
            value = value[k]
        else:
            return default
    return value


def _merge(target: Dict[str, Any], updates: Dict[str, Any]) -> None:
    """Merge nested setting sections instead of replacing them."""
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _merge(target[key], value)
        else:
            target[key] = value


class ConfigManager:
    """
    Manage dumptk configuration from YAML files.

    Configuration File Structure
    ----------------------------
    ::

        # dumptk.yml
        settings:
          null_string: ''
          dump:
            output_dir: /backups/sakila
            file_type: sql
            file_size: 256MiB
            statement_size: 1MB
            output_file_template: '{{.DB}}.{{.Table}}.{{.Index}}'
          logging:
            level: DEBUG

    Configuration Locations
    -----------------------
    1. File specified in config_file parameter
    2. ``./dumptk.yml`` or ``./dumptk.yaml``
    3. ``~/.config/dumptk.yml`` or ``~/.config/dumptk.yaml``

    If no file is found the package defaults are used unchanged.

    Parameters
    ----------
    config_file : str or Path, optional
        Path to YAML config file. If None, searches standard locations.

    Raises
    ------
    FileNotFoundError
        If config_file is given and does not exist
    ValueError
        If the config file is invalid or malformed
    """

    def __init__(self, config_file: Optional[Union[str, Path]] = None):
        self.config_file = self._find_config_file(config_file)
        self.config = self._load_config() if self.config_file else {}
        self._apply_settings()

    @staticmethod
    def candidates() -> List[Path]:
        return [
            Path("dumptk.yml"),
            Path("dumptk.yaml"),
            Path.home() / ".config" / "dumptk.yml",
            Path.home() / ".config" / "dumptk.yaml"
        ]

    def _find_config_file(self, config_file: Optional[Union[str, Path]]) -> Optional[Path]:
        """Find the configuration file."""
        if config_file:
            path = Path(config_file)
            if not path.exists():
                raise FileNotFoundError(f"Config file not found: {config_file}")
            return path

        for candidate in self.candidates():
            if candidate.exists():
                return candidate

        logger.debug("No config file found, using default settings")
        return None

    def _load_config(self) -> Dict[str, Any]:
        """Load and validate configuration file."""
        try:
            with open(self.config_file, 'r') as f:
                config = yaml.safe_load(f) or {}
            if not isinstance(config, dict):
                raise ValueError(f"Invalid config file {self.config_file}.")

            if 'settings' in config:
                if not isinstance(config['settings'], dict):
                    raise ValueError(f"Invalid config file {self.config_file}: 'settings' must be a dictionary")
                for section in ('dump', 'logging'):
                    if section in config['settings'] and not isinstance(config['settings'][section], dict):
                        raise ValueError(
                            f"Invalid config file {self.config_file}: 'settings.{section}' must be a dictionary")

            logger.info(f"Loaded config from {self.config_file}")
            return config
        except (OSError, yaml.YAMLError, ValueError) as e:
            raise ValueError(f"Failed to load config file {self.config_file}: {e}") from e

    def _apply_settings(self) -> None:
        """Apply global settings from config."""
        _merge(settings, self.config.get('settings', {}))
        reset_format_cache()

    def get_setting(self, key: str, default: Any = None) -> Any:
        """
        Get a setting value: package defaults merged with the config file.

        Args:
            key: Setting key (supports dot notation like 'dump.file_size')
            default: Default value if key not found

        Example:
            size = config.get_setting('dump.file_size')
        """
        return _lookup(settings, key, default)


_config_manager: Optional[ConfigManager] = None


def set_config_file(config_file: Union[str, Path]) -> None:
    """Set the configuration file to use globally."""
    global _config_manager
    _config_manager = ConfigManager(config_file)


def get_setting(key: str, default: Any = None, config_file: Optional[str] = None) -> Any:
    """
    Get a setting value from configuration.

    Args:
        key: Setting key (supports dot notation like 'dump.file_size')
        default: Default value if key not found
        config_file: Optional path to config file

    Example:
        template = get_setting('dump.output_file_template')
    """
    global _config_manager

    if config_file:
        config_mgr = ConfigManager(config_file)
    else:
        if _config_manager is None:
            _config_manager = ConfigManager()
        config_mgr = _config_manager

    return config_mgr.get_setting(key, default)


@dataclass(frozen=True)
class CSVOptions:
    """
    Formatting options for delimited output.

    ``separator`` splits fields, ``delimiter`` quotes them. A field that
    contains the separator, the delimiter or a line break is wrapped in the
    delimiter with embedded delimiters doubled. An empty delimiter turns
    quoting off and escapes special characters with a backslash instead.
    """
    null_value: str = '\\N'
    separator: str = ','
    delimiter: str = '"'
    include_header: bool = True
    line_terminator: str = '\r\n'

    def __post_init__(self):
        if len(self.separator) != 1:
            raise ValueError(f"CSV separator must be a single character, got {self.separator!r}")
        if len(self.delimiter) > 1:
            raise ValueError(f"CSV delimiter must be a single character or empty, got {self.delimiter!r}")
        if self.delimiter == self.separator:
            raise ValueError("CSV separator and delimiter must differ")
        if not self.line_terminator:
            raise ValueError("CSV line terminator cannot be empty")

    def writer_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for csv.writer()."""
        if self.delimiter:
            return {'delimiter': self.separator, 'quotechar': self.delimiter, 'doublequote': True,
                    'quoting': csv.QUOTE_MINIMAL, 'lineterminator': self.line_terminator}
        return {'delimiter': self.separator, 'quoting': csv.QUOTE_NONE, 'escapechar': '\\',
                'lineterminator': self.line_terminator}


@dataclass
class DumpConfig:
    """
    Validated settings for one dump.

    Sizes accept integers or strings such as ``'256MiB'``. A file size of
    ``None``, ``0`` or ``'unspecified'`` writes a single file per chunk; a
    statement size of ``None`` puts all rows of a file into one statement.

    Example
    -------
    ::

        config = DumpConfig(output_dir='/backups', file_type='csv', file_size='64MiB')

        # From dumptk.yml, with overrides
        config = DumpConfig.from_settings(file_size='1GiB')
    """
    output_dir: Union[str, Path] = './export'
    file_type: str = 'sql'
    file_size: Optional[Union[int, str]] = UNSPECIFIED_SIZE
    statement_size: Optional[Union[int, str]] = 1000000
    output_file_template: str = DEFAULT_TEMPLATE
    encoding: str = 'utf-8'
    escape_backslash: bool = True
    complete_insert: bool = False
    csv_null_value: str = '\\N'
    csv_separator: str = ','
    csv_delimiter: str = '"'
    csv_no_header: bool = False
    csv_line_terminator: str = '\r\n'
    template: FileNameTemplate = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        self.output_dir = Path(self.output_dir)
        self.file_type = str(self.file_type).lower()
        if self.file_type not in FILE_TYPES:
            raise ValueError(f"Unsupported file type '{self.file_type}'. Use one of: {', '.join(FILE_TYPES)}")
        self.file_size = parse_size(self.file_size)
        self.statement_size = parse_size(self.statement_size)
        try:
            codecs.lookup(self.encoding)
        except LookupError as e:
            raise ValueError(f"Unknown encoding '{self.encoding}'") from e
        # raises TemplateError
        self.template = FileNameTemplate(self.output_file_template)
        if self.file_type == 'csv':
            _ = self.csv_options

    @property
    def csv_options(self) -> CSVOptions:
        return CSVOptions(
            null_value=self.csv_null_value,
            separator=self.csv_separator,
            delimiter=self.csv_delimiter,
            include_header=not self.csv_no_header,
            line_terminator=self.csv_line_terminator,
        )

    @classmethod
    def option_names(cls) -> Tuple[str, ...]:
        return tuple(f.name for f in fields(cls) if f.init)

    @classmethod
    def from_settings(cls, config_file: Optional[str] = None, **overrides) -> 'DumpConfig':
        """
        Build a DumpConfig from the ``dump`` settings section.

        Args:
            config_file: Optional path to config file (defaults to the global config)
            **overrides: Option values that take precedence over the settings;
                None values are ignored

        Raises:
            ValueError: For unknown options or invalid values
        """
        options = dict(get_setting('dump', {}, config_file=config_file) or {})
        options.update({key: val for key, val in overrides.items() if val is not None})
        unknown = set(options) - set(cls.option_names())
        if unknown:
            raise ValueError(f"Unknown dump settings: {', '.join(sorted(unknown))}")
        return cls(**options)


def diagnose_config(config_file: Optional[str] = None) -> List[Tuple[str, str]]:
    """Config health check: config file, dump settings and file name template."""
    results = []

    try:
        mgr = ConfigManager(config_file)
    except (FileNotFoundError, ValueError) as e:
        results.append(('✗', f"Config failed: {e}"))
        return results
    if mgr.config_file:
        results.append(('✓', f"Config loaded: {mgr.config_file}"))
    else:
        results.append(('?', "No config file, using defaults"))

    try:
        dump_config = DumpConfig.from_settings(config_file=config_file)
    except TemplateError as e:
        results.append(('✗', f"Output file template invalid: {e}"))
        return results
    except ValueError as e:
        results.append(('✗', f"Dump settings invalid: {e}"))
        return results

    results.append(('✓', f"File type: {dump_config.file_type}"))
    results.append(('✓', f"Output directory: {dump_config.output_dir}"))
    if dump_config.file_size is UNSPECIFIED_SIZE:
        results.append(('✓', "File size: unspecified (one file per chunk)"))
    else:
        results.append(('✓', f"File size: {dump_config.file_size:,} bytes"))
    results.append(('✓', f"Template: {dump_config.template.source}"))
    return results

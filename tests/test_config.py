# tests/test_config.py
import csv

import pytest

from dumptk.config import (
    ConfigManager, CSVOptions, DumpConfig, diagnose_config, get_setting
)
from dumptk.defaults import settings
from dumptk.naming import TemplateError


@pytest.fixture
def config_manager(test_config_file):
    """Create ConfigManager instance with test config."""
    return ConfigManager(str(test_config_file))


@pytest.fixture
def write_config(tmp_path):
    """Write a YAML config file and return its path."""
    def _write(text, name='dumptk.yml'):
        path = tmp_path / name
        path.write_text(text)
        return str(path)
    return _write


class TestConfigManager:
    """Test ConfigManager class functionality."""

    def test_init_with_valid_config(self, config_manager):
        """Test ConfigManager initializes with valid config file."""
        assert config_manager.config is not None
        assert 'settings' in config_manager.config

    def test_init_with_missing_file(self):
        """Test ConfigManager raises error for missing file."""
        with pytest.raises(FileNotFoundError):
            ConfigManager('/nonexistent/path/config.yml')

    def test_no_config_found(self, tmp_path, monkeypatch):
        """Test defaults are used when no config file exists."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr(ConfigManager, 'candidates', staticmethod(lambda: []))
        mgr = ConfigManager()
        assert mgr.config_file is None
        assert mgr.config == {}
        assert mgr.get_setting('dump.file_type') == 'sql'

    def test_finds_config_in_current_dir(self, tmp_path, monkeypatch):
        (tmp_path / 'dumptk.yml').write_text("settings:\n  dump:\n    file_type: csv\n")
        monkeypatch.chdir(tmp_path)
        mgr = ConfigManager()
        assert mgr.config_file.name == 'dumptk.yml'
        assert mgr.get_setting('dump.file_type') == 'csv'

    def test_get_setting_dot_notation(self, config_manager):
        """Test settings are read with dot notation."""
        assert config_manager.get_setting('dump.statement_size') == '1MB'
        assert config_manager.get_setting('logging.console') is False
        assert config_manager.get_setting('dump.missing', 'fallback') == 'fallback'
        assert config_manager.get_setting('no.such.key') is None

    def test_sections_are_merged(self, write_config):
        """Test a partial dump section keeps the remaining defaults."""
        ConfigManager(write_config("settings:\n  dump:\n    file_size: 64MiB\n"))
        assert settings['dump']['file_size'] == '64MiB'
        assert settings['dump']['csv_separator'] == ','
        assert settings['logging']['level'] == 'INFO'

    def test_invalid_yaml(self, write_config):
        path = write_config("settings: [unclosed\n")
        with pytest.raises(ValueError, match="Failed to load config file"):
            ConfigManager(path)

    def test_settings_must_be_dict(self, write_config):
        with pytest.raises(ValueError, match="'settings' must be a dictionary"):
            ConfigManager(write_config("settings: 5\n"))

    def test_dump_section_must_be_dict(self, write_config):
        with pytest.raises(ValueError, match="'settings.dump' must be a dictionary"):
            ConfigManager(write_config("settings:\n  dump: [1, 2]\n"))

    def test_top_level_must_be_dict(self, write_config):
        with pytest.raises(ValueError, match="Invalid config file"):
            ConfigManager(write_config("- just\n- a list\n"))

    def test_empty_file(self, write_config):
        mgr = ConfigManager(write_config(""))
        assert mgr.config == {}


class TestGetSetting:
    """Test the module-level get_setting() helper."""

    def test_from_global_config(self):
        assert get_setting('dump.output_file_template') == '{{.DB}}.{{.Table}}.{{.Index}}'
        assert get_setting('dump.csv_null_value') == '\\N'

    def test_default(self):
        assert get_setting('dump.nope', 42) == 42

    def test_with_config_file(self, write_config):
        path = write_config("settings:\n  dump:\n    file_type: csv\n")
        assert get_setting('dump.file_type', config_file=path) == 'csv'


class TestCSVOptions:
    """Test CSV option validation."""

    def test_defaults(self):
        options = CSVOptions()
        assert options.null_value == '\\N'
        assert options.include_header
        kwargs = options.writer_kwargs()
        assert kwargs['delimiter'] == ','
        assert kwargs['quotechar'] == '"'
        assert kwargs['quoting'] == csv.QUOTE_MINIMAL
        assert kwargs['lineterminator'] == '\r\n'

    def test_empty_delimiter(self):
        kwargs = CSVOptions(delimiter='').writer_kwargs()
        assert kwargs['quoting'] == csv.QUOTE_NONE
        assert kwargs['escapechar'] == '\\'

    @pytest.mark.parametrize('options', [
        {'separator': ''},
        {'separator': '||'},
        {'delimiter': "''"},
        {'separator': ';', 'delimiter': ';'},
        {'line_terminator': ''},
    ])
    def test_invalid(self, options):
        with pytest.raises(ValueError):
            CSVOptions(**options)


class TestDumpConfig:
    """Test DumpConfig validation and construction."""

    def test_defaults(self, tmp_path):
        config = DumpConfig(output_dir=tmp_path)
        assert config.file_type == 'sql'
        assert config.file_size is None
        assert config.statement_size == 1000000
        assert config.template.source == '{{.DB}}.{{.Table}}.{{.Index}}'

    def test_sizes_parsed(self, tmp_path):
        config = DumpConfig(output_dir=tmp_path, file_size='256MiB', statement_size='64k')
        assert config.file_size == 256 * 1024 ** 2
        assert config.statement_size == 64 * 1024

    @pytest.mark.parametrize('file_size', [None, 0, '', 'unspecified', 'UNSPECIFIED'])
    def test_unspecified_file_size(self, tmp_path, file_size):
        assert DumpConfig(output_dir=tmp_path, file_size=file_size).file_size is None

    def test_invalid_file_type(self, tmp_path):
        with pytest.raises(ValueError, match="Unsupported file type 'xml'"):
            DumpConfig(output_dir=tmp_path, file_type='xml')

    @pytest.mark.parametrize('file_size', [-1, 'lots', '12q'])
    def test_invalid_size(self, tmp_path, file_size):
        with pytest.raises(ValueError, match="Invalid size"):
            DumpConfig(output_dir=tmp_path, file_size=file_size)

    def test_invalid_encoding(self, tmp_path):
        with pytest.raises(ValueError, match="Unknown encoding"):
            DumpConfig(output_dir=tmp_path, encoding='utf-42')

    def test_invalid_template(self, tmp_path):
        """Test a bad template fails when the config is built."""
        with pytest.raises(TemplateError):
            DumpConfig(output_dir=tmp_path, output_file_template='{{.Schema}}.{{.Index}}')

    def test_csv_options_checked_for_csv(self, tmp_path):
        """Test CSV options are only validated for CSV output."""
        DumpConfig(output_dir=tmp_path, csv_separator='||')
        with pytest.raises(ValueError, match="single character"):
            DumpConfig(output_dir=tmp_path, file_type='csv', csv_separator='||')

    def test_csv_options(self, tmp_path):
        config = DumpConfig(output_dir=tmp_path, file_type='csv', csv_no_header=True, csv_null_value='')
        assert config.csv_options == CSVOptions(null_value='', include_header=False)

    def test_from_settings(self):
        """Test values come from test.yml."""
        config = DumpConfig.from_settings()
        assert config.file_type == 'sql'
        assert config.file_size is None
        assert config.statement_size == 1024 ** 2

    def test_from_settings_overrides(self, tmp_path):
        config = DumpConfig.from_settings(output_dir=tmp_path, file_type='csv', file_size='1k',
                                          statement_size=None)
        assert config.output_dir == tmp_path
        assert config.file_type == 'csv'
        assert config.file_size == 1024
        assert config.statement_size == 1024 ** 2

    def test_from_settings_unknown_option(self):
        with pytest.raises(ValueError, match="Unknown dump settings: bogus"):
            DumpConfig.from_settings(bogus=1)

    def test_from_settings_config_file(self, write_config):
        path = write_config("settings:\n  dump:\n    file_type: csv\n    file_size: 2MiB\n")
        config = DumpConfig.from_settings(config_file=path)
        assert config.file_type == 'csv'
        assert config.file_size == 2 * 1024 ** 2

    def test_option_names(self):
        names = DumpConfig.option_names()
        assert 'file_size' in names
        assert 'template' not in names


class TestDiagnoseConfig:
    """Test the config health check."""

    def test_healthy(self, test_config_file):
        results = diagnose_config(str(test_config_file))
        assert results[0] == ('✓', f"Config loaded: {test_config_file}")
        assert ('✓', "File type: sql") in results
        assert ('✓', "File size: unspecified (one file per chunk)") in results
        assert all(status == '✓' for status, _ in results)

    def test_missing_file(self):
        results = diagnose_config('/nonexistent/dumptk.yml')
        assert results[0][0] == '✗'
        assert "Config file not found" in results[0][1]

    def test_bad_template(self, write_config):
        path = write_config("settings:\n  dump:\n    output_file_template: '{{.Bad}}'\n")
        results = diagnose_config(path)
        assert results[-1][0] == '✗'
        assert "Output file template invalid" in results[-1][1]

    def test_bad_size(self, write_config):
        path = write_config("settings:\n  dump:\n    file_size: huge\n")
        results = diagnose_config(path)
        assert results[-1] == ('✗', "Dump settings invalid: Invalid size: 'huge'")

    def test_file_size_reported(self, write_config):
        path = write_config("settings:\n  dump:\n    file_size: 1KiB\n")
        assert ('✓', "File size: 1,024 bytes") in diagnose_config(path)

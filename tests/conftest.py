# tests/conftest.py
"""
Shared test fixtures and configuration for pytest.
"""

import copy
import logging
from pathlib import Path

import pytest

from dumptk import config as config_module
from dumptk.config import DumpConfig, set_config_file
from dumptk.defaults import settings
from dumptk.sources import IterableRowSource
from dumptk.utils import reset_format_cache


@pytest.fixture
def test_config_file():
    """Path to the test config file."""
    return Path(__file__).parent / 'test.yml'


@pytest.fixture(autouse=True)
def setup_test_config(test_config_file):
    """Point the global config at test.yml and restore default settings afterwards."""
    saved = copy.deepcopy(settings)
    set_config_file(str(test_config_file))
    yield
    settings.clear()
    settings.update(saved)
    reset_format_cache()
    config_module._config_manager = None


@pytest.fixture
def restore_root_logging():
    """Undo handler changes made by setup_logging()."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)


@pytest.fixture
def output_dir(tmp_path):
    return tmp_path / 'export'


@pytest.fixture
def make_config(output_dir):
    """Factory for DumpConfig objects writing into a temporary directory."""
    def _make(**options):
        options.setdefault('output_dir', output_dir)
        return DumpConfig(**options)
    return _make


@pytest.fixture
def benders():
    """Sample rows with a mix of types and NULLs."""
    return [
        (1, 'Aang', 'Air', None),
        (2, 'Katara', 'Water', 14),
        (3, 'Toph', 'Earth', 12),
        (4, "Zuko's uncle", 'Fire', None),
    ]


@pytest.fixture
def bender_columns():
    return ['id', 'name', 'element', 'age']


@pytest.fixture
def make_source():
    """Factory for in-memory row sources."""
    def _make(rows, db='avatar', table='benders', chunk_index=0, columns=None):
        return IterableRowSource(rows, db, table, chunk_index=chunk_index, columns=columns)
    return _make


def file_index(path: Path):
    """Sort key for data files: the trailing index of the rendered name."""
    tail = path.stem.rsplit('.', 1)[-1]
    return (int(tail), path.name) if tail.isdigit() else (-1, path.name)


@pytest.fixture
def data_files():
    """Lists data files in a directory, schema files excluded, in index order."""
    def _list(directory: Path, extension: str):
        paths = [p for p in directory.glob(f"*{extension}") if "-schema" not in p.name]
        return sorted(paths, key=file_index)
    return _list

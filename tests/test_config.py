"""Tests for environment driven configuration."""
from pathlib import Path

import pytest

from intlscan.config import DEFAULT_EXCLUDED_DIRS, Config, get_config, reset_config

ENV_VARS = ('INTLSCAN_DELIMITER', 'INTLSCAN_PROJECT_ROOT', 'INTLSCAN_EXCLUDED_DIRS', 'INTLSCAN_ALIASES')


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Run each test without INTLSCAN_* variables and away from any real .env."""
    for name in ENV_VARS:
        # setenv first so the deletion is undone even when the variable was unset
        monkeypatch.setenv(name, '')
        monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    reset_config()
    yield
    reset_config()


class TestDefaults:
    def test_delimiter(self):
        assert Config().delimiter == '.'

    def test_project_root(self):
        assert Config().project_root == Path('.')

    def test_excluded_dirs(self):
        excluded = Config().excluded_dirs
        assert excluded == DEFAULT_EXCLUDED_DIRS
        assert 'node_modules' in excluded

    def test_no_aliases(self):
        assert Config().aliases == {}

    def test_source_extensions(self):
        extensions = Config().source_extensions
        assert '.tsx' in extensions
        assert '.py' not in extensions


class TestEnvironment:
    def test_environment_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv('INTLSCAN_DELIMITER', ':')
        monkeypatch.setenv('INTLSCAN_PROJECT_ROOT', str(tmp_path))
        config = Config()
        assert config.delimiter == ':'
        assert config.project_root == tmp_path

    def test_excluded_dirs_extend_defaults(self, monkeypatch):
        monkeypatch.setenv('INTLSCAN_EXCLUDED_DIRS', 'storybook, generated ,,')
        excluded = Config().excluded_dirs
        assert {'storybook', 'generated'} <= excluded
        assert DEFAULT_EXCLUDED_DIRS <= excluded
        assert '' not in excluded

    def test_aliases(self, monkeypatch):
        monkeypatch.setenv('INTLSCAN_ALIASES', '~=app, #lib/*=src/lib/* ,broken,=x')
        assert Config().aliases == {'~': 'app', '#lib/*': 'src/lib/*'}

    def test_dotenv_file(self, monkeypatch, tmp_path):
        env_file = tmp_path / 'custom.env'
        env_file.write_text('INTLSCAN_DELIMITER=/\n', encoding='utf-8')
        # Registers the variable with monkeypatch so the value loaded below is undone
        monkeypatch.setenv('INTLSCAN_DELIMITER', '')
        monkeypatch.delenv('INTLSCAN_DELIMITER')
        assert Config(env_file=env_file).delimiter == '/'

    def test_environment_wins_over_dotenv(self, monkeypatch, tmp_path):
        (tmp_path / '.env').write_text('INTLSCAN_DELIMITER=/\n', encoding='utf-8')
        monkeypatch.setenv('INTLSCAN_DELIMITER', ':')
        assert Config().delimiter == ':'


class TestSingleton:
    def test_get_config_is_cached(self):
        assert get_config() is get_config()

    def test_reset_config(self):
        first = get_config()
        reset_config()
        assert get_config() is not first

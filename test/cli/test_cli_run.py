"""Tests for the ``palaver`` command"""
from __future__ import annotations

import os

import pytest

from palaver import __version__, bot, config
from palaver.cli import run


TMP_CONFIG = """
[core]
nick = TestBot
host = irc.example.com
"""


@pytest.fixture(autouse=True)
def default_empty_config_env(monkeypatch):
    """Pytest fixture used to ensure dev ENV does not bleed into tests"""
    monkeypatch.delenv('PALAVER_CONFIG', raising=False)


@pytest.fixture
def config_dir(tmp_path):
    test_dir = tmp_path / 'config'
    test_dir.mkdir()
    return test_dir


@pytest.fixture
def no_logging_setup(monkeypatch):
    calls = []
    monkeypatch.setattr(
        run.logger, 'setup_logging', lambda settings: calls.append(settings))
    return calls


def test_build_parser():
    parser = run.build_parser()

    options = parser.parse_args([])
    assert options.config is None

    options = parser.parse_args(['-c', 'libera', '--config-dir', '/tmp/pal'])
    assert options.config == 'libera'
    assert options.configdir == '/tmp/pal'


def test_build_parser_defaults():
    options = run.build_parser().parse_args([])

    assert options.configdir == config.DEFAULT_HOMEDIR


def test_build_parser_version(capsys):
    parser = run.build_parser()

    with pytest.raises(SystemExit) as excinfo:
        parser.parse_args(['--version'])

    assert excinfo.value.code == 0
    assert __version__ in capsys.readouterr().out


def test_print_version(capsys):
    run.print_version()

    out = capsys.readouterr().out
    assert out.startswith('Palaver %s (running on Python ' % __version__)


def test_main_config_not_found(config_dir, capsys, no_logging_setup):
    result = run.main(['--config-dir', str(config_dir), '-c', 'missing'])

    assert result == run.ERR_CODE
    assert 'Unable to find the configuration file' in capsys.readouterr().err
    assert no_logging_setup == []


def test_main_config_invalid(config_dir, capsys, no_logging_setup):
    (config_dir / 'default.cfg').write_text('[core]\nport = 0\n')

    result = run.main(['--config-dir', str(config_dir)])

    assert result == run.ERR_CODE
    assert 'ConfigurationError' in capsys.readouterr().err
    assert no_logging_setup == []


def test_main_runs_bot(config_dir, monkeypatch, no_logging_setup):
    (config_dir / 'default.cfg').write_text(TMP_CONFIG)
    started = []

    def fake_run(self, host=None, port=None, use_ssl=None):
        started.append((self.nick, self.host, self.port))

    monkeypatch.setattr(bot.Bot, 'run', fake_run)

    result = run.main(['--config-dir', str(config_dir)])

    assert result == 0
    assert started == [('TestBot', 'irc.example.com', 6667)]
    assert len(no_logging_setup) == 1


def test_main_interrupted(config_dir, monkeypatch, capsys, no_logging_setup):
    (config_dir / 'default.cfg').write_text(TMP_CONFIG)

    def fake_run(self, host=None, port=None, use_ssl=None):
        raise KeyboardInterrupt

    monkeypatch.setattr(bot.Bot, 'run', fake_run)

    result = run.main(['--config-dir', str(config_dir)])

    assert result == 0
    assert 'Interrupted' in capsys.readouterr().out


def test_main_crashed(config_dir, monkeypatch, caplog, no_logging_setup):
    (config_dir / 'default.cfg').write_text(TMP_CONFIG)

    def fake_run(self, host=None, port=None, use_ssl=None):
        raise RuntimeError('boom')

    monkeypatch.setattr(bot.Bot, 'run', fake_run)

    result = run.main(['--config-dir', str(config_dir)])

    assert result == run.ERR_CODE
    assert 'Critical exception in core' in caplog.text


def test_get_config_path_by_name(config_dir):
    assert run.get_config_path('libera', str(config_dir)) == str(
        config_dir / 'libera.cfg')
    assert run.get_config_path('libera.cfg', str(config_dir)) == str(
        config_dir / 'libera.cfg')


def test_get_config_path_existing_file(tmp_path, config_dir, monkeypatch):
    (tmp_path / 'local.cfg').write_text(TMP_CONFIG)
    monkeypatch.chdir(tmp_path)

    assert run.get_config_path('local.cfg', str(config_dir)) == str(
        tmp_path / 'local.cfg')
    # without the extension, the name is looked up in the config dir
    assert run.get_config_path('local', str(config_dir)) == str(
        config_dir / 'local.cfg')


def test_load_settings_by_name(config_dir):
    (config_dir / 'libera.cfg').write_text(TMP_CONFIG)
    options = run.build_parser().parse_args(
        ['--config-dir', str(config_dir), '-c', 'libera'])

    settings = run.load_settings(options)

    assert isinstance(settings, config.Config)
    assert settings.basename == 'libera'
    assert os.path.dirname(settings.filename) == str(config_dir)
    assert settings.core.nick == 'TestBot'


def test_load_settings_env(config_dir, monkeypatch):
    (config_dir / 'default.cfg').write_text(TMP_CONFIG)
    (config_dir / 'fromenv.cfg').write_text(TMP_CONFIG)
    (config_dir / 'fromarg.cfg').write_text(TMP_CONFIG)
    monkeypatch.setenv('PALAVER_CONFIG', 'fromenv')
    parser = run.build_parser()

    options = parser.parse_args(['--config-dir', str(config_dir)])
    assert run.load_settings(options).basename == 'fromenv'

    options = parser.parse_args(
        ['--config-dir', str(config_dir), '-c', 'fromarg'])
    assert run.load_settings(options).basename == 'fromarg'

    monkeypatch.setenv('PALAVER_CONFIG', '')
    options = parser.parse_args(['--config-dir', str(config_dir)])
    assert run.load_settings(options).basename == 'default'


def test_load_settings_not_found(config_dir):
    options = run.build_parser().parse_args(['--config-dir', str(config_dir)])

    with pytest.raises(config.ConfigurationNotFound) as excinfo:
        run.load_settings(options)

    assert excinfo.value.filename == str(config_dir / 'default.cfg')


def test_load_settings_invalid(config_dir):
    (config_dir / 'default.cfg').write_text('[core]\nhost = irc.example.com\n')
    options = run.build_parser().parse_args(['--config-dir', str(config_dir)])

    with pytest.raises(config.ConfigurationError) as excinfo:
        run.load_settings(options)

    assert 'core.nick' in str(excinfo.value)

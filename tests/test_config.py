"""
Tests for EngineConfig
"""

import pytest

from lockedin.config import EngineConfig, Environment, LogLevel
from lockedin.exceptions import ConfigError


def make_config(tmp_path, **overrides):
    environ = {'LOCKEDIN_HOME': str(tmp_path)}
    environ.update({f'LOCKEDIN_{key}': value for key, value in overrides.items()})
    return EngineConfig(environ=environ)


def test_defaults(tmp_path):
    config = make_config(tmp_path)

    assert config.environment is Environment.DEVELOPMENT
    assert config.data_dir == tmp_path / 'data'
    assert config.lock_file == tmp_path / 'data' / 'engine.lock'
    assert config.storage.block_list_file == "blocklist.json"
    assert config.monitor.tick_interval_seconds == 3.0
    assert config.monitor.enforce_allow_list is False
    assert config.session.launch_delay_seconds == 1.0
    assert config.session.history_limit == 50
    assert config.session.timezone == 'UTC'
    assert config.log_level is LogLevel.INFO


def test_environment_overrides(tmp_path):
    config = make_config(
        tmp_path,
        TERMINATE_GRACE='0.5',
        ENFORCE_ALLOW_LIST='yes',
        EXTRA_SYSTEM_PROCESSES='BackupAgent, ,vpnclient',
        HISTORY_LIMIT='10',
        TIMEZONE='Europe/Berlin',
        LOG_LEVEL='DEBUG',
        ENV='production',
    )

    assert config.monitor.terminate_grace_seconds == 0.5
    assert config.monitor.enforce_allow_list is True
    assert config.monitor.extra_system_processes == frozenset({'backupagent', 'vpnclient'})
    assert config.session.history_limit == 10
    assert config.session.timezone == 'Europe/Berlin'
    assert config.log_level is LogLevel.DEBUG
    assert not config.is_development()


@pytest.mark.parametrize("key, value", [
    ('TERMINATE_GRACE', 'fast'),
    ('TERMINATE_GRACE', '-1'),
    ('LAUNCH_DELAY', '-1'),
    ('HISTORY_LIMIT', '2.5'),
    ('TIMEZONE', 'Mars/Olympus_Mons'),
    ('LOG_LEVEL', 'LOUD'),
    ('ENV', 'staging'),
])
def test_invalid_values_raise_config_error(tmp_path, key, value):
    with pytest.raises(ConfigError):
        make_config(tmp_path, **{key: value})


def test_validation_reports_every_problem(tmp_path):
    with pytest.raises(ConfigError) as excinfo:
        make_config(tmp_path, TERMINATE_GRACE='-1', LAUNCH_DELAY='-1')

    assert 'TERMINATE_GRACE' in str(excinfo.value)
    assert 'LAUNCH_DELAY' in str(excinfo.value)


def test_ensure_directories(tmp_path):
    config = make_config(tmp_path, LOG_TO_FILE='false')
    config.ensure_directories()

    assert config.data_dir.is_dir()
    assert config.backup_dir.is_dir()
    assert not config.log_dir.exists()


def test_logging_config_console_only(tmp_path):
    logging_config = make_config(tmp_path, LOG_TO_FILE='false').get_logging_config()

    assert set(logging_config['handlers']) == {'console'}
    assert logging_config['loggers']['apscheduler']['level'] == 'WARNING'


def test_logging_config_with_rotating_file(tmp_path):
    logging_config = make_config(tmp_path, ENV='testing').get_logging_config()

    file_handler = logging_config['handlers']['file']
    assert file_handler['class'] == 'logging.handlers.RotatingFileHandler'
    assert file_handler['filename'].endswith('lockedin_testing.log')
    assert logging_config['loggers']['']['handlers'] == ['console', 'file']


def test_to_dict(tmp_path):
    data = make_config(tmp_path).to_dict()
    assert data['environment'] == 'development'
    assert data['monitor']['tick_interval_seconds'] == 3.0


def test_tick_interval_is_fixed(tmp_path):
    config = make_config(tmp_path, TICK_INTERVAL='0.5')
    assert config.monitor.tick_interval_seconds == 3.0

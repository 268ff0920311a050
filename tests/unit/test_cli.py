"""Unit tests for the command line interface."""

import pytest
import yaml
from click.testing import CliRunner

from agrosync import cli as cli_module
from agrosync.core.connectivity import HttpProbeSignal


@pytest.fixture
def logging_calls(monkeypatch):
    calls = []
    monkeypatch.setattr(cli_module, 'setup_logging', lambda level, file_path: calls.append(level))
    for name in ("LOG_LEVEL", "DATABASE_URL", "REMOTE_URL", "AGROSYNC_CONFIG"):
        monkeypatch.delenv(name, raising=False)
    return calls


def _write_config(tmp_path, **sections):
    config = {'database': {'url': f"sqlite+aiosqlite:///{tmp_path / 'agrosync.db'}"}}
    config.update(sections)
    path = tmp_path / 'agrosync.yaml'
    path.write_text(yaml.safe_dump(config))
    return str(path)


def test_configured_log_level_is_used(tmp_path, logging_calls):
    config_path = _write_config(tmp_path, logging={'level': 'ERROR'})

    result = CliRunner().invoke(cli_module.cli, ['--config', config_path, 'queue'])

    assert result.exit_code == 0, result.output
    assert "Queue is empty" in result.output
    assert logging_calls == ['ERROR']


def test_log_level_option_overrides_config(tmp_path, logging_calls):
    config_path = _write_config(tmp_path, logging={'level': 'ERROR'})

    CliRunner().invoke(cli_module.cli, ['--config', config_path, '--log-level', 'DEBUG', 'queue'])

    assert logging_calls == ['DEBUG']


def test_log_level_defaults_to_info(tmp_path, logging_calls):
    config_path = _write_config(tmp_path)

    CliRunner().invoke(cli_module.cli, ['--config', config_path, 'queue'])

    assert logging_calls == ['INFO']


def test_sync_in_reachability_mode_checks_before_pushing(tmp_path, logging_calls, monkeypatch):
    checks = []

    async def reachable(self):
        checks.append(self.probe_url)
        return True

    monkeypatch.setattr(HttpProbeSignal, 'probe', reachable)
    config_path = _write_config(tmp_path, connectivity={
        'mode': 'probe', 'probe_url': 'https://probe.test/health', 'initially_online': False,
    })

    runner = CliRunner()
    sync_result = runner.invoke(cli_module.cli, ['--config', config_path, 'sync'])
    status_result = runner.invoke(cli_module.cli, ['--config', config_path, 'status'])

    assert sync_result.exit_code == 0, sync_result.output
    assert "Sync skipped" not in sync_result.output
    assert "Synced 0 changes, 0 errors, 0 pending" in sync_result.output
    assert "Online:         yes" in status_result.output
    assert checks == ['https://probe.test/health'] * 2

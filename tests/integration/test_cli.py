"""
Integration tests for the mtl command line interface.
"""

import json
import logging
import os

import pytest
import yaml
from click.testing import CliRunner

from cli.main import cli
from cli.context import CLIContext


SCENARIO = """
ledger:
  admin: admin
contracts:
  vault: accept
  trap: {behavior: reject, reason: "not today"}
steps:
  - {op: mint, caller: admin, account: alice, token_id: 7, amount: 100,
     public_uri: pub, private_uri: priv}
  - {op: safeTransferFrom, caller: alice, from: alice, to: vault, token_id: 7, amount: 5}
  - {op: safeTransferFrom, caller: alice, from: alice, to: trap, token_id: 7, amount: 5}
  - {op: unlock, caller: admin, token_id: 7, creators: [alice]}
  - {op: balanceOf, account: vault, token_id: 7}
"""


@pytest.fixture
def runner(tmp_path, monkeypatch):
    """CliRunner working in an empty directory with no user config."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    for key in list(os.environ):
        if key.startswith("MTL_"):
            monkeypatch.delenv(key)
    yield CliRunner()
    # Handlers installed by the CLI point at streams the runner has closed
    for name in ("mtl-cli", "ledger"):
        logging.getLogger(name).handlers = []


@pytest.fixture
def scenario_file(tmp_path):
    path = tmp_path / "scenario.yml"
    path.write_text(SCENARIO)
    return str(path)


def invoke(runner, args):
    return runner.invoke(cli, args, obj=CLIContext())


class TestRunCommand:
    """Test scenario replay."""
    
    def test_run_json(self, runner, scenario_file):
        result = invoke(runner, ['-o', 'json', 'run', scenario_file, '--balances'])
        
        assert result.exit_code == 0, result.output
        report = json.loads(result.stdout)
        assert [step['status'] for step in report['steps']] == ['ok', 'ok', 'failed', 'ok', 'ok']
        assert report['steps'][2]['error_type'] == 'ReceiverRejected'
        assert report['steps'][4]['result'] == 5
        assert report['failed_steps'] == 1
        assert [event['event'] for event in report['events']] == [
            'TransferSinglePublic', 'TransferSinglePublic', 'Unlocked'
        ]
        assert {'token_id': 7, 'account': 'vault', 'balance': 5} in report['balances']
    
    def test_run_table(self, runner, scenario_file):
        result = invoke(runner, ['run', scenario_file])
        
        assert result.exit_code == 0, result.output
        assert "Events:" in result.output
        assert "Unlocked(('alice',), 7, 'pub', 'priv')" in result.output
        assert "5 step(s), 1 failed" in result.output
        assert "Balances:" not in result.output
    
    def test_run_yaml_without_events(self, runner, scenario_file):
        result = invoke(runner, ['-o', 'yaml', 'run', scenario_file, '--no-events'])
        
        report = yaml.safe_load(result.stdout)
        assert 'events' not in report
        assert 'balances' not in report
    
    def test_stop_on_error_exit_status(self, runner, scenario_file):
        result = invoke(runner, ['-o', 'json', 'run', scenario_file, '--stop-on-error'])
        
        assert result.exit_code == 1
        report = json.loads(result.stdout)
        assert report['aborted'] is True
        assert len(report['steps']) == 3
    
    def test_strict_profile_stops_on_error(self, runner, scenario_file):
        result = invoke(runner, ['-p', 'strict', '-o', 'json', 'run', scenario_file])
        
        assert result.exit_code == 1
    
    def test_admin_required(self, runner, tmp_path):
        path = tmp_path / "noadmin.yml"
        path.write_text("steps:\n  - {op: getAdmin}\n")
        
        result = invoke(runner, ['run', str(path)])
        
        assert result.exit_code == 2
        assert "No ledger admin configured" in result.output
    
    def test_admin_option(self, runner, tmp_path):
        path = tmp_path / "noadmin.yml"
        path.write_text("steps:\n  - {op: getAdmin}\n")
        
        result = invoke(runner, ['-o', 'json', 'run', str(path), '--admin', '0xBoss'])
        
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)['steps'][0]['result'] == '0xboss'
    
    def test_malformed_step(self, runner, tmp_path):
        path = tmp_path / "bad.yml"
        path.write_text("ledger: {admin: admin}\nsteps:\n  - {op: teleport}\n")
        
        result = invoke(runner, ['run', str(path)])
        
        assert result.exit_code == 1
        assert "Unknown operation: teleport" in result.output


class TestConfigCommands:
    """Test configuration commands."""
    
    def test_init_then_validate_and_show(self, runner):
        result = invoke(runner, ['config', 'init', '--admin', 'boss', '--profile', 'strict'])
        assert result.exit_code == 0, result.output
        assert os.path.exists('.mtl.yml')
        
        result = invoke(runner, ['config', 'validate'])
        assert result.exit_code == 0
        assert "Configuration is valid." in result.output
        
        result = invoke(runner, ['-o', 'json', 'config', 'show'])
        config = json.loads(result.stdout)
        assert config['ledger']['admin'] == 'boss'
        assert config['ledger']['issuance_policy'] == 'admin'
    
    def test_init_refuses_overwrite(self, runner):
        invoke(runner, ['config', 'init', '--admin', 'boss'])
        
        result = invoke(runner, ['config', 'init', '--admin', 'other'])
        
        assert result.exit_code == 1
        assert "already exists" in result.output
    
    def test_init_json_format(self, runner):
        result = invoke(runner, ['config', 'init', '--format', 'json', '--admin', 'boss'])
        
        assert result.exit_code == 0
        with open('.mtl.json') as f:
            assert json.load(f)['ledger']['admin'] == 'boss'
    
    def test_validate_without_admin(self, runner):
        result = invoke(runner, ['config', 'validate'])
        
        assert result.exit_code == 1
        assert "ledger.admin is required" in result.output
    
    def test_show_sources(self, runner, monkeypatch):
        monkeypatch.setenv('MTL_LEDGER_ADMIN', 'env-admin')
        
        result = invoke(runner, ['-p', 'development', 'config', 'show', '--sources'])
        
        assert result.exit_code == 0
        assert 'profile:development' in result.output
        assert 'environment' in result.output
    
    def test_missing_config_file(self, runner):
        result = invoke(runner, ['-c', 'nowhere.yml', 'config', 'show'])
        
        assert result.exit_code == 1
        assert "Config file not found" in result.output

#!/usr/bin/env python3
"""
Scenario Commands for the Ledger CLI

Replays scenario files against a fresh ledger and reports step outcomes,
committed events and final balances.
"""

from typing import Optional

import click
from pydantic import ValidationError

from cli.context import CLIContext, handle_cli_error, pass_context
from cli.scenario import ScenarioError, ScenarioRunner, load_scenario


@click.command('run')
@click.argument('scenario_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--stop-on-error/--keep-going', default=None,
              help='Abort at the first failing step (exit status 1)')
@click.option('--balances', 'show_balances', is_flag=True, help='Show final balances')
@click.option('--no-events', is_flag=True, help='Do not print the event log')
@click.option('--admin', help='Override the ledger admin account')
@pass_context
@handle_cli_error
def run_scenario(ctx: CLIContext, scenario_file: str, stop_on_error: Optional[bool],
                 show_balances: bool, no_events: bool, admin: Optional[str]):
    """
    Replay SCENARIO_FILE (YAML or JSON) against a fresh ledger.
    
    Examples:
        mtl run scenarios/unlock.yml
        mtl -o json run scenarios/batch.json --balances
    """
    if stop_on_error is None:
        stop_on_error = bool(ctx.get_config('cli.stop_on_error', False))
    
    try:
        scenario = load_scenario(scenario_file)
        overrides = dict(scenario.get('ledger') or {})
        if admin:
            overrides['admin'] = admin
        if 'admin' not in overrides and ctx.get_config('ledger.admin') is None:
            raise click.UsageError("No ledger admin configured; set ledger.admin or pass --admin")
        settings = ctx.config_manager.ledger_settings(overrides)
    except ScenarioError as e:
        raise click.ClickException(str(e))
    except ValidationError as e:
        raise click.ClickException(f"Invalid ledger settings: {e}")
    
    runner = ScenarioRunner(settings, stop_on_error=stop_on_error)
    try:
        report = runner.run(scenario)
    except ScenarioError as e:
        raise click.ClickException(str(e))
    
    formatter = ctx.formatter()
    
    if formatter.format_type in ('json', 'yaml'):
        data = report.to_dict()
        if no_events:
            data.pop('events')
        if not show_balances:
            data.pop('balances')
        click.echo(formatter.format(data))
    else:
        rows = [
            {
                'step': step.index,
                'op': step.op,
                'caller': step.caller,
                'status': formatter.status(step.status, step.ok),
                'result': step.result,
                'error': f"{step.error_type}: {step.error}" if step.error else None,
            }
            for step in report.steps
        ]
        click.echo(formatter.format(rows))
        
        if not no_events:
            click.echo("\nEvents:")
            for event in runner.ledger.events:
                click.echo(f"  {event.name}{event.args()}")
        
        if show_balances:
            click.echo("\nBalances:")
            click.echo(formatter.format(report.balances))
        
        click.echo(
            f"\n{len(report.steps)} step(s), {report.failed_steps} failed, "
            f"{len(report.events)} event(s) in {report.duration:.3f}s"
        )
    
    if report.aborted:
        ctx.logger.warning("Scenario aborted at first failing step")
        raise click.exceptions.Exit(1)

#!/usr/bin/env python3
"""
Configuration Management Commands for the Ledger CLI

Commands for showing, validating and initializing configuration files.
"""

from pathlib import Path
from typing import Optional

import click

from cli.config import PROFILES, save_config, starter_config
from cli.context import CLIContext, handle_cli_error, pass_context


@click.group()
@pass_context
def config(ctx: CLIContext):
    """
    Configuration management commands.
    
    Show the merged configuration, validate it, or write a starter file.
    """
    ctx.logger.debug("Config command group invoked")


@config.command('show')
@click.option('--sources', is_flag=True, help='List the sources that were merged')
@pass_context
@handle_cli_error
def show_config(ctx: CLIContext, sources: bool):
    """Show the merged configuration."""
    if sources:
        ctx.output(ctx.config_manager.get_sources())
        return
    
    data = ctx.config_manager.load()
    if ctx.output_format == 'table':
        # Flatten sections for the key/value table
        flat = {
            f"{section}.{key}": value
            for section, values in data.items()
            for key, value in values.items()
        }
        ctx.output(flat)
    else:
        ctx.output(data)


@config.command('validate')
@pass_context
@handle_cli_error
def validate_config(ctx: CLIContext):
    """Validate the merged configuration."""
    errors = ctx.config_manager.validate()
    if errors:
        for error in errors:
            click.echo(f"  - {error}", err=True)
        raise click.ClickException(f"Configuration has {len(errors)} error(s)")
    
    click.echo("Configuration is valid.")


@config.command('init')
@click.option('--profile', type=click.Choice(sorted(PROFILES)), help='Profile to base the file on')
@click.option('--admin', help='Admin account for new ledgers')
@click.option('--output', type=click.Path(), help='Output file path')
@click.option('--format', 'file_format', type=click.Choice(['yaml', 'json']), default='yaml',
              help='Configuration file format')
@click.option('--force', is_flag=True, help='Overwrite existing configuration')
@pass_context
@handle_cli_error
def init_config(ctx: CLIContext, profile: Optional[str], admin: Optional[str],
                output: Optional[str], file_format: str, force: bool):
    """Write a starter configuration file."""
    if not output:
        output = '.mtl.yml' if file_format == 'yaml' else '.mtl.json'
    
    if Path(output).exists() and not force:
        raise click.ClickException(f"Configuration file already exists: {output}. Use --force to overwrite.")
    
    data = starter_config(profile, admin)
    path = save_config(data, output, format=file_format)
    click.echo(f"Configuration file created: {path}")

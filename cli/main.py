#!/usr/bin/env python3
"""
Multi-Token Ledger - Command Line Interface

Replays ledger scenarios and manages ledger/CLI configuration.
"""

import sys
from typing import Optional

import click

from cli import __version__
from cli.commands.config import config
from cli.commands.scenario import run_scenario
from cli.config import ConfigurationError, PROFILES
from cli.context import CLIContext, pass_context


@click.group(context_settings={'help_option_names': ['-h', '--help']})
@click.option('--config-file', '-c',
              type=click.Path(dir_okay=False),
              help='Path to configuration file')
@click.option('--profile', '-p',
              type=click.Choice(sorted(PROFILES)),
              help='Configuration profile')
@click.option('--output-format', '-o',
              type=click.Choice(['table', 'json', 'yaml']),
              default=None,
              help='Output format')
@click.option('--verbose', '-v',
              count=True,
              help='Increase verbosity (-v for INFO, -vv for DEBUG)')
@click.version_option(__version__, prog_name='mtl')
@pass_context
def cli(ctx: CLIContext, config_file: Optional[str], profile: Optional[str],
        output_format: Optional[str], verbose: int):
    """
    Multi-Token Ledger (mtl) Command Line Interface
    
    Examples:
        mtl run scenario.yml
        mtl -p development -o json run scenario.yml --balances
        mtl config init --admin 0xabc...
    """
    ctx.config_file = config_file
    ctx.profile = profile
    ctx.output_format = output_format
    ctx.verbose = verbose
    
    try:
        ctx.load_config()
    except ConfigurationError as e:
        raise click.ClickException(str(e))
    
    ctx.setup_logging()
    ctx.logger.debug("CLI initialized with context")


cli.add_command(run_scenario)
cli.add_command(config)


def main():
    """Console script entry point."""
    cli(obj=CLIContext())


if __name__ == '__main__':
    sys.exit(main())

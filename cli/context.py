#!/usr/bin/env python3
"""
Shared CLI context, logging setup and error handling for the Ledger CLI.
"""

import logging
import sys
import traceback
from functools import wraps
from typing import Any, Optional

import click

from cli.config import ConfigurationManager
from cli.output import OutputFormatter


class CLIContext:
    """Global CLI context for sharing state across commands."""
    
    def __init__(self):
        self.config_file: Optional[str] = None
        self.profile: Optional[str] = None
        self.output_format: Optional[str] = None
        self.verbose: int = 0
        self.config_manager: Optional[ConfigurationManager] = None
        self.logger: logging.Logger = logging.getLogger('mtl-cli')
    
    def setup_logging(self):
        """Configure logging based on verbosity level."""
        log_levels = {
            0: logging.WARNING,
            1: logging.INFO,
            2: logging.DEBUG
        }
        
        level = log_levels.get(min(self.verbose, 2), logging.DEBUG)
        
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(formatter)
        
        # Ledger library loggers share the CLI verbosity
        for name in ('mtl-cli', 'ledger'):
            logger = logging.getLogger(name)
            logger.setLevel(level)
            logger.handlers = [handler]
    
    def load_config(self):
        """Create the configuration manager for this invocation."""
        self.config_manager = ConfigurationManager(self.config_file, self.profile)
        config = self.config_manager.load()
        
        if self.output_format is None:
            self.output_format = config.get('cli', {}).get('output_format', 'table')
        if not self.verbose:
            self.verbose = int(config.get('cli', {}).get('verbose', 0))
        
        self.logger.debug(f"Configuration sources: {self.config_manager.get_sources()}")
    
    def get_config(self, key_path: str, default: Any = None) -> Any:
        return self.config_manager.get(key_path, default)
    
    def formatter(self) -> OutputFormatter:
        return OutputFormatter(
            self.output_format or 'table',
            color_output=bool(self.get_config('cli.color_output', True))
        )
    
    def output(self, data: Any, format_override: Optional[str] = None):
        """Output data in the selected format."""
        formatter = self.formatter()
        if format_override:
            formatter.format_type = format_override
        click.echo(formatter.format(data))


pass_context = click.make_pass_decorator(CLIContext, ensure=True)


def handle_cli_error(func):
    """Decorator turning unexpected errors into a clean exit with status 1."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (click.ClickException, click.exceptions.Exit, click.Abort):
            raise
        except KeyboardInterrupt:
            click.echo("\nOperation cancelled by user.", err=True)
            sys.exit(130)
        except Exception as e:
            ctx = click.get_current_context(silent=True)
            cli_ctx = ctx.find_object(CLIContext) if ctx else None
            
            click.echo(f"Error: {e}", err=True)
            if cli_ctx and cli_ctx.verbose >= 2:
                click.echo(traceback.format_exc(), err=True)
            else:
                click.echo("Use -vv for detailed error information.", err=True)
            
            sys.exit(1)
    
    return wrapper

#!/usr/bin/env python3
"""
Output Formatting Module for the Ledger CLI

Formats step results, event logs and balances as tables, JSON or YAML.
"""

import json
import sys
from pathlib import Path
from typing import Any, List, Optional

import yaml
from tabulate import tabulate


class OutputFormatter:
    """Universal output formatter for CLI results."""
    
    def __init__(self, format_type: str = 'table', color_output: bool = True):
        """
        Initialize output formatter.
        
        Args:
            format_type: Output format (table, json, yaml)
            color_output: Enable colored output (only when stdout is a terminal)
        """
        self.format_type = format_type
        self.color_output = color_output and sys.stdout.isatty()
    
    def format(self, data: Any, headers: Optional[List[str]] = None) -> str:
        """Format data according to the configured format type."""
        if self.format_type == 'json':
            return self.format_json(data)
        elif self.format_type == 'yaml':
            return self.format_yaml(data)
        else:
            return self.format_table(data, headers)
    
    def format_json(self, data: Any) -> str:
        return json.dumps(data, indent=2, default=self._json_encoder)
    
    def format_yaml(self, data: Any) -> str:
        return yaml.safe_dump(self._plain(data), default_flow_style=False, sort_keys=False)
    
    def format_table(self, data: Any, headers: Optional[List[str]] = None) -> str:
        """Format data as a table."""
        if isinstance(data, dict):
            table_data = [[self._colorize(str(k), 'key'), self._format_value(v)] for k, v in data.items()]
            return tabulate(table_data, tablefmt='plain')
        elif isinstance(data, list):
            if not data:
                return "No data available"
            if isinstance(data[0], dict):
                if headers is None:
                    headers = list(data[0].keys())
                rows = [[self._format_value(item.get(h, '')) for h in headers] for item in data]
                colored_headers = [self._colorize(h, 'header') for h in headers]
                return tabulate(rows, headers=colored_headers, tablefmt='simple')
            return '\n'.join(str(item) for item in data)
        return str(data)
    
    def _format_value(self, value: Any) -> str:
        """Format individual value for display."""
        if value is None:
            return self._colorize('-', 'null')
        elif isinstance(value, bool):
            return self._colorize('true' if value else 'false', 'bool')
        elif isinstance(value, int):
            # Large ids stay readable in hex
            return str(value) if value < 10 ** 12 else hex(value)
        elif isinstance(value, (list, tuple)):
            return ', '.join(self._format_value(v) for v in value)
        elif isinstance(value, dict):
            return ' '.join(f"{k}={self._format_value(v)}" for k, v in value.items())
        else:
            val_str = str(value)
            if len(val_str) > 50:
                val_str = val_str[:47] + '...'
            return val_str
    
    def status(self, text: str, ok: bool) -> str:
        return self._colorize(text, 'success' if ok else 'error')
    
    def _colorize(self, text: str, color_type: str) -> str:
        """Add color to text if color output is enabled."""
        if not self.color_output:
            return text
        
        colors = {
            'header': '\033[1;34m',
            'key': '\033[1;36m',
            'bool': '\033[35m',
            'null': '\033[90m',
            'error': '\033[1;31m',
            'success': '\033[1;32m',
            'reset': '\033[0m'
        }
        
        color = colors.get(color_type, '')
        return f"{color}{text}{colors['reset']}" if color else text
    
    def _plain(self, data: Any) -> Any:
        """Reduce data to YAML-safe builtin types."""
        return json.loads(self.format_json(data))
    
    def _json_encoder(self, obj):
        """Custom JSON encoder for special types."""
        if isinstance(obj, bytes):
            return '0x' + obj.hex()
        elif isinstance(obj, Path):
            return str(obj)
        elif hasattr(obj, 'model_dump'):
            return obj.model_dump(mode='json')
        else:
            return str(obj)


def format_output(data: Any, format_type: str = 'table', headers: Optional[List[str]] = None) -> str:
    """Convenience function to format data."""
    return OutputFormatter(format_type, color_output=False).format(data, headers)

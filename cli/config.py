#!/usr/bin/env python3
"""
Configuration Management Module for the Ledger CLI

Handles hierarchical configuration loading, environment variable mapping,
validation and saving of ledger and CLI settings.
"""

import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import ValidationError

from ledger.accounts import is_null
from ledger.schema import IssuancePolicy, LedgerSettings

# Environment variable prefix
ENV_PREFIX = 'MTL_'

OUTPUT_FORMATS = ['table', 'json', 'yaml']

# Default configuration values
DEFAULT_CONFIG = {
    'ledger': {
        'admin': None,
        'contract_uri': '',
        'issuance_policy': IssuancePolicy.OPEN.value,
        'reentrancy_guard': False,
    },
    'cli': {
        'output_format': 'table',
        'verbose': 0,
        'color_output': True,
        'stop_on_error': False,
    },
}

# Configuration profiles
PROFILES = {
    'development': {
        'ledger': {'admin': 'admin', 'contract_uri': 'https://localhost/metadata/{id}.json'},
        'cli': {'verbose': 1},
    },
    'strict': {
        'ledger': {'issuance_policy': IssuancePolicy.ADMIN.value, 'reentrancy_guard': True},
        'cli': {'stop_on_error': True},
    },
}


class AccountSafeLoader(yaml.SafeLoader):
    """SafeLoader that reads only decimal integers, so 0x accounts stay strings."""


AccountSafeLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != 'tag:yaml.org,2002:int']
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
AccountSafeLoader.add_implicit_resolver(
    'tag:yaml.org,2002:int',
    re.compile(r'^[-+]?(?:0|[1-9][0-9_]*)$'),
    list('-+0123456789'),
)


def load_yaml(stream) -> Any:
    """Parse YAML the way config and scenario files expect it."""
    return yaml.load(stream, Loader=AccountSafeLoader)


def config_search_paths() -> List[Path]:
    """Configuration file locations in order of precedence (highest to lowest)."""
    return [
        Path.cwd() / '.mtl.yml',
        Path.cwd() / '.mtl.json',
        Path.home() / '.mtl' / 'config.yml',
        Path.home() / '.mtl' / 'config.json',
        Path('/etc/mtl/config.yml'),
    ]


class ConfigurationError(Exception):
    """Raised when a configuration file cannot be read."""
    pass


class ConfigurationManager:
    """Manages hierarchical configuration with environment variable support."""
    
    def __init__(self, config_file: Optional[str] = None, profile: Optional[str] = None):
        """
        Initialize configuration manager.
        
        Args:
            config_file: Explicit configuration file path
            profile: Configuration profile to load (development, strict)
        """
        self.logger = logging.getLogger('mtl-cli.config')
        self.config_file = config_file
        self.profile = profile
        self._config_cache = None
        self._config_sources = []
    
    def load(self) -> Dict[str, Any]:
        """
        Load configuration from all sources in hierarchical order.
        
        Returns:
            Merged configuration dictionary
        """
        if self._config_cache is not None:
            return self._config_cache
        
        configs = [DEFAULT_CONFIG]
        self._config_sources = ["defaults"]
        
        if self.profile:
            if self.profile not in PROFILES:
                raise ConfigurationError(f"Unknown profile: {self.profile}")
            configs.append(PROFILES[self.profile])
            self._config_sources.append(f"profile:{self.profile}")
            self.logger.debug(f"Applied profile: {self.profile}")
        
        if self.config_file:
            configs.append(self._load_config_file(Path(self.config_file)))
            self._config_sources.append(f"file:{self.config_file}")
        else:
            for config_path in config_search_paths():
                if config_path.exists():
                    configs.append(self._load_config_file(config_path))
                    self._config_sources.append(f"file:{config_path}")
                    self.logger.debug(f"Loaded config from {config_path}")
                    break  # Use first found config file
        
        env_config = self._load_environment_variables()
        if env_config:
            configs.append(env_config)
            self._config_sources.append("environment")
        
        self._config_cache = self._deep_merge(*configs)
        return self._config_cache
    
    def _load_config_file(self, path: Path) -> Dict[str, Any]:
        """Load configuration from file."""
        if not path.exists():
            raise ConfigurationError(f"Config file not found: {path}")
        
        try:
            with open(path, 'r') as f:
                if path.suffix in ['.yml', '.yaml']:
                    data = load_yaml(f)
                elif path.suffix == '.json':
                    data = json.load(f)
                else:
                    raise ConfigurationError(f"Unknown config file format: {path}")
        except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Failed to load config from {path}: {e}") from e
        
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {path} must contain a mapping")
        return data
    
    def _load_environment_variables(self) -> Dict[str, Any]:
        """Load configuration from environment variables."""
        env_config = {}
        
        for key, value in os.environ.items():
            if not key.startswith(ENV_PREFIX):
                continue
            
            # MTL_LEDGER_CONTRACT_URI -> {'ledger': {'contract_uri': value}}
            section, _, option = key[len(ENV_PREFIX):].lower().partition('_')
            if not option:
                continue
            env_config.setdefault(section, {})[option] = self._parse_env_value(value)
        
        return env_config
    
    def _parse_env_value(self, value: str) -> Union[str, int, float, bool]:
        """Parse environment variable value to appropriate type."""
        if value.lower() in ['true', 'yes']:
            return True
        elif value.lower() in ['false', 'no']:
            return False
        
        try:
            if '.' in value:
                return float(value)
            else:
                return int(value)
        except ValueError:
            pass
        
        return value
    
    def _deep_merge(self, *dicts: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge multiple dictionaries."""
        result = {}
        
        for dictionary in dicts:
            for key, value in dictionary.items():
                if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                    result[key] = self._deep_merge(result[key], value)
                elif isinstance(value, dict):
                    result[key] = self._deep_merge(value)
                else:
                    result[key] = value
        
        return result
    
    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get configuration value by dot-notation path.
        
        Args:
            key_path: Dot-separated path (e.g., 'ledger.admin')
            default: Default value if key not found
        """
        current = self.load()
        
        for key in key_path.split('.'):
            if isinstance(current, dict) and key in current:
                current = current[key]
            else:
                return default
        
        return current
    
    def set(self, key_path: str, value: Any):
        """Set configuration value by dot-notation path."""
        config = self.load()
        
        keys = key_path.split('.')
        current = config
        for key in keys[:-1]:
            current = current.setdefault(key, {})
        
        current[keys[-1]] = value
    
    def validate(self) -> List[str]:
        """
        Validate current configuration.
        
        Returns:
            List of validation errors (empty if valid)
        """
        config = self.load()
        errors = []
        
        ledger_config = config.get('ledger', {})
        admin = ledger_config.get('admin')
        if admin is None or is_null(str(admin)):
            errors.append("ledger.admin is required and must not be the null identity")
        else:
            try:
                LedgerSettings(**ledger_config)
            except ValidationError as e:
                for error in e.errors():
                    location = '.'.join(str(part) for part in error['loc'])
                    errors.append(f"ledger.{location}: {error['msg']}")
        
        output_format = config.get('cli', {}).get('output_format')
        if output_format not in OUTPUT_FORMATS:
            errors.append(f"Invalid output format: {output_format}")
        
        return errors
    
    def ledger_settings(self, overrides: Optional[Dict[str, Any]] = None) -> LedgerSettings:
        """Build ledger settings from the merged configuration."""
        ledger_config = self._deep_merge(self.get('ledger', {}), overrides or {})
        return LedgerSettings(**ledger_config)
    
    def get_sources(self) -> List[str]:
        """Get list of configuration sources that were loaded."""
        self.load()
        return self._config_sources
    
    def reset(self):
        """Reset configuration cache."""
        self._config_cache = None
        self._config_sources = []


def starter_config(profile: Optional[str] = None, admin: Optional[str] = None) -> Dict[str, Any]:
    """Defaults merged with a profile, ignoring files and environment."""
    manager = ConfigurationManager()
    config = manager._deep_merge(DEFAULT_CONFIG, PROFILES.get(profile, {}) if profile else {})
    if admin:
        config['ledger']['admin'] = admin
    return config


def save_config(config: Dict[str, Any], path: Optional[Union[str, Path]] = None,
                format: str = 'yaml') -> Path:
    """
    Write a configuration dictionary to file.
    
    Args:
        config: Configuration to write
        path: File path (default: project config file in the working directory)
        format: Output format ('yaml' or 'json')
    """
    if not path:
        path = Path.cwd() / ('.mtl.yml' if format == 'yaml' else '.mtl.json')
    
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    
    with open(path, 'w') as f:
        if format == 'yaml':
            yaml.safe_dump(config, f, default_flow_style=False, sort_keys=False)
        else:
            json.dump(config, f, indent=2)
    
    return path

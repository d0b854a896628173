"""
Configuration Management

Handles loading and validating the YAML configuration of the pre-upgrade checks.
"""

import logging
import yaml
from pathlib import Path
from typing import Dict, Any

from .exceptions import ConfigurationError
from .constants import FissionConstants, RetryConstants
from .utils import validate_namespace, validate_cluster_url

logger = logging.getLogger(__name__)


class ConfigManager:
    """Manages configuration loading and validation"""
    
    # Configuration schema - defines expected structure and types
    CONFIG_SCHEMA = {
        'namespaces': {
            'type': dict,
            'required': False,
            'fields': {
                'function_pod': {'type': str, 'required': False, 'validator': validate_namespace},
                'builder': {'type': str, 'required': False, 'validator': validate_namespace}
            }
        },
        'cluster': {
            'type': dict,
            'required': False,
            'fields': {
                'url': {'type': str, 'required': False, 'validator': validate_cluster_url},
                'token': {'type': str, 'required': False},
                'skip_tls': {'type': bool, 'required': False}
            }
        },
        'global': {
            'type': dict,
            'required': False,
            'fields': {
                'debug': {'type': bool, 'required': False},
                'max_retries': {'type': int, 'required': False, 'min': 1}
            }
        },
    }
    
    def __init__(self):
        """Initialize configuration manager"""
        self.config_data = {}
    
    def load_config(self, config_path: str) -> Dict[str, Any]:
        """
        Load configuration from YAML file
        
        Args:
            config_path: Path to configuration file
            
        Returns:
            Dict containing configuration data
            
        Raises:
            ConfigurationError: If configuration file cannot be loaded or is invalid
        """
        config_file = Path(config_path)
        
        if not config_file.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")
        
        if not config_file.is_file():
            raise ConfigurationError(f"Configuration path is not a file: {config_path}")
        
        try:
            with open(config_file, 'r') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in configuration file {config_path}: {e}")
        except OSError as e:
            raise ConfigurationError(f"Failed to load configuration from {config_path}: {e}")
        
        self.load_dict(data if data is not None else {})
        logger.info(f"Successfully loaded configuration from {config_path}")
        
        return self.config_data
    
    def load_dict(self, data: Any) -> Dict[str, Any]:
        """
        Validate and adopt an already parsed configuration mapping
        
        Args:
            data: Parsed configuration
            
        Returns:
            Dict containing configuration data
            
        Raises:
            ConfigurationError: If configuration is invalid
        """
        if not isinstance(data, dict):
            raise ConfigurationError("Configuration must be a dictionary")
        
        self._validate_against_schema(data, self.CONFIG_SCHEMA, "")
        self.config_data = data
        return self.config_data
    
    def _validate_against_schema(self, data: Dict[str, Any], schema: Dict[str, Any], path: str = "") -> None:
        """
        Validate data against schema definition
        
        Args:
            data: Data to validate
            schema: Schema definition
            path: Current path for error reporting
            
        Raises:
            ConfigurationError: If data doesn't match schema
        """
        for key, field_schema in schema.items():
            current_path = f"{path}.{key}" if path else key
            
            if key not in data:
                if field_schema.get('required', False):
                    raise ConfigurationError(f"Required field {current_path} is missing")
                continue
            
            value = data[key]
            
            # Skip None values for optional fields
            if value is None and not field_schema.get('required', False):
                continue
            
            expected_type = field_schema['type']
            # bool is a subclass of int, but "max_retries: true" is not a number
            if not isinstance(value, expected_type) or (expected_type is int and isinstance(value, bool)):
                raise ConfigurationError(f"{current_path} must be a {expected_type.__name__}")
            
            if 'min' in field_schema and value < field_schema['min']:
                raise ConfigurationError(f"{current_path} must be at least {field_schema['min']}")
            
            if 'validator' in field_schema and value != "":
                field_schema['validator'](value)
            
            if expected_type == dict and 'fields' in field_schema:
                self._validate_against_schema(value, field_schema['fields'], current_path)
    
    def get_value(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by key
        
        Args:
            key: Configuration key (supports dot notation like 'namespaces.builder')
            default: Default value if key not found
            
        Returns:
            Configuration value or default
        """
        value = self.config_data
        
        try:
            for k in key.split('.'):
                value = value[k]
        except (KeyError, TypeError):
            return default
        
        return default if value is None else value
    
    def _dict_to_yaml_with_comments(self, data: Dict[str, Any], indent: int = 0) -> str:
        """
        Convert dictionary to YAML string preserving comments
        
        Args:
            data: Dictionary to convert
            indent: Current indentation level
            
        Returns:
            str: YAML string with comments
        """
        yaml_lines = []
        indent_str = "  " * indent
        
        for key, value in data.items():
            if key.startswith("#"):
                yaml_lines.append(f"{indent_str}{key}")
            elif isinstance(value, dict):
                yaml_lines.append(f"{indent_str}{key}:")
                yaml_lines.append(self._dict_to_yaml_with_comments(value, indent + 1))
            elif isinstance(value, str):
                yaml_lines.append(f'{indent_str}{key}: "{value}"')
            elif isinstance(value, bool):
                yaml_lines.append(f"{indent_str}{key}: {str(value).lower()}")
            else:
                yaml_lines.append(f"{indent_str}{key}: {value}")
        
        return "\n".join(yaml_lines)
    
    def get_config_template_content(self) -> str:
        """
        Generate configuration template content as string without file I/O
        
        Returns:
            str: YAML configuration template content
        """
        template = {
            "# Fission pre-upgrade checks configuration": None,
            "# Command line flags take precedence over values in this file": None,
            "namespaces": {
                "function_pod": FissionConstants.DEFAULT_FUNCTION_NAMESPACE,
                "builder": FissionConstants.DEFAULT_BUILDER_NAMESPACE
            },
            "cluster": {
                "# Leave url and token empty to use kubeconfig or in-cluster config": None,
                "url": "",
                "token": "",
                "skip_tls": False
            },
            "global": {
                "debug": False,
                "max_retries": RetryConstants.MAX_RETRIES
            }
        }
        
        return self._dict_to_yaml_with_comments(template) + "\n"

"""
Core Libraries

Shared functionality and utilities for the pre-upgrade checks.
"""

from .auth import ClusterAuth
from .config import ConfigManager
from .exceptions import (PreUpgradeError, AuthenticationError, ConfigurationError,
                         FatalTaskError, FunctionReferenceError, RoleBindingError)
from .retry import Outcome, AttemptResult, attempt_once, retry_operation
from .utils import setup_logging, disable_ssl_warnings

__all__ = [
    'ClusterAuth',
    'ConfigManager',
    'PreUpgradeError',
    'AuthenticationError',
    'ConfigurationError',
    'FatalTaskError',
    'FunctionReferenceError',
    'RoleBindingError',
    'Outcome',
    'AttemptResult',
    'attempt_once',
    'retry_operation',
    'setup_logging',
    'disable_ssl_warnings'
]

"""
Fission Pre-Upgrade Library

Checks and RBAC migrations run against a cluster before upgrading fission.
"""

# Core libraries
from .core import ClusterAuth, ConfigManager
from .core.exceptions import PreUpgradeError, FatalTaskError, FunctionReferenceError

# Tasks
from .tasks import PreUpgradeTaskClient, PreUpgradePipeline

# Main application
from .main_app import PreUpgradeManager, main

__all__ = [
    # Core
    'ClusterAuth',
    'ConfigManager',
    'PreUpgradeError',
    'FatalTaskError',
    'FunctionReferenceError',
    # Tasks
    'PreUpgradeTaskClient',
    'PreUpgradePipeline',
    # Main
    'PreUpgradeManager',
    'main'
]

"""
Fission Pre-Upgrade Checks

Prepares a cluster for a fission upgrade: verifies that functions only reference
objects in their own namespace and replaces the cluster-admin grants of the
fission fetcher and builder service accounts with namespace-scoped role bindings.
"""

__version__ = "1.0.0"
__author__ = "Fission Project"

from .libs import PreUpgradeTaskClient, PreUpgradePipeline, PreUpgradeManager, main

__all__ = [
    'PreUpgradeTaskClient',
    'PreUpgradePipeline',
    'PreUpgradeManager',
    'main'
]

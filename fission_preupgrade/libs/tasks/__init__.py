"""
Pre-Upgrade Tasks

The tasks run against the cluster before a fission upgrade and the pipeline
that orders them.
"""

from .client import PreUpgradeTaskClient
from .models import FunctionObject, ObjectReference, ReferenceViolation, find_function_spec_violations
from .pipeline import PreUpgradePipeline, PipelineResult
from .role_bindings import delete_cluster_role_binding, setup_role_binding

__all__ = [
    'PreUpgradeTaskClient',
    'FunctionObject',
    'ObjectReference',
    'ReferenceViolation',
    'find_function_spec_violations',
    'PreUpgradePipeline',
    'PipelineResult',
    'delete_cluster_role_binding',
    'setup_role_binding'
]

"""
Pre-Upgrade Pipeline

Runs the pre-upgrade tasks in their required order.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, NamedTuple

from .client import PreUpgradeTaskClient

logger = logging.getLogger(__name__)


class PipelineStep(NamedTuple):
    """A named task of the pipeline"""
    name: str
    run: Callable[[], None]


@dataclass
class PipelineResult:
    """What a pipeline run did"""
    fresh_install: bool = False
    completed_steps: List[str] = field(default_factory=list)
    
    @property
    def skipped(self) -> bool:
        return self.fresh_install


class PreUpgradePipeline:
    """
    Ordered pre-upgrade pipeline.
    
    Nothing runs on a fresh install. Otherwise references are verified first,
    then the cluster-admin grants are revoked, then the namespace-scoped grants
    are created. A FatalTaskError from any step stops the pipeline and propagates.
    """
    
    def __init__(self, task_client: PreUpgradeTaskClient):
        self.task_client = task_client
        self.steps = (
            PipelineStep("verify-function-spec-references", task_client.verify_function_spec_references),
            PipelineStep("remove-cluster-admin-roles", task_client.remove_cluster_admin_roles_for_fission_sas),
            PipelineStep("setup-role-bindings", task_client.setup_role_bindings),
        )
    
    @property
    def step_names(self) -> List[str]:
        return [step.name for step in self.steps]
    
    def run(self) -> PipelineResult:
        """
        Run every step in order
        
        Returns:
            PipelineResult
            
        Raises:
            FatalTaskError: If a step fails
        """
        result = PipelineResult()
        
        if not self.task_client.is_fission_reinstall():
            logger.info("Nothing to do since fission CRDs are not present on the cluster")
            result.fresh_install = True
            return result
        
        for step in self.steps:
            logger.debug(f"Running pre-upgrade step {step.name}")
            step.run()
            result.completed_steps.append(step.name)
        
        logger.info("pre-upgrade checks completed")
        return result

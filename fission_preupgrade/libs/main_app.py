"""
Main Application

Command line entry point: resolves settings, builds the Kubernetes clients and
runs the pre-upgrade pipeline, turning fatal task errors into a failing exit code.
"""

import argparse
import logging
import sys
from typing import Any, Dict, List, Optional

from .core import ClusterAuth, ConfigManager, setup_logging
from .core.constants import FissionConstants, RetryConstants
from .core.exceptions import (AuthenticationError, ConfigurationError, FatalTaskError,
                              FunctionReferenceError)
from .core.utils import validate_namespace
from .tasks import PreUpgradePipeline, PreUpgradeTaskClient

logger = logging.getLogger(__name__)


class PreUpgradeManager:
    """Main application orchestrator for the pre-upgrade checks"""
    
    def __init__(self, auth_provider: Optional[ClusterAuth] = None,
                 config_provider: Optional[ConfigManager] = None):
        """
        Initialize with dependency injection
        
        Args:
            auth_provider: Authentication provider (defaults to ClusterAuth)
            config_provider: Configuration provider (defaults to ConfigManager)
        """
        self.auth = auth_provider
        self.config_manager = config_provider or ConfigManager()
    
    def resolve_settings(self, args: argparse.Namespace) -> Dict[str, Any]:
        """
        Merge command line arguments over configuration file values and defaults
        
        Args:
            args: Parsed command line arguments
            
        Returns:
            Dict of effective settings
            
        Raises:
            ConfigurationError: If the configuration file or a value is invalid
        """
        if args.config:
            self.config_manager.load_config(args.config)
        
        cfg = self.config_manager
        settings = {
            'fn_pod_namespace': args.fn_pod_namespace
                or cfg.get_value('namespaces.function_pod', FissionConstants.DEFAULT_FUNCTION_NAMESPACE),
            'builder_namespace': args.envbuilder_namespace
                or cfg.get_value('namespaces.builder', FissionConstants.DEFAULT_BUILDER_NAMESPACE),
            'cluster_url': args.cluster_url or cfg.get_value('cluster.url') or None,
            'cluster_token': args.cluster_token or cfg.get_value('cluster.token') or None,
            'skip_tls': args.skip_tls or cfg.get_value('cluster.skip_tls', False),
            'debug': args.debug or cfg.get_value('global.debug', False),
            'max_retries': args.max_retries
                if args.max_retries is not None
                else cfg.get_value('global.max_retries', RetryConstants.MAX_RETRIES),
        }
        
        validate_namespace(settings['fn_pod_namespace'])
        validate_namespace(settings['builder_namespace'])
        if settings['max_retries'] < 1:
            raise ConfigurationError("--max-retries must be at least 1")
        
        return settings
    
    def create_task_client(self, settings: Dict[str, Any]) -> PreUpgradeTaskClient:
        """
        Authenticate and build the task client
        
        Raises:
            AuthenticationError: If the Kubernetes client cannot be configured
        """
        if self.auth is None:
            self.auth = ClusterAuth(skip_tls=settings['skip_tls'])
        
        self.auth.configure_auth(settings['cluster_url'], settings['cluster_token'])
        apiextensions_api, custom_api, rbac_api = self.auth.get_kubernetes_clients()
        
        return PreUpgradeTaskClient(
            apiextensions_api,
            custom_api,
            rbac_api,
            fn_pod_namespace=settings['fn_pod_namespace'],
            builder_namespace=settings['builder_namespace'],
            max_retries=settings['max_retries'],
        )
    
    def run(self, args: argparse.Namespace) -> int:
        """
        Run the pre-upgrade checks
        
        Returns:
            int: Exit code (0 for success, 1 for error)
        """
        if args.generate_config:
            print(self.config_manager.get_config_template_content(), end="")
            return 0
        
        try:
            settings = self.resolve_settings(args)
        except ConfigurationError as e:
            setup_logging(args.debug)
            logger.error(f"Configuration error: {e}")
            return 1
        
        setup_logging(settings['debug'])
        logger.info(f"Running pre-upgrade checks (function namespace: {settings['fn_pod_namespace']}, "
                    f"builder namespace: {settings['builder_namespace']})")
        
        try:
            task_client = self.create_task_client(settings)
            PreUpgradePipeline(task_client).run()
        except (ConfigurationError, AuthenticationError) as e:
            logger.error(f"Failed to configure Kubernetes client: {e}")
            return 1
        except FatalTaskError as e:
            report_fatal_error(e)
            return 1
        
        return 0


def report_fatal_error(error: FatalTaskError) -> None:
    """Log a fatal task error with its context and every violation it carries"""
    logger.critical(error.message)
    for key, value in error.context.items():
        logger.critical(f"  {key}: {value}")
    if error.cause is not None:
        logger.critical(f"  error: {error.cause}")
    if isinstance(error, FunctionReferenceError):
        for violation in error.violations:
            logger.critical(f"  {violation}")


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the command line argument parser"""
    parser = argparse.ArgumentParser(
        prog="fission-preupgrade",
        description="Prepare a cluster for a fission upgrade: verify function references, "
                    "replace cluster-admin grants of fission service accounts with "
                    "namespace-scoped role bindings.",
    )
    parser.add_argument("--fn-pod-namespace", "--fn_pod_namespace", dest="fn_pod_namespace",
                        help=f"Namespace of function pods (default: {FissionConstants.DEFAULT_FUNCTION_NAMESPACE})")
    parser.add_argument("--envbuilder-namespace", "--envbuilder_namespace", dest="envbuilder_namespace",
                        help=f"Namespace of environment builders (default: {FissionConstants.DEFAULT_BUILDER_NAMESPACE})")
    parser.add_argument("--config", help="Path to a YAML configuration file")
    parser.add_argument("--cluster-url", help="Kubernetes API server URL (default: kubeconfig or in-cluster)")
    parser.add_argument("--cluster-token", help="Bearer token for --cluster-url")
    parser.add_argument("--skip-tls", action="store_true", help="Skip TLS certificate verification")
    parser.add_argument("--max-retries", type=int,
                        help=f"Attempts per remote call (default: {RetryConstants.MAX_RETRIES})")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--generate-config", action="store_true",
                        help="Print a configuration template and exit")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Application entry point.
    
    Returns:
        Exit code (0 for success, non-zero for error)
    """
    args = create_argument_parser().parse_args(argv)
    return PreUpgradeManager().run(args)


if __name__ == "__main__":
    sys.exit(main())

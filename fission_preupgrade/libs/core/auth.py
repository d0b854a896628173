"""
Authentication Module

Builds the Kubernetes API clients used by the pre-upgrade tasks from explicit
credentials, kubeconfig or the in-cluster service account.
"""

import logging
from typing import Optional, Tuple

from kubernetes import client, config
from kubernetes.config.config_exception import ConfigException

from .exceptions import AuthenticationError, ConfigurationError
from .utils import validate_cluster_url, handle_ssl_error, mask_sensitive_info, disable_ssl_warnings

logger = logging.getLogger(__name__)


class ClusterAuth:
    """Handles cluster authentication and API client construction"""
    
    def __init__(self, skip_tls: bool = False):
        """
        Initialize cluster authentication handler
        
        Args:
            skip_tls: Whether to skip TLS verification for requests
        """
        self.skip_tls = skip_tls
        self.cluster_url = None
        self.api_client: Optional[client.ApiClient] = None
        
    def configure_auth(self, cluster_url: str = None, cluster_token: str = None) -> bool:
        """
        Configure authentication with provided URL and token, or discover from context
        
        Args:
            cluster_url: Kubernetes API server URL (optional)
            cluster_token: Bearer token (optional)
            
        Returns:
            bool: True if authentication was configured successfully
            
        Raises:
            AuthenticationError: If authentication configuration fails
            ConfigurationError: If provided parameters are invalid
        """
        if bool(cluster_url) != bool(cluster_token):
            raise ConfigurationError("--cluster-url and --cluster-token must be provided together")
        
        if cluster_url and cluster_token:
            validate_cluster_url(cluster_url)
            logger.info("Using provided cluster URL and token for authentication")
            self.cluster_url = cluster_url
            return self._configure_with_token(cluster_token)
        
        return self._discover_from_context()
    
    def _configure_with_token(self, cluster_token: str) -> bool:
        """
        Configure Kubernetes client using URL and token
        
        Raises:
            AuthenticationError: If client configuration fails
        """
        try:
            configuration = client.Configuration()
            configuration.host = self.cluster_url
            configuration.api_key = {"authorization": cluster_token}
            configuration.api_key_prefix = {"authorization": "Bearer"}
            
            if self.skip_tls:
                configuration.verify_ssl = False
                configuration.ssl_ca_cert = None
                disable_ssl_warnings()
            
            self.api_client = client.ApiClient(configuration)
        except Exception as e:
            handle_ssl_error(e, AuthenticationError)
        
        masked_url = mask_sensitive_info(self.cluster_url, self.cluster_url)
        logger.info(f"Successfully configured Kubernetes client for {masked_url}")
        return True
    
    def _discover_from_context(self) -> bool:
        """
        Discover authentication from kubeconfig, falling back to in-cluster config
        
        Raises:
            AuthenticationError: If neither source can be loaded
        """
        try:
            config.load_kube_config()
            logger.info("Successfully loaded kubeconfig")
        except (ConfigException, OSError) as kubeconfig_error:
            logger.debug(f"Failed to load kubeconfig: {kubeconfig_error}")
            try:
                config.load_incluster_config()
                logger.info("Successfully loaded in-cluster config")
            except ConfigException as incluster_error:
                raise AuthenticationError(
                    f"Failed to load kubeconfig ({kubeconfig_error}) "
                    f"and in-cluster config ({incluster_error})"
                )
        
        # TLS settings must be in place before ApiClient builds its connection pool
        configuration = client.Configuration.get_default_copy()
        if self.skip_tls:
            configuration.verify_ssl = False
            configuration.ssl_ca_cert = None
            disable_ssl_warnings()
        
        self.api_client = client.ApiClient(configuration)
        self.cluster_url = configuration.host
        
        logger.debug(f"Using API server {mask_sensitive_info(self.cluster_url, self.cluster_url)}")
        return True
    
    def is_authenticated(self) -> bool:
        """
        Check if authentication is properly configured
        
        Returns:
            bool: True if authenticated
        """
        return self.api_client is not None
    
    def get_kubernetes_clients(self) -> Tuple[client.ApiextensionsV1Api, client.CustomObjectsApi,
                                              client.RbacAuthorizationV1Api]:
        """
        Get the API clients the pre-upgrade tasks operate on
        
        Returns:
            Tuple of (apiextensions_api, custom_api, rbac_api)
            
        Raises:
            AuthenticationError: If authentication has not been configured
        """
        if not self.is_authenticated():
            raise AuthenticationError("Not authenticated - no Kubernetes client available")
        
        return (
            client.ApiextensionsV1Api(self.api_client),
            client.CustomObjectsApi(self.api_client),
            client.RbacAuthorizationV1Api(self.api_client),
        )

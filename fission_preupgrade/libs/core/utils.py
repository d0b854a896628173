"""
Core Utilities

Common utility functions used across the pre-upgrade checks.
"""

import logging
import re
import urllib3
from typing import Type
from urllib.parse import urlparse

from .constants import ErrorMessages, KubernetesConstants
from .exceptions import AuthenticationError, ConfigurationError, PreUpgradeError


def setup_logging(debug: bool = False) -> None:
    """
    Set up logging configuration for the application.
    
    Args:
        debug: Enable debug logging level
    """
    level = logging.DEBUG if debug else logging.INFO
    
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    
    # Remove existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))
    root_logger.addHandler(console_handler)
    
    # Reduce noise from urllib3 when using insecure connections
    logging.getLogger('urllib3').setLevel(logging.WARNING)
    
    if debug:
        logging.getLogger(__name__).debug("Debug mode enabled")


def disable_ssl_warnings() -> None:
    """Disable SSL warnings when --skip-tls is used"""
    urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)


def mask_sensitive_info(text: str, url: str = None) -> str:
    """
    Mask cluster URLs and bearer tokens in text for logging.
    
    Args:
        text: Text to mask
        url: URL to mask (optional)
        
    Returns:
        Text with sensitive information masked
    """
    if not text:
        return text
    
    masked_text = text
    
    if url and url in masked_text:
        parsed = urlparse(url)
        if parsed.hostname:
            hostname_parts = parsed.hostname.split('.')
            if len(hostname_parts) >= 3:
                # api.cluster.example.com -> api.****.com
                masked_hostname = f"{hostname_parts[0][:3]}.****.{hostname_parts[-1]}"
            elif len(hostname_parts) == 2:
                masked_hostname = f"****.{hostname_parts[-1]}"
            else:
                masked_hostname = "****"
            masked_text = masked_text.replace(url, f"{parsed.scheme}://{masked_hostname}:***")
        else:
            masked_text = masked_text.replace(url, "https://****:***")
    
    masked_text = re.sub(r'Bearer [A-Za-z0-9+/=_.-]+', 'Bearer ***MASKED***', masked_text)
    
    return masked_text


def validate_namespace(namespace: str) -> bool:
    """
    Validate if the provided string is a valid Kubernetes namespace.
    
    Args:
        namespace: Kubernetes namespace to validate
        
    Returns:
        bool: True if valid namespace
        
    Raises:
        ConfigurationError: If namespace is invalid
    """
    if not namespace or not isinstance(namespace, str):
        raise ConfigurationError("Namespace cannot be empty")
    
    # Must be lowercase alphanumeric with hyphens, max 63 chars
    if not re.match(r'^[a-z0-9]([-a-z0-9]*[a-z0-9])?$', namespace):
        raise ConfigurationError(f"Invalid Kubernetes namespace format: {namespace}")
    
    if len(namespace) > KubernetesConstants.MAX_NAMESPACE_LENGTH:
        raise ConfigurationError(f"Namespace too long (max 63 chars): {namespace}")
    
    return True


def validate_cluster_url(url: str) -> bool:
    """
    Validate if the provided string is a valid Kubernetes API URL.
    
    Args:
        url: API server URL to validate
        
    Returns:
        bool: True if valid URL
        
    Raises:
        ConfigurationError: If URL is invalid
    """
    if not url or not isinstance(url, str):
        raise ConfigurationError("Cluster URL cannot be empty")
    
    if not re.match(r'^https?:\/\/[a-zA-Z0-9.-]+(?:\:[0-9]+)?(?:\/.*)?$', url):
        raise ConfigurationError(f"Invalid cluster URL format: {url}")
    
    return True


def handle_ssl_error(error: Exception, exception_class: Type[PreUpgradeError] = AuthenticationError) -> None:
    """
    Centralized SSL error handling with user-friendly messages
    
    Args:
        error: The caught exception
        exception_class: The specific exception class to raise
        
    Raises:
        PreUpgradeError: Appropriate error type with user-friendly message
    """
    error_str = str(error)
    
    if "certificate verify failed" in error_str or "CERTIFICATE_VERIFY_FAILED" in error_str:
        raise exception_class(ErrorMessages.SSL_CERT_VERIFICATION_FAILED)
    raise exception_class(f"Connection error: {error}")

"""
Retry Primitive

Bounded, immediate re-attempts of remote Kubernetes calls. Every attempt is
classified into an explicit outcome so callers decide how severe a failure is.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

import urllib3
from kubernetes.client.rest import ApiException

from .constants import RetryConstants

logger = logging.getLogger(__name__)

# Failures of a single remote call that are worth another attempt
REMOTE_ERRORS = (ApiException, urllib3.exceptions.HTTPError, OSError)


class Outcome(str, Enum):
    """Classification of a remote call attempt"""
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    ERROR = "error"
    
    def __str__(self) -> str:
        return self.value


@dataclass
class AttemptResult:
    """Final outcome of one or more attempts of a remote call"""
    outcome: Outcome
    value: Any = None
    error: Optional[BaseException] = None
    attempts: int = 0
    
    @property
    def succeeded(self) -> bool:
        return self.outcome is Outcome.SUCCESS
    
    @property
    def not_found(self) -> bool:
        return self.outcome is Outcome.NOT_FOUND
    
    @property
    def failed(self) -> bool:
        return self.outcome is Outcome.ERROR


def attempt_once(operation: Callable[[], Any]) -> AttemptResult:
    """
    Run a remote call once and classify the result.
    
    Args:
        operation: Zero-argument callable performing the remote call
        
    Returns:
        AttemptResult with SUCCESS and the returned value, NOT_FOUND for a 404
        response, or ERROR with the raised exception
    """
    try:
        value = operation()
    except ApiException as e:
        if e.status == RetryConstants.NOT_FOUND:
            return AttemptResult(Outcome.NOT_FOUND, error=e, attempts=1)
        return AttemptResult(Outcome.ERROR, error=e, attempts=1)
    except REMOTE_ERRORS as e:
        return AttemptResult(Outcome.ERROR, error=e, attempts=1)
    return AttemptResult(Outcome.SUCCESS, value=value, attempts=1)


def retry_operation(operation: Callable[[], Any],
                    max_attempts: int = RetryConstants.MAX_RETRIES,
                    not_found_is_terminal: bool = True,
                    description: str = "remote call") -> AttemptResult:
    """
    Attempt a remote call up to max_attempts times with no delay in between.
    
    SUCCESS always ends the loop. NOT_FOUND ends it only when not_found_is_terminal
    is set (existence checks and deletions), otherwise it is retried like any other
    error.
    
    Args:
        operation: Zero-argument callable performing the remote call
        max_attempts: Retry ceiling, at least one attempt is always made
        not_found_is_terminal: Whether a 404 response is a final answer
        description: Human-readable name of the call for debug logging
        
    Returns:
        AttemptResult of the last attempt, with attempts set to the number made
    """
    max_attempts = max(1, max_attempts)
    result = None
    
    for attempt in range(1, max_attempts + 1):
        result = attempt_once(operation)
        result.attempts = attempt
        
        if result.succeeded:
            return result
        if result.not_found and not_found_is_terminal:
            return result
        
        logger.debug(f"{description} failed (attempt {attempt}/{max_attempts}): {result.error}")
    
    return result

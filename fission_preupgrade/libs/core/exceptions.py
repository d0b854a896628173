"""
Exceptions Module

Exception hierarchy for the Fission pre-upgrade checks.
"""

from typing import Any, Dict, List, Optional


class PreUpgradeError(Exception):
    """Base exception for all pre-upgrade errors"""
    pass


class ConfigurationError(PreUpgradeError):
    """Raised when configuration is missing or invalid"""
    pass


class AuthenticationError(PreUpgradeError):
    """Raised when the Kubernetes client cannot be configured"""
    pass


class RoleBindingError(PreUpgradeError):
    """Raised when a RoleBinding cannot be brought to the desired state"""
    pass


class FatalTaskError(PreUpgradeError):
    """
    Unrecoverable task failure.

    Raised by the pre-upgrade tasks instead of terminating the process. The
    caller running the pipeline is responsible for logging it and exiting.
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None,
                 cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.context = dict(context or {})
        self.cause = cause

    def __str__(self) -> str:
        text = self.message
        if self.context:
            details = ", ".join(f"{key}={value}" for key, value in self.context.items())
            text += f" ({details})"
        if self.cause is not None:
            text += f": {self.cause}"
        return text


class FunctionReferenceError(FatalTaskError):
    """Raised when functions reference objects outside their own namespace"""

    def __init__(self, summary: str, violations: List[Any]):
        super().__init__(summary, context={"violations": len(violations)})
        self.violations = list(violations)

    def __str__(self) -> str:
        lines = [super().__str__()]
        lines.extend(f"  - {violation}" for violation in self.violations)
        return "\n".join(lines)

"""
Data Models

Read-only views of fission Function custom objects and the namespace-locality
violations found in them.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List

from ..core.constants import ErrorMessages, FissionConstants


@dataclass(frozen=True)
class ObjectReference:
    """Reference from a function spec to a namespaced object"""
    name: str
    namespace: str
    
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ObjectReference':
        data = data or {}
        return cls(name=data.get('name') or "", namespace=data.get('namespace') or "")


@dataclass
class FunctionObject:
    """The parts of a fission Function that reference other objects"""
    name: str
    namespace: str
    secrets: List[ObjectReference] = field(default_factory=list)
    configmaps: List[ObjectReference] = field(default_factory=list)
    package_ref: ObjectReference = field(default_factory=lambda: ObjectReference("", ""))
    
    @classmethod
    def from_dict(cls, item: Dict[str, Any]) -> 'FunctionObject':
        """
        Build from a custom object as returned by CustomObjectsApi
        
        Args:
            item: Function custom object
            
        Returns:
            FunctionObject
        """
        metadata = item.get('metadata') or {}
        spec = item.get('spec') or {}
        package = spec.get('package') or {}
        
        return cls(
            name=metadata.get('name') or "",
            namespace=metadata.get('namespace') or "",
            secrets=[ObjectReference.from_dict(ref) for ref in spec.get('secrets') or []],
            configmaps=[ObjectReference.from_dict(ref) for ref in spec.get('configmaps') or []],
            package_ref=ObjectReference.from_dict(package.get('packageref')),
        )


@dataclass(frozen=True)
class ReferenceViolation:
    """A function referencing an object outside its own namespace"""
    kind: FissionConstants.ReferenceKind
    function_name: str
    function_namespace: str
    reference_name: str
    reference_namespace: str
    
    def __str__(self) -> str:
        return ErrorMessages.REFERENCE_VIOLATION.format(
            function_name=self.function_name,
            function_namespace=self.function_namespace,
            kind=self.kind,
            reference_name=self.reference_name,
            reference_namespace=self.reference_namespace,
        )


def find_function_spec_violations(functions: Iterable[FunctionObject]) -> List[ReferenceViolation]:
    """
    Collect every secret, configmap and package reference that points outside the
    namespace of the function holding it.
    
    Args:
        functions: Functions to check
        
    Returns:
        List of violations in function order, empty if all references are local
    """
    kinds = FissionConstants.ReferenceKind
    violations = []
    
    for fn in functions:
        references = [(kinds.SECRET, ref) for ref in fn.secrets]
        references += [(kinds.CONFIGMAP, ref) for ref in fn.configmaps]
        references.append((kinds.PACKAGE, fn.package_ref))
        
        for kind, ref in references:
            if ref.namespace != fn.namespace:
                violations.append(ReferenceViolation(
                    kind=kind,
                    function_name=fn.name,
                    function_namespace=fn.namespace,
                    reference_name=ref.name,
                    reference_namespace=ref.namespace,
                ))
    
    return violations

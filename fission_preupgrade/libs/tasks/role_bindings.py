"""
Role Binding Helpers

Idempotent operations on ClusterRoleBindings and RoleBindings.
"""

import logging
from typing import Optional

from kubernetes import client
from kubernetes.client.rest import ApiException

from ..core.constants import KubernetesConstants, RetryConstants
from ..core.exceptions import RoleBindingError
from ..core.retry import retry_operation

logger = logging.getLogger(__name__)


def delete_cluster_role_binding(rbac_api: client.RbacAuthorizationV1Api, name: str,
                                max_retries: int = RetryConstants.MAX_RETRIES) -> Optional[BaseException]:
    """
    Delete a ClusterRoleBinding. A binding that does not exist counts as deleted.
    
    Args:
        rbac_api: RBAC API client
        name: ClusterRoleBinding name
        max_retries: Retry ceiling
        
    Returns:
        None on success, otherwise the last error seen after max_retries attempts
    """
    result = retry_operation(
        lambda: rbac_api.delete_cluster_role_binding(name=name),
        max_attempts=max_retries,
        description=f"delete ClusterRoleBinding {name}",
    )
    
    if result.not_found:
        logger.debug(f"ClusterRoleBinding {name} not present")
        return None
    if result.succeeded:
        logger.info(f"Deleted ClusterRoleBinding {name}")
        return None
    return result.error


def make_service_account_subject(sa_name: str, sa_namespace: str) -> client.RbacV1Subject:
    """Build a ServiceAccount subject"""
    return client.RbacV1Subject(
        kind=str(KubernetesConstants.SubjectKind.SERVICE_ACCOUNT),
        name=sa_name,
        namespace=sa_namespace,
    )


def make_role_binding(name: str, namespace: str, role: str, role_kind: str,
                      sa_name: str, sa_namespace: str) -> client.V1RoleBinding:
    """
    Build a RoleBinding granting a role to a single service account
    
    Args:
        name: RoleBinding name
        namespace: Namespace the RoleBinding lives in
        role: Name of the Role or ClusterRole
        role_kind: "Role" or "ClusterRole"
        sa_name: ServiceAccount name
        sa_namespace: ServiceAccount namespace
        
    Returns:
        V1RoleBinding object
    """
    return client.V1RoleBinding(
        metadata=client.V1ObjectMeta(
            name=name,
            namespace=namespace,
            labels={KubernetesConstants.MANAGED_BY_LABEL: KubernetesConstants.PREUPGRADE_COMPONENT},
        ),
        role_ref=client.V1RoleRef(
            api_group=KubernetesConstants.RBAC_API_GROUP,
            kind=str(role_kind),
            name=role,
        ),
        subjects=[make_service_account_subject(sa_name, sa_namespace)],
    )


def is_service_account_bound(role_binding: client.V1RoleBinding, sa_name: str, sa_namespace: str) -> bool:
    """Check whether a RoleBinding already lists the service account as a subject"""
    for subject in role_binding.subjects or []:
        if (subject.kind == KubernetesConstants.SubjectKind.SERVICE_ACCOUNT
                and subject.name == sa_name
                and subject.namespace == sa_namespace):
            return True
    return False


def add_service_account_to_role_binding(rbac_api: client.RbacAuthorizationV1Api, name: str, namespace: str,
                                        sa_name: str, sa_namespace: str,
                                        max_retries: int = RetryConstants.MAX_RETRIES) -> None:
    """
    Append a service account subject to an existing RoleBinding.
    
    The binding is re-read and the update retried when the API server reports a
    conflicting concurrent write.
    
    Raises:
        ApiException: On any error other than a write conflict
        RoleBindingError: If every attempt hit a conflict
    """
    for attempt in range(1, max(1, max_retries) + 1):
        role_binding = rbac_api.read_namespaced_role_binding(name=name, namespace=namespace)
        if is_service_account_bound(role_binding, sa_name, sa_namespace):
            return
        
        role_binding.subjects = list(role_binding.subjects or [])
        role_binding.subjects.append(make_service_account_subject(sa_name, sa_namespace))
        
        try:
            rbac_api.replace_namespaced_role_binding(name=name, namespace=namespace, body=role_binding)
            logger.info(f"Added service account {sa_namespace}/{sa_name} to RoleBinding {namespace}/{name}")
            return
        except ApiException as e:
            if e.status != RetryConstants.CONFLICT:
                raise
            logger.debug(f"Conflict updating RoleBinding {namespace}/{name} (attempt {attempt}/{max_retries})")
    
    raise RoleBindingError(
        f"RoleBinding {namespace}/{name} kept changing, gave up adding {sa_namespace}/{sa_name} "
        f"after {max_retries} attempts"
    )


def setup_role_binding(rbac_api: client.RbacAuthorizationV1Api, name: str, namespace: str,
                       role: str, role_kind: str, sa_name: str, sa_namespace: str,
                       max_retries: int = RetryConstants.MAX_RETRIES) -> None:
    """
    Ensure a RoleBinding exists that grants role to the given service account.
    
    Creates the RoleBinding if it is missing, adds the service account to it if it
    exists without it, and does nothing if the grant is already in place.
    
    Args:
        rbac_api: RBAC API client
        name: RoleBinding name
        namespace: Namespace the RoleBinding lives in
        role: Name of the Role or ClusterRole
        role_kind: "Role" or "ClusterRole"
        sa_name: ServiceAccount name
        sa_namespace: ServiceAccount namespace
        max_retries: Retry ceiling for conflicting updates
        
    Raises:
        ApiException: If the API server rejects a read, create or update
        RoleBindingError: If concurrent updates prevented adding the subject
    """
    try:
        role_binding = rbac_api.read_namespaced_role_binding(name=name, namespace=namespace)
    except ApiException as e:
        if e.status != RetryConstants.NOT_FOUND:
            raise
        role_binding = None
    
    if role_binding is not None:
        if is_service_account_bound(role_binding, sa_name, sa_namespace):
            logger.debug(f"RoleBinding {namespace}/{name} already grants {role} to {sa_namespace}/{sa_name}")
            return
        add_service_account_to_role_binding(rbac_api, name, namespace, sa_name, sa_namespace, max_retries)
        return
    
    body = make_role_binding(name, namespace, role, role_kind, sa_name, sa_namespace)
    try:
        rbac_api.create_namespaced_role_binding(namespace=namespace, body=body)
        logger.info(f"Created RoleBinding {namespace}/{name} granting {role} to {sa_namespace}/{sa_name}")
    except ApiException as e:
        if e.status != RetryConstants.CONFLICT:
            raise
        # Created by someone else since we looked
        add_service_account_to_role_binding(rbac_api, name, namespace, sa_name, sa_namespace, max_retries)

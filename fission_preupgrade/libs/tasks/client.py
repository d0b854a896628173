"""
Pre-Upgrade Task Client

The pre-upgrade tasks run against a cluster before fission is upgraded:
detecting a previous installation, checking that functions only reference
objects in their own namespace, replacing the cluster-admin grants of the
fetcher and builder service accounts with namespace-scoped RoleBindings.
"""

import logging
from typing import List, Optional

from kubernetes import client

from ..core.constants import ErrorMessages, FissionConstants, KubernetesConstants, RetryConstants
from ..core.exceptions import FatalTaskError, FunctionReferenceError, RoleBindingError
from ..core.retry import REMOTE_ERRORS, attempt_once, retry_operation
from .models import FunctionObject, find_function_spec_violations
from .role_bindings import delete_cluster_role_binding, setup_role_binding

logger = logging.getLogger(__name__)


class PreUpgradeTaskClient:
    """Runs the individual pre-upgrade tasks against the cluster"""

    def __init__(self, apiextensions_api: client.ApiextensionsV1Api, custom_api: client.CustomObjectsApi,
                 rbac_api: client.RbacAuthorizationV1Api,
                 fn_pod_namespace: str = FissionConstants.DEFAULT_FUNCTION_NAMESPACE,
                 builder_namespace: str = FissionConstants.DEFAULT_BUILDER_NAMESPACE,
                 max_retries: int = RetryConstants.MAX_RETRIES):
        """
        Initialize the task client

        Args:
            apiextensions_api: Client for the CustomResourceDefinition registry
            custom_api: Client for fission custom objects
            rbac_api: Client for RBAC objects
            fn_pod_namespace: Namespace where function pods (and the fetcher) run
            builder_namespace: Namespace where environment builders run
            max_retries: Retry ceiling for remote calls
        """
        self.apiextensions_api = apiextensions_api
        self.custom_api = custom_api
        self.rbac_api = rbac_api
        self.fn_pod_namespace = fn_pod_namespace
        self.builder_namespace = builder_namespace
        self.max_retries = max_retries

    def is_fission_reinstall(self) -> bool:
        """
        Check whether the fission Function CRD is registered on this cluster, which
        means fission had been installed before.

        Any error other than "not found" is retried; if all attempts fail the answer
        is False, so an unreachable registry is treated as a fresh install.

        Returns:
            bool: True if the CRD exists
        """
        result = retry_operation(
            lambda: self.apiextensions_api.read_custom_resource_definition(name=FissionConstants.FUNCTION_CRD),
            max_attempts=self.max_retries,
            description=f"get CRD {FissionConstants.FUNCTION_CRD}",
        )

        if result.failed:
            logger.warning(f"Could not determine whether {FissionConstants.FUNCTION_CRD} exists after "
                           f"{result.attempts} attempts, assuming a fresh install: {result.error}")

        return result.succeeded

    def list_functions(self, namespace: str = KubernetesConstants.NAMESPACE_ALL) -> List[FunctionObject]:
        """
        List fission functions with retries

        Args:
            namespace: Namespace to list, or all namespaces if empty

        Returns:
            List of FunctionObject

        Raises:
            FatalTaskError: If listing still fails after max retries
        """
        result = retry_operation(
            lambda: self._list_custom_objects(FissionConstants.Plural.FUNCTIONS, namespace),
            max_attempts=self.max_retries,
            not_found_is_terminal=False,
            description="list functions",
        )

        if not result.succeeded:
            raise FatalTaskError(
                ErrorMessages.LIST_FUNCTIONS_FAILED,
                context={"max_retries": self.max_retries},
                cause=result.error,
            )

        return [FunctionObject.from_dict(item) for item in result.value.get('items') or []]

    def verify_function_spec_references(self) -> None:
        """
        Verify that every function references secrets, configmaps and its package
        only in its own namespace.

        All functions are checked before failing so that every offending reference
        is reported at once.

        Raises:
            FatalTaskError: If functions cannot be listed
            FunctionReferenceError: If any reference crosses namespaces
        """
        logger.info("verifying function spec references for all functions in the cluster")

        functions = self.list_functions(KubernetesConstants.NAMESPACE_ALL)
        violations = find_function_spec_violations(functions)

        if violations:
            raise FunctionReferenceError(ErrorMessages.FUNCTION_REFERENCE_SUMMARY, violations)

        logger.info(f"function spec references verified ({len(functions)} functions)")

    def remove_cluster_admin_roles_for_fission_sas(self) -> None:
        """
        Delete the ClusterRoleBindings earlier releases created for the fission
        builder and fetcher service accounts. Missing bindings are ignored.

        Raises:
            FatalTaskError: If a binding cannot be deleted after max retries
        """
        for name in FissionConstants.get_legacy_cluster_role_bindings():
            error = delete_cluster_role_binding(self.rbac_api, name, self.max_retries)
            if error is not None:
                raise FatalTaskError(
                    ErrorMessages.DELETE_CLUSTER_ROLE_BINDING_FAILED,
                    context={"role_binding": name},
                    cause=error,
                )

        logger.info("removed cluster admin privileges for fission-builder and fission-fetcher service accounts")

    def need_role_bindings(self) -> bool:
        """
        Check if there is at least one package or function in the default namespace.

        Packages and functions there were served by the cluster-wide grants removed
        in remove_cluster_admin_roles_for_fission_sas, so the fetcher and builder
        need RoleBindings in the default namespace to keep working. Each listing is
        tried once and a failure counts as "nothing found".

        Returns:
            bool: True if the default namespace holds fission objects
        """
        for plural in (FissionConstants.Plural.PACKAGES, FissionConstants.Plural.FUNCTIONS):
            result = attempt_once(
                lambda: self._list_custom_objects(plural, KubernetesConstants.DEFAULT_NAMESPACE)
            )
            if result.succeeded and result.value.get('items'):
                return True
            if not result.succeeded:
                logger.warning(f"Failed to list {plural} in namespace "
                               f"{KubernetesConstants.DEFAULT_NAMESPACE}: {result.error}")

        return False

    def setup_role_bindings(self) -> None:
        """
        Grant the fetcher and builder service accounts access to packages, secrets
        and configmaps in the default namespace, if anything there needs it.

        Raises:
            FatalTaskError: If any RoleBinding cannot be set up
        """
        if not self.need_role_bindings():
            logger.info("no fission objects found, so no role-bindings to create")
            return

        cluster_role = KubernetesConstants.RoleKind.CLUSTER_ROLE
        grants = [
            (FissionConstants.PACKAGE_GETTER_RB, FissionConstants.PACKAGE_GETTER_CR,
             FissionConstants.FETCHER_SA, self.fn_pod_namespace),
            (FissionConstants.PACKAGE_GETTER_RB, FissionConstants.PACKAGE_GETTER_CR,
             FissionConstants.BUILDER_SA, self.builder_namespace),
            (FissionConstants.SECRET_CONFIGMAP_GETTER_RB, FissionConstants.SECRET_CONFIGMAP_GETTER_CR,
             FissionConstants.FETCHER_SA, self.fn_pod_namespace),
        ]

        for role_binding, role, sa_name, sa_namespace in grants:
            try:
                setup_role_binding(self.rbac_api, role_binding, KubernetesConstants.DEFAULT_NAMESPACE,
                                   role, cluster_role, sa_name, sa_namespace, self.max_retries)
            except REMOTE_ERRORS + (RoleBindingError,) as e:
                raise FatalTaskError(
                    ErrorMessages.SETUP_ROLE_BINDING_FAILED,
                    context={
                        "role_binding": role_binding,
                        "service_account": sa_name,
                        "service_account_namespace": sa_namespace,
                    },
                    cause=e,
                )

        logger.info(f"ensured rolebindings in {KubernetesConstants.DEFAULT_NAMESPACE} namespace: "
                    f"{FissionConstants.PACKAGE_GETTER_RB}, {FissionConstants.SECRET_CONFIGMAP_GETTER_RB}")

    def _list_custom_objects(self, plural: str, namespace: Optional[str]) -> dict:
        """List fission custom objects cluster-wide or in one namespace"""
        if namespace:
            return self.custom_api.list_namespaced_custom_object(
                group=FissionConstants.API_GROUP,
                version=FissionConstants.API_VERSION,
                namespace=namespace,
                plural=str(plural),
            )
        return self.custom_api.list_cluster_custom_object(
            group=FissionConstants.API_GROUP,
            version=FissionConstants.API_VERSION,
            plural=str(plural),
        )

"""
Shared Test Fixtures

Fakes standing in for the Kubernetes API objects used by the pre-upgrade tasks.
"""

from typing import Dict, List, Tuple
from unittest.mock import Mock

import pytest
from kubernetes import client
from kubernetes.client.rest import ApiException

from fission_preupgrade.libs.tasks import PreUpgradeTaskClient


TEST_FN_NAMESPACE = "fn-pods"
TEST_BUILDER_NAMESPACE = "builders"


def api_error(status: int, reason: str = "") -> ApiException:
    """Build an ApiException with the given HTTP status"""
    return ApiException(status=status, reason=reason or f"status {status}")


def make_function(name: str, namespace: str, secrets: List[Tuple[str, str]] = (),
                  configmaps: List[Tuple[str, str]] = (), package: Tuple[str, str] = None) -> Dict:
    """Build a Function custom object; the package defaults to one in the function's namespace"""
    package_name, package_namespace = package or (f"{name}-pkg", namespace)
    return {
        "apiVersion": "fission.io/v1",
        "kind": "Function",
        "metadata": {"name": name, "namespace": namespace},
        "spec": {
            "secrets": [{"name": n, "namespace": ns} for n, ns in secrets],
            "configmaps": [{"name": n, "namespace": ns} for n, ns in configmaps],
            "package": {
                "functionName": "main",
                "packageref": {"name": package_name, "namespace": package_namespace},
            },
        },
    }


def copy_role_binding(role_binding: client.V1RoleBinding) -> client.V1RoleBinding:
    """Copy a RoleBinding deep enough that callers cannot mutate stored subjects"""
    return client.V1RoleBinding(
        metadata=role_binding.metadata,
        role_ref=role_binding.role_ref,
        subjects=list(role_binding.subjects or []),
    )


class FakeRbacApi:
    """In-memory stand-in for RbacAuthorizationV1Api"""
    
    def __init__(self, cluster_role_bindings=()):
        self.cluster_role_bindings = set(cluster_role_bindings)
        self.role_bindings = {}
        self.calls = []
    
    def delete_cluster_role_binding(self, name, **kwargs):
        self.calls.append(("delete_cluster_role_binding", name))
        if name not in self.cluster_role_bindings:
            raise api_error(404, "Not Found")
        self.cluster_role_bindings.remove(name)
    
    def read_namespaced_role_binding(self, name, namespace, **kwargs):
        self.calls.append(("read_namespaced_role_binding", namespace, name))
        if (namespace, name) not in self.role_bindings:
            raise api_error(404, "Not Found")
        return copy_role_binding(self.role_bindings[(namespace, name)])
    
    def create_namespaced_role_binding(self, namespace, body, **kwargs):
        self.calls.append(("create_namespaced_role_binding", namespace, body.metadata.name))
        if (namespace, body.metadata.name) in self.role_bindings:
            raise api_error(409, "AlreadyExists")
        self.role_bindings[(namespace, body.metadata.name)] = copy_role_binding(body)
        return body
    
    def replace_namespaced_role_binding(self, name, namespace, body, **kwargs):
        self.calls.append(("replace_namespaced_role_binding", namespace, name))
        self.role_bindings[(namespace, name)] = copy_role_binding(body)
        return body
    
    def mutating_calls(self) -> List[Tuple]:
        mutating = ("delete_cluster_role_binding", "create_namespaced_role_binding",
                    "replace_namespaced_role_binding")
        return [call for call in self.calls if call[0] in mutating]
    
    def subjects(self, namespace: str, name: str) -> List[Tuple[str, str]]:
        role_binding = self.role_bindings[(namespace, name)]
        return [(s.namespace, s.name) for s in role_binding.subjects]


@pytest.fixture
def apiextensions_api():
    return Mock()


@pytest.fixture
def custom_api():
    api = Mock()
    api.list_cluster_custom_object.return_value = {"items": []}
    api.list_namespaced_custom_object.return_value = {"items": []}
    return api


@pytest.fixture
def rbac_api():
    return FakeRbacApi()


@pytest.fixture
def task_client(apiextensions_api, custom_api, rbac_api):
    return PreUpgradeTaskClient(
        apiextensions_api,
        custom_api,
        rbac_api,
        fn_pod_namespace=TEST_FN_NAMESPACE,
        builder_namespace=TEST_BUILDER_NAMESPACE,
    )

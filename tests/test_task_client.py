"""
Tests for the pre-upgrade task client
"""

import logging
from unittest.mock import Mock

import pytest

from fission_preupgrade.libs.core.constants import FissionConstants
from fission_preupgrade.libs.core.exceptions import FatalTaskError, FunctionReferenceError

from conftest import TEST_BUILDER_NAMESPACE, TEST_FN_NAMESPACE, FakeRbacApi, api_error, make_function


class TestIsFissionReinstall:
    """Installation history probe"""
    
    def test_crd_present(self, task_client, apiextensions_api):
        apiextensions_api.read_custom_resource_definition.return_value = Mock()
        
        assert task_client.is_fission_reinstall() is True
        apiextensions_api.read_custom_resource_definition.assert_called_once_with(
            name=FissionConstants.FUNCTION_CRD)
    
    def test_crd_absent(self, task_client, apiextensions_api):
        apiextensions_api.read_custom_resource_definition.side_effect = api_error(404)
        
        assert task_client.is_fission_reinstall() is False
        assert apiextensions_api.read_custom_resource_definition.call_count == 1
    
    def test_not_found_after_errors(self, task_client, apiextensions_api):
        apiextensions_api.read_custom_resource_definition.side_effect = [api_error(500), api_error(404)]
        
        assert task_client.is_fission_reinstall() is False
    
    def test_success_after_errors(self, task_client, apiextensions_api):
        apiextensions_api.read_custom_resource_definition.side_effect = [api_error(500), api_error(500), Mock()]
        
        assert task_client.is_fission_reinstall() is True
    
    def test_only_errors_defaults_to_fresh_install(self, task_client, apiextensions_api):
        apiextensions_api.read_custom_resource_definition.side_effect = api_error(500)
        
        assert task_client.is_fission_reinstall() is False
        assert apiextensions_api.read_custom_resource_definition.call_count == 5


class TestVerifyFunctionSpecReferences:
    """Namespace locality validation"""
    
    def test_lists_functions_in_all_namespaces(self, task_client, custom_api):
        task_client.verify_function_spec_references()
        
        custom_api.list_cluster_custom_object.assert_called_once_with(
            group="fission.io", version="v1", plural="functions")
    
    def test_passes_without_violations(self, task_client, custom_api):
        custom_api.list_cluster_custom_object.return_value = {"items": [
            make_function(f"fn-{i}", f"ns-{i % 3}", secrets=[("s", f"ns-{i % 3}")]) for i in range(100)
        ]}
        
        task_client.verify_function_spec_references()
    
    def test_reports_every_violation(self, task_client, custom_api):
        custom_api.list_cluster_custom_object.return_value = {"items": [
            make_function("f1", "ns-a", secrets=[("creds", "ns-b")], package=("pkg", "ns-a")),
            make_function("f2", "ns-b", configmaps=[("cfg", "ns-a")], package=("pkg", "ns-c")),
            make_function("f3", "ns-c"),
        ]}
        
        with pytest.raises(FunctionReferenceError) as exc_info:
            task_client.verify_function_spec_references()
        
        violations = exc_info.value.violations
        assert [(v.function_name, v.reference_name) for v in violations] == [
            ("f1", "creds"), ("f2", "cfg"), ("f2", "pkg"),
        ]
        message = str(exc_info.value)
        assert "outside it's own namespace" in message
        assert "function : f1.ns-a cannot reference a secret : creds in namespace : ns-b" in message
        assert "function : f2.ns-b cannot reference a package : pkg in namespace : ns-c" in message
    
    def test_single_cross_namespace_secret(self, task_client, custom_api):
        custom_api.list_cluster_custom_object.return_value = {"items": [
            make_function("f1", "ns-a", secrets=[("creds", "ns-b")], package=("pkg", "ns-a")),
        ]}
        
        with pytest.raises(FunctionReferenceError) as exc_info:
            task_client.verify_function_spec_references()
        
        assert len(exc_info.value.violations) == 1
        assert exc_info.value.violations[0].kind == FissionConstants.ReferenceKind.SECRET
    
    def test_list_retried_then_succeeds(self, task_client, custom_api):
        custom_api.list_cluster_custom_object.side_effect = [api_error(500), api_error(404), {"items": []}]
        
        task_client.verify_function_spec_references()
        
        assert custom_api.list_cluster_custom_object.call_count == 3
    
    def test_list_failure_is_fatal(self, task_client, custom_api):
        custom_api.list_cluster_custom_object.side_effect = api_error(500)
        
        with pytest.raises(FatalTaskError) as exc_info:
            task_client.verify_function_spec_references()
        
        assert not isinstance(exc_info.value, FunctionReferenceError)
        assert exc_info.value.context == {"max_retries": 5}
        assert custom_api.list_cluster_custom_object.call_count == 5


class TestRemoveClusterAdminRoles:
    """Revocation of the cluster-wide grants"""
    
    def test_deletes_both_bindings(self, task_client, rbac_api):
        rbac_api.cluster_role_bindings.update(["fission-builder-crd", "fission-fetcher-crd", "unrelated"])
        
        task_client.remove_cluster_admin_roles_for_fission_sas()
        
        assert rbac_api.cluster_role_bindings == {"unrelated"}
    
    def test_safe_to_run_twice(self, task_client, rbac_api):
        rbac_api.cluster_role_bindings.update(["fission-builder-crd", "fission-fetcher-crd"])
        
        task_client.remove_cluster_admin_roles_for_fission_sas()
        task_client.remove_cluster_admin_roles_for_fission_sas()
        
        assert rbac_api.cluster_role_bindings == set()
    
    def test_fresh_cluster(self, task_client, rbac_api):
        task_client.remove_cluster_admin_roles_for_fission_sas()
        
        assert [call[1] for call in rbac_api.calls] == ["fission-builder-crd", "fission-fetcher-crd"]
    
    def test_persistent_error_names_binding(self, task_client):
        rbac_api = Mock()
        rbac_api.delete_cluster_role_binding.side_effect = [None, api_error(500), api_error(500),
                                                            api_error(500), api_error(500), api_error(500)]
        task_client.rbac_api = rbac_api
        
        with pytest.raises(FatalTaskError) as exc_info:
            task_client.remove_cluster_admin_roles_for_fission_sas()
        
        assert exc_info.value.context == {"role_binding": "fission-fetcher-crd"}
        assert exc_info.value.cause.status == 500


class TestNeedRoleBindings:
    """Necessity probe"""
    
    def test_empty_default_namespace(self, task_client, custom_api):
        assert task_client.need_role_bindings() is False
        
        plurals = [call.kwargs["plural"] for call in custom_api.list_namespaced_custom_object.call_args_list]
        namespaces = {call.kwargs["namespace"] for call in custom_api.list_namespaced_custom_object.call_args_list}
        assert plurals == ["packages", "functions"]
        assert namespaces == {"default"}
    
    def test_package_present(self, task_client, custom_api):
        custom_api.list_namespaced_custom_object.side_effect = [{"items": [{"metadata": {"name": "p"}}]}]
        
        assert task_client.need_role_bindings() is True
    
    def test_function_present(self, task_client, custom_api):
        custom_api.list_namespaced_custom_object.side_effect = [
            {"items": []},
            {"items": [make_function("f", "default")]},
        ]
        
        assert task_client.need_role_bindings() is True
    
    def test_package_listing_error_still_checks_functions(self, task_client, custom_api):
        custom_api.list_namespaced_custom_object.side_effect = [
            api_error(500),
            {"items": [make_function("f", "default")]},
        ]
        
        assert task_client.need_role_bindings() is True
    
    def test_both_listings_fail(self, task_client, custom_api):
        custom_api.list_namespaced_custom_object.side_effect = api_error(500)
        
        assert task_client.need_role_bindings() is False
        assert custom_api.list_namespaced_custom_object.call_count == 2


class TestSetupRoleBindings:
    """Namespace-scoped re-grant"""
    
    def test_nothing_to_do(self, task_client, rbac_api):
        task_client.setup_role_bindings()
        
        assert rbac_api.calls == []
    
    def test_creates_expected_grants(self, task_client, custom_api, rbac_api):
        custom_api.list_namespaced_custom_object.return_value = {"items": [{"metadata": {"name": "p"}}]}
        
        task_client.setup_role_bindings()
        
        assert rbac_api.subjects("default", "package-getter-binding") == [
            (TEST_FN_NAMESPACE, "fission-fetcher"),
            (TEST_BUILDER_NAMESPACE, "fission-builder"),
        ]
        assert rbac_api.subjects("default", "secret-configmap-getter-binding") == [
            (TEST_FN_NAMESPACE, "fission-fetcher"),
        ]
        assert rbac_api.role_bindings[("default", "package-getter-binding")].role_ref.name == "package-getter"
        assert rbac_api.role_bindings[("default", "secret-configmap-getter-binding")].role_ref.name == \
            "secret-configmap-getter"
    
    def test_three_ensure_calls(self, task_client, custom_api, monkeypatch):
        custom_api.list_namespaced_custom_object.return_value = {"items": [{"metadata": {"name": "p"}}]}
        ensure = Mock()
        monkeypatch.setattr("fission_preupgrade.libs.tasks.client.setup_role_binding", ensure)
        
        task_client.setup_role_bindings()
        
        grants = [(c.args[1], c.args[2], c.args[3], c.args[4], c.args[5], c.args[6]) for c in ensure.call_args_list]
        assert grants == [
            ("package-getter-binding", "default", "package-getter", "ClusterRole",
             "fission-fetcher", TEST_FN_NAMESPACE),
            ("package-getter-binding", "default", "package-getter", "ClusterRole",
             "fission-builder", TEST_BUILDER_NAMESPACE),
            ("secret-configmap-getter-binding", "default", "secret-configmap-getter", "ClusterRole",
             "fission-fetcher", TEST_FN_NAMESPACE),
        ]
    
    def test_safe_to_run_twice(self, task_client, custom_api, rbac_api):
        custom_api.list_namespaced_custom_object.return_value = {"items": [{"metadata": {"name": "p"}}]}
        task_client.setup_role_bindings()
        rbac_api.calls.clear()
        
        task_client.setup_role_bindings()
        
        assert rbac_api.mutating_calls() == []
        assert len(rbac_api.subjects("default", "package-getter-binding")) == 2
    

    def test_rerun_logs_ensured_bindings(self, task_client, custom_api, caplog):
        custom_api.list_namespaced_custom_object.return_value = {"items": [{"metadata": {"name": "p"}}]}
        task_client.setup_role_bindings()
        caplog.clear()
        
        with caplog.at_level(logging.INFO, logger="fission_preupgrade.libs.tasks.client"):
            task_client.setup_role_bindings()
        
        assert "ensured rolebindings in default namespace" in caplog.text
        assert "created rolebindings" not in caplog.text

    def test_completes_partial_previous_run(self, task_client, custom_api, rbac_api):
        custom_api.list_namespaced_custom_object.return_value = {"items": [{"metadata": {"name": "p"}}]}
        partial = FakeRbacApi()
        task_client.rbac_api = partial
        task_client.setup_role_bindings()
        del partial.role_bindings[("default", "secret-configmap-getter-binding")]
        
        task_client.setup_role_bindings()
        
        assert partial.subjects("default", "secret-configmap-getter-binding") == [
            (TEST_FN_NAMESPACE, "fission-fetcher"),
        ]
    
    def test_failure_names_binding_and_service_account(self, task_client, custom_api):
        custom_api.list_namespaced_custom_object.return_value = {"items": [{"metadata": {"name": "p"}}]}
        rbac_api = Mock()
        rbac_api.read_namespaced_role_binding.side_effect = api_error(403, "Forbidden")
        task_client.rbac_api = rbac_api
        
        with pytest.raises(FatalTaskError) as exc_info:
            task_client.setup_role_bindings()
        
        assert exc_info.value.context == {
            "role_binding": "package-getter-binding",
            "service_account": "fission-fetcher",
            "service_account_namespace": TEST_FN_NAMESPACE,
        }
        assert exc_info.value.cause.status == 403

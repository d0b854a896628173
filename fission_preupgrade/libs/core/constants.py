"""
Constants Module

Centralized constants for the Fission pre-upgrade checks: fixed object names,
API coordinates and message templates.
"""


class KubernetesConstants:
    """Kubernetes-related constants"""
    
    from enum import Enum
    
    # Namespace constants
    DEFAULT_NAMESPACE = "default"
    NAMESPACE_ALL = ""
    
    # API Group constants
    RBAC_API_GROUP = "rbac.authorization.k8s.io"
    
    # Label constants
    MANAGED_BY_LABEL = "app.kubernetes.io/managed-by"
    PREUPGRADE_COMPONENT = "fission-preupgrade"
    
    # Maximum length of a namespace name (RFC 1123 label)
    MAX_NAMESPACE_LENGTH = 63
    
    class RoleKind(str, Enum):
        """Kinds a RoleBinding may reference in its roleRef"""
        CLUSTER_ROLE = "ClusterRole"
        ROLE = "Role"
        
        def __str__(self) -> str:
            """Return the kind for use in roleRef"""
            return self.value
    
    class SubjectKind(str, Enum):
        """Subject kinds used in role bindings"""
        SERVICE_ACCOUNT = "ServiceAccount"
        
        def __str__(self) -> str:
            """Return the kind for use in subjects"""
            return self.value


class FissionConstants:
    """Fission object coordinates and fixed RBAC object names"""
    
    from enum import Enum
    
    # Custom resources
    API_GROUP = "fission.io"
    API_VERSION = "v1"
    FUNCTION_CRD = "functions.fission.io"
    
    # Default namespaces of fission workloads
    DEFAULT_FUNCTION_NAMESPACE = "fission-function"
    DEFAULT_BUILDER_NAMESPACE = "fission-builder"
    
    # Service accounts
    FETCHER_SA = "fission-fetcher"
    BUILDER_SA = "fission-builder"
    
    # Namespace-scoped grants
    PACKAGE_GETTER_CR = "package-getter"
    PACKAGE_GETTER_RB = "package-getter-binding"
    SECRET_CONFIGMAP_GETTER_CR = "secret-configmap-getter"
    SECRET_CONFIGMAP_GETTER_RB = "secret-configmap-getter-binding"
    
    # Cluster-wide grants from earlier releases
    BUILDER_CLUSTER_ROLE_BINDING = "fission-builder-crd"
    FETCHER_CLUSTER_ROLE_BINDING = "fission-fetcher-crd"
    
    class Plural(str, Enum):
        """Plural resource names of fission custom resources"""
        FUNCTIONS = "functions"
        PACKAGES = "packages"
        
        def __str__(self) -> str:
            """Return the plural for use in custom object API calls"""
            return self.value
    
    class ReferenceKind(str, Enum):
        """Kinds of objects a function spec can reference"""
        SECRET = "secret"
        CONFIGMAP = "configmap"
        PACKAGE = "package"
        
        def __str__(self) -> str:
            """Return the kind for use in messages"""
            return self.value
    
    @classmethod
    def get_legacy_cluster_role_bindings(cls) -> list:
        """Get the ClusterRoleBindings that granted cluster admin to fission SAs"""
        return [cls.BUILDER_CLUSTER_ROLE_BINDING, cls.FETCHER_CLUSTER_ROLE_BINDING]


class RetryConstants:
    """Retry-related constants"""
    
    MAX_RETRIES = 5
    
    # HTTP status codes interpreted by the retry primitive and role binding helpers
    NOT_FOUND = 404
    CONFLICT = 409


class ErrorMessages:
    """Centralized message templates"""
    
    FUNCTION_REFERENCE_SUMMARY = (
        "a function cannot reference secrets, configmaps and packages outside it's own namespace"
    )
    
    REFERENCE_VIOLATION = (
        "function : {function_name}.{function_namespace} cannot reference a {kind} : "
        "{reference_name} in namespace : {reference_namespace}"
    )
    
    LIST_FUNCTIONS_FAILED = "error listing functions after max retries"
    DELETE_CLUSTER_ROLE_BINDING_FAILED = "error deleting rolebinding"
    SETUP_ROLE_BINDING_FAILED = "error setting up rolebinding for service account"
    
    SSL_CERT_VERIFICATION_FAILED = (
        "SSL certificate verification failed. The cluster is using self-signed certificates.\n"
        "To resolve this issue, add the --skip-tls flag to your command."
    )


"""
Constants used throughout the Postgres operator.

This module defines all constant values used by the operator including:
- API groups and resource names for the KubeDB custom resources
- Admission webhook APIService names and the activation marker
- Labels, condition types and default timings
"""

# KubeDB API groups
KUBEDB_GROUP = "kubedb.com"
CATALOG_GROUP = "catalog.kubedb.com"
KUBEDB_VERSION = "v1alpha1"

# Postgres custom resource
POSTGRES_KIND = "Postgres"
POSTGRES_PLURAL = "postgreses"
POSTGRES_SINGULAR = "postgres"
POSTGRES_VERSION_KIND = "PostgresVersion"
POSTGRES_VERSION_PLURAL = "postgresversions"
POSTGRES_VERSION_SINGULAR = "postgresversion"

# Aggregated admission webhook API groups
MUTATORS_GROUP = "mutators.kubedb.com"
VALIDATORS_GROUP = "validators.kubedb.com"
MUTATORS_API_SERVICE = f"{KUBEDB_VERSION}.{MUTATORS_GROUP}"
VALIDATORS_API_SERVICE = f"{KUBEDB_VERSION}.{VALIDATORS_GROUP}"

# apiregistration.k8s.io (served through CustomObjectsApi)
APIREGISTRATION_GROUP = "apiregistration.k8s.io"
APIREGISTRATION_VERSION = "v1"
APISERVICE_PLURAL = "apiservices"

# Annotation set by the webhook controller once the admission webhook is wired up
ADMISSION_WEBHOOK_ACTIVE_ANNOTATION = "admission-webhook.appscode.com/active"

# Label constants for resource identification
APP_LABEL_KEY = "app"
APP_LABEL_VALUE = "kubedb"

# Operator service backing the aggregated APIServices
OPERATOR_NAMESPACE = "kube-system"
OPERATOR_SERVICE_NAME = "kubedb-operator"

# Condition type constants (following Kubernetes conventions)
CONDITION_AVAILABLE = "Available"
CONDITION_ESTABLISHED = "Established"

# Condition status constants
CONDITION_TRUE = "True"

# Deletion propagation
PROPAGATION_FOREGROUND = "Foreground"

# Default timings (in seconds)
DEFAULT_READINESS_TIMEOUT = 120
DEFAULT_READINESS_POLL_INTERVAL = 5
DEFAULT_READINESS_SETTLE_DELAY = 5
DEFAULT_TEARDOWN_GRACE = 1
DEFAULT_CRD_ESTABLISH_TIMEOUT = 60
DEFAULT_CRD_ESTABLISH_POLL_INTERVAL = 1
DEFAULT_REFLECTOR_RETRY_DELAY = 5

# Postgres defaults applied by the mutating webhook
DEFAULT_REPLICAS = 1
DEFAULT_STORAGE_TYPE = "Durable"
DEFAULT_TERMINATION_POLICY = "Pause"
DEFAULT_STANDBY_MODE = "Warm"
DEFAULT_STREAMING_MODE = "Asynchronous"

# Fields that cannot change once a Postgres resource is created
IMMUTABLE_POSTGRES_FIELDS = ("storageType", "storage", "databaseSecret", "init")

# Error message templates
ERROR_TLS_MATERIAL = "TLS material not found: {}"
ERROR_NOT_AVAILABLE = "APIService {} not ready yet"
ERROR_MARKER_MISSING = "APIService {} is missing annotation {}"

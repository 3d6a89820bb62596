"""Constants for the Bucket Claim Operator."""

# Operator identity
OPERATOR_NAME = "bucket-claim-operator"
API_GROUP = "objectbucket.io"

# Resource Kinds
KIND_OBJECT_BUCKET_CLAIM = "ObjectBucketClaim"
KIND_CEPH_OBJECT_BUCKET = "CephObjectBucket"

# Labels
LABEL_USER = "user"
LABEL_MANAGED_BY = f"{API_GROUP}/managed-by"
LABEL_CLAIM_NAME = f"{API_GROUP}/claim-name"

# Finalizers
FINALIZER = f"{API_GROUP}/finalizer"

# Field Manager
FIELD_MANAGER = OPERATOR_NAME

# Connection details ConfigMap
CONFIGMAP_PREFIX = "bucket-"
CONFIGMAP_KEY_HOST = "BUCKET_HOST"
CONFIGMAP_KEY_PORT = "BUCKET_PORT"
CONFIGMAP_KEY_NAME = "BUCKET_NAME"
CONFIGMAP_KEY_SSL = "BUCKET_SSL"

# Deletion policies
DELETION_POLICY_RETAIN = "Retain"
DELETION_POLICY_DELETE = "Delete"

# Status phases
PHASE_PENDING = "Pending"
PHASE_BOUND = "Bound"
PHASE_FAILED = "Failed"

# Condition Types
COND_READY = "Ready"
COND_CREDENTIALS_RESOLVED = "CredentialsResolved"
COND_PROVISIONING_FAILED = "ProvisioningFailed"

# Event Reasons
EVENT_REASON_RECONCILE_FAILED = "ReconcileFailed"
EVENT_REASON_VALIDATE_FAILED = "ValidateFailed"
EVENT_REASON_BUCKET_CREATED = "BucketCreated"
EVENT_REASON_BUCKET_EXISTS = "BucketExists"
EVENT_REASON_BUCKET_DELETED = "BucketDeleted"
EVENT_REASON_BUCKET_RETAINED = "BucketRetained"
EVENT_REASON_UPDATE_IGNORED = "UpdateIgnored"

# S3 bucket naming
BUCKET_NAME_MIN_LENGTH = 3
BUCKET_NAME_MAX_LENGTH = 63
BUCKET_SUFFIX_LENGTH = 5
BUCKET_SUFFIX_ALPHABET = "bcdfghjklmnpqrstvwxz2456789"

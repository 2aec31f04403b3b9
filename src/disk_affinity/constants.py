"""Cluster constants for disk-proxy placement lookups."""

# Namespace holding claims and disk-proxy workloads
NAMESPACE = "magellan"

# Disk-proxy StatefulSet selection
APP_LABEL_KEY = "app"
DISK_PROXY_APP = "disk-proxy"
DISK_PROXY_LABEL_SELECTOR = f"{APP_LABEL_KEY}={DISK_PROXY_APP}"

# Pod-template annotation listing "<device-id> <info>..." tuples
DISKS_ANNOTATION_KEY = "disks"

# Node identity label used for the produced affinity
HOSTNAME_LABEL = "kubernetes.io/hostname"

# Claim phase
PHASE_BOUND = "Bound"

# Bind wait
MAX_RETRIES = 35
SLEEP_BETWEEN_RETRIES = 5  # seconds

# Identity strategies
STRATEGY_HANDLE = "handle"
STRATEGY_ATTACHMENT = "attachment"
STRATEGIES = [STRATEGY_HANDLE, STRATEGY_ATTACHMENT]

UINT64_MAX = 2**64 - 1

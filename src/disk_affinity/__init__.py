"""Resolve the node serving a PVC's volume and pin workloads to it."""

from .context import ResolutionContext
from .errors import (
    AffinityResolutionError,
    AmbiguousMatch,
    AttachmentNotFound,
    BindTimeout,
    ClaimNotFound,
    InvalidVolumeSpec,
    MalformedIdentity,
    PlacementNotFound,
    ResolutionCancelled,
    VolumeNotFound,
)
from .resolver import NodeAffinityResolver, Resolution
from .strategies import CsiHandleStrategy, VolumeAttachmentStrategy, make_strategy
from .templates import create_node_affinity

__version__ = "0.1.0"

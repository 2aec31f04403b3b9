"""Claim to node affinity resolution pipeline."""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from . import constants
from .binding import resolve_bound_volume
from .context import ResolutionContext
from .strategies import Placement, PlacementStrategy
from .templates import create_node_affinity

logger = logging.getLogger(__name__)


@dataclass
class Resolution:
    """Every key the pipeline resolved for one claim."""

    claim_name: str
    namespace: str
    volume_name: str
    identity: Any
    placement: Placement
    affinity: Any

    @property
    def node_name(self):
        return self.placement.node_name


class NodeAffinityResolver:
    """Resolves a PVC to an affinity pinning pods to the node serving it."""

    def __init__(
        self,
        strategy: PlacementStrategy,
        core_api,
        namespace=constants.NAMESPACE,
        max_attempts=constants.MAX_RETRIES,
        delay=constants.SLEEP_BETWEEN_RETRIES,
        wait_for_bind=None,
        strict=False,
    ):
        self.strategy = strategy
        self.core_api = core_api
        self.namespace = namespace
        self.max_attempts = max_attempts
        self.delay = delay
        self.wait_for_bind = strategy.wait_for_bind if wait_for_bind is None else wait_for_bind
        self.strict = strict

    def resolve_bound_volume(self, claim_name, context=None, cancel=None, timeout=None):
        log = (context or ResolutionContext()).logger(__name__)
        return resolve_bound_volume(
            self.core_api,
            claim_name,
            namespace=self.namespace,
            log=log,
            max_attempts=self.max_attempts,
            delay=self.delay,
            wait_for_bind=self.wait_for_bind,
            cancel=cancel,
            timeout=timeout,
            strict=self.strict,
        )

    def resolve(
        self,
        claim_name,
        context: Optional[ResolutionContext] = None,
        cancel=None,
        timeout=None,
    ) -> Resolution:
        """Run the full pipeline for a claim."""
        context = context or ResolutionContext()
        log = context.logger(__name__)
        log.info(f"Resolving node affinity for pvc {claim_name} ({self.strategy.name} strategy)")

        volume_name = self.resolve_bound_volume(
            claim_name, context=context, cancel=cancel, timeout=timeout
        )
        identity = self.strategy.volume_identity(volume_name, log=log)
        placement = self.strategy.locate(identity, log=log)
        affinity = create_node_affinity(placement.node_name)

        log.info(
            f"pvc {claim_name} -> pv {volume_name} -> "
            f"{self.strategy.describe_identity(identity)} -> node {placement.node_name}"
        )
        return Resolution(
            claim_name=claim_name,
            namespace=self.namespace,
            volume_name=volume_name,
            identity=identity,
            placement=placement,
            affinity=affinity,
        )

    def create_node_affinity(self, claim_name, context=None, cancel=None, timeout=None):
        """Return only the affinity for a claim."""
        return self.resolve(
            claim_name, context=context, cancel=cancel, timeout=timeout
        ).affinity

"""Claim to volume binding resolution."""

import logging
import threading
import time

from . import constants
from .context import first_match
from .errors import BindTimeout, ClaimNotFound, ResolutionCancelled
from .k8s import list_claims

logger = logging.getLogger(__name__)


def get_claim(core_api, claim_name, namespace, log=logger, strict=False):
    """Find a PVC by exact name and namespace among the namespace's claims."""
    claims = list_claims(core_api, namespace, log=log)
    pvc = first_match(
        claims,
        lambda c: c.metadata.name == claim_name and c.metadata.namespace == namespace,
        "pvc",
        claim_name,
        log,
        strict=strict,
    )
    if pvc is None:
        raise ClaimNotFound(claim_name, namespace)
    log.info(f"found pvc: {claim_name}")
    return pvc


def _bound_volume_name(pvc):
    if pvc.status is None or pvc.status.phase != constants.PHASE_BOUND:
        return None
    return pvc.spec.volume_name if pvc.spec else None


def resolve_bound_volume(
    core_api,
    claim_name,
    namespace=constants.NAMESPACE,
    log=logger,
    max_attempts=constants.MAX_RETRIES,
    delay=constants.SLEEP_BETWEEN_RETRIES,
    wait_for_bind=True,
    cancel=None,
    timeout=None,
    strict=False,
):
    """Return the name of the PV bound to a PVC.

    Re-reads the claim every ``delay`` seconds until it is Bound, at most
    ``max_attempts`` times. With ``wait_for_bind=False`` the first unbound
    observation fails. The wait returns early when ``cancel`` (a
    threading.Event) is set, and ``timeout`` bounds the total time spent.
    A missing claim fails at once.
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
    cancel = cancel or threading.Event()
    attempts = max_attempts if wait_for_bind else 1
    started = time.monotonic()
    phase = None

    for attempt in range(1, attempts + 1):
        if cancel.is_set():
            raise ResolutionCancelled(claim_name)

        pvc = get_claim(core_api, claim_name, namespace, log=log, strict=strict)
        volume_name = _bound_volume_name(pvc)
        if volume_name:
            log.info(f"Found bounded pv={volume_name} for pvc={claim_name}")
            return volume_name

        phase = pvc.status.phase if pvc.status else None
        if attempt == attempts:
            break

        wait = delay
        if timeout is not None:
            remaining = timeout - (time.monotonic() - started)
            if remaining <= 0:
                raise BindTimeout(claim_name, attempt, phase)
            wait = min(delay, remaining)

        log.warning(
            f"Waiting {wait:g} seconds before retry getting pvc {claim_name} "
            f"(phase={phase}, attempt {attempt}/{attempts})"
        )
        if cancel.wait(wait):
            raise ResolutionCancelled(claim_name)
        if timeout is not None and time.monotonic() - started >= timeout:
            raise BindTimeout(claim_name, attempt, phase)

    raise BindTimeout(claim_name, attempts, phase)

"""Resolution failures.

Every failure names the lookup key it failed on and the terminal state the
pipeline stopped in.
"""


class AffinityResolutionError(Exception):
    """Base class for node affinity resolution failures."""

    state = "Failed"

    def __init__(self, key, message):
        super().__init__(message)
        self.key = key
        self.message = message


class ClaimNotFound(AffinityResolutionError):
    state = "ClaimNotFound"

    def __init__(self, claim_name, namespace):
        super().__init__(
            claim_name, f"fail to find pvc by name {claim_name} in namespace {namespace}"
        )
        self.namespace = namespace


class BindTimeout(AffinityResolutionError):
    """Raised when a claim does not reach Bound within the wait budget."""

    state = "BindTimeout"

    def __init__(self, claim_name, attempts, phase=None):
        super().__init__(
            claim_name,
            f"fail to find bounded pv to pvc name {claim_name} "
            f"after {attempts} attempt(s) (last phase: {phase or 'unknown'})",
        )
        self.attempts = attempts
        self.phase = phase


class VolumeNotFound(AffinityResolutionError):
    state = "VolumeNotFound"

    def __init__(self, volume_name):
        super().__init__(volume_name, f"fail to find pv by name {volume_name}")


class InvalidVolumeSpec(AffinityResolutionError):
    state = "VolumeSpecInvalid"

    def __init__(self, volume_name, reason):
        super().__init__(
            volume_name,
            f"Error while trying to get volume by pv name {volume_name}. Error: {reason}",
        )
        self.reason = reason


class MalformedIdentity(AffinityResolutionError):
    state = "IdentityMalformed"

    def __init__(self, handle):
        super().__init__(handle, f"volume handle {handle!r} is not an unsigned 64-bit integer")


class AttachmentNotFound(AffinityResolutionError):
    state = "AttachmentNotFound"

    def __init__(self, volume_name):
        super().__init__(volume_name, f"unable to find volume attachment for pv {volume_name}")


class PlacementNotFound(AffinityResolutionError):
    state = "PlacementNotFound"

    def __init__(self, identity, reason=None):
        message = f"unable to find matching disk proxy by device id {identity}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(identity, message)


class AmbiguousMatch(AffinityResolutionError):
    """Raised in strict mode when a lookup matches more than one record."""

    state = "AmbiguousMatch"

    def __init__(self, kind, key, names):
        super().__init__(key, f"{len(names)} {kind} records match {key}: {', '.join(names)}")
        self.kind = kind
        self.names = list(names)


class ResolutionCancelled(AffinityResolutionError):
    state = "Cancelled"

    def __init__(self, claim_name):
        super().__init__(claim_name, f"resolution for pvc {claim_name} was cancelled")

"""Volume identity and placement strategies.

A strategy turns a bound PV name into the node serving it. Two exist:

* ``CsiHandleStrategy`` parses the PV's CSI volume handle as a numeric device
  id and finds the disk-proxy StatefulSet whose ``disks`` annotation lists it.
* ``VolumeAttachmentStrategy`` finds the VolumeAttachment for the PV and reads
  the node it is attached to.
"""

import abc
import logging
from dataclasses import dataclass
from typing import Any, Optional

from . import constants
from .context import first_match
from .errors import (
    AmbiguousMatch,
    AttachmentNotFound,
    InvalidVolumeSpec,
    MalformedIdentity,
    PlacementNotFound,
    VolumeNotFound,
)
from .k8s import list_stateful_sets, list_volume_attachments, read_volume
from .templates import affinity_node_names, node_name_from_pod_spec

logger = logging.getLogger(__name__)


@dataclass
class Placement:
    """Where a volume is served from."""

    node_name: str
    source_kind: str
    source_name: str
    source_affinity: Optional[Any] = None


def parse_device_id(handle):
    """Parse a volume handle as an unsigned 64-bit decimal integer."""
    value = handle.strip()
    if not value or not (value.isascii() and value.isdigit()):
        raise MalformedIdentity(handle)
    device_id = int(value)
    if device_id > constants.UINT64_MAX:
        raise MalformedIdentity(handle)
    return device_id


def device_ids(annotation):
    """Leading device id token of each comma-separated tuple."""
    ids = []
    for device_tuple in (annotation or "").split(","):
        tokens = device_tuple.split()
        if tokens:
            ids.append(tokens[0])
    return ids


class PlacementStrategy(abc.ABC):
    """Resolves a volume to its identity, and an identity to a node."""

    name = None
    # Whether an unbound claim is re-read before failing
    wait_for_bind = True

    @abc.abstractmethod
    def volume_identity(self, volume_name, log=logger):
        """Return the identity of a PV."""

    @abc.abstractmethod
    def locate(self, identity, log=logger):
        """Return the Placement serving an identity."""

    def describe_identity(self, identity):
        return str(identity)


class CsiHandleStrategy(PlacementStrategy):
    name = constants.STRATEGY_HANDLE

    def __init__(
        self,
        core_api,
        apps_api,
        namespace=constants.NAMESPACE,
        label_selector=constants.DISK_PROXY_LABEL_SELECTOR,
        annotation_key=constants.DISKS_ANNOTATION_KEY,
        strict=False,
    ):
        self.core_api = core_api
        self.apps_api = apps_api
        self.namespace = namespace
        self.label_selector = label_selector
        self.annotation_key = annotation_key
        self.strict = strict

    def volume_handle(self, volume_name, log=logger):
        """Return the trimmed CSI volume handle of a PV."""
        log.info(f"Start getVolumeByPvName, searching for name={volume_name}")
        pv = read_volume(self.core_api, volume_name, log=log)
        if pv is None:
            raise VolumeNotFound(volume_name)
        csi = pv.spec.csi if pv.spec else None
        if csi is None:
            raise InvalidVolumeSpec(volume_name, "pv.Spec.CSI=nil")
        handle = (csi.volume_handle or "").strip()
        if not handle:
            raise InvalidVolumeSpec(
                volume_name, f"pv.Spec.CSI.VolumeHandle={csi.volume_handle!r}"
            )
        return handle

    def volume_identity(self, volume_name, log=logger):
        return parse_device_id(self.volume_handle(volume_name, log=log))

    def find_disk_proxy(self, device_id, log=logger):
        """Return the disk-proxy StatefulSet serving device_id."""
        stateful_sets = list_stateful_sets(
            self.apps_api, self.namespace, self.label_selector, log=log
        )
        target = str(device_id)

        def serves(sts):
            annotations = {}
            if sts.spec and sts.spec.template and sts.spec.template.metadata:
                annotations = sts.spec.template.metadata.annotations or {}
            disks = annotations.get(self.annotation_key, "")
            log.debug(
                f"searching matching {sts.metadata.name} for device id {target} in disks list: {disks}"
            )
            return target in device_ids(disks)

        sts = first_match(
            stateful_sets, serves, "disk proxy", target, log, strict=self.strict
        )
        if sts is None:
            raise PlacementNotFound(device_id)
        log.info(f"Found disk proxy {sts.metadata.name} for device id {target}")
        return sts

    def locate(self, identity, log=logger):
        sts = self.find_disk_proxy(identity, log=log)
        pod_spec = sts.spec.template.spec if sts.spec.template else None
        node_name = node_name_from_pod_spec(pod_spec)
        if not node_name:
            node_names = affinity_node_names(pod_spec.affinity) if pod_spec else None
            if node_names and len(node_names) > 1:
                if self.strict:
                    raise AmbiguousMatch("node", identity, node_names)
                raise PlacementNotFound(
                    identity,
                    f"disk proxy {sts.metadata.name} may run on any of {', '.join(node_names)}",
                )
            raise PlacementNotFound(
                identity, f"disk proxy {sts.metadata.name} has no node placement"
            )
        return Placement(
            node_name=node_name,
            source_kind="StatefulSet",
            source_name=sts.metadata.name,
            source_affinity=pod_spec.affinity if pod_spec else None,
        )


class VolumeAttachmentStrategy(PlacementStrategy):
    name = constants.STRATEGY_ATTACHMENT
    wait_for_bind = False

    def __init__(self, storage_api, label_selector=None, strict=False):
        self.storage_api = storage_api
        self.label_selector = label_selector
        self.strict = strict

    def volume_identity(self, volume_name, log=logger):
        attachments = list_volume_attachments(
            self.storage_api, label_selector=self.label_selector, log=log
        )

        def references(attachment):
            source = attachment.spec.source if attachment.spec else None
            return source is not None and source.persistent_volume_name == volume_name

        attachment = first_match(
            attachments, references, "volume attachment", volume_name, log, strict=self.strict
        )
        if attachment is None:
            raise AttachmentNotFound(volume_name)
        log.info(f"Found volume attachment {attachment.metadata.name} for pv {volume_name}")
        return attachment

    def locate(self, identity, log=logger):
        node_name = identity.spec.node_name
        if not node_name:
            raise PlacementNotFound(
                identity.metadata.name, "volume attachment has no node name"
            )
        if not (identity.status and identity.status.attached):
            log.warning(
                f"Volume attachment {identity.metadata.name} is not attached yet, using node {node_name}"
            )
        return Placement(
            node_name=node_name,
            source_kind="VolumeAttachment",
            source_name=identity.metadata.name,
        )

    def describe_identity(self, identity):
        return identity.metadata.name


def make_strategy(name, core_api, apps_api, storage_api, namespace=constants.NAMESPACE,
                  attachment_selector=None, strict=False):
    """Build a strategy by name."""
    if name == constants.STRATEGY_HANDLE:
        return CsiHandleStrategy(core_api, apps_api, namespace=namespace, strict=strict)
    if name == constants.STRATEGY_ATTACHMENT:
        return VolumeAttachmentStrategy(
            storage_api, label_selector=attachment_selector, strict=strict
        )
    raise ValueError(f"Invalid strategy: {name}. Allowed: {constants.STRATEGIES}")

"""Shared fixtures: Kubernetes objects and mocked API handles."""

from unittest.mock import MagicMock

import pytest
from kubernetes import client

from disk_affinity import constants

PHASE_PENDING = "Pending"
PHASE_LOST = "Lost"


def make_pvc(name, phase=constants.PHASE_BOUND, volume_name=None, namespace=constants.NAMESPACE):
    return client.V1PersistentVolumeClaim(
        metadata=client.V1ObjectMeta(name=name, namespace=namespace),
        spec=client.V1PersistentVolumeClaimSpec(volume_name=volume_name),
        status=client.V1PersistentVolumeClaimStatus(phase=phase),
    )


def make_pv(name, handle=None, driver="magellan.csi"):
    csi = None
    if handle is not None:
        csi = client.V1CSIPersistentVolumeSource(driver=driver, volume_handle=handle)
    return client.V1PersistentVolume(
        metadata=client.V1ObjectMeta(name=name),
        spec=client.V1PersistentVolumeSpec(csi=csi),
    )


def hostname_term(node_name):
    return client.V1NodeSelectorTerm(
        match_expressions=[
            client.V1NodeSelectorRequirement(
                key=constants.HOSTNAME_LABEL, operator="In", values=[node_name]
            )
        ]
    )


def hostname_affinity(*node_names, extra_terms=()):
    """Required affinity with one hostname term per node (terms are ORed)."""
    terms = [hostname_term(name) for name in node_names] + list(extra_terms)
    return client.V1Affinity(
        node_affinity=client.V1NodeAffinity(
            required_during_scheduling_ignored_during_execution=client.V1NodeSelector(
                node_selector_terms=terms
            )
        )
    )


def make_disk_proxy(name, disks, node_name=None, node_selector=None, affinity=None):
    if node_name and affinity is None and node_selector is None:
        affinity = hostname_affinity(node_name)
    annotations = {}
    if disks is not None:
        annotations[constants.DISKS_ANNOTATION_KEY] = disks
    labels = {constants.APP_LABEL_KEY: constants.DISK_PROXY_APP}
    return client.V1StatefulSet(
        metadata=client.V1ObjectMeta(name=name, namespace=constants.NAMESPACE, labels=labels),
        spec=client.V1StatefulSetSpec(
            service_name=constants.DISK_PROXY_APP,
            selector=client.V1LabelSelector(match_labels=labels),
            template=client.V1PodTemplateSpec(
                metadata=client.V1ObjectMeta(labels=labels, annotations=annotations),
                spec=client.V1PodSpec(
                    containers=[client.V1Container(name="disk-proxy")],
                    affinity=affinity,
                    node_selector=node_selector,
                ),
            ),
        ),
    )


def make_attachment(name, volume_name, node_name, attached=True):
    return client.V1VolumeAttachment(
        metadata=client.V1ObjectMeta(name=name),
        spec=client.V1VolumeAttachmentSpec(
            attacher="magellan.csi",
            node_name=node_name,
            source=client.V1VolumeAttachmentSource(persistent_volume_name=volume_name),
        ),
        status=client.V1VolumeAttachmentStatus(attached=attached),
    )


def claim_list(*pvcs):
    return client.V1PersistentVolumeClaimList(items=list(pvcs))


@pytest.fixture
def core_api():
    api = MagicMock(name="CoreV1Api")
    api.list_namespaced_persistent_volume_claim.return_value = claim_list()
    return api


@pytest.fixture
def apps_api():
    api = MagicMock(name="AppsV1Api")
    api.list_namespaced_stateful_set.return_value = client.V1StatefulSetList(items=[])
    return api


@pytest.fixture
def storage_api():
    api = MagicMock(name="StorageV1Api")
    api.list_volume_attachment.return_value = client.V1VolumeAttachmentList(items=[])
    return api


def set_claims(core_api, *pvcs):
    core_api.list_namespaced_persistent_volume_claim.return_value = claim_list(*pvcs)


def set_disk_proxies(apps_api, *stateful_sets):
    apps_api.list_namespaced_stateful_set.return_value = client.V1StatefulSetList(
        items=list(stateful_sets)
    )


def set_attachments(storage_api, *attachments):
    storage_api.list_volume_attachment.return_value = client.V1VolumeAttachmentList(
        items=list(attachments)
    )

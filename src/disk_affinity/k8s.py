"""Kubernetes client helpers."""

import logging
from kubernetes import client, config
from kubernetes.client.rest import ApiException

logger = logging.getLogger(__name__)


def init_clients(kubeconfig=None, context=None):
    """Load Kubernetes config and return Core, Apps and Storage API clients."""
    if kubeconfig or context:
        config.load_kube_config(config_file=kubeconfig, context=context)
        logger.info("Loaded kubeconfig")
    else:
        try:
            config.load_incluster_config()
            logger.info("Loaded in-cluster Kubernetes config")
        except config.ConfigException:
            config.load_kube_config()
            logger.info("Loaded kubeconfig")

    return client.CoreV1Api(), client.AppsV1Api(), client.StorageV1Api()


def list_claims(core_api, namespace, log=logger):
    """List PVCs in a namespace."""
    try:
        return core_api.list_namespaced_persistent_volume_claim(namespace=namespace).items or []
    except ApiException as e:
        log.error(f"Error listing pvcs: {e}")
        raise


def read_volume(core_api, name, log=logger):
    """Read a PV by name, None if it does not exist."""
    log.info(f"Get PV name {name}")
    try:
        return core_api.read_persistent_volume(name=name)
    except ApiException as e:
        if e.status == 404:
            return None
        log.error(f"Got exception on PV scan {name}: {e}")
        raise


def list_volume_attachments(storage_api, label_selector=None, log=logger):
    """List VolumeAttachments, optionally filtered by label selector."""
    kwargs = {}
    if label_selector:
        kwargs["label_selector"] = label_selector
    try:
        return storage_api.list_volume_attachment(**kwargs).items or []
    except ApiException as e:
        log.error(f"Error listing volume attachments: {e}")
        raise


def list_stateful_sets(apps_api, namespace, label_selector, log=logger):
    """List StatefulSets in a namespace matching a label selector."""
    try:
        return apps_api.list_namespaced_stateful_set(
            namespace=namespace, label_selector=label_selector
        ).items or []
    except ApiException as e:
        log.error(f"Failed to find disk proxy statefulSet list with by label {label_selector}: {e}")
        raise

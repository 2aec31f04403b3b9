"""Node affinity templates."""

from kubernetes import client

from . import constants


def create_node_affinity(node_name):
    """Create a required node affinity pinning a pod to node_name."""
    if not node_name:
        raise ValueError("node name must not be empty")

    return client.V1Affinity(
        node_affinity=client.V1NodeAffinity(
            required_during_scheduling_ignored_during_execution=client.V1NodeSelector(
                node_selector_terms=[
                    client.V1NodeSelectorTerm(
                        match_expressions=[
                            client.V1NodeSelectorRequirement(
                                key=constants.HOSTNAME_LABEL,
                                operator="In",
                                values=[node_name],
                            )
                        ]
                    )
                ]
            )
        )
    )


def affinity_node_names(affinity):
    """Nodes a required hostname affinity pins to, one per selector term.

    Terms are ORed, so None is returned when any term leaves the hostname
    open.
    """
    node_affinity = affinity.node_affinity if affinity else None
    selector = (
        node_affinity.required_during_scheduling_ignored_during_execution
        if node_affinity
        else None
    )
    if selector is None or not selector.node_selector_terms:
        return None

    node_names = set()
    for term in selector.node_selector_terms:
        pinned = None
        for expr in term.match_expressions or []:
            if (
                expr.key == constants.HOSTNAME_LABEL
                and expr.operator == "In"
                and expr.values
                and len(expr.values) == 1
            ):
                pinned = expr.values[0]
                break
        if pinned is None:
            return None
        node_names.add(pinned)
    return sorted(node_names)


def node_name_from_affinity(affinity):
    """Return the node a required hostname affinity pins to, if exactly one."""
    node_names = affinity_node_names(affinity)
    if node_names and len(node_names) == 1:
        return node_names[0]
    return None


def node_name_from_pod_spec(pod_spec):
    """Return the node a pod spec is scheduled to.

    Checked in order: required hostname affinity, hostname node selector,
    then spec.nodeName.
    """
    if pod_spec is None:
        return None
    node_name = node_name_from_affinity(pod_spec.affinity)
    if node_name:
        return node_name
    node_name = (pod_spec.node_selector or {}).get(constants.HOSTNAME_LABEL)
    if node_name:
        return node_name
    return pod_spec.node_name or None

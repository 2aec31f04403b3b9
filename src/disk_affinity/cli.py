#!/usr/bin/env python3
"""
Disk Affinity CLI

Resolves the node serving a PersistentVolumeClaim's volume and prints a
node affinity that pins a workload to it.
"""

import argparse
import json
import logging
import sys

from kubernetes import client, config
from kubernetes.client.rest import ApiException

from . import constants, k8s
from .context import ResolutionContext
from .errors import AffinityResolutionError, MalformedIdentity
from .resolver import NodeAffinityResolver
from .strategies import CsiHandleStrategy, make_strategy, parse_device_id


def configure_logging(verbose=False):
    """Configure process logging."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def load_clients(args):
    """Load Kubernetes configuration and return API clients."""
    try:
        return k8s.init_clients(kubeconfig=args.kubeconfig, context=args.context)
    except config.ConfigException as e:
        print(f"Error loading Kubernetes config: {e}", file=sys.stderr)
        return None


def build_resolver(args, clients):
    core_api, apps_api, storage_api = clients
    strategy = make_strategy(
        args.strategy,
        core_api,
        apps_api,
        storage_api,
        namespace=args.namespace,
        attachment_selector=args.attachment_selector,
        strict=args.strict,
    )
    return NodeAffinityResolver(
        strategy,
        core_api,
        namespace=args.namespace,
        max_attempts=args.max_attempts,
        delay=args.delay,
        wait_for_bind=args.wait_for_bind,
        strict=args.strict,
    )


def resolution_context(args):
    return ResolutionContext(cluster_name=args.cluster_name, cluster_namespace=args.namespace)


def run(func, args):
    """Run a command, reporting failures the same way for all commands."""
    clients = load_clients(args)
    if clients is None:
        sys.exit(1)
    try:
        func(args, clients)
    except AffinityResolutionError as e:
        print(f"✗ {e.state}: {e.message}", file=sys.stderr)
        sys.exit(1)
    except ApiException as e:
        print(f"✗ Error: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("✗ Interrupted", file=sys.stderr)
        sys.exit(130)


def cmd_resolve(args, clients):
    """Resolve a PVC to a node affinity."""
    resolver = build_resolver(args, clients)
    resolution = resolver.resolve(
        args.claim, context=resolution_context(args), timeout=args.timeout
    )
    affinity = client.ApiClient().sanitize_for_serialization(resolution.affinity)

    if args.output == "json":
        print(json.dumps({"affinity": affinity}, indent=2))
    else:
        placement = resolution.placement
        print(f"PVC: {resolution.claim_name}")
        print(f"Namespace: {resolution.namespace}")
        print(f"PV: {resolution.volume_name}")
        print(f"Identity: {resolver.strategy.describe_identity(resolution.identity)}")
        print(f"{placement.source_kind}: {placement.source_name}")
        print(f"Node: {placement.node_name}")


def cmd_volume(args, clients):
    """Print the PV bound to a PVC."""
    resolver = build_resolver(args, clients)
    print(resolver.resolve_bound_volume(
        args.claim, context=resolution_context(args), timeout=args.timeout
    ))


def cmd_identity(args, clients):
    """Print the identity of a PV under the selected strategy."""
    resolver = build_resolver(args, clients)
    log = resolution_context(args).logger(__name__)
    identity = resolver.strategy.volume_identity(args.volume, log=log)
    print(resolver.strategy.describe_identity(identity))


def cmd_locate(args, clients):
    """Print the disk proxy and node serving a device id."""
    core_api, apps_api, _ = clients
    strategy = CsiHandleStrategy(core_api, apps_api, namespace=args.namespace, strict=args.strict)
    log = resolution_context(args).logger(__name__)
    placement = strategy.locate(args.device_id, log=log)
    print(f"{'DEVICE':<22} {'STATEFULSET':<30} {'NODE':<30}")
    print("-" * 82)
    print(f"{args.device_id:<22} {placement.source_name:<30} {placement.node_name:<30}")


def device_id(value):
    """argparse type for a device id."""
    try:
        return parse_device_id(value)
    except MalformedIdentity as e:
        raise argparse.ArgumentTypeError(e.message)


def positive_int(value):
    """argparse type for a count of at least one."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"{value!r} is not an integer")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def main(argv=None):
    """Main CLI entrypoint."""
    parser = argparse.ArgumentParser(
        description="Disk Affinity CLI - pin workloads to the node serving their volume",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Print the node affinity for a claim
  %(prog)s resolve data-pvc

  # Show every resolved key instead of the affinity
  %(prog)s resolve data-pvc -o text

  # Resolve through VolumeAttachments (fails at once if unbound)
  %(prog)s --strategy attachment resolve data-pvc

  # Find the disk proxy serving device 42
  %(prog)s locate 42
        """,
    )
    parser.add_argument(
        "--namespace", "-n", default=constants.NAMESPACE,
        help=f"Namespace of claims and disk proxies (default: {constants.NAMESPACE})"
    )
    parser.add_argument(
        "--strategy", choices=constants.STRATEGIES, default=constants.STRATEGY_HANDLE,
        help="How a volume is mapped to a node (default: handle)"
    )
    parser.add_argument(
        "--max-attempts", type=positive_int, default=constants.MAX_RETRIES,
        help=f"Claim lookups before giving up on binding (default: {constants.MAX_RETRIES})"
    )
    parser.add_argument(
        "--delay", type=float, default=constants.SLEEP_BETWEEN_RETRIES,
        help=f"Seconds between claim lookups (default: {constants.SLEEP_BETWEEN_RETRIES})"
    )
    wait_group = parser.add_mutually_exclusive_group()
    wait_group.add_argument(
        "--wait", dest="wait_for_bind", action="store_const", const=True, default=None,
        help="Re-read an unbound claim until it binds (default for the handle strategy)"
    )
    wait_group.add_argument(
        "--no-wait", dest="wait_for_bind", action="store_const", const=False,
        help="Fail immediately if the claim is not bound (default for the attachment strategy)"
    )
    parser.add_argument(
        "--timeout", type=float, default=None,
        help="Overall seconds to wait for the claim to bind"
    )
    parser.add_argument(
        "--strict", action="store_true",
        help="Fail when a lookup matches more than one object"
    )
    parser.add_argument(
        "--attachment-selector", default=None,
        help="Label selector for VolumeAttachments (attachment strategy)"
    )
    parser.add_argument("--cluster-name", default=None, help="Cluster name for log records")
    parser.add_argument("--kubeconfig", default=None, help="Path to kubeconfig")
    parser.add_argument("--context", default=None, help="Kubeconfig context")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    resolve_parser = subparsers.add_parser("resolve", help="Resolve a PVC to a node affinity")
    resolve_parser.add_argument("claim", help="PVC name")
    resolve_parser.add_argument(
        "--output", "-o", choices=["json", "text"], default="json",
        help="Output format"
    )
    resolve_parser.set_defaults(func=cmd_resolve)

    volume_parser = subparsers.add_parser("volume", help="Print the PV bound to a PVC")
    volume_parser.add_argument("claim", help="PVC name")
    volume_parser.set_defaults(func=cmd_volume)

    identity_parser = subparsers.add_parser("identity", help="Print the identity of a PV")
    identity_parser.add_argument("volume", help="PV name")
    identity_parser.set_defaults(func=cmd_identity)

    locate_parser = subparsers.add_parser(
        "locate", help="Print the disk proxy serving a device id"
    )
    locate_parser.add_argument("device_id", type=device_id, help="Numeric device id")
    locate_parser.set_defaults(func=cmd_locate)

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    configure_logging(args.verbose)
    run(args.func, args)


if __name__ == "__main__":
    main()

"""Per-resolution logging context and record matching."""

import logging
from dataclasses import dataclass
from typing import Optional

from .errors import AmbiguousMatch


class ContextLogger(logging.LoggerAdapter):
    """Prefixes records with the resolution's cluster fields."""

    def process(self, msg, kwargs):
        fields = " ".join(f"{k}={v}" for k, v in self.extra.items() if v)
        if fields:
            msg = f"[{fields}] {msg}"
        return msg, kwargs


@dataclass(frozen=True)
class ResolutionContext:
    """Identifies the cluster a resolution is run for."""

    cluster_name: Optional[str] = None
    cluster_namespace: Optional[str] = None
    pkg: str = "cluster"

    def logger(self, name):
        return ContextLogger(
            logging.getLogger(name),
            {
                "pkg": self.pkg,
                "cluster-name": self.cluster_name,
                "cluster-namespace": self.cluster_namespace,
            },
        )


def first_match(items, predicate, kind, key, log, strict=False):
    """Return the first item satisfying predicate, or None.

    Multiple matches are logged; with strict=True they raise AmbiguousMatch.
    """
    matches = [item for item in items if predicate(item)]
    if not matches:
        return None
    if len(matches) > 1:
        names = [m.metadata.name for m in matches]
        if strict:
            raise AmbiguousMatch(kind, key, names)
        log.warning(f"{len(matches)} {kind} records match {key} ({', '.join(names)}), using {names[0]}")
    return matches[0]

"""Run the Bucket Claim Operator with ``python -m bucket_claim_operator``."""

from __future__ import annotations

import kopf

from . import main as _operator  # noqa: F401  registers the kopf handlers
from .config import load_config


def main() -> None:
    """Start the operator, scoped to WATCH_NAMESPACE when it is set."""
    namespaces = list(load_config().watch_namespaces)
    kopf.run(
        standalone=True,
        clusterwide=not namespaces,
        namespaces=namespaces,
    )


if __name__ == "__main__":
    main()

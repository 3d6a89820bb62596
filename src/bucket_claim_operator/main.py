"""Kopf operator wiring for the Bucket Claim Operator."""

from __future__ import annotations

import logging
import time
from typing import Any

import kopf

from . import logging as structured_logging
from .builders.provisioner import (
    create_provisioner_from_config,
    create_secret_resolver_from_config,
    get_core_v1_api,
)
from .config import load_config, load_watched_kinds
from .constants import API_GROUP, FINALIZER
from .exceptions import ConfigError
from .handlers.claims import ClaimReconciler
from .handlers.watch import register_claim_handlers
from .health import start_health_server
from .kinds import get_claim_kind
from .naming import BucketNameGenerator
from .tracing import initialize_tracing
from .utils.configmaps import make_configmap_publisher

logger = logging.getLogger(__name__)


@kopf.on.startup()
def configure(settings: kopf.OperatorSettings, memo: kopf.Memo, **_: Any) -> None:
    """Load configuration and build one reconciler per watched claim kind."""
    try:
        operator_config = load_config()
    except ConfigError as e:
        raise kopf.PermanentError(f"Invalid operator configuration: {e}") from e

    structured_logging.setup_structured_logging(operator_config.log_level)
    initialize_tracing()

    settings.persistence.finalizer = FINALIZER
    settings.persistence.progress_storage = kopf.AnnotationsProgressStorage(prefix=API_GROUP)
    settings.persistence.diffbase_storage = kopf.AnnotationsDiffBaseStorage(prefix=API_GROUP)

    settings.posting.level = logging.INFO
    settings.networking.request_timeout = 30.0
    settings.execution.max_workers = operator_config.max_workers

    api = get_core_v1_api()
    secret_resolver = create_secret_resolver_from_config(operator_config, api=api)
    provisioner = create_provisioner_from_config(operator_config)
    name_generator = BucketNameGenerator()

    reconcilers: dict[str, ClaimReconciler] = {}
    for kind in operator_config.watched_kinds:
        claim_kind = get_claim_kind(kind)
        publisher = None
        if operator_config.publish_connection_configmap:
            publisher = make_configmap_publisher(api, claim_kind, operator_config.secret_store_timeout)
        reconcilers[kind] = ClaimReconciler(
            claim_kind,
            secret_resolver=secret_resolver,
            provisioner=provisioner,
            name_generator=name_generator,
            configmap_publisher=publisher,
        )

    memo.config = operator_config
    memo.reconcilers = reconcilers
    memo.health_server = start_health_server(
        operator_config.metrics_port,
        is_ready=lambda: all(r.accepting for r in reconcilers.values()),
    )
    logger.info(
        f"Watching {', '.join(operator_config.watched_kinds)} in "
        f"{', '.join(operator_config.watch_namespaces) or 'all namespaces'} "
        f"against {provisioner.endpoint}"
    )


@kopf.on.cleanup()
def shutdown(memo: kopf.Memo, **_: Any) -> None:
    """Drain running reconciliations and stop the health server."""
    reconcilers: dict[str, ClaimReconciler] = getattr(memo, "reconcilers", {})
    operator_config = getattr(memo, "config", None)
    timeout = operator_config.shutdown_timeout if operator_config else 0.0

    deadline = time.monotonic() + timeout
    for reconciler in reconcilers.values():
        reconciler.stop_accepting()
    for reconciler in reconcilers.values():
        pending = reconciler.shutdown(max(0.0, deadline - time.monotonic()))
        if pending:
            logger.warning(f"{len(pending)} {reconciler.kind} reconciliation(s) abandoned at shutdown")

    server = getattr(memo, "health_server", None)
    if server is not None:
        server.shutdown()


for _kind in load_watched_kinds():
    register_claim_handlers(get_claim_kind(_kind))

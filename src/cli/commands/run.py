import logging
from pathlib import Path
from typing import Optional

import typer

from core.config import OperatorConfig
from core.engine.identity_engine import get_current_aws_identity
from core.engine.tag_engine import DEFAULT_DELAY_SECONDS, DEFAULT_MAX_ATTEMPTS
from core.engine.dispatch_engine import (
    DEFAULT_CACHE_SYNC_TIMEOUT_SECONDS,
    DEFAULT_RESYNC_PERIOD_SECONDS,
    DEFAULT_WORKERS,
)
from core.errors import ConfigurationError
from core.logs import setup_logging
from core.merge import build_tagset
from core.models import AwsIdentityError
from core.operator import run_operator

logger = logging.getLogger("aws-node-retag")

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def run(
    tags: Optional[str] = typer.Option(
        None,
        "--tags",
        envvar="TAGS",
        help='Tags as a JSON object, e.g. {"Environment":"production"}.',
    ),
    template: Optional[Path] = typer.Option(
        None,
        "--template",
        "-t",
        envvar="TAGS_TEMPLATE",
        help="Path to a YAML/JSON tag template (defaults/fixed/dynamic).",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        envvar="DRY_RUN",
        help="Log what would be tagged; do not call EC2 or patch annotations.",
    ),
    watch_nodes: bool = typer.Option(True, "--watch-nodes/--no-watch-nodes", help="Tag instances behind Nodes."),
    watch_volumes: bool = typer.Option(
        True, "--watch-volumes/--no-watch-volumes", help="Tag EBS volumes behind PersistentVolumes."
    ),
    workers: int = typer.Option(DEFAULT_WORKERS, "--workers", envvar="WORKERS", help="Concurrent reconciles."),
    resync_period: int = typer.Option(
        DEFAULT_RESYNC_PERIOD_SECONDS,
        "--resync-period",
        envvar="RESYNC_PERIOD",
        help="Seconds between retries of resources whose tagging failed.",
    ),
    cache_sync_timeout: int = typer.Option(
        DEFAULT_CACHE_SYNC_TIMEOUT_SECONDS,
        "--cache-sync-timeout",
        envvar="CACHE_SYNC_TIMEOUT",
        help="Seconds to wait for the initial cluster access check of each resource.",
    ),
    retry_attempts: int = typer.Option(
        DEFAULT_MAX_ATTEMPTS, "--retry-attempts", help="CreateTags attempts while resources are not yet visible."
    ),
    retry_delay: float = typer.Option(
        DEFAULT_DELAY_SECONDS, "--retry-delay", help="Initial backoff between CreateTags attempts (seconds)."
    ),
    kubeconfig: Optional[str] = typer.Option(
        None,
        "--kubeconfig",
        envvar="KUBECONFIG",
        help="Path to a kubeconfig file (default: in-cluster config).",
    ),
    profile: Optional[str] = typer.Option(
        None,
        "--profile",
        envvar="AWS_PROFILE",
        help="AWS profile name (from ~/.aws/config).",
    ),
    region: Optional[str] = typer.Option(
        None,
        "--region",
        envvar="AWS_REGION",
        help="Default AWS region (the region of each resource comes from Kubernetes).",
    ),
    log_level: str = typer.Option("INFO", "--log-level", envvar="LOG_LEVEL", help="DEBUG, INFO, WARNING or ERROR."),
) -> None:
    """
    Sobe o operador: observa Nodes e PersistentVolumes e taggeia os recursos
    EC2/EBS correspondentes uma única vez.
    """
    if log_level.upper() not in LOG_LEVELS:
        raise typer.BadParameter(f"--log-level must be one of {', '.join(LOG_LEVELS)}")
    setup_logging(log_level)

    try:
        tagset = build_tagset(tags, str(template) if template else None)
        cfg = OperatorConfig(
            tagset=tagset,
            dry_run=dry_run,
            watch_nodes=watch_nodes,
            watch_volumes=watch_volumes,
            workers=workers,
            resync_period_seconds=resync_period,
            cache_sync_timeout_seconds=cache_sync_timeout,
            retry_max_attempts=retry_attempts,
            retry_delay_seconds=retry_delay,
            kubeconfig=kubeconfig,
            profile=profile,
            region=region,
        )
    except ConfigurationError as e:
        logger.error("configuration error", extra={"error": str(e)})
        raise typer.Exit(code=1)

    logger.info("loaded tags", extra={"tags": tagset.to_dict()})

    # preflight: sem credenciais válidas não adianta nem começar o watch
    try:
        identity = get_current_aws_identity(profile=profile, region=region)
    except AwsIdentityError as e:
        logger.error("failed to resolve AWS identity", extra={"error": str(e)})
        raise typer.Exit(code=1)

    logger.info(
        "AWS identity resolved",
        extra={"account": identity.account, "arn": identity.arn, "role": identity.role_name},
    )

    code = run_operator(cfg)
    if code != 0:
        raise typer.Exit(code=code)

import logging
import threading
from typing import Any, Callable, List, Optional

import kopf
from boto3.session import Session
from kubernetes import client, config as kube_config
from kubernetes.config.config_exception import ConfigException

from .config import OperatorConfig
from .engine.annotation_engine import AnnotationMarker
from .engine.dispatch_engine import KopfDispatcher, check_cluster_access
from .engine.tag_engine import Ec2TaggingClient
from .errors import CacheSyncError, ConfigurationError
from .reconcilers import BaseReconciler, get_reconciler_for_kind

logger = logging.getLogger(__name__)


def load_kubernetes_api(kubeconfig: Optional[str] = None) -> client.CoreV1Api:
    """
    kubeconfig explícito > in-cluster (service account) > ~/.kube/config.
    """
    try:
        if kubeconfig:
            kube_config.load_kube_config(config_file=kubeconfig)
        else:
            try:
                kube_config.load_incluster_config()
            except ConfigException:
                kube_config.load_kube_config()
    except (ConfigException, OSError) as e:
        raise ConfigurationError(f"failed to load kubernetes config: {e}") from e

    return client.CoreV1Api()


def kubernetes_login(kubeconfig: Optional[str] = None) -> Callable[..., kopf.ConnectionInfo]:
    """
    Handler de login do kopf que respeita o mesmo kubeconfig do CoreV1Api.

    Recarrega a config a cada chamada: o kopf volta aqui quando as
    credenciais expiram (tokens de exec plugin, por exemplo).
    """

    def login(**_: Any) -> kopf.ConnectionInfo:
        load_kubernetes_api(kubeconfig)
        cfg = client.Configuration.get_default_copy()

        header = cfg.get_api_key_with_prefix("authorization")
        parts = header.split(" ", 1) if header else []
        if len(parts) == 2:
            scheme, token = parts
        elif len(parts) == 1:
            scheme, token = None, parts[0]
        else:
            scheme, token = None, None

        return kopf.ConnectionInfo(
            server=cfg.host,
            ca_path=cfg.ssl_ca_cert,
            insecure=not cfg.verify_ssl,
            username=cfg.username or None,
            password=cfg.password or None,
            scheme=scheme,
            token=token,
            certificate_path=cfg.cert_file,
            private_key_path=cfg.key_file,
        )

    return login


def build_reconcilers(
    cfg: OperatorConfig,
    tagger: Ec2TaggingClient,
    marker: AnnotationMarker,
) -> List[BaseReconciler]:
    return [
        get_reconciler_for_kind(kind)(tagger, marker, cfg.tagset, dry_run=cfg.dry_run)
        for kind in cfg.kinds
    ]


def run_operator(
    cfg: OperatorConfig,
    *,
    api: Any = None,
    session: Optional[Session] = None,
    stop_event: Optional[threading.Event] = None,
) -> int:
    """
    Sobe o operador e bloqueia até SIGTERM/SIGINT (tratados pelo kopf)
    ou até o stop_event ser setado.

    Returns:
        Exit code (0 = parada limpa, 1 = falha no startup).
    """
    stop_event = stop_event or threading.Event()

    if api is None:
        try:
            api = load_kubernetes_api(cfg.kubeconfig)
        except ConfigurationError as e:
            logger.error("failed to build kubernetes client", extra={"error": str(e)})
            return 1

    if session is None:
        session = Session(profile_name=cfg.profile, region_name=cfg.region)

    tagger = Ec2TaggingClient(
        session,
        max_attempts=cfg.retry_max_attempts,
        delay_seconds=cfg.retry_delay_seconds,
        stop_event=stop_event,
    )
    marker = AnnotationMarker(api)
    reconcilers = build_reconcilers(cfg, tagger, marker)

    logger.info(
        "starting aws-node-retag",
        extra={"kinds": list(cfg.kinds), "tags": cfg.tagset.to_dict(), "dry_run": cfg.dry_run},
    )

    try:
        check_cluster_access(api, reconcilers, cfg.cache_sync_timeout_seconds)
    except CacheSyncError as e:
        logger.error("cannot reach the cluster API", extra={"error": str(e)})
        return 1

    dispatcher = KopfDispatcher(
        api,
        reconcilers,
        workers=cfg.workers,
        watch_timeout_seconds=cfg.watch_timeout_seconds,
        resync_period_seconds=cfg.resync_period_seconds,
        stop_event=stop_event,
        login=kubernetes_login(cfg.kubeconfig),
    )
    registry = dispatcher.register()

    try:
        kopf.run(
            registry=registry,
            clusterwide=True,
            standalone=True,
            stop_flag=stop_event,
        )
    except Exception as e:
        logger.error("operator failed", extra={"error": str(e)})
        return 1
    finally:
        stop_event.set()

    logger.info("operator stopped")
    return 0

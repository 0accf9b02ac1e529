import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import kopf
from kubernetes.client.rest import ApiException

from ..errors import CacheSyncError
from ..models import ChangeEvent, EventType, ReconcileResult

logger = logging.getLogger(__name__)

DEFAULT_WORKERS = 4
DEFAULT_WATCH_TIMEOUT_SECONDS = 300
DEFAULT_CACHE_SYNC_TIMEOUT_SECONDS = 120
DEFAULT_RESYNC_PERIOD_SECONDS = 12 * 60 * 60

# diffbase/progress do kopf ficam sob o mesmo domínio da anotação de tagging
PERSISTENCE_PREFIX = "aws-node-retag.io"
DIFFBASE_KEY = "last-handled-configuration"

HTTP_NOT_FOUND = 404


class KopfDispatcher:
    """
    Liga cada reconciler aos handlers do kopf.

    - on.create / on.resume  -> ChangeEvent ADDED (observação inicial)
    - on.update(field=...)   -> ChangeEvent MODIFIED, com o snapshot anterior
                                reconstruído a partir do valor antigo do campo
    - on.delete (optional)   -> esquece o estado em memória do recurso

    O kopf serializa os handlers de um mesmo objeto e cuida de watch,
    relist e sinais. Aqui fica só o resync periódico dos recursos que o
    ledger marcou para nova tentativa.
    """

    def __init__(
        self,
        api: Any,
        reconcilers: Sequence[Any],
        *,
        workers: int = DEFAULT_WORKERS,
        watch_timeout_seconds: int = DEFAULT_WATCH_TIMEOUT_SECONDS,
        resync_period_seconds: int = DEFAULT_RESYNC_PERIOD_SECONDS,
        stop_event: Optional[threading.Event] = None,
        login: Optional[Callable[..., Any]] = None,
    ) -> None:
        self.api = api
        self.reconcilers = list(reconcilers)
        self.workers = workers
        self.watch_timeout_seconds = watch_timeout_seconds
        self.resync_period_seconds = resync_period_seconds
        self.stop_event = stop_event or threading.Event()
        self.login = login

        self._locks: Dict[Tuple[str, str], threading.Lock] = {}
        self._locks_guard = threading.Lock()
        self._resync_thread: Optional[threading.Thread] = None

    # -- registro -------------------------------------------------------

    def register(self, registry: Optional[kopf.OperatorRegistry] = None) -> kopf.OperatorRegistry:
        registry = registry if registry is not None else kopf.OperatorRegistry()

        kopf.on.startup(id="configure", registry=registry)(self.on_startup)
        kopf.on.cleanup(id="cleanup", registry=registry)(self.on_cleanup)
        if self.login is not None:
            kopf.on.login(id="login", registry=registry)(self.login)

        for reconciler in self.reconcilers:
            resource = (reconciler.api_version, reconciler.plural)
            kopf.on.create(*resource, id="observe", param=reconciler, registry=registry)(self.on_observed)
            kopf.on.resume(*resource, id="observe", param=reconciler, registry=registry)(self.on_observed)
            kopf.on.update(
                *resource,
                id="transition",
                field=reconciler.watched_field,
                param=reconciler,
                registry=registry,
            )(self.on_field_changed)
            kopf.on.delete(*resource, id="forget", optional=True, param=reconciler, registry=registry)(
                self.on_deleted
            )

        return registry

    # -- handlers -------------------------------------------------------

    def on_startup(self, settings: kopf.OperatorSettings, **_: Any) -> None:
        """Configura o kopf e sobe o resync."""
        # nada de Events do Kubernetes por handler; os logs estruturados bastam
        settings.posting.enabled = False
        settings.execution.max_workers = self.workers
        settings.watching.server_timeout = self.watch_timeout_seconds
        settings.persistence.diffbase_storage = kopf.AnnotationsDiffBaseStorage(
            prefix=PERSISTENCE_PREFIX,
            key=DIFFBASE_KEY,
        )
        settings.persistence.progress_storage = kopf.AnnotationsProgressStorage(prefix=PERSISTENCE_PREFIX)

        self.start_resync()
        logger.info("watching for changes", extra={"kinds": [r.kind for r in self.reconcilers]})

    def on_cleanup(self, **_: Any) -> None:
        # o stop_event também interrompe backoffs de retry em andamento
        logger.info("received shutdown, stopping")
        self.stop_event.set()
        if self._resync_thread is not None:
            self._resync_thread.join(timeout=30.0)
            self._resync_thread = None

    def on_observed(self, body: kopf.Body, param: Any, **_: Any) -> None:
        resource = param.snapshot(body)
        self.dispatch(param, ChangeEvent(type=EventType.ADDED, new=resource))

    def on_field_changed(self, body: kopf.Body, old: Any, param: Any, **_: Any) -> None:
        resource = param.snapshot(body)
        previous = param.with_field_value(resource, old)
        self.dispatch(param, ChangeEvent(type=EventType.MODIFIED, new=resource, old=previous))

    def on_deleted(self, name: str, param: Any, **_: Any) -> None:
        param.forget(name)
        with self._locks_guard:
            self._locks.pop((param.kind, name), None)

    # -- dispatch -------------------------------------------------------

    def _lock_for(self, key: Tuple[str, str]) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    def dispatch(self, reconciler: Any, event: ChangeEvent) -> Optional[ReconcileResult]:
        """
        Roda uma unidade de trabalho. Handlers e resync podem tocar o mesmo
        objeto; o lock por (kind, name) mantém um de cada vez.
        """
        name = event.new.name
        with self._lock_for((reconciler.kind, name)):
            try:
                return reconciler.reconcile(event)
            except Exception:
                # erro de um recurso nunca derruba o processo nem afeta outros
                logger.exception(
                    "unexpected error while reconciling",
                    extra={"kind": reconciler.kind, "resource": name},
                )
                return None

    # -- resync ---------------------------------------------------------

    def start_resync(self) -> None:
        if self._resync_thread is not None:
            return
        self._resync_thread = threading.Thread(target=self._resync_loop, name="resync", daemon=True)
        self._resync_thread.start()

    def _resync_loop(self) -> None:
        while not self.stop_event.wait(self.resync_period_seconds):
            results = self.resync()
            logger.info("resync complete", extra={"retried": len(results)})

    def resync(self) -> List[ReconcileResult]:
        """
        Relê do API server cada recurso pendente no ledger (PARTIAL_FAILURE
        ou RETRY_PENDING) e entrega como MODIFIED com old == new.
        """
        results = []
        for reconciler in self.reconcilers:
            for name in reconciler.ledger.pending():
                if self.stop_event.is_set():
                    return results

                body = self._read(reconciler, name)
                if body is None:
                    continue

                resource = reconciler.snapshot(body)
                result = self.dispatch(reconciler, ChangeEvent(type=EventType.MODIFIED, new=resource, old=resource))
                if result is not None:
                    results.append(result)
        return results

    def _read(self, reconciler: Any, name: str) -> Optional[Dict[str, Any]]:
        read_fn = getattr(self.api, reconciler.read_method)
        try:
            obj = read_fn(name)
        except ApiException as e:
            if e.status == HTTP_NOT_FOUND:
                reconciler.forget(name)
                return None
            logger.warning(
                "resync read failed",
                extra={"kind": reconciler.kind, "resource": name, "status": e.status, "error": str(e.reason)},
            )
            return None
        return self.api.api_client.sanitize_for_serialization(obj)


def check_cluster_access(api: Any, reconcilers: Sequence[Any], timeout_seconds: int) -> None:
    """
    List mínimo de cada kind antes de entregar o controle ao kopf: sem
    acesso (RBAC, rede, credenciais) o operador não sobe.
    """
    for reconciler in reconcilers:
        list_fn = getattr(api, reconciler.list_method)
        try:
            list_fn(limit=1, _request_timeout=timeout_seconds)
        except ApiException as e:
            raise CacheSyncError(f"failed to list {reconciler.kind}: {e.status} {e.reason}") from e
        except Exception as e:
            raise CacheSyncError(f"failed to list {reconciler.kind}: {e}") from e
        logger.info("cluster access confirmed", extra={"kind": reconciler.kind})

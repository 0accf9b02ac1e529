import logging
from abc import ABC, abstractmethod
from typing import Any, ClassVar, List, Mapping, Optional, Type

from ..engine.annotation_engine import AnnotationMarker
from ..engine.tag_engine import Ec2TaggingClient
from ..errors import CloudAPIError, MalformedIdentifier, PatchConflict, TopologyNotFound, UnsupportedVolumeSource
from ..models import ChangeEvent, CloudResourceRef, Outcome, ReconcileResult, TagSet
from ..state import PartialFailureLedger, TagState, needs_tagging, observe_state, transition

logger = logging.getLogger(__name__)

PARSE_ERRORS = (MalformedIdentifier, TopologyNotFound, UnsupportedVolumeSource)


class BaseReconciler(ABC):
    """
    Classe base para todos os reconcilers.

    Mantém um registry automático de subclasses concretas (uma por kind do
    Kubernetes). O fluxo de reconcile é o mesmo para todos os kinds; cada
    subclass só decide elegibilidade e como chegar no CloudResourceRef.
    """

    # registro global de reconcilers concretos
    registry: ClassVar[List[Type["BaseReconciler"]]] = []

    # Kind do Kubernetes (Node, PersistentVolume...)
    kind: ClassVar[str] = ""

    # Recurso como o kopf enxerga (apiVersion + plural)
    api_version: ClassVar[str] = "v1"
    plural: ClassVar[str] = ""

    # Campo cuja transição torna um UPDATE elegível
    watched_field: ClassVar[str] = ""

    # Métodos do CoreV1Api: list no preflight de acesso, read no resync
    list_method: ClassVar[str] = ""
    read_method: ClassVar[str] = ""

    pretty_name: ClassVar[str] = ""

    def __init_subclass__(cls, **kwargs):
        """
        Sempre que uma subclass é criada, se não for abstrata, entra no registry.
        """
        super().__init_subclass__(**kwargs)

        if getattr(cls, "__abstractmethods__", None):
            return

        BaseReconciler.registry.append(cls)

    def __init__(
        self,
        tagger: Ec2TaggingClient,
        marker: AnnotationMarker,
        tagset: TagSet,
        *,
        dry_run: bool = False,
    ) -> None:
        self.tagger = tagger
        self.marker = marker
        self.tagset = tagset
        self.dry_run = dry_run
        self.ledger = PartialFailureLedger()

    @classmethod
    @abstractmethod
    def snapshot(cls, body: Mapping[str, Any]) -> Any:
        """Converte o body (dict do kopf ou serializado pelo client) no snapshot do domínio."""
        ...

    @classmethod
    @abstractmethod
    def with_field_value(cls, resource: Any, value: Any) -> Any:
        """
        Reconstrói o snapshot anterior a partir do valor antigo de watched_field.
        """
        ...

    @abstractmethod
    def is_actionable(self, event: ChangeEvent, state: TagState) -> Optional[str]:
        """
        Devolve None se o evento deve ser processado, ou o motivo do skip.
        """
        ...

    @abstractmethod
    def derive(self, resource: Any) -> Optional[CloudResourceRef]:
        """
        Só parsing, sem chamadas à AWS. None = recurso não suportado (skip).
        """
        ...

    def expand(self, ref: CloudResourceRef) -> CloudResourceRef:
        """Descoberta de sub-recursos na AWS; por padrão não há nenhum."""
        return ref

    def forget(self, name: str) -> None:
        self.ledger.forget(name)

    def reconcile(self, event: ChangeEvent) -> ReconcileResult:
        resource = event.new
        name = resource.name
        state = observe_state(resource.annotations, self.ledger.get(name))

        if not needs_tagging(state):
            logger.debug("already tagged, skipping", extra={"kind": self.kind, "resource": name})
            return self._finish(state, ReconcileResult(self.kind, name, Outcome.SKIPPED, reason="already tagged"))

        skip_reason = self.is_actionable(event, state)
        if skip_reason is not None:
            return self._finish(state, ReconcileResult(self.kind, name, Outcome.SKIPPED, reason=skip_reason))

        try:
            ref = self.derive(resource)
        except PARSE_ERRORS as e:
            return self._finish(
                state,
                ReconcileResult(self.kind, name, Outcome.FAILED, reason=type(e).__name__, error=str(e)),
            )

        if ref is None:
            return self._finish(state, ReconcileResult(self.kind, name, Outcome.SKIPPED, reason="unsupported"))

        if self.dry_run:
            logger.info(
                "dry run: would tag resources",
                extra={
                    "kind": self.kind,
                    "resource": name,
                    "region": ref.region,
                    "resource_ids": list(ref.resource_ids),
                    "tags": self.tagset.to_dict(),
                },
            )
            return self._finish(state, ReconcileResult(self.kind, name, Outcome.SKIPPED, reason="dry-run", ref=ref))

        try:
            ref = self.expand(ref)
            self.tagger.apply_tags(ref.region, ref.resource_ids, self.tagset)
        except CloudAPIError as e:
            # diferente dos erros de parsing, este volta no próximo evento ou resync
            return self._finish(
                state,
                ReconcileResult(self.kind, name, Outcome.FAILED, reason="cloud api error", ref=ref, error=str(e)),
                retryable=True,
            )

        try:
            self.marker.mark_tagged(self.kind, name)
        except PatchConflict as e:
            return self._finish(
                state,
                ReconcileResult(
                    self.kind, name, Outcome.PARTIAL_FAILURE,
                    reason="tags applied but annotation failed", ref=ref, error=str(e),
                ),
            )

        return self._finish(state, ReconcileResult(self.kind, name, Outcome.TAGGED, ref=ref))

    def _finish(self, state: TagState, result: ReconcileResult, retryable: bool = False) -> ReconcileResult:
        self.ledger.record(result.name, transition(state, result.outcome, retryable))
        self._log_result(result)
        return result

    def _log_result(self, result: ReconcileResult) -> None:
        extra = {
            "kind": result.kind,
            "resource": result.name,
            "outcome": result.outcome.value,
            "reason": result.reason,
        }
        if result.ref is not None:
            extra["region"] = result.ref.region
            extra["resource_ids"] = list(result.ref.resource_ids)
        if result.error:
            extra["error"] = result.error

        if result.outcome is Outcome.TAGGED:
            logger.info(f"{self.pretty_name} tagged successfully", extra=extra)
        elif result.outcome is Outcome.PARTIAL_FAILURE:
            # tags aplicadas mas sem anotação: o próximo evento vai re-taggear
            logger.critical(f"failed to annotate {self.pretty_name} (tags were applied)", extra=extra)
        elif result.outcome is Outcome.FAILED:
            logger.error(f"failed to tag {self.pretty_name}", extra=extra)
        elif result.reason == "already tagged":
            logger.debug(f"{self.pretty_name} skipped", extra=extra)
        else:
            logger.info(f"{self.pretty_name} skipped", extra=extra)

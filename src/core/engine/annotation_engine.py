import logging
from typing import Any, Dict

from kubernetes.client.rest import ApiException

from ..errors import PatchConflict
from ..state import ANNOTATION_KEY, ANNOTATION_VALUE

logger = logging.getLogger(__name__)

MERGE_PATCH = "application/merge-patch+json"


class AnnotationMarker:
    """
    Grava a anotação de idempotência via JSON merge patch.

    O merge patch só toca na chave informada; as outras anotações ficam
    intactas. Não faz retry: o próximo evento do watch é o retry.
    """

    _PATCH_METHODS: Dict[str, str] = {
        "Node": "patch_node",
        "PersistentVolume": "patch_persistent_volume",
    }

    def __init__(self, api: Any) -> None:
        self.api = api

    @staticmethod
    def patch_body() -> Dict[str, Any]:
        return {"metadata": {"annotations": {ANNOTATION_KEY: ANNOTATION_VALUE}}}

    def mark_tagged(self, kind: str, name: str) -> None:
        method = self._PATCH_METHODS.get(kind)
        if method is None:
            raise ValueError(f"no annotation patch for kind {kind!r}")

        patch = getattr(self.api, method)
        try:
            patch(name, self.patch_body(), _content_type=MERGE_PATCH)
        except ApiException as e:
            raise PatchConflict(kind, name, status=e.status, reason=e.reason) from e

        logger.debug("annotation written", extra={"kind": kind, "resource": name})

class RetagError(Exception):
    """Base de todas as exceções do aws-node-retag."""


class MalformedIdentifier(RetagError):
    """providerID (ou parte dele) fora do formato esperado."""


class TopologyNotFound(RetagError):
    """Nenhum label de zona/região reconhecido no nodeAffinity do volume."""


class UnsupportedVolumeSource(RetagError):
    """Volume sem CSI volumeHandle nem awsElasticBlockStore.volumeID."""


class CloudAPIError(RetagError):
    """Falha na API da AWS (após retries, quando aplicável)."""

    def __init__(self, message: str, code: str | None = None, attempts: int = 1) -> None:
        super().__init__(message)
        self.code = code
        self.attempts = attempts


class PatchConflict(RetagError):
    """O API server rejeitou o patch de anotação."""

    def __init__(self, kind: str, name: str, status: int | None = None, reason: str | None = None) -> None:
        super().__init__(f"failed to annotate {kind} {name!r}: status={status} reason={reason}")
        self.kind = kind
        self.name = name
        self.status = status


class ConfigurationError(RetagError):
    """Configuração inválida; fatal no startup."""


class CacheSyncError(RetagError):
    """Não foi possível fazer o list inicial de algum recurso."""

import logging
import threading
import time
from typing import Dict, List, Optional, Sequence

from boto3.session import Session
from botocore.exceptions import BotoCoreError, ClientError

from ..errors import CloudAPIError
from ..models import TagSet

logger = logging.getLogger(__name__)

# A AWS pode reportar o recurso como pronto antes do CreateTags enxergá-lo.
NOT_VISIBLE_ERROR_CODES = frozenset({
    "InvalidInstanceID.NotFound",
    "InvalidVolume.NotFound",
})

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_DELAY_SECONDS = 1.0
DEFAULT_MAX_DELAY_SECONDS = 16.0


def _error_code(exc: ClientError) -> str:
    return exc.response.get("Error", {}).get("Code", "")


class Ec2TaggingClient:
    """
    Wrapper fino em cima do client EC2 do boto3.

    Um client por região, criados sob demanda a partir da mesma Session
    (Session não é thread-safe; os clients são).
    """

    def __init__(
        self,
        session: Session,
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        delay_seconds: float = DEFAULT_DELAY_SECONDS,
        max_delay_seconds: float = DEFAULT_MAX_DELAY_SECONDS,
        stop_event: Optional[threading.Event] = None,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.session = session
        self.max_attempts = max_attempts
        self.delay_seconds = delay_seconds
        self.max_delay_seconds = max_delay_seconds
        self._stop_event = stop_event
        self._clients: Dict[str, object] = {}
        self._lock = threading.Lock()

    def _client(self, region: str):
        with self._lock:
            client = self._clients.get(region)
            if client is None:
                client = self.session.client("ec2", region_name=region)
                self._clients[region] = client
            return client

    def list_attached_volumes(self, region: str, instance_id: str) -> List[str]:
        """
        Devolve os ids dos volumes EBS anexados à instância (lista vazia se nenhum).
        """
        try:
            resp = self._client(region).describe_instances(InstanceIds=[instance_id])
        except ClientError as e:
            raise CloudAPIError(f"DescribeInstances: {e}", code=_error_code(e)) from e
        except BotoCoreError as e:
            raise CloudAPIError(f"DescribeInstances: {e}") from e

        volume_ids: List[str] = []
        for reservation in resp.get("Reservations", []):
            for instance in reservation.get("Instances", []):
                for bdm in instance.get("BlockDeviceMappings", []):
                    volume_id = (bdm.get("Ebs") or {}).get("VolumeId")
                    if volume_id:
                        volume_ids.append(volume_id)
        return volume_ids

    def apply_tags(self, region: str, resource_ids: Sequence[str], tagset: TagSet) -> None:
        """
        Aplica o TagSet inteiro em todos os ids numa única chamada ec2:CreateTags.

        Só o erro de "ainda não visível" entra no retry (backoff exponencial,
        até max_attempts tentativas). Qualquer outro erro sobe na hora.
        """
        client = self._client(region)
        resources = list(resource_ids)
        tags = tagset.to_aws()
        delay = self.delay_seconds

        for attempt in range(1, self.max_attempts + 1):
            try:
                client.create_tags(Resources=resources, Tags=tags)
                if attempt > 1:
                    logger.info(
                        "CreateTags succeeded after retry",
                        extra={"region": region, "resource_ids": resources, "attempts": attempt},
                    )
                return
            except ClientError as e:
                code = _error_code(e)
                if code not in NOT_VISIBLE_ERROR_CODES:
                    raise CloudAPIError(f"CreateTags: {e}", code=code, attempts=attempt) from e
                if attempt == self.max_attempts:
                    raise CloudAPIError(
                        f"CreateTags: resources still not visible after {attempt} attempts: {e}",
                        code=code,
                        attempts=attempt,
                    ) from e
                logger.warning(
                    "resources not yet visible to CreateTags, retrying",
                    extra={"region": region, "code": code, "attempt": attempt, "delay_seconds": delay},
                )
            except BotoCoreError as e:
                raise CloudAPIError(f"CreateTags: {e}", attempts=attempt) from e

            self._wait(delay, attempt)
            delay = min(delay * 2, self.max_delay_seconds)

    def _wait(self, delay: float, attempt: int) -> None:
        if self._stop_event is None:
            time.sleep(delay)
            return
        if self._stop_event.wait(delay):
            raise CloudAPIError("CreateTags: shutdown requested, abandoning retries", attempts=attempt)

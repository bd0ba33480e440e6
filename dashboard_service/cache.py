import json
import logging
from typing import Optional

import redis
from redis.exceptions import RedisError

from .models.models import VitalSign
from .models.schemas import VitalSignResponse

logger = logging.getLogger("dashboard-service")

VITAL_SIGNS_CHANNEL = "vital_signs_channel"


def create_redis_client(config) -> Optional[redis.Redis]:
    """Returns None when REDIS_ENABLED is off; the cache then no-ops."""
    if not config.REDIS_ENABLED:
        return None
    return redis.Redis(
        host=config.REDIS_HOST,
        port=config.REDIS_PORT,
        decode_responses=True,
    )


class VitalsCache:
    """
    Latest reading per patient, cache-aside in front of the vital_signs table.
    New readings are also published on VITAL_SIGNS_CHANNEL for subscribers
    outside this service (alerting, analytics); nothing here consumes them.
    Every call is best-effort: Redis errors are logged and never raised.
    """

    def __init__(self, client: Optional[redis.Redis], ttl_seconds: int = 600):
        self.client = client
        self.ttl_seconds = ttl_seconds

    @property
    def enabled(self) -> bool:
        return self.client is not None

    @staticmethod
    def _key(patient_id: int) -> str:
        return f"latest:{patient_id}"

    def store_latest(self, vital: VitalSign, publish: bool = True) -> None:
        """Caches `vital` as the patient's latest reading and announces it."""
        if not self.enabled:
            return
        payload = VitalSignResponse.model_validate(vital).model_dump_json(by_alias=True)
        try:
            pipe = self.client.pipeline()
            if publish:
                pipe.publish(VITAL_SIGNS_CHANNEL, payload)
            pipe.setex(self._key(vital.patient_id), self.ttl_seconds, payload)
            pipe.execute()
        except RedisError as e:
            # DB has the source of truth
            logger.warning("Redis publish failed for patient %s: %s", vital.patient_id, e)

    def get_latest(self, patient_id: int) -> Optional[VitalSignResponse]:
        if not self.enabled:
            return None
        try:
            cached = self.client.get(self._key(patient_id))
        except RedisError as e:
            logger.warning("Redis get latest failed for patient %s: %s", patient_id, e)
            return None
        if not cached:
            return None
        try:
            return VitalSignResponse.model_validate(json.loads(cached))
        except ValueError:
            logger.debug("Discarding unreadable latest cache for %s", patient_id, exc_info=True)
            return None

    def ping(self) -> bool:
        return bool(self.client.ping())

"""
OTP staging broker
Holds pending guest bookings and owner registrations keyed by email until the
emailed one-time code is confirmed
"""

import logging
import secrets
from datetime import datetime, timedelta
from typing import Any, Optional, Protocol

from pydantic import BaseModel

from .config import OTP_STORE_BACKEND, OTP_TTL_MINUTES

logger = logging.getLogger(__name__)

OTP_MIN = 100000
OTP_MAX = 999999


class OTPError(Exception):
    """Base class for OTP verification failures"""

    message = "OTP verification failed"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class PendingEntryNotFound(OTPError):
    message = "No pending request found. Please request a new OTP."


class InvalidOTP(OTPError):
    message = "Invalid OTP."


class ExpiredOTP(OTPError):
    message = "OTP expired. Please request a new OTP."


class StagedEntry(BaseModel):
    """Pending payload plus its one-time code and absolute expiry"""

    payload: dict[str, Any]
    otp: str
    expires_at: datetime


class OTPStore(Protocol):
    def put(self, key: str, entry: StagedEntry) -> None: ...

    def get(self, key: str) -> Optional[StagedEntry]: ...

    def delete(self, key: str) -> None: ...


class InMemoryOTPStore:
    """Process-lifetime map; a restart silently drops every pending entry"""

    def __init__(self):
        self._entries: dict[str, StagedEntry] = {}

    def put(self, key: str, entry: StagedEntry) -> None:
        self._entries[key] = entry

    def get(self, key: str) -> Optional[StagedEntry]:
        return self._entries.get(key)

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def __len__(self) -> int:
        return len(self._entries)


class RedisOTPStore:
    """Redis-backed store for deployments running more than one API instance"""

    # Keep the raw entry a little past expiry so verification can still report "expired"
    GRACE_SECONDS = 60

    def __init__(self, redis_client, namespace: str = "otp"):
        self.redis_client = redis_client
        self.namespace = namespace

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    def put(self, key: str, entry: StagedEntry) -> None:
        ttl = int((entry.expires_at - datetime.now()).total_seconds()) + self.GRACE_SECONDS
        self.redis_client.setex(self._key(key), max(ttl, 1), entry.model_dump_json())
        logger.debug(f"✅ OTP entry stored in Redis: {key} (TTL: {ttl}s)")

    def get(self, key: str) -> Optional[StagedEntry]:
        raw = self.redis_client.get(self._key(key))
        if not raw:
            return None
        return StagedEntry.model_validate_json(raw)

    def delete(self, key: str) -> None:
        self.redis_client.delete(self._key(key))


def generate_otp() -> str:
    """Uniform 6-digit numeric code in [100000, 999999]"""
    return str(OTP_MIN + secrets.randbelow(OTP_MAX - OTP_MIN + 1))


class OTPBroker:
    """Stage, verify and consume OTP-gated payloads"""

    def __init__(self, store: OTPStore, ttl_minutes: int = OTP_TTL_MINUTES):
        self.store = store
        self.ttl = timedelta(minutes=ttl_minutes)

    def stage(self, key: str, payload: dict, now: Optional[datetime] = None) -> str:
        """Stage a payload under key, overwriting any earlier entry; returns the OTP"""
        now = now or datetime.now()
        otp = generate_otp()
        self.store.put(key, StagedEntry(payload=payload, otp=otp, expires_at=now + self.ttl))
        logger.info(f"💾 OTP staged for {key} (expires in {self.ttl.total_seconds() / 60:.0f} min)")
        return otp

    def verify(self, key: str, otp: str, now: Optional[datetime] = None) -> dict:
        """Return the staged payload when otp matches and is fresh; the entry is kept"""
        entry = self.store.get(key)
        if entry is None:
            logger.warning(f"⚠️ No staged OTP entry for {key}")
            raise PendingEntryNotFound()

        if entry.otp != str(otp).strip():
            logger.warning(f"❌ Invalid OTP submitted for {key}")
            raise InvalidOTP()

        now = now or datetime.now()
        if entry.expires_at < now:
            logger.warning(f"⏰ OTP expired for {key} (expired at {entry.expires_at}, now is {now})")
            raise ExpiredOTP()

        return entry.payload

    def consume(self, key: str, otp: str, now: Optional[datetime] = None) -> dict:
        """Verify and delete in one step"""
        payload = self.verify(key, otp, now=now)
        self.store.delete(key)
        return payload

    def discard(self, key: str) -> None:
        self.store.delete(key)


def build_otp_store(namespace: str) -> OTPStore:
    if OTP_STORE_BACKEND == "redis":
        from .redis_client import get_redis_client

        logger.info(f"🔐 OTP staging for {namespace} backed by Redis")
        return RedisOTPStore(get_redis_client(), namespace=namespace)

    logger.info(f"🔐 OTP staging for {namespace} kept in process memory")
    return InMemoryOTPStore()


# Shared broker instances, one namespace per flow
_brokers: dict[str, OTPBroker] = {}


def get_broker(namespace: str) -> OTPBroker:
    if namespace not in _brokers:
        _brokers[namespace] = OTPBroker(build_otp_store(namespace))
    return _brokers[namespace]


def get_booking_broker() -> OTPBroker:
    return get_broker("otp:booking")


def get_registration_broker() -> OTPBroker:
    return get_broker("otp:registration")

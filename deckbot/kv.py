import time
import asyncio
import logging
from typing import Any, Callable, Dict, Optional, Protocol, Tuple

from google.cloud import firestore

COOLDOWN_PREFIX = "card_draw"
HAND_PREFIX = "user_hand"

def cooldown_key(actor_key: str) -> str:
    return f"{COOLDOWN_PREFIX}:{actor_key}"

def hand_key(actor_key: str) -> str:
    return f"{HAND_PREFIX}:{actor_key}"

def _expiry(now: float, ttl_ms: Optional[int]) -> Optional[float]:
    if ttl_ms is None:
        return None
    return now + ttl_ms / 1000

def _is_live(expires_at: Optional[float], now: float) -> bool:
    return expires_at is None or expires_at > now


class KeyValueStore(Protocol):
    """Key-value store with optional per-entry expiry."""

    async def get(self, key: str) -> Any:
        """Returns the value, or None if missing or expired."""
        ...

    async def set(self, key: str, value: Any, ttl_ms: Optional[int] = None) -> None:
        ...

    async def set_if_absent(self, key: str, value: Any, ttl_ms: Optional[int] = None) -> bool:
        """Atomically writes only if no live entry exists. Returns True if written."""
        ...

    async def append_unique(self, key: str, item: Any) -> bool:
        """Atomically appends to a list value. Returns False if already present."""
        ...


class MemoryStore:
    """
    In-process store for local dev and tests.
    A single lock serialises every mutation, so the compound
    operations are atomic with respect to other coroutines.
    """
    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._data: Dict[str, Tuple[Any, Optional[float]]] = {}
        self._lock = asyncio.Lock()

    def _read(self, key: str) -> Any:
        entry = self._data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if not _is_live(expires_at, self._clock()):
            del self._data[key]
            return None
        return value

    async def get(self, key: str) -> Any:
        value = self._read(key)
        if isinstance(value, list):
            return list(value)
        return value

    async def set(self, key: str, value: Any, ttl_ms: Optional[int] = None) -> None:
        async with self._lock:
            self._data[key] = (value, _expiry(self._clock(), ttl_ms))

    async def set_if_absent(self, key: str, value: Any, ttl_ms: Optional[int] = None) -> bool:
        async with self._lock:
            if self._read(key) is not None:
                return False
            self._data[key] = (value, _expiry(self._clock(), ttl_ms))
            return True

    async def append_unique(self, key: str, item: Any) -> bool:
        async with self._lock:
            current = self._read(key) or []
            if item in current:
                return False
            self._data[key] = (current + [item], None)
            return True


class FirestoreStore:
    """
    Firestore-backed store. One document per key: {"value": ..., "expires_at": epoch | None}.
    Expiry is enforced on read; a Firestore TTL policy on `expires_at` can reap old docs.
    """
    def __init__(self, database: str = "sandbox", collection: str = "deck_kv", client=None):
        self.db = client or firestore.AsyncClient(database=database)
        self.collection = self.db.collection(collection)

    def _ref(self, key: str):
        # Firestore document ids may not contain '/'
        return self.collection.document(key.replace("/", "_"))

    async def get(self, key: str) -> Any:
        doc = await self._ref(key).get()
        if not doc.exists:
            return None
        data = doc.to_dict()
        if not _is_live(data.get("expires_at"), time.time()):
            return None
        return data.get("value")

    async def set(self, key: str, value: Any, ttl_ms: Optional[int] = None) -> None:
        await self._ref(key).set({
            "value": value,
            "expires_at": _expiry(time.time(), ttl_ms)
        })

    async def set_if_absent(self, key: str, value: Any, ttl_ms: Optional[int] = None) -> bool:
        transaction = self.db.transaction()
        ref = self._ref(key)

        @firestore.async_transactional
        async def _set_if_absent_txn(transaction, ref):
            snapshot = await ref.get(transaction=transaction)
            now = time.time()
            if snapshot.exists and _is_live(snapshot.to_dict().get("expires_at"), now):
                return False
            transaction.set(ref, {"value": value, "expires_at": _expiry(now, ttl_ms)})
            return True

        return await _set_if_absent_txn(transaction, ref)

    async def append_unique(self, key: str, item: Any) -> bool:
        """
        Read-check-append inside a transaction.
        ArrayUnion alone would dedupe silently but could not report a lost race.
        """
        transaction = self.db.transaction()
        ref = self._ref(key)

        @firestore.async_transactional
        async def _append_txn(transaction, ref):
            snapshot = await ref.get(transaction=transaction)
            current = []
            if snapshot.exists:
                current = snapshot.to_dict().get("value") or []
            if item in current:
                return False
            transaction.set(ref, {"value": current + [item], "expires_at": None})
            return True

        return await _append_txn(transaction, ref)


def create_store(settings) -> KeyValueStore:
    if settings.kv_backend == "memory":
        logging.warning("KV: Using in-memory store. Cooldowns and hands will not survive a restart.")
        return MemoryStore()
    return FirestoreStore(database=settings.firestore_database, collection=settings.kv_collection)

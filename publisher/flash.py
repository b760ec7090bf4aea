"""
One-shot flash payloads keyed by a client session id.

A caller that fails validation (for example the editor proxy submitting
an article draft) gets its rejected draft and violation list stored
under its ``X-Session-Id``.  The next ``pop`` for that id returns the
payload and clears it, so it is shown exactly once.
"""
from publisher.cache import CacheManager, cache
from publisher.config import settings


class FlashStore:
    def __init__(self, backend: CacheManager, ttl: int) -> None:
        self.backend = backend
        self.ttl = ttl

    @staticmethod
    def _key(session_id: str) -> str:
        return f"flash:{session_id}"

    async def put(self, session_id: str, payload: dict) -> None:
        await self.backend.set(self._key(session_id), payload, ttl=self.ttl)

    async def pop(self, session_id: str) -> dict | None:
        return await self.backend.pop(self._key(session_id))


flash = FlashStore(cache, ttl=settings.FLASH_TTL)

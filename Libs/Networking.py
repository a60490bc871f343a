# Bu araç @keyiflerolsun tarafından | @KekikAkademi için yazılmıştır.

from __future__ import annotations
import httpx, asyncio

class GlobalClient:
    """
    Paylaşımlı httpx.AsyncClient singleton yapısı.
    Dış servis çağrıları (kimlik servisi vb.) için connection pooling sağlar.
    """
    _instance  : 'GlobalClient'    | None = None
    _client    : httpx.AsyncClient | None = None
    _semaphore : asyncio.Semaphore | None = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(GlobalClient, cls).__new__(cls)
        return cls._instance

    @property
    def started(self) -> bool:
        return self._client is not None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("GlobalClient henüz başlatılmadı! lifespan içinde 'start()' çağrılmalı.")
        return self._client

    async def start(self, max_concurrent: int = 50):
        """Client'ı ilklendir (FastAPI startup'ta çağrılmalı)"""
        if self._client is not None:
            return

        self._semaphore = asyncio.Semaphore(max_concurrent)
        self._client    = httpx.AsyncClient(
            headers = {"Accept": "application/json"},
            limits  = httpx.Limits(max_connections=100, max_keepalive_connections=20, keepalive_expiry=30.0),
            timeout = httpx.Timeout(connect=3.0, read=5.0, write=5.0, pool=3.0),
        )

    async def stop(self):
        """Client'ı kapat (FastAPI shutdown'da çağrılmalı)"""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def fetch(self, url: str, method: str = "GET", **kwargs) -> httpx.Response:
        """Paylaşımlı client ile eşzamanlılık sınırlı istek at"""
        async with self._semaphore:
            return await self.client.request(method, url, **kwargs)

# Singleton instance
global_request = GlobalClient()

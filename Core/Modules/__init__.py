# Bu araç @keyiflerolsun tarafından | @KekikAkademi için yazılmıştır.

from CLI                   import konsol
from fastapi               import FastAPI
from contextlib            import asynccontextmanager
from Libs                  import global_request
from Settings              import EMPTY_PARTY_TTL, CLEANUP_INTERVAL
from Public.WebSocket.Libs import connection_manager, sweep_idle_parties
import asyncio

async def _temizlik_dongusu(interval: float, ttl: float) -> None:
    """Bağlantısız ve hareketsiz partileri periyodik olarak kapatır.

    Tek bir tur hata verirse loglanır, döngü devam eder; paylaşılan durum
    geri alınmaz.
    """
    while True:
        await asyncio.sleep(interval)
        try:
            await sweep_idle_parties(ttl)
        except Exception as hata:
            konsol.log(f"[red]Parti temizliği başarısız:[/] {type(hata).__name__}: {hata}")

@asynccontextmanager
async def lifespan(app: FastAPI):
    """FastAPI lifespan events - startup ve shutdown"""
    await global_request.start()

    temizlik = asyncio.create_task(_temizlik_dongusu(CLEANUP_INTERVAL, EMPTY_PARTY_TTL))
    konsol.log(f"[green]Parti temizliği aktif[/] (her {CLEANUP_INTERVAL:g} sn, ttl {EMPTY_PARTY_TTL:g} sn)")

    try:
        yield
    finally:
        temizlik.cancel()
        try:
            await temizlik
        except asyncio.CancelledError:
            pass

        await connection_manager.close_all()
        await global_request.stop()

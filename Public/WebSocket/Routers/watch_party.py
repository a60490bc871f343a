# Bu araç @keyiflerolsun tarafından | @KekikAkademi için yazılmıştır.

from CLI      import konsol
from fastapi  import WebSocket, WebSocketDisconnect
from .        import wss_router
from ..Libs   import MessageHandler, connection_manager
from Settings import MAX_PAYLOAD, RATE_GENERAL, RATE_HIGH_FREQ
import time

HIGH_FREQ_OPS = {"sync", "ping"}
EXEMPT_OPS    = {"leave"}  # Üyelik temizliği hız sınırına takılmaz

class FloodGuard:
    """Bağlantı başına çift kovalı hız sınırı (saniyelik pencere)"""

    def __init__(self, general: int = RATE_GENERAL, high_freq: int = RATE_HIGH_FREQ):
        self.limits = {"general": general, "high": high_freq}
        self.counts = {"general": 0, "high": 0}
        self.starts = {"general": time.perf_counter(), "high": time.perf_counter()}

    def allow(self, message_type: str) -> bool:
        if message_type in EXEMPT_OPS:
            return True

        bucket = "high" if message_type in HIGH_FREQ_OPS else "general"

        now = time.perf_counter()
        if now - self.starts[bucket] > 1.0:
            self.counts[bucket] = 0
            self.starts[bucket] = now

        self.counts[bucket] += 1
        return self.counts[bucket] <= self.limits[bucket]

@wss_router.websocket("/ws")
async def watch_party_websocket(websocket: WebSocket):
    connection = await connection_manager.open(websocket)
    handler    = MessageHandler(connection)
    guard      = FloodGuard()
    konsol.log(f"[cyan]WebSocket bağlandı[/] {connection!r}")

    try:
        while not connection.closed:
            frame = await websocket.receive()
            if frame["type"] == "websocket.disconnect":
                break

            raw = frame.get("text")
            if raw is None:
                try:
                    raw = (frame.get("bytes") or b"").decode("utf-8")
                except UnicodeDecodeError:
                    konsol.log(f"[yellow]Geçersiz UTF-8 çerçeve, düşürüldü[/] {connection!r}")
                    continue

            # 1. Flood Control: Payload Size
            if len(raw.encode("utf-8")) > MAX_PAYLOAD:
                konsol.log(f"[yellow]Mesaj boyutu çok büyük, düşürüldü[/] {connection!r}")
                continue

            message = handler.decode(raw)
            if message is None:
                continue

            # 2. Flood Control: Rate Limit (Dual Bucket)
            if not guard.allow(message.type):
                konsol.log(f"[yellow]Hız sınırı aşıldı, düşürüldü[/] {connection!r} » {message.type}")
                continue

            try:
                await handler.dispatch(message)
            except Exception as hata:
                konsol.log(f"[red]Mesaj işlenemedi[/] {connection!r} » {type(hata).__name__}: {hata}")

    except WebSocketDisconnect:
        pass
    except Exception as hata:
        konsol.log(f"[red]WebSocket Error:[/] {connection!r} » {hata}")
    finally:
        await handler.handle_disconnect()
        await connection_manager.close(connection)
        konsol.log(f"[cyan]WebSocket ayrıldı[/] {connection!r}")

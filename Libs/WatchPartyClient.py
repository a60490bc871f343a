# Bu araç @keyiflerolsun tarafından | @KekikAkademi için yazılmıştır.

from __future__  import annotations
from collections import deque
from typing      import Protocol
from CLI         import konsol
import asyncio, json, websockets

DRIFT_TOLERANCE    = 1.5  # Bu kadar saniyelik farkta seek yapılmaz
HEARTBEAT_INTERVAL = 5.0  # Oynatılırken periyodik sync

class Player(Protocol):
    """İstemci tarafındaki yerel oynatıcı"""

    @property
    def current_time(self) -> float: ...

    @property
    def is_playing(self) -> bool: ...

    def seek(self, seconds: float) -> None: ...
    def play(self) -> None: ...
    def pause(self) -> None: ...

class SyncReconciler:
    """
    Sunucudan gelen `sync_update` mesajlarını yerel oynatıcıya uygular.

    - Gelen bir sync'e karşılık asla sync üretmez (geri besleme döngüsü yok).
    - Giden sync sadece kullanıcı etkileşiminden ve oynatılırken heartbeat'ten çıkar.
    - Kendi gönderdiği durumların yankısı yok sayılır; diğer tüm
      güncellemelerde son uygulanan kazanır.
    """

    def __init__(self, player: Player, party_id: int, user_id: int, drift_tolerance: float = DRIFT_TOLERANCE, echo_window: int = 16):
        self.player          = player
        self.party_id        = party_id
        self.user_id         = user_id
        self.drift_tolerance = drift_tolerance
        self.participants : set[int]   = set()
        self.chat         : list[dict] = []
        self.ended        = False
        self._sent : deque[tuple[float, bool]] = deque(maxlen=echo_window)

    # ============== Gelen ==============

    def handle(self, message: dict) -> bool:
        """Gelen mesajı uygula, oynatıcıya dokunulduysa True döner"""
        if message.get("partyId") != self.party_id:
            return False

        tip = message.get("type")
        if tip == "sync_update":
            return self._apply_sync(message)

        if tip == "party_state":
            self.participants = set(message.get("participants") or [])
            target = float(message.get("currentTime", 0.0))
            if message.get("isPlaying"):
                target += float(message.get("elapsed", 0.0))
            return self._adopt(target, bool(message.get("isPlaying")))

        if tip == "participant_joined":
            self.participants.add(message["userId"])
        elif tip == "participant_left":
            self.participants.discard(message["userId"])
        elif tip == "chat_message":
            self.chat.append(message)
        elif tip == "party_ended":
            self.ended = True
            self.player.pause()
            return True

        return False

    def _apply_sync(self, message: dict) -> bool:
        state = (float(message["currentTime"]), bool(message["isPlaying"]))

        if state in self._sent:
            # Kendi yankımız: ya zaten bu durumdayız ya da daha yenisini gönderdik
            self._sent.remove(state)
            return False

        return self._adopt(*state)

    def _adopt(self, current_time: float, is_playing: bool) -> bool:
        changed = False

        if abs(self.player.current_time - current_time) > self.drift_tolerance:
            self.player.seek(current_time)
            changed = True

        if is_playing and not self.player.is_playing:
            self.player.play()
            changed = True
        elif not is_playing and self.player.is_playing:
            self.player.pause()
            changed = True

        return changed

    # ============== Giden ==============

    def local_change(self) -> dict:
        """Kullanıcı kaynaklı play/pause/seek için giden sync"""
        state = (float(self.player.current_time), bool(self.player.is_playing))
        self._sent.append(state)
        return {
            "type"        : "sync",
            "partyId"     : self.party_id,
            "currentTime" : state[0],
            "isPlaying"   : state[1],
        }

    def heartbeat(self) -> dict | None:
        """Sadece oynatılırken periyodik sync"""
        if self.ended or not self.player.is_playing:
            return None
        return self.local_change()

class WatchPartyClient:
    """websockets tabanlı Watch Party istemcisi"""

    def __init__(self, url: str, player: Player, party_id: int, user_id: int, heartbeat_interval: float = HEARTBEAT_INTERVAL):
        self.url                = url
        self.reconciler         = SyncReconciler(player, party_id, user_id)
        self.heartbeat_interval = heartbeat_interval
        self.ws                 = None

    async def connect(self):
        self.ws = await websockets.connect(self.url)
        await self._send({"type": "join", "partyId": self.reconciler.party_id, "userId": self.reconciler.user_id})

    async def _send(self, obj: dict | None):
        if not self.ws or obj is None:
            return
        await self.ws.send(json.dumps(obj))

    async def _heartbeat_loop(self):
        while not self.reconciler.ended:
            await asyncio.sleep(self.heartbeat_interval)
            try:
                await self._send(self.reconciler.heartbeat())
            except websockets.ConnectionClosed:
                return

    async def run(self):
        """Alma döngüsü + heartbeat; bağlantı kapanana kadar çalışır"""
        heartbeat = asyncio.create_task(self._heartbeat_loop())
        try:
            async for raw in self.ws:
                try:
                    message = json.loads(raw)
                except json.JSONDecodeError:
                    continue

                if message.get("type") == "error":
                    konsol.log(f"[red]Sunucu hatası:[/] {message.get('code')} » {message.get('message')}")
                    continue

                self.reconciler.handle(message)
                if self.reconciler.ended:
                    break
        except websockets.ConnectionClosed:
            pass
        finally:
            heartbeat.cancel()

    async def send_local_change(self):
        await self._send(self.reconciler.local_change())

    async def send_chat(self, content: str):
        await self._send({"type": "chat", "partyId": self.reconciler.party_id, "content": content})

    async def leave(self):
        await self._send({"type": "leave", "partyId": self.reconciler.party_id})
        await self.close()

    async def close(self):
        if self.ws:
            await self.ws.close()
            self.ws = None

# Bu araç @keyiflerolsun tarafından | @KekikAkademi için yazılmıştır.

from CLI                import konsol
from pydantic           import ValidationError
from ..Models           import (
    ChatMessage,
    JoinMessage,
    SyncMessage,
    ChatMessageIn,
    LeaveMessage,
    PingMessage,
    GetStateMessage,
    InboundMessage,
    decode_message,
)
from .WatchPartyManager import watch_party_manager, PartyNotFound
from .ConnectionManager import connection_manager, Connection
from .user_service      import lookup_user
import time


class MessageHandler:
    """Bağlantı başına mesaj işleyici

    Durum makinesi: Connected → Joined(party_id) → Connected. Hatalar mesaj
    bazındadır; hiçbir hata bağlantıyı kapatmaz.
    """

    def __init__(self, connection: Connection):
        self.connection = connection
        self.handlers   = {
            "join"      : self.handle_join,
            "sync"      : self.handle_sync,
            "chat"      : self.handle_chat,
            "leave"     : self.handle_leave,
            "ping"      : self.handle_ping,
            "get_state" : self.handle_get_state,
        }

    def send_error(self, code: str, message: str):
        """Hata mesajını sadece gönderene ilet"""
        connection_manager.send(self.connection, {
            "type"    : "error",
            "code"    : code,
            "message" : message
        })

    def _drop(self, reason: str):
        konsol.log(f"[yellow]Mesaj düşürüldü[/] {self.connection!r} » {reason}")

    def _joined_to(self, party_id: int) -> bool:
        return self.connection.joined and self.connection.party_id == party_id

    # ============== Dispatch ==============

    def decode(self, raw: str) -> InboundMessage | None:
        """Ham çerçeveyi tipli mesaja çevir, geçersizse logla ve None döndür"""
        try:
            return decode_message(raw)
        except ValidationError as hata:
            ilk = hata.errors()[0]
            self._drop(f"geçersiz mesaj ({ilk['type']}: {ilk['msg']})")
            return None

    async def dispatch(self, message: InboundMessage):
        """Çözülmüş mesajı tipine göre işle"""
        await self.handlers[message.type](message)

    # ============== Handlers ==============

    async def handle_join(self, message: JoinMessage):
        """JOIN mesajını işle"""
        if self.connection.joined:
            if (self.connection.party_id, self.connection.user_id) != (message.partyId, message.userId):
                self.send_error("already_joined", "Bu bağlantı zaten başka bir partiye katılmış")
                return

        user = await lookup_user(message.userId)

        if not await watch_party_manager.add_participant(message.partyId, message.userId):
            self.send_error("not_found", "İzleme partisi bulunamadı")
            return

        try:
            state = await watch_party_manager.snapshot(message.partyId)
        except PartyNotFound:
            # Lookup sırasında parti kapanmış olabilir
            self.send_error("not_found", "İzleme partisi bulunamadı")
            return

        self.connection.user_id  = message.userId
        self.connection.username = user["username"]
        connection_manager.attach(self.connection, message.partyId)

        connection_manager.send(self.connection, {"type": "party_state", "partyId": message.partyId, **state})
        connection_manager.broadcast(message.partyId, {
            "type"     : "participant_joined",
            "partyId"  : message.partyId,
            "userId"   : message.userId,
            "username" : user["username"]
        })
        konsol.log(f"[green]Katıldı[/] {self.connection!r} ({user['username']})")

    async def handle_sync(self, message: SyncMessage):
        """SYNC mesajını işle - last-write-wins"""
        if not self._joined_to(message.partyId):
            self._drop(f"sync: partiye bağlı değil ({message.partyId})")
            return

        try:
            party = await watch_party_manager.update_party_state(message.partyId, message.currentTime, message.isPlaying)
        except PartyNotFound:
            self.send_error("not_found", "İzleme partisi bulunamadı")
            return

        # Lock bırakıldıktan sonra, araya await girmeden yayınla
        connection_manager.broadcast(party.id, {
            "type"        : "sync_update",
            "partyId"     : party.id,
            "currentTime" : party.current_time,
            "isPlaying"   : party.is_playing
        })

    async def handle_chat(self, message: ChatMessageIn):
        """CHAT mesajını işle - kalıcı değil"""
        if not self._joined_to(message.partyId):
            self._drop(f"chat: partiye bağlı değil ({message.partyId})")
            return

        if message.userId is not None and message.userId != self.connection.user_id:
            self._drop("chat: kimlik uyuşmuyor")
            return

        content = message.content.strip()
        if not content:
            return

        chat = ChatMessage(user_id=self.connection.user_id, username=self.connection.username, content=content)
        await watch_party_manager.touch(message.partyId)
        connection_manager.broadcast(message.partyId, chat.to_event(message.partyId))

    async def handle_leave(self, message: LeaveMessage):
        """LEAVE mesajını işle"""
        if not self._joined_to(message.partyId):
            self._drop(f"leave: partiye bağlı değil ({message.partyId})")
            return

        if message.userId is not None and message.userId != self.connection.user_id:
            self._drop("leave: kimlik uyuşmuyor")
            return

        await self._leave()

    async def handle_ping(self, message: PingMessage):
        """PING mesajını işle"""
        connection_manager.send(self.connection, {"type": "pong"})

    async def handle_get_state(self, message: GetStateMessage):
        """GET_STATE mesajını işle"""
        if not self.connection.joined:
            self._drop("get_state: partiye bağlı değil")
            return

        party_id = self.connection.party_id
        try:
            state = await watch_party_manager.snapshot(party_id)
        except PartyNotFound:
            self.send_error("not_found", "İzleme partisi bulunamadı")
            return

        connection_manager.send(self.connection, {"type": "party_state", "partyId": party_id, **state})

    async def _leave(self):
        """Bağlantıyı partiden ayır; kullanıcının başka sekmesi yoksa üyeliği kaldır"""
        user_id  = self.connection.user_id
        party_id = connection_manager.detach(self.connection)
        self.connection.user_id  = None
        self.connection.username = None

        if party_id is None or connection_manager.user_connected(party_id, user_id):
            return

        if await watch_party_manager.remove_participant(party_id, user_id):
            connection_manager.broadcast(party_id, {
                "type"    : "participant_left",
                "partyId" : party_id,
                "userId"  : user_id
            })
            konsol.log(f"[blue]Ayrıldı[/] party={party_id} user={user_id}")

    async def handle_disconnect(self):
        """Bağlantı kapandığında çağrılır - implicit leave"""
        if self.connection.joined:
            await self._leave()


async def end_party(party_id: int):
    """Partiyi kapat ve bağlı bağlantılara `party_ended` yayınla"""
    party = await watch_party_manager.end_party(party_id)

    connection_manager.broadcast(party_id, {"type": "party_ended", "partyId": party_id})
    connection_manager.release_party(party_id)
    konsol.log(f"[magenta]Parti kapatıldı[/] party={party_id} code={party.room_code}")
    return party

async def sweep_idle_parties(ttl: float, now: float | None = None) -> list:
    """Bağlantısı kalmamış ve `ttl` saniyedir hareketsiz partileri kapat"""
    now   = now if now is not None else time.monotonic()
    ended = await watch_party_manager.collect_idle(now, ttl, connection_manager.has_connections)

    if ended:
        konsol.log(f"[magenta]Boşta kalan {len(ended)} parti kapatıldı[/] » {[party.room_code for party in ended]}")
    return ended

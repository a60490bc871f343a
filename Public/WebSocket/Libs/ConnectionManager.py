# Bu araç @keyiflerolsun tarafından | @KekikAkademi için yazılmıştır.

from CLI      import konsol
from fastapi  import WebSocket
from Settings import SEND_QUEUE_SIZE, SEND_TIMEOUT
import asyncio, itertools, json

_connection_ids = itertools.count(1)

class Connection:
    """Tek bir websocket bağlantısı

    Giden mesajlar sınırlı bir kuyruğa yazılır ve bağlantıya ait tek bir
    writer task tarafından sırayla gönderilir.
    """

    def __init__(self, websocket: WebSocket, queue_size: int = SEND_QUEUE_SIZE):
        self.connection_id = next(_connection_ids)
        self.websocket     = websocket
        self.party_id : int | None = None
        self.user_id  : int | None = None
        self.username : str | None = None
        self.closed   = False
        self.outbox   : asyncio.Queue[str | None] = asyncio.Queue(maxsize=queue_size)
        self.writer   : asyncio.Task | None = None

    @property
    def joined(self) -> bool:
        return self.party_id is not None

    def __repr__(self) -> str:
        return f"<Connection #{self.connection_id} party={self.party_id} user={self.user_id}>"

class ConnectionManager:
    """Websocket bağlantıları ve parti bazlı fan-out"""

    def __init__(self, send_timeout: float = SEND_TIMEOUT):
        self.send_timeout = send_timeout
        self.reset()

    def reset(self):
        self.connections: set[Connection]             = set()
        self.by_party: dict[int, set[Connection]]     = {}

    async def open(self, websocket: WebSocket) -> Connection:
        """Bağlantıyı kabul et ve writer task'ını başlat"""
        await websocket.accept()
        connection = Connection(websocket)
        connection.writer = asyncio.create_task(self._writer(connection))
        self.connections.add(connection)
        return connection

    async def close(self, connection: Connection):
        """Bağlantıyı kayıtlardan çıkar, writer'ı durdur, soketi kapat"""
        self.detach(connection)
        self.connections.discard(connection)

        if connection.writer and not connection.writer.done():
            # Kuyruktakiler gönderilsin, sonra writer çıksın
            try:
                connection.outbox.put_nowait(None)
            except asyncio.QueueFull:
                connection.writer.cancel()

            done, _ = await asyncio.wait({connection.writer}, timeout=self.send_timeout)
            if not done:
                connection.writer.cancel()

        if not connection.closed:
            connection.closed = True
            try:
                await connection.websocket.close()
            except Exception:
                pass  # Zaten kapanmış

    async def _writer(self, connection: Connection):
        while True:
            raw = await connection.outbox.get()
            if raw is None:
                return
            try:
                await asyncio.wait_for(connection.websocket.send_text(raw), timeout=self.send_timeout)
            except Exception as hata:
                konsol.log(f"[red]Gönderim hatası[/] {connection!r} » {type(hata).__name__}: {hata}")
                await self._fail(connection)
                return

    async def _fail(self, connection: Connection):
        """TransportFailure: sadece bu bağlantıyı kapat

        Parti kaydı burada silinmez; implicit leave okuma döngüsü kapanınca
        `party_id` ve `user_id` ile yapılır.
        """
        if connection.closed:
            return
        connection.closed = True
        try:
            await connection.websocket.close(code=1011)
        except Exception:
            pass

    def attach(self, connection: Connection, party_id: int):
        connection.party_id = party_id
        self.by_party.setdefault(party_id, set()).add(connection)

    def detach(self, connection: Connection) -> int | None:
        """Bağlantıyı partisinden ayır, önceki party_id'yi döndür"""
        party_id = connection.party_id
        if party_id is None:
            return None

        members = self.by_party.get(party_id)
        if members is not None:
            members.discard(connection)
            if not members:
                del self.by_party[party_id]

        connection.party_id = None
        return party_id

    def _enqueue(self, connection: Connection, raw: str) -> bool:
        if connection.closed:
            return False
        try:
            connection.outbox.put_nowait(raw)
            return True
        except asyncio.QueueFull:
            konsol.log(f"[yellow]Yavaş istemci, bağlantı kapatılıyor[/] {connection!r}")
            if connection.writer:
                connection.writer.cancel()
            asyncio.get_running_loop().create_task(self._fail(connection))
            return False

    def send(self, connection: Connection, message: dict) -> bool:
        """Tek bağlantıya mesaj kuyrukla (bekleme yok)"""
        return self._enqueue(connection, json.dumps(message, ensure_ascii=False))

    def broadcast(self, party_id: int, message: dict) -> int:
        """Sadece `party_id` partisine bağlı bağlantılara kuyrukla

        Senkron çalışır: durum değişikliği ile aynı adımda çağrıldığında
        yayın sırası uygulama sırasıyla aynı kalır.
        """
        raw  = json.dumps(message, ensure_ascii=False)
        sent = 0
        for connection in list(self.by_party.get(party_id, ())):
            if self._enqueue(connection, raw):
                sent += 1
        return sent

    def has_connections(self, party_id: int) -> bool:
        return bool(self.by_party.get(party_id))

    def user_connected(self, party_id: int, user_id: int, exclude: Connection | None = None) -> bool:
        """Kullanıcının bu partiye bağlı başka bir bağlantısı var mı? (çoklu sekme)"""
        return any(
            connection.user_id == user_id and connection is not exclude and not connection.closed
                for connection in self.by_party.get(party_id, ())
        )

    def connection_count(self, party_id: int | None = None) -> int:
        if party_id is not None:
            return len(self.by_party.get(party_id, ()))
        return len(self.connections)

    def release_party(self, party_id: int) -> list[Connection]:
        """Kapanan partideki bağlantıları ayır (Connected durumuna döner)"""
        members = list(self.by_party.pop(party_id, ()))
        for connection in members:
            connection.party_id = None
            connection.user_id  = None
            connection.username = None
        return members

    async def close_all(self):
        """Tüm bağlantıları kapat (shutdown)"""
        connections = list(self.connections)
        for connection in connections:
            await self.close(connection)
        konsol.log(f"[yellow]{len(connections)} websocket bağlantısı kapatıldı[/]")


# Singleton instance
connection_manager = ConnectionManager()

# Bu araç @keyiflerolsun tarafından | @KekikAkademi için yazılmıştır.

from typing   import Callable
from ..Models import Party, utc_now
from Settings import ROOM_CODE_LENGTH
import asyncio, secrets, time

ROOM_CODE_ATTEMPTS = 32

class PartyNotFound(LookupError):
    """Parti (veya oda kodu) canlı oturumlar arasında yok"""

    def __init__(self, key: int | str):
        self.key = key
        super().__init__(f"İzleme partisi bulunamadı: {key}")

class RoomCodeExhausted(RuntimeError):
    """Benzersiz oda kodu üretilemedi (kod uzayı dolu)"""

class WatchPartyManager:
    """Watch Party oturum deposu ve yaşam döngüsü

    Tüm durum tek bir `asyncio.Lock` ile korunur; oynatım durumu her zaman
    (current_time, is_playing) ikilisi olarak birlikte yazılır. Hiçbir metot
    lock tutarken ağ I/O'su beklemez.
    """

    def __init__(self, room_code_length: int = ROOM_CODE_LENGTH):
        self.room_code_length = room_code_length
        self.reset()

    def reset(self):
        """Tüm durumu temizle"""
        self.parties: dict[int, Party]      = {}
        self.participants: dict[int, set[int]] = {}
        self._codes: dict[str, int]         = {}  # room_code -> party_id
        self._next_id = 1
        self._lock    = asyncio.Lock()

    def _new_room_code(self) -> str:
        # Lock içinde çağrılmalı: canlı partiler arasında benzersiz
        for _ in range(ROOM_CODE_ATTEMPTS):
            code = secrets.token_hex(self.room_code_length)[:self.room_code_length]
            if code not in self._codes:
                return code

        raise RoomCodeExhausted(f"{ROOM_CODE_ATTEMPTS} denemede boş oda kodu bulunamadı ({len(self._codes)} canlı parti)")

    def _get_locked(self, party_id: int) -> Party:
        party = self.parties.get(party_id)
        if not party:
            raise PartyNotFound(party_id)
        return party

    async def create_party(self, creator_id: int, anime_id: int, episode_id: int, is_public: bool = True) -> Party:
        """Yeni parti oluştur, kurucu ilk katılımcı olur"""
        async with self._lock:
            party = Party(
                id         = self._next_id,
                room_code  = self._new_room_code(),
                creator_id = creator_id,
                anime_id   = anime_id,
                episode_id = episode_id,
                is_public  = is_public,
            )
            self._next_id += 1

            self.parties[party.id]      = party
            self.participants[party.id] = {creator_id}
            self._codes[party.room_code] = party.id
            return party

    async def get_party(self, party_id: int) -> Party:
        async with self._lock:
            return self._get_locked(party_id)

    async def get_party_by_code(self, room_code: str) -> Party:
        """Oda koduyla canlı partiyi bul (salt okunur)"""
        async with self._lock:
            party_id = self._codes.get(room_code.strip().lower())
            if party_id is None:
                raise PartyNotFound(room_code)
            return self.parties[party_id]

    async def update_party_state(self, party_id: int, current_time: float, is_playing: bool) -> Party:
        """Oynatım durumunu atomik olarak ez (last-write-wins)"""
        async with self._lock:
            party = self._get_locked(party_id)

            now = time.monotonic()
            party.current_time  = float(current_time)
            party.is_playing    = bool(is_playing)
            party.updated_at    = now
            party.last_activity = now
            return party

    async def add_participant(self, party_id: int, user_id: int) -> bool:
        """Katılımcı ekle - idempotent, parti yoksa False"""
        async with self._lock:
            party = self.parties.get(party_id)
            if not party:
                return False

            self.participants[party_id].add(user_id)
            party.last_activity = time.monotonic()
            return True

    async def remove_participant(self, party_id: int, user_id: int) -> bool:
        """Katılımcı çıkar - parti boşalsa bile silinmez"""
        async with self._lock:
            party = self.parties.get(party_id)
            if not party or user_id not in self.participants[party_id]:
                return False

            self.participants[party_id].discard(user_id)
            party.last_activity = time.monotonic()
            return True

    async def get_participants(self, party_id: int) -> list[int]:
        async with self._lock:
            self._get_locked(party_id)
            return sorted(self.participants[party_id])

    async def touch(self, party_id: int) -> bool:
        """Son aktivite zamanını güncelle (chat gibi durum değiştirmeyen olaylar)"""
        async with self._lock:
            party = self.parties.get(party_id)
            if not party:
                return False
            party.last_activity = time.monotonic()
            return True

    async def end_party(self, party_id: int) -> Party:
        """Partiyi kapat: end_time set edilir, canlı depodan çıkarılır"""
        async with self._lock:
            return self._end_locked(self._get_locked(party_id))

    def _end_locked(self, party: Party) -> Party:
        party.end_time = utc_now()
        party.is_playing = False
        self.parties.pop(party.id, None)
        self.participants.pop(party.id, None)
        self._codes.pop(party.room_code, None)
        return party

    async def collect_idle(self, now: float, ttl: float, is_occupied: Callable[[int], bool]) -> list[Party]:
        """Bağlantısı olmayan ve `ttl` saniyedir hareketsiz partileri kapat"""
        async with self._lock:
            idle = [
                party for party in self.parties.values()
                    if not is_occupied(party.id) and now - party.last_activity > ttl
            ]
            return [self._end_locked(party) for party in idle]

    async def snapshot(self, party_id: int) -> dict:
        """Yeni katılan için parti durumu (katılımcılar + son yazımdan geçen süre)"""
        async with self._lock:
            party = self._get_locked(party_id)
            return {
                **party.to_dict(),
                "participants" : sorted(self.participants[party_id]),
                "elapsed"      : round(time.monotonic() - party.updated_at, 3),
            }

    async def stats(self) -> dict:
        async with self._lock:
            return {
                "parties"      : len(self.parties),
                "participants" : sum(len(users) for users in self.participants.values()),
            }


# Singleton instance
watch_party_manager = WatchPartyManager()

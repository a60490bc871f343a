# Bu araç @keyiflerolsun tarafından | @KekikAkademi için yazılmıştır.

from dataclasses import dataclass, field
from datetime    import datetime, timezone
import time

def utc_now() -> datetime:
    return datetime.now(timezone.utc)

@dataclass
class Party:
    """Watch Party oturumu - tek otoriter oynatım durumu"""
    id           : int
    room_code    : str
    creator_id   : int
    anime_id     : int
    episode_id   : int
    is_public    : bool            = True
    current_time : float           = 0.0
    is_playing   : bool            = False
    start_time   : datetime        = field(default_factory=utc_now)
    end_time     : datetime | None = None
    updated_at    : float = field(default_factory=time.monotonic)  # Son oynatım yazımı
    last_activity : float = field(default_factory=time.monotonic)  # Son join/leave/sync/chat

    def to_dict(self) -> dict:
        """Wire formatı (camelCase)"""
        return {
            "id"          : self.id,
            "roomCode"    : self.room_code,
            "creatorId"   : self.creator_id,
            "animeId"     : self.anime_id,
            "episodeId"   : self.episode_id,
            "isPublic"    : self.is_public,
            "currentTime" : self.current_time,
            "isPlaying"   : self.is_playing,
            "startTime"   : self.start_time.isoformat(),
            "endTime"     : self.end_time.isoformat() if self.end_time else None,
        }

@dataclass
class ChatMessage:
    """Chat mesajı (kalıcı değil, sadece yayın)"""
    user_id   : int
    username  : str
    content   : str
    timestamp : str = field(default_factory=lambda: utc_now().isoformat())

    def to_event(self, party_id: int) -> dict:
        return {
            "type"      : "chat_message",
            "partyId"   : party_id,
            "userId"    : self.user_id,
            "username"  : self.username,
            "content"   : self.content,
            "timestamp" : self.timestamp,
        }

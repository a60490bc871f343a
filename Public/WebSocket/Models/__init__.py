# Bu araç @keyiflerolsun tarafından | @KekikAkademi için yazılmıştır.

from .WatchPartyModels import Party, ChatMessage, utc_now
from .MessageModels    import (
    JoinMessage,
    SyncMessage,
    ChatMessageIn,
    LeaveMessage,
    PingMessage,
    GetStateMessage,
    InboundMessage,
    CreatePartyRequest,
    decode_message,
)

# Bu araç @keyiflerolsun tarafından | @KekikAkademi için yazılmıştır.

from .WatchPartyManager import WatchPartyManager, PartyNotFound, RoomCodeExhausted, watch_party_manager
from .ConnectionManager import ConnectionManager, Connection, connection_manager
from .message_handlers  import MessageHandler, end_party, sweep_idle_parties
from .user_service      import lookup_user

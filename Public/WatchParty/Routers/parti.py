# Bu araç @keyiflerolsun tarafından | @KekikAkademi için yazılmıştır.

from Core                    import JSONResponse
from .                       import wp_router
from Public.WebSocket.Libs   import watch_party_manager, lookup_user, end_party
from Public.WebSocket.Models import CreatePartyRequest
import asyncio

@wp_router.post("", status_code=201)
async def create_party(istek: CreatePartyRequest):
    """Yeni izleme partisi oluştur"""
    party = await watch_party_manager.create_party(
        creator_id = istek.creatorId,
        anime_id   = istek.animeId,
        episode_id = istek.episodeId,
        is_public  = istek.isPublic,
    )
    return JSONResponse(status_code=201, content=party.to_dict())

@wp_router.get("/{room_code}")
async def get_party(room_code: str):
    """Oda koduyla partiyi getir"""
    party = await watch_party_manager.get_party_by_code(room_code)
    return party.to_dict()

@wp_router.get("/{room_code}/participants")
async def get_participants(room_code: str):
    """Partideki katılımcılar (kullanıcı adlarıyla)"""
    party    = await watch_party_manager.get_party_by_code(room_code)
    user_ids = await watch_party_manager.get_participants(party.id)
    users    = await asyncio.gather(*(lookup_user(user_id) for user_id in user_ids))

    return {"partyId": party.id, "participants": list(users)}

@wp_router.post("/{room_code}/end")
async def close_party(room_code: str):
    """Partiyi kapat, bağlı izleyicilere bildir"""
    party = await watch_party_manager.get_party_by_code(room_code)
    party = await end_party(party.id)
    return party.to_dict()

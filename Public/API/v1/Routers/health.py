# Bu araç @keyiflerolsun tarafından | @KekikAkademi için yazılmıştır.

from Core                  import JSONResponse
from .                     import api_v1_router
from Public.WebSocket.Libs import watch_party_manager, connection_manager

@api_v1_router.get("/health")
async def health_check():
    """API sağlık kontrolü + canlı oturum sayıları"""
    return JSONResponse({
        "success"     : True,
        "status"      : "healthy",
        "connections" : connection_manager.connection_count(),
        **await watch_party_manager.stats()
    })

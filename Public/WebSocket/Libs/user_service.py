# Bu araç @keyiflerolsun tarafından | @KekikAkademi için yazılmıştır.

from CLI      import konsol
from Libs     import global_request
from Settings import USER_API_URL, USER_API_TIMEOUT

# Manuel cache - lru_cache async ile çalışmaz
_user_cache: dict[int, dict] = {}
_CACHE_LIMIT = 512

def fallback_user(user_id: int) -> dict:
    return {"id": user_id, "username": f"Kullanıcı {user_id}"}

async def lookup_user(user_id: int) -> dict:
    """
    Kimlik servisinden kullanıcı adını çöz: {"id": int, "username": str}

    USER_API_URL tanımlı değilse veya servis yanıt vermezse yerel isim döner;
    kullanıcı kayıtları asla değiştirilmez.
    """
    if user_id in _user_cache:
        return _user_cache[user_id]

    if not USER_API_URL or not global_request.started:
        return fallback_user(user_id)

    try:
        response = await global_request.fetch(f"{USER_API_URL}/users/{user_id}", timeout=USER_API_TIMEOUT)
        response.raise_for_status()
        veri = response.json()
        sonuc = {"id": user_id, "username": veri.get("username") or fallback_user(user_id)["username"]}
    except Exception as hata:
        konsol.log(f"[yellow]Kullanıcı çözülemedi[/] {user_id} » {type(hata).__name__}: {hata}")
        return fallback_user(user_id)

    # Cache'e ekle (FIFO)
    if len(_user_cache) >= _CACHE_LIMIT:
        _user_cache.pop(next(iter(_user_cache)))
    _user_cache[user_id] = sonuc

    return sonuc

# Bu araç @keyiflerolsun tarafından | @KekikAkademi için yazılmıştır.

from Core                  import kekik_FastAPI, Request, JSONResponse
from starlette.exceptions  import HTTPException as StarletteHTTPException
from fastapi.exceptions    import RequestValidationError
from pydantic              import ValidationError
from Public.WebSocket.Libs import PartyNotFound, RoomCodeExhausted

@kekik_FastAPI.exception_handler(StarletteHTTPException)
async def custom_http_exception_handler(request: Request, exc):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

@kekik_FastAPI.exception_handler(PartyNotFound)
async def party_not_found_handler(request: Request, exc: PartyNotFound):
    """Canlı parti yoksa 404"""
    return JSONResponse(status_code=404, content={"detail": "İzleme partisi bulunamadı"})

@kekik_FastAPI.exception_handler(RoomCodeExhausted)
async def room_code_exhausted_handler(request: Request, exc: RoomCodeExhausted):
    """Oda kodu uzayı doluysa 503"""
    return JSONResponse(status_code=503, content={"detail": "Şu an yeni parti oluşturulamıyor"})

@kekik_FastAPI.exception_handler(RequestValidationError)
@kekik_FastAPI.exception_handler(ValidationError)
async def validation_exception_handler(request: Request, exc: ValidationError | RequestValidationError):
    """Pydantic validation hatalarını JSON olarak döndür"""
    errors   = exc.errors()
    messages = [f"{e['loc'][-1]}: {e['msg']}" for e in errors]

    return JSONResponse(
        status_code = 422,
        content     = {"success": False, "message": " | ".join(messages)}
    )

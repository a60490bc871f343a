# Bu araç @keyiflerolsun tarafından | @KekikAkademi için yazılmıştır.

from fastapi import APIRouter

wp_router = APIRouter(prefix="/api/watch-party")

from . import parti

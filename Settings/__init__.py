# Bu araç @keyiflerolsun tarafından | @KekikAkademi için yazılmıştır.

from pathlib import Path
from yaml    import load, FullLoader
from dotenv  import load_dotenv
import os

KOK_DIZIN = Path(__file__).resolve().parent.parent

# .env yükleme
load_dotenv(dotenv_path=KOK_DIZIN / ".env")

# AYAR.yml yükleme
with open(KOK_DIZIN / "AYAR.yml", "r", encoding="utf-8") as yaml_dosyasi:
    AYAR = load(yaml_dosyasi, Loader=FullLoader)

# Genel ayarlar
PRODUCTION = os.getenv("PRODUCTION", "false").lower() == "true"

PROJE = AYAR["PROJE"]
HOST  = AYAR["APP"]["HOST"]
PORT  = AYAR["APP"]["PORT"]

# Watch Party
_WP = AYAR["WATCH_PARTY"]

ROOM_CODE_LENGTH = int(_WP["ROOM_CODE_LENGTH"])
EMPTY_PARTY_TTL  = float(os.getenv("EMPTY_PARTY_TTL", _WP["EMPTY_PARTY_TTL"]))
CLEANUP_INTERVAL = float(_WP["CLEANUP_INTERVAL"])
MAX_PAYLOAD      = int(_WP["MAX_PAYLOAD"])
SEND_QUEUE_SIZE  = int(_WP["SEND_QUEUE_SIZE"])
SEND_TIMEOUT     = float(_WP["SEND_TIMEOUT"])
RATE_GENERAL     = int(_WP["RATE_LIMIT"]["GENERAL"])
RATE_HIGH_FREQ   = int(_WP["RATE_LIMIT"]["HIGH_FREQ"])

# Kimlik servisi (boşsa yerel isim kullanılır)
USER_API_URL     = os.getenv("USER_API_URL", "").rstrip("/")
USER_API_TIMEOUT = float(os.getenv("USER_API_TIMEOUT", "3"))

# Bu araç @keyiflerolsun tarafından | @KekikAkademi için yazılmıştır.

from CLI         import konsol
from Core        import kekik_FastAPI, Request, JSONResponse
from time        import time
from user_agents import parse
import asyncio

SESSIZ_YOLLAR = ("/api/v1/health", "/favicon.ico")

def cihaz_bul(ua_header: str | None) -> str:
    if not ua_header:
        return "-"
    try:
        parsed_ua = parse(ua_header)
        return ua_header if str(parsed_ua).split("/")[2].strip() == "Other" else str(parsed_ua)
    except Exception:
        return ua_header

@kekik_FastAPI.middleware("http")
async def istekten_once_sonra(request: Request, call_next):
    baslangic_zamani = time()

    fw_for    = request.headers.get("X-Forwarded-For")
    client_ip = fw_for.split(",")[0].strip() if fw_for else (request.client.host if request.client else "-")

    log_veri = {
        "method" : request.method,
        "url"    : request.url.path,
        "kod"    : None,
        "sure"   : None,
        "ip"     : client_ip,
        "cihaz"  : cihaz_bul(request.headers.get("User-Agent")),
    }

    try:
        response = await asyncio.wait_for(call_next(request), timeout=30)
        log_veri["kod"] = response.status_code
    except asyncio.TimeoutError:
        log_veri["kod"] = 504
        response        = JSONResponse(status_code=504, content={"ups": "Zaman Aşımı.."})
        konsol.log(f"[red]⏱️ Timeout:[/] {request.url.path}")
    except Exception as exc:
        log_veri["kod"] = 500
        response        = JSONResponse(status_code=500, content={"ups": "Sunucu Hatası.."})
        konsol.log(f"[red]❌ Beklenmeyen hata:[/] {request.url.path} - {exc}")

    if request.url.path in SESSIZ_YOLLAR:
        return response

    log_veri["sure"] = round(time() - baslangic_zamani, 2)
    log_salla(log_veri)

    return response

def log_salla(log_veri: dict):
    LABEL_WIDTH = 5
    durum_label = f"[green]{'durum':<{LABEL_WIDTH}}:[/]"
    ip_label    = f"[green]{'ip':<{LABEL_WIDTH}}:[/]"
    cihaz_label = f"[green]{'cihaz':<{LABEL_WIDTH}}:[/]"

    log_lines = [
        f"[bold blue]»[/] [bold turquoise2]{log_veri['url']}[/]",
        (
            f"  {durum_label} [bold green]{log_veri['method']}[/]"
            f" [blue]-[/] [bold bright_yellow]{log_veri['kod']}[/]"
            f" [blue]-[/] [bold yellow2]{log_veri['sure']} sn[/]"
        ),
        f"  {ip_label} [bold red]{log_veri['ip']}[/]",
        f"  {cihaz_label} [magenta]{log_veri['cihaz']}[/]",
    ]

    konsol.log("\n".join(log_lines) + "\n")

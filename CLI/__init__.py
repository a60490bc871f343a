# Bu araç @keyiflerolsun tarafından | @KekikAkademi için yazılmıştır.

from rich.console import Console
from rich.panel   import Panel
import sys

konsol = Console(log_path=False, highlight=False)

def cikis_yap(temizle: bool = True):
    """Uygulamadan temiz çıkış"""
    if temizle:
        konsol.clear()

    konsol.print("\n[bold gold1]Görüşmek üzere..[/]\n", width=70, justify="center")
    sys.exit(0)

def hata_yakala(hata: BaseException):
    """Yakalanmamış hatayı panel içinde göster ve çık"""
    if isinstance(hata, KeyboardInterrupt):
        cikis_yap(False)

    konsol.print(Panel(
        f"[bold red]{type(hata).__name__}[/] [blue]»[/] {hata}",
        title        = "[bold red]Hata[/]",
        border_style = "red",
        width        = 70
    ))
    sys.exit(1)

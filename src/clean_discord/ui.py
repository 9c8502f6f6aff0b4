"""Saída visual do CleanDiscord (Rich + estilo do Questionary).

Tudo que vai para o terminal fora dos prompts passa por aqui: avisos,
barra de progresso das exclusões e o resumo de cada canal.
"""

import logging
from contextlib import contextmanager
from typing import Any, ContextManager, Generator

import questionary
from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    TextColumn,
    TimeRemainingColumn,
)
from rich.table import Table

from .cleaner import ChannelRunSummary

console = Console()

QUIET, NORMAL, VERBOSE = 0, 1, 2
_level = NORMAL

# Cores do Discord (blurple) nos menus
CUSTOM_STYLE = questionary.Style(
    [
        ("qmark", "fg:#5865f2 bold"),
        ("question", "bold"),
        ("selected", "fg:#ed4245"),
        ("pointer", "fg:#5865f2 bold"),
        ("highlighted", "fg:#5865f2 bold"),
        ("answer", "fg:#57f287 bold"),
        ("separator", "fg:#4f545c"),
        ("disabled", "fg:#72767d italic"),
    ]
)

_MARKERS = {
    "success": ("bold green", "✅"),
    "error": ("bold red", "❌"),
    "warning": ("bold yellow", "⚠️ "),
    "info": ("bold blue", "ℹ️ "),
    "tip": ("dim", "💡"),
}


def set_verbosity(*, verbose: bool = False, quiet: bool = False) -> None:
    """Define o nível de saída a partir de -v/-q."""
    global _level
    _level = QUIET if quiet else VERBOSE if verbose else NORMAL


def is_verbose() -> bool:
    return _level >= VERBOSE


def _emit(kind: str, message: str) -> None:
    style, marker = _MARKERS[kind]
    console.print(f"[{style}]{marker} {message}[/]")


def print_success(message: str) -> None:
    _emit("success", message)


def print_error(message: str, hint: str | None = None) -> None:
    """Erro em vermelho, com dica opcional de como resolver."""
    _emit("error", message)
    if hint:
        console.print(f"[dim]   💡 {hint}[/]")


def print_warning(message: str) -> None:
    _emit("warning", message)


def print_info(message: str) -> None:
    """Mensagem informativa; omitida com -q."""
    if _level > QUIET:
        _emit("info", message)


def print_tip(message: str) -> None:
    _emit("tip", message)


def print_rate_limit(message_id: str, wait_seconds: float, attempt: int, max_retries: int) -> None:
    """Aviso de HTTP 429, usado como callback on_rate_limit do motor."""
    console.print(
        f"[bold yellow]⏳ Rate limit em [cyan]{message_id}[/cyan]: "
        f"aguardando [bold]{wait_seconds:g}s[/bold] ({attempt}/{max_retries})[/]"
    )


@contextmanager
def suppress_http_logs() -> Generator[None, None, None]:
    """Cala o logger do httpx enquanto um prompt está na tela."""
    http_logger = logging.getLogger("httpx")
    previous = http_logger.level
    http_logger.setLevel(logging.CRITICAL)
    try:
        yield
    finally:
        http_logger.setLevel(previous)


def spinner(message: str, spinner_type: str = "dots") -> ContextManager[Any]:
    return console.status(message, spinner=spinner_type)


@contextmanager
def progress_bar(description: str, total: int | None = None) -> Generator[tuple[Progress, Any], None, None]:
    """Barra "apagadas X/N" para um canal. Devolve (progress, task_id)."""
    with Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeRemainingColumn(),
        console=console,
    ) as prog:
        yield prog, prog.add_task(description, total=total)


def print_stats_table(title: str, data: dict[str, Any]) -> None:
    """Tabela chave/valor; inteiros com separador de milhar."""
    table = Table(title=title, show_header=False, title_style="bold")
    table.add_column("Campo", style="dim")
    table.add_column("Valor", justify="right")
    for key, value in data.items():
        if isinstance(value, int) and not isinstance(value, bool):
            value = f"[bold]{value:,}[/]".replace(",", ".")
        table.add_row(key, str(value))
    console.print(table)


def print_channel_summary(summary: ChannelRunSummary) -> None:
    """Resumo de um canal. Com -v, lista cada falha com motivo e detalhe."""
    data: dict[str, Any] = {
        "Apagadas": len(summary.succeeded),
        "Falhas": len(summary.failed),
        "Já apagadas (puladas)": len(summary.skipped),
    }
    if summary.simulated:
        data["Simuladas"] = len(summary.simulated)

    console.print()
    print_stats_table(f"Canal {summary.channel_id}", data)

    if not summary.failed:
        return
    if not is_verbose():
        print_tip("Use -v para ver o motivo de cada falha.")
        return
    for message_id, reason in summary.failed.items():
        detail = summary.errors.get(message_id, "")
        console.print(f"   [red]✗[/] {message_id}: {reason.value}" + (f" [dim]({detail})[/]" if detail else ""))

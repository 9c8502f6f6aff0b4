"""Funções utilitárias para CleanDiscord."""

import asyncio
import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


def env_str(name: str) -> str:
    """Lê uma variável de ambiente obrigatória.

    Args:
        name: Nome da variável de ambiente.

    Returns:
        Valor da variável, sem espaços nas pontas.

    Raises:
        SystemExit: Se a variável não estiver definida ou estiver vazia.
    """
    v = os.getenv(name)
    if not v or not v.strip():
        logger.error("Variável de ambiente %s não definida", name)
        raise SystemExit(f"Faltou {name} no .env")
    if v.strip() != v:
        logger.warning("Variável de ambiente %s contém espaços em branco", name)
    return v.strip()


async def safe_sleep(seconds: float) -> None:
    """Pausa entre requisições para não estourar o rate limit.

    Args:
        seconds: Tempo de espera em segundos. Deve ser um número não negativo.

    Raises:
        ValueError: Se seconds não for um número ou for negativo.
    """
    if isinstance(seconds, bool) or not isinstance(seconds, (int, float)):
        raise ValueError("safe_sleep: seconds deve ser um número (int ou float)")
    if seconds < 0:
        raise ValueError("safe_sleep: seconds deve ser não negativo")

    if seconds > 0:
        logger.debug("Aguardando %.2fs antes da próxima operação", seconds)
    await asyncio.sleep(seconds)


def resolve_ledger_path(ledger_path: str | None, *, home: Path | None = None) -> Path:
    """Resolve o caminho do arquivo SQLite do ledger.

    Regras:
    - Vazio ou None: usa `~/.cleandiscord/ledger.db`.
    - `~` é expandido para o diretório do usuário.
    - Caminho relativo é resolvido a partir do diretório atual.
    """
    home_dir = home or Path.home()
    name = (ledger_path or "").strip()
    if not name:
        return home_dir / ".cleandiscord" / "ledger.db"

    if name.startswith("~"):
        return home_dir / name[1:].lstrip("/\\")

    return Path(name).resolve()

"""Módulo de configuração persistente do CleanDiscord."""

import json
from dataclasses import asdict, dataclass
from pathlib import Path

from .client import DEFAULT_API_BASE_URL

DEFAULT_CONFIG_PATH = Path.home() / ".cleandiscord" / "config.json"


@dataclass
class CleanDiscordConfig:
    """Configurações persistentes do CleanDiscord.

    O token nunca é salvo aqui; ele vem do `.env` (DISCORD_TOKEN).
    """

    # Configurações de limpeza
    default_dry_run: bool = True
    default_data_dump: str = ""
    pacing_ms: int = 2500
    max_retries: int = 5
    rate_limit_fallback_seconds: float = 5.0

    # Configurações de rede
    request_timeout_seconds: float = 30.0
    api_base_url: str = DEFAULT_API_BASE_URL

    # Ledger
    ledger_path: str = "~/.cleandiscord/ledger.db"

    # Configurações de relatório
    default_report_dir: str = "relatorios"
    default_report_format: str = "csv"

    @property
    def pacing_seconds(self) -> float:
        return self.pacing_ms / 1000.0


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> CleanDiscordConfig:
    """Carrega configuração do arquivo JSON, criando defaults se não existir.

    Args:
        path: Caminho do arquivo de configuração.

    Returns:
        Configuração carregada ou padrão se arquivo não existir.
    """
    if not path.exists():
        return CleanDiscordConfig()
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        valid_fields = CleanDiscordConfig.__dataclass_fields__
        return CleanDiscordConfig(**{k: v for k, v in data.items() if k in valid_fields})
    except (json.JSONDecodeError, TypeError, AttributeError):
        return CleanDiscordConfig()


def save_config(config: CleanDiscordConfig, path: Path = DEFAULT_CONFIG_PATH) -> None:
    """Salva configuração no arquivo JSON.

    Args:
        config: Configuração a salvar.
        path: Caminho do arquivo de configuração.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(asdict(config), f, ensure_ascii=False, indent=2)

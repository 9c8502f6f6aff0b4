"""CleanDiscord: apaga mensagens do Discord a partir do pacote de dados exportado.

Este pacote fornece funcionalidades para:
- Navegar pelos canais e mensagens do pacote de dados (messages/index.json)
- Apagar mensagens selecionadas via API, respeitando rate limits
- Registrar exclusões confirmadas para não repeti-las em execuções futuras
"""

__version__ = "0.1.0"

from .cleaner import ChannelRunSummary, DeletionEngine
from .ledger import DeletionLedger, StorageError
from .utils import env_str, safe_sleep

__all__ = [
    "ChannelRunSummary",
    "DeletionEngine",
    "DeletionLedger",
    "StorageError",
    "env_str",
    "safe_sleep",
]

"""CleanDiscord: apaga mensagens do Discord a partir do pacote de dados exportado.

Funcionalidades:
- Navegar pelos canais do pacote de dados
- Apagar mensagens selecionadas respeitando rate limits
- Gerar relatórios das execuções

Use com cuidado e teste primeiro com --dry-run.
"""

import sys
from pathlib import Path

# Adicionar src/ ao path para importar o módulo
src_path = Path(__file__).parent / "src"
sys.path.insert(0, str(src_path))

from clean_discord.cli import run

if __name__ == "__main__":
    run()

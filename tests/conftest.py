"""Configuração de testes para CleanDiscord."""

import json
import sys
from pathlib import Path

import pytest

# Adicionar src/ ao path ANTES de qualquer outra coisa para importar o módulo correto
src_path = Path(__file__).parent.parent / "src"
if src_path.exists() and src_path.is_dir():
    sys.path.insert(0, str(src_path))
else:
    raise RuntimeError(f"Diretório src/ não encontrado em {src_path}. Verifique a estrutura do projeto.")

from clean_discord.ledger import DeletionLedger  # noqa: E402
from fakes import FakeClock  # noqa: E402

# =============================================================================
# Ledger e relógio
# =============================================================================


@pytest.fixture
def clock():
    """Relógio virtual para medir esperas sem dormir de verdade."""
    return FakeClock()


@pytest.fixture
def ledger(tmp_path):
    """Ledger SQLite em diretório temporário."""
    led = DeletionLedger(tmp_path / "ledger.db")
    led.initialize()
    yield led
    led.close()


# =============================================================================
# Pacote de dados do Discord
# =============================================================================


@pytest.fixture
def data_dump(tmp_path):
    """Cria um pacote de dados mínimo com dois canais e um diretório órfão."""
    root = tmp_path / "package"
    messages = root / "messages"
    messages.mkdir(parents=True)

    (messages / "index.json").write_text(
        json.dumps({"111": "Direct Message with alguem#0001", "222": "geral in Servidor"}),
        encoding="utf-8",
    )

    c111 = messages / "c111"
    c111.mkdir()
    (c111 / "messages.csv").write_text(
        "ID,Timestamp,Contents,Attachments\n"
        "1001,2021-01-01 10:00:00.000000+00:00,oi,\n"
        '1002,2021-01-01 10:01:00.000000+00:00,"tudo bem, e você?",\n'
        "1003,2021-01-01 10:02:00.000000+00:00,,https://cdn.discordapp.com/x.png\n",
        encoding="utf-8",
    )

    c222 = messages / "c222"
    c222.mkdir()
    (c222 / "messages.json").write_text(
        json.dumps(
            [
                {"ID": 2001, "Timestamp": "2022-05-01 12:00:00", "Contents": "bom dia", "Attachments": ""},
                {"ID": 2002, "Timestamp": "2022-05-01 12:05:00", "Contents": "até mais", "Attachments": ""},
            ]
        ),
        encoding="utf-8",
    )

    # Canal sem entrada no index
    c333 = messages / "c333"
    c333.mkdir()
    (c333 / "messages.csv").write_text("ID,Timestamp,Contents,Attachments\n", encoding="utf-8")

    # Entradas que não são canais
    (messages / "notes.txt").write_text("ignorar", encoding="utf-8")
    (messages / "xyz").mkdir()

    return root


# =============================================================================
# Rich Console Mock
# =============================================================================


@pytest.fixture
def mock_console(mocker):
    """Mock do console global Rich para testes de UI."""
    return mocker.patch("clean_discord.ui.console", autospec=True)


@pytest.fixture
def mock_stdin(monkeypatch):
    """Factory para mock de sys.stdin em testes de CLI."""
    import io

    def _make_input(text: str):
        monkeypatch.setattr("sys.stdin", io.StringIO(text + "\n"))
    return _make_input

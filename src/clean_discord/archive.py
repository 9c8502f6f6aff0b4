"""Leitura do pacote de dados exportado pelo Discord.

Estrutura esperada:

    <data_dump>/messages/index.json          {"<channel_id>": "<nome>", ...}
    <data_dump>/messages/c<channel_id>/      um diretório por canal
        messages.csv                         ID,Timestamp,Contents,Attachments
        messages.json                        (formato novo, mesmas chaves)
"""

import csv
import json
import logging
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

UNKNOWN_CHANNEL_NAME = "NOT FOUND IN INDEX"


class ArchiveError(Exception):
    """Pacote de dados ausente ou ilegível."""


@dataclass(frozen=True)
class ArchivedChannel:
    directory: Path
    channel_id: str
    name: str

    @property
    def label(self) -> str:
        return f"{self.directory.name}: {self.name}"


@dataclass(frozen=True)
class ArchivedMessage:
    message_id: str
    timestamp: str = ""
    contents: str = ""
    attachments: str = ""

    def preview(self, width: int = 60) -> str:
        """Texto curto para exibir em menus."""
        text = " ".join(self.contents.split()) or ("(anexo)" if self.attachments else "(vazia)")
        if len(text) > width:
            text = text[: width - 1] + "…"
        return f"{self.timestamp[:19]}  {text}" if self.timestamp else text


def messages_dir(data_dump: str | Path) -> Path:
    return Path(data_dump).expanduser() / "messages"


def load_channel_index(data_dump: str | Path) -> dict[str, str]:
    """Lê `messages/index.json`.

    Raises:
        ArchiveError: Se o arquivo não existir ou não for um objeto JSON.
    """
    index_path = messages_dir(data_dump) / "index.json"
    if not index_path.exists():
        raise ArchiveError(f"index.json não encontrado em {index_path.parent}")

    try:
        with open(index_path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ArchiveError(f"Não foi possível ler {index_path}: {e}") from e

    if not isinstance(data, dict):
        raise ArchiveError(f"{index_path} não contém um objeto JSON")

    return {str(k): v for k, v in data.items() if v is not None}


def list_channels(data_dump: str | Path, index: dict[str, str] | None = None) -> list[ArchivedChannel]:
    """Lista os canais do pacote (diretórios `c<id>` em `messages/`)."""
    if index is None:
        index = load_channel_index(data_dump)

    base = messages_dir(data_dump)
    if not base.is_dir():
        raise ArchiveError(f"Diretório de mensagens não encontrado: {base}")

    channels = []
    for entry in sorted(base.iterdir(), key=lambda p: p.name):
        if not entry.name.startswith("c") or not entry.is_dir():
            continue
        channel_id = entry.name[1:]
        name = index.get(channel_id, UNKNOWN_CHANNEL_NAME)
        channels.append(ArchivedChannel(directory=entry, channel_id=channel_id, name=str(name)))

    logger.debug("%s canal(is) encontrados em %s", len(channels), base)
    return channels


def _read_csv_messages(path: Path) -> list[ArchivedMessage]:
    with open(path, newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        return [
            ArchivedMessage(
                message_id=row["ID"].strip(),
                timestamp=row.get("Timestamp") or "",
                contents=row.get("Contents") or "",
                attachments=row.get("Attachments") or "",
            )
            for row in reader
            if (row.get("ID") or "").strip()
        ]


def _read_json_messages(path: Path) -> list[ArchivedMessage]:
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ArchiveError(f"{path} não contém uma lista de mensagens")

    messages = []
    for item in data:
        if not isinstance(item, dict) or item.get("ID") in (None, ""):
            continue
        messages.append(
            ArchivedMessage(
                message_id=str(item["ID"]),
                timestamp=str(item.get("Timestamp") or ""),
                contents=str(item.get("Contents") or ""),
                attachments=str(item.get("Attachments") or ""),
            )
        )
    return messages


def load_messages(channel_dir: str | Path) -> list[ArchivedMessage]:
    """Carrega as mensagens exportadas de um canal, na ordem do arquivo.

    Raises:
        ArchiveError: Se não houver export de mensagens ou ele estiver ilegível.
    """
    channel_dir = Path(channel_dir)
    csv_path = channel_dir / "messages.csv"
    json_path = channel_dir / "messages.json"

    try:
        if csv_path.exists():
            return _read_csv_messages(csv_path)
        if json_path.exists():
            return _read_json_messages(json_path)
    except (OSError, UnicodeDecodeError, csv.Error, json.JSONDecodeError, KeyError) as e:
        raise ArchiveError(f"Não foi possível ler mensagens de {channel_dir}: {e}") from e

    raise ArchiveError(f"Nenhum messages.csv/messages.json em {channel_dir}")

"""Registro durável das mensagens já apagadas (ledger).

Guarda em SQLite os pares (canal, mensagem) cuja exclusão foi confirmada pela
API, para que execuções repetidas não tentem apagar a mesma mensagem de novo.
"""

import logging
import sqlite3
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS deleted_messages (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    channel_id TEXT NOT NULL,
    message_id TEXT NOT NULL,
    UNIQUE (channel_id, message_id)
)
"""


class StorageError(Exception):
    """Ledger inacessível ou corrompido."""


@dataclass(frozen=True)
class DeletionRecord:
    """Uma exclusão confirmada."""

    channel_id: str
    message_id: str


class DeletionLedger:
    """Ledger de exclusões sobre um arquivo SQLite.

    Cada escrita é confirmada (commit) isoladamente: se o processo morrer no
    meio da execução, tudo que foi registrado até ali continua valendo.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._conn: sqlite3.Connection | None = None

    def initialize(self) -> None:
        """Abre o banco e cria a tabela se não existir. Pode ser chamado várias vezes."""
        try:
            if self._conn is None:
                if str(self.path) != ":memory:":
                    self.path.parent.mkdir(parents=True, exist_ok=True)
                self._conn = sqlite3.connect(str(self.path))
            self._conn.execute(_SCHEMA)
            self._conn.commit()
        except (sqlite3.Error, OSError) as e:
            raise StorageError(f"Falha ao inicializar ledger em {self.path}: {e}") from e
        logger.debug("Ledger pronto em %s", self.path)

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            self.initialize()
        conn = self._conn
        if conn is None:
            raise StorageError(f"Ledger em {self.path} não está aberto")
        return conn

    def has_been_deleted(self, channel_id: str, message_id: str) -> bool:
        """Retorna True se a exclusão de (channel_id, message_id) já foi registrada.

        Raises:
            StorageError: Se o banco estiver inacessível ou corrompido.
        """
        try:
            row = self._connection().execute(
                "SELECT 1 FROM deleted_messages WHERE channel_id = ? AND message_id = ? LIMIT 1",
                (str(channel_id), str(message_id)),
            ).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Falha ao consultar ledger: {e}") from e
        return row is not None

    def record_deletion(self, channel_id: str, message_id: str) -> None:
        """Registra uma exclusão confirmada. Registrar o mesmo par de novo não tem efeito.

        Raises:
            StorageError: Se a escrita falhar.
        """
        conn = self._connection()
        try:
            conn.execute(
                "INSERT OR IGNORE INTO deleted_messages (channel_id, message_id) VALUES (?, ?)",
                (str(channel_id), str(message_id)),
            )
            conn.commit()
        except sqlite3.Error as e:
            try:
                conn.rollback()
            except sqlite3.Error:
                logger.debug("Rollback do ledger também falhou", exc_info=True)
            raise StorageError(f"Falha ao gravar no ledger: {e}") from e

    def records(self, channel_id: str) -> list[DeletionRecord]:
        """Retorna os registros de um canal, na ordem em que foram gravados."""
        try:
            rows = self._connection().execute(
                "SELECT channel_id, message_id FROM deleted_messages WHERE channel_id = ? ORDER BY id",
                (str(channel_id),),
            ).fetchall()
        except sqlite3.Error as e:
            raise StorageError(f"Falha ao consultar ledger: {e}") from e
        return [DeletionRecord(*row) for row in rows]

    def deleted_message_ids(self, channel_id: str) -> set[str]:
        """Retorna os IDs de mensagens já apagadas de um canal."""
        return {record.message_id for record in self.records(channel_id)}

    def count(self, channel_id: str | None = None) -> int:
        """Conta registros (de um canal, ou de todos se channel_id for None)."""
        try:
            if channel_id is None:
                row = self._connection().execute(
                    "SELECT COUNT(*) FROM deleted_messages"
                ).fetchone()
            else:
                row = self._connection().execute(
                    "SELECT COUNT(*) FROM deleted_messages WHERE channel_id = ?",
                    (str(channel_id),),
                ).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Falha ao consultar ledger: {e}") from e
        return int(row[0])

    def close(self) -> None:
        """Fecha a conexão com o banco."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "DeletionLedger":
        self.initialize()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

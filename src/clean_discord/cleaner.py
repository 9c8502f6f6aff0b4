"""Módulo de limpeza do CleanDiscord.

Contém o motor que apaga, em ordem e uma de cada vez, as mensagens de um canal:
consulta o ledger, chama a API, respeita rate limits (429) com número limitado
de tentativas e registra cada exclusão confirmada.
"""

import enum
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Iterable, Protocol, Sequence

from .client import RemoteDeleteResult, StatusKind
from .ledger import DeletionLedger, StorageError
from .utils import safe_sleep

logger = logging.getLogger(__name__)

DEFAULT_PACING_SECONDS = 2.5
DEFAULT_MAX_RETRIES = 5
DEFAULT_RATE_LIMIT_FALLBACK_SECONDS = 5.0


class TaskOutcome(enum.Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED_ALREADY_DELETED = "skipped_already_deleted"


class FailureReason(enum.Enum):
    RETRY_BUDGET_EXHAUSTED = "RetryBudgetExhausted"
    REMOTE_REJECTED = "RemoteRejected"
    TRANSPORT_ERROR = "TransportError"


class RemoteDeleter(Protocol):
    """Qualquer objeto capaz de apagar uma mensagem remotamente."""

    async def delete_message(self, channel_id: str, message_id: str) -> RemoteDeleteResult: ...


@dataclass
class DeletionTask:
    """Estado de uma mensagem durante a execução de um canal."""

    channel_id: str
    message_id: str
    attempt_count: int = 0
    outcome: TaskOutcome = TaskOutcome.PENDING
    reason: FailureReason | None = None
    detail: str = ""

    @property
    def is_terminal(self) -> bool:
        return self.outcome is not TaskOutcome.PENDING

    def fail(self, reason: FailureReason, detail: str = "") -> None:
        self.outcome = TaskOutcome.FAILED
        self.reason = reason
        self.detail = detail


@dataclass
class ChannelRunSummary:
    """Resultado da execução de um canal.

    Attributes:
        channel_id: Canal processado.
        succeeded: IDs apagados nesta execução.
        failed: IDs que falharam, com o motivo.
        skipped: IDs ignorados por já constarem no ledger.
        errors: Detalhe do erro de cada ID em `failed`.
        simulated: IDs que seriam apagados (apenas em dry-run).
    """

    channel_id: str
    succeeded: set[str] = field(default_factory=set)
    failed: dict[str, FailureReason] = field(default_factory=dict)
    skipped: set[str] = field(default_factory=set)
    errors: dict[str, str] = field(default_factory=dict)
    simulated: list[str] = field(default_factory=list)

    def counts(self) -> dict[str, int]:
        return {
            "succeeded": len(self.succeeded),
            "failed": len(self.failed),
            "skipped": len(self.skipped),
            "simulated": len(self.simulated),
        }


class DeletionEngine:
    """Apaga mensagens de um canal respeitando rate limits e cadência.

    Args:
        client: Objeto com `delete_message(channel_id, message_id)`.
        ledger: Ledger de exclusões já confirmadas.
        pacing_seconds: Intervalo fixo após cada exclusão bem-sucedida.
        max_retries: Número máximo de tentativas sob rate limit (429).
        rate_limit_fallback_seconds: Espera usada quando o 429 não informa retry_after.
        dry_run: Se True, não chama a API nem grava no ledger.
        on_rate_limit: Callback (message_id, wait_seconds, attempt, max_retries).
        on_progress: Callback chamado com cada DeletionTask ao terminar.
        sleep: Corrotina de espera (injetável em testes).
    """

    def __init__(
        self,
        client: RemoteDeleter | None,
        ledger: DeletionLedger,
        *,
        pacing_seconds: float = DEFAULT_PACING_SECONDS,
        max_retries: int = DEFAULT_MAX_RETRIES,
        rate_limit_fallback_seconds: float = DEFAULT_RATE_LIMIT_FALLBACK_SECONDS,
        dry_run: bool = False,
        on_rate_limit: Callable[[str, float, int, int], None] | None = None,
        on_progress: Callable[[DeletionTask], None] | None = None,
        sleep: Callable[[float], Awaitable[None]] = safe_sleep,
    ):
        if max_retries < 1:
            raise ValueError("max_retries deve ser pelo menos 1")
        if pacing_seconds < 0 or rate_limit_fallback_seconds <= 0:
            raise ValueError("Intervalos de espera inválidos")
        if client is None and not dry_run:
            raise ValueError("client é obrigatório fora do modo dry-run")

        self.client = client
        self.ledger = ledger
        self.pacing_seconds = pacing_seconds
        self.max_retries = max_retries
        self.rate_limit_fallback_seconds = rate_limit_fallback_seconds
        self.dry_run = dry_run
        self.on_rate_limit = on_rate_limit
        self.on_progress = on_progress
        self._sleep = sleep

    def _already_deleted(self, task: DeletionTask) -> bool:
        try:
            return self.ledger.has_been_deleted(task.channel_id, task.message_id)
        except StorageError as e:
            # Na dúvida, não apagar de novo
            logger.warning(
                "Ledger indisponível para %s/%s (%s); tratando como já apagada.",
                task.channel_id,
                task.message_id,
                e,
            )
            return True

    def _record(self, task: DeletionTask) -> None:
        try:
            self.ledger.record_deletion(task.channel_id, task.message_id)
        except StorageError as e:
            logger.error(
                "Mensagem %s apagada, mas falhou ao gravar no ledger: %s",
                task.message_id,
                e,
            )

    async def process_task(self, task: DeletionTask) -> DeletionTask:
        """Leva uma tarefa até um estado terminal."""
        if self._already_deleted(task):
            task.outcome = TaskOutcome.SKIPPED_ALREADY_DELETED
            logger.debug("[%s] já apagada, pulando.", task.message_id)
            return task

        if self.dry_run:
            logger.info("[dry-run] Apagaria mensagem %s do canal %s", task.message_id, task.channel_id)
            return task

        client = self.client
        if client is None:
            raise RuntimeError("DeletionEngine sem cliente só pode rodar em dry-run")

        while True:
            result = await client.delete_message(task.channel_id, task.message_id)
            kind = result.status_kind

            if kind is StatusKind.SUCCESS:
                self._record(task)
                task.outcome = TaskOutcome.SUCCEEDED
                logger.info("Mensagem %s apagada (canal %s)", task.message_id, task.channel_id)
                await self._sleep(self.pacing_seconds)
                return task

            if kind is StatusKind.RATE_LIMITED:
                wait_s = result.retry_after_seconds
                if wait_s is None:
                    wait_s = self.rate_limit_fallback_seconds
                attempt = task.attempt_count + 1
                logger.warning(
                    "Rate limit em '%s'. Aguardando %ss (tentativa %s/%s)...",
                    task.message_id,
                    wait_s,
                    attempt,
                    self.max_retries,
                )
                if self.on_rate_limit is not None:
                    self.on_rate_limit(task.message_id, wait_s, attempt, self.max_retries)
                await self._sleep(wait_s)
                task.attempt_count = attempt
                if task.attempt_count < self.max_retries:
                    continue
                logger.error("Máximo de tentativas atingido; pulando '%s'.", task.message_id)
                task.fail(FailureReason.RETRY_BUDGET_EXHAUSTED, result.error_detail)
                return task

            if kind is StatusKind.NETWORK_FAILURE:
                task.fail(FailureReason.TRANSPORT_ERROR, result.error_detail)
                logger.error("Erro de rede ao apagar '%s': %s", task.message_id, result.error_detail)
            else:
                task.fail(FailureReason.REMOTE_REJECTED, result.error_detail)
                logger.error(
                    "API recusou exclusão de '%s' (HTTP %s): %s",
                    task.message_id,
                    result.status_code,
                    result.error_detail,
                )
            return task

    async def run_channel(self, channel_id: str, message_ids: Sequence[str]) -> ChannelRunSummary:
        """Processa as mensagens de um canal, na ordem recebida.

        IDs repetidos são processados uma única vez (na primeira ocorrência).

        Args:
            channel_id: ID do canal.
            message_ids: IDs das mensagens, em ordem.

        Returns:
            ChannelRunSummary com o desfecho de cada ID.
        """
        channel_id = str(channel_id)
        summary = ChannelRunSummary(channel_id=channel_id)
        unique_ids = list(dict.fromkeys(str(mid) for mid in message_ids))
        if len(unique_ids) < len(message_ids):
            logger.debug(
                "Canal %s: %s ID(s) repetido(s) ignorado(s)",
                channel_id,
                len(message_ids) - len(unique_ids),
            )
        tasks = [DeletionTask(channel_id, mid) for mid in unique_ids]

        logger.info(
            "%s %s mensagem(ns) do canal %s",
            "Simulando" if self.dry_run else "Processando",
            len(tasks),
            channel_id,
        )

        for task in tasks:
            await self.process_task(task)

            if task.outcome is TaskOutcome.SUCCEEDED:
                summary.succeeded.add(task.message_id)
            elif task.outcome is TaskOutcome.SKIPPED_ALREADY_DELETED:
                summary.skipped.add(task.message_id)
            elif task.reason is not None:
                summary.failed[task.message_id] = task.reason
                summary.errors[task.message_id] = task.detail
            else:
                summary.simulated.append(task.message_id)

            if self.on_progress is not None:
                self.on_progress(task)

        logger.info(
            "Canal %s concluído: %s apagada(s), %s falha(s), %s pulada(s)",
            channel_id,
            len(summary.succeeded),
            len(summary.failed),
            len(summary.skipped),
        )
        return summary


async def clean_channels(
    engine: DeletionEngine,
    channels: Iterable[tuple[str, Sequence[str]]],
) -> list[ChannelRunSummary]:
    """Executa vários canais, um após o outro.

    Args:
        engine: Motor configurado.
        channels: Pares (channel_id, message_ids).

    Returns:
        Lista de resumos, na ordem dos canais.
    """
    summaries = []
    for channel_id, message_ids in channels:
        summaries.append(await engine.run_channel(channel_id, message_ids))
    return summaries

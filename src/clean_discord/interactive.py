"""Modo interativo para o CLI do CleanDiscord usando Questionary.

A navegação é uma máquina de estados explícita:

    CHANNEL_LIST -> MESSAGE_LIST -> CONFIRM -> RUN -> CHANNEL_LIST

Cada estado é tratado por uma corrotina que devolve o próximo estado.
"""

import enum
import logging
from dataclasses import dataclass, field
from pathlib import Path

import questionary

from .archive import ArchiveError, ArchivedChannel, ArchivedMessage, list_channels, load_messages
from .cleaner import ChannelRunSummary, DeletionEngine, DeletionTask, RemoteDeleter
from .config import CleanDiscordConfig, save_config
from .ledger import DeletionLedger, StorageError
from .reports import generate_run_report
from .ui import (
    CUSTOM_STYLE,
    console,
    print_channel_summary,
    print_error,
    print_info,
    print_rate_limit,
    print_success,
    print_tip,
    print_warning,
    progress_bar,
    spinner,
    suppress_http_logs,
)

logger = logging.getLogger(__name__)


class MenuState(enum.Enum):
    CHANNEL_LIST = "channel_list"
    MESSAGE_LIST = "message_list"
    CONFIRM = "confirm"
    RUN = "run"
    EXIT = "exit"


@dataclass
class InteractiveSession:
    """Estado compartilhado entre as telas do modo interativo."""

    data_dump: Path
    config: CleanDiscordConfig
    ledger: DeletionLedger
    client: RemoteDeleter | None
    channels: list[ArchivedChannel] = field(default_factory=list)
    channel: ArchivedChannel | None = None
    messages: list[ArchivedMessage] = field(default_factory=list)
    selected_ids: list[str] = field(default_factory=list)
    dry_run: bool = True
    dry_run_only: bool = False
    summaries: list[ChannelRunSummary] = field(default_factory=list)


def _deleted_ids(ledger: DeletionLedger, channel_id: str) -> set[str]:
    try:
        return ledger.deleted_message_ids(channel_id)
    except StorageError as e:
        logger.warning("Não foi possível consultar o ledger: %s", e)
        return set()


async def show_channel_list(session: InteractiveSession) -> MenuState:
    """Tela de seleção de canal."""
    choices: list = []
    for channel in session.channels:
        done = len(_deleted_ids(session.ledger, channel.channel_id))
        suffix = f"  ({done} já apagada(s))" if done else ""
        choices.append(questionary.Choice(f"{channel.label}{suffix}", value=channel))

    choices.append(questionary.Separator())
    choices.append(questionary.Choice("🔧 Configurações", value="settings"))
    choices.append(questionary.Choice("🚪 Sair", value="exit"))

    with suppress_http_logs():
        selected = await questionary.select(
            "Selecione um canal:",
            choices=choices,
            style=CUSTOM_STYLE,
        ).ask_async()

    if selected is None or selected == "exit":
        return MenuState.EXIT

    if selected == "settings":
        await interactive_settings(session.config)
        return MenuState.CHANNEL_LIST

    session.channel = selected
    return MenuState.MESSAGE_LIST


async def show_message_list(session: InteractiveSession) -> MenuState:
    """Tela de seleção das mensagens do canal escolhido."""
    channel = session.channel
    if channel is None:
        return MenuState.CHANNEL_LIST

    try:
        session.messages = load_messages(channel.directory)
    except ArchiveError as e:
        print_error(str(e), hint="Verifique se o pacote de dados foi extraído por completo.")
        return MenuState.CHANNEL_LIST

    deleted = _deleted_ids(session.ledger, channel.channel_id)
    pending = [m for m in session.messages if m.message_id not in deleted]

    console.print(
        f"\n📁 {channel.label} — {len(session.messages)} mensagem(ns), "
        f"{len(session.messages) - len(pending)} já apagada(s)"
    )

    if not pending:
        print_info("Todas as mensagens deste canal já foram apagadas.")
        return MenuState.CHANNEL_LIST

    mode = await questionary.select(
        "Quais mensagens apagar?",
        choices=[
            questionary.Choice(f"Todas as pendentes ({len(pending)})", value="all"),
            questionary.Choice("Escolher mensagens", value="pick"),
            questionary.Choice("↩️  Voltar", value="back"),
        ],
        style=CUSTOM_STYLE,
    ).ask_async()

    if mode is None or mode == "back":
        return MenuState.CHANNEL_LIST

    if mode == "all":
        session.selected_ids = [m.message_id for m in pending]
        return MenuState.CONFIRM

    selected = await questionary.checkbox(
        "Selecione as mensagens (Espaço para marcar, Enter para confirmar):",
        choices=[
            questionary.Choice(
                m.preview(),
                value=m.message_id,
                disabled="já apagada" if m.message_id in deleted else None,
            )
            for m in session.messages
        ],
        style=CUSTOM_STYLE,
    ).ask_async()

    if not selected:
        print_warning("Nenhuma mensagem selecionada.")
        return MenuState.CHANNEL_LIST

    session.selected_ids = list(selected)
    return MenuState.CONFIRM


async def show_confirm(session: InteractiveSession) -> MenuState:
    """Tela de confirmação antes de apagar."""
    channel = session.channel
    if channel is None:
        return MenuState.CHANNEL_LIST

    if session.dry_run_only or session.client is None:
        session.dry_run = True
        if session.dry_run_only:
            print_info("Sessão iniciada com --dry-run: nada será apagado.")
        else:
            print_warning("DISCORD_TOKEN não definido: apenas simulação (dry-run) disponível.")
    else:
        session.dry_run = await questionary.confirm(
            "Executar em modo dry-run (simulação)?",
            default=session.config.default_dry_run,
            style=CUSTOM_STYLE,
        ).ask_async()
        if session.dry_run is None:
            return MenuState.CHANNEL_LIST

    console.print("\n📋 Resumo:")
    console.print(f"   • Canal: {channel.label}")
    console.print(f"   • Mensagens: {len(session.selected_ids)}")
    console.print(f"   • Intervalo entre exclusões: {session.config.pacing_ms} ms")
    console.print(f"   • Dry-run: {'Sim' if session.dry_run else 'Não'}")

    if session.dry_run:
        return MenuState.RUN

    confirm = await questionary.confirm(
        "⚠️  ATENÇÃO: a exclusão é IRREVERSÍVEL. Confirma?",
        default=False,
        style=CUSTOM_STYLE,
    ).ask_async()

    if not confirm:
        console.print("\n❌ Operação cancelada.")
        return MenuState.CHANNEL_LIST

    return MenuState.RUN


async def run_selection(session: InteractiveSession) -> MenuState:
    """Executa a exclusão das mensagens selecionadas."""
    channel = session.channel
    if channel is None:
        return MenuState.CHANNEL_LIST
    cfg = session.config

    console.print(f"\n{'🔍 Simulando' if session.dry_run else '🚀 Apagando'} mensagens...")

    try:
        with progress_bar(f"Canal {channel.channel_id}", total=len(session.selected_ids)) as (prog, task_id):

            def advance(_task: DeletionTask) -> None:
                prog.advance(task_id)

            engine = DeletionEngine(
                session.client,
                session.ledger,
                pacing_seconds=cfg.pacing_seconds,
                max_retries=cfg.max_retries,
                rate_limit_fallback_seconds=cfg.rate_limit_fallback_seconds,
                dry_run=session.dry_run,
                on_rate_limit=print_rate_limit,
                on_progress=advance,
            )
            summary = await engine.run_channel(channel.channel_id, session.selected_ids)
    except Exception as e:
        print_error(
            f"Erro durante limpeza ({type(e).__name__}): {e}",
            hint="Tente rodar com dry-run primeiro para identificar mensagens problemáticas.",
        )
        logger.exception("Erro na limpeza interativa")
        return MenuState.CHANNEL_LIST

    session.summaries.append(summary)
    print_channel_summary(summary)

    if summary.failed:
        print_tip("Mensagens que falharam serão tentadas de novo na próxima execução.")

    make_report = await questionary.confirm(
        "Gerar relatório desta execução?",
        default=False,
        style=CUSTOM_STYLE,
    ).ask_async()
    if make_report:
        try:
            path = generate_run_report(
                [summary],
                output_format=cfg.default_report_format,
                report_dir=cfg.default_report_dir,
            )
            print_success(f"Relatório gerado: {path}")
        except (OSError, ValueError) as e:
            print_error(f"Erro ao gerar relatório: {e}")

    await questionary.press_any_key_to_continue(
        "\nPressione qualquer tecla para continuar..."
    ).ask_async()
    return MenuState.CHANNEL_LIST


async def ask_data_dump() -> str | None:
    """Pergunta o diretório do pacote de dados do Discord."""
    answer = await questionary.path(
        "Caminho do pacote de dados do Discord?",
        only_directories=True,
        validate=lambda v: bool(v.strip()) or "O caminho não pode ser vazio!",
        style=CUSTOM_STYLE,
    ).ask_async()
    return answer.strip() if answer else None


_HANDLERS = {
    MenuState.CHANNEL_LIST: show_channel_list,
    MenuState.MESSAGE_LIST: show_message_list,
    MenuState.CONFIRM: show_confirm,
    MenuState.RUN: run_selection,
}


async def interactive_main(
    data_dump: str | Path,
    config: CleanDiscordConfig,
    ledger: DeletionLedger,
    client: RemoteDeleter | None,
    *,
    dry_run: bool = False,
) -> list[ChannelRunSummary]:
    """Menu interativo principal.

    Args:
        data_dump: Diretório do pacote de dados do Discord.
        config: Configuração carregada.
        ledger: Ledger de exclusões.
        client: Cliente da API (None = só dry-run).
        dry_run: Se True, toda a sessão é simulação e o cliente é ignorado.

    Returns:
        Resumos de todos os canais processados na sessão.

    Raises:
        ArchiveError: Se o pacote de dados não puder ser lido.
    """
    session = InteractiveSession(
        data_dump=Path(data_dump),
        config=config,
        ledger=ledger,
        client=None if dry_run else client,
        dry_run=dry_run or config.default_dry_run,
        dry_run_only=dry_run,
    )
    with spinner("Lendo pacote de dados..."):
        session.channels = list_channels(session.data_dump)

    if not session.channels:
        print_warning(f"Nenhum canal encontrado em {session.data_dump}.")
        return session.summaries

    state = MenuState.CHANNEL_LIST
    while state is not MenuState.EXIT:
        state = await _HANDLERS[state](session)

    if session.summaries:
        total = sum(len(s.succeeded) for s in session.summaries)
        console.print()
        print_success(f"Sessão encerrada: {total} mensagem(ns) apagada(s).")
    console.print("\n👋 Até logo!")
    return session.summaries


async def interactive_settings(cfg: CleanDiscordConfig) -> None:
    """Menu de configurações persistentes."""
    setting = await questionary.select(
        "🔧 Configurações — O que deseja alterar?",
        choices=[
            questionary.Choice(f"⏱️  Intervalo entre exclusões: {cfg.pacing_ms} ms", value="pacing"),
            questionary.Choice(f"🔁 Máximo de tentativas (429): {cfg.max_retries}", value="retries"),
            questionary.Choice(
                f"🔍 Dry-run por padrão: {'Sim' if cfg.default_dry_run else 'Não'}",
                value="dry_run",
            ),
            questionary.Choice(f"🗄️  Ledger: {cfg.ledger_path}", value="ledger"),
            questionary.Choice(
                f"📊 Formato padrão de relatório: {cfg.default_report_format}",
                value="report_format",
            ),
            questionary.Choice("↩️  Voltar", value=None),
        ],
        style=CUSTOM_STYLE,
    ).ask_async()

    if setting is None:
        return

    if setting == "pacing":
        value = await questionary.text(
            "Intervalo em milissegundos:",
            default=str(cfg.pacing_ms),
            validate=lambda v: v.strip().isdigit() or "Digite um número inteiro",
            style=CUSTOM_STYLE,
        ).ask_async()
        if value:
            cfg.pacing_ms = int(value.strip())
            save_config(cfg)
            print_success(f"Intervalo atualizado: {cfg.pacing_ms} ms")

    elif setting == "retries":
        value = await questionary.text(
            "Máximo de tentativas:",
            default=str(cfg.max_retries),
            validate=lambda v: (v.strip().isdigit() and int(v) >= 1) or "Digite um inteiro >= 1",
            style=CUSTOM_STYLE,
        ).ask_async()
        if value:
            cfg.max_retries = int(value.strip())
            save_config(cfg)
            print_success(f"Máximo de tentativas: {cfg.max_retries}")

    elif setting == "dry_run":
        new_val = await questionary.confirm(
            "Ativar dry-run por padrão?",
            default=cfg.default_dry_run,
            style=CUSTOM_STYLE,
        ).ask_async()
        if new_val is None:
            return
        cfg.default_dry_run = new_val
        save_config(cfg)
        print_success(f"Dry-run padrão: {'Sim' if cfg.default_dry_run else 'Não'}")

    elif setting == "ledger":
        new_path = await questionary.path(
            "Novo caminho do ledger (vale a partir da próxima execução):",
            default=cfg.ledger_path,
            style=CUSTOM_STYLE,
        ).ask_async()
        if new_path:
            cfg.ledger_path = new_path
            save_config(cfg)
            print_success(f"Ledger: {new_path}")

    elif setting == "report_format":
        fmt = await questionary.select(
            "Formato padrão de relatório:",
            choices=["csv", "json", "txt"],
            default=cfg.default_report_format,
            style=CUSTOM_STYLE,
        ).ask_async()
        if fmt:
            cfg.default_report_format = fmt
            save_config(cfg)
            print_success(f"Formato padrão de relatório: {fmt}")

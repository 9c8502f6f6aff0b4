"""CLI module for CleanDiscord."""

import argparse
import asyncio
import logging
import os
import sys
from contextlib import AsyncExitStack

from dotenv import load_dotenv

from .archive import ArchiveError, list_channels, load_messages
from .cleaner import ChannelRunSummary, DeletionEngine, clean_channels
from .client import DiscordClient
from .config import CleanDiscordConfig, load_config
from .interactive import ask_data_dump, interactive_main
from .ledger import DeletionLedger, StorageError
from .reports import generate_run_report, validate_output_path
from .ui import print_channel_summary, print_rate_limit, set_verbosity
from .utils import env_str, resolve_ledger_path

logger = logging.getLogger(__name__)

TOKEN_ENV_VAR = "DISCORD_TOKEN"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse argumentos da linha de comando."""
    parser = argparse.ArgumentParser(
        description="Apaga mensagens do Discord a partir do pacote de dados exportado."
    )
    parser.add_argument(
        "data_dump",
        nargs="?",
        default=None,
        help="Diretório do pacote de dados (contém messages/index.json).",
    )
    parser.add_argument(
        "--channel",
        action="append",
        default=[],
        metavar="CHANNEL_ID",
        help="Canal a limpar (pode repetir).",
    )
    parser.add_argument(
        "--all-channels",
        action="store_true",
        help="Limpa todos os canais do pacote de dados.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Não faz alterações; só imprime o que faria.",
    )
    parser.add_argument(
        "--yes",
        action="store_true",
        help="Não pedir confirmação interativa.",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=0,
        help="Limita quantas mensagens processar por canal (0 = todas).",
    )
    parser.add_argument(
        "--pacing-ms",
        type=int,
        default=None,
        help="Intervalo entre exclusões em milissegundos (padrão: 2500).",
    )
    parser.add_argument(
        "--max-retries",
        type=int,
        default=None,
        help="Máximo de tentativas por mensagem sob rate limit (padrão: 5).",
    )
    parser.add_argument(
        "--ledger",
        type=str,
        default=None,
        help="Arquivo SQLite do ledger (padrão: ~/.cleandiscord/ledger.db).",
    )
    parser.add_argument(
        "-i",
        "--interactive",
        action="store_true",
        help="Modo interativo com menus visuais.",
    )
    parser.add_argument(
        "--report",
        choices=["csv", "json", "txt"],
        default=None,
        help="Gera relatório da execução no formato escolhido.",
    )
    parser.add_argument(
        "--report-output",
        type=str,
        default=None,
        help="Caminho do arquivo de relatório (opcional, usa padrão com timestamp se omitido).",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Saída detalhada (DEBUG).")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Apenas avisos e erros.")

    return parser.parse_args(argv)


def apply_overrides(cfg: CleanDiscordConfig, args: argparse.Namespace) -> CleanDiscordConfig:
    """Aplica opções da linha de comando sobre a configuração salva."""
    if args.pacing_ms is not None:
        if args.pacing_ms < 0:
            raise SystemExit("--pacing-ms não pode ser negativo")
        cfg.pacing_ms = args.pacing_ms
    if args.max_retries is not None:
        if args.max_retries < 1:
            raise SystemExit("--max-retries deve ser pelo menos 1")
        cfg.max_retries = args.max_retries
    if args.ledger:
        cfg.ledger_path = args.ledger
    return cfg


def confirm_action() -> bool:
    """Pede confirmação do usuário antes de executar ação destrutiva."""
    print(
        "ATENÇÃO: isso vai apagar mensagens do Discord de forma IRREVERSÍVEL.\n"
        "Digite 'APAGAR' para confirmar: ",
        end="",
        flush=True,
    )
    confirm = sys.stdin.readline().strip()
    return confirm == "APAGAR"


def resolve_token(*, required: bool) -> str | None:
    """Lê o token do ambiente. Sem token, só o dry-run é permitido."""
    if required:
        return env_str(TOKEN_ENV_VAR)
    token = os.getenv(TOKEN_ENV_VAR, "").strip()
    return token or None


def select_channels(args: argparse.Namespace, data_dump: str) -> list[tuple[str, list[str]]]:
    """Monta a lista (channel_id, message_ids) a processar.

    Raises:
        ArchiveError: Se o pacote ou um canal pedido não puder ser lido.
    """
    channels = list_channels(data_dump)
    by_id = {c.channel_id: c for c in channels}

    if args.all_channels:
        chosen = channels
    else:
        missing = [cid for cid in args.channel if cid not in by_id]
        if missing:
            raise ArchiveError(f"Canal(is) não encontrado(s) no pacote: {', '.join(missing)}")
        chosen = [by_id[cid] for cid in args.channel]

    work = []
    for channel in chosen:
        ids = [m.message_id for m in load_messages(channel.directory)]
        if args.limit:
            ids = ids[: args.limit]
        logger.info("Canal %s (%s): %s mensagem(ns)", channel.channel_id, channel.name, len(ids))
        work.append((channel.channel_id, ids))
    return work


async def run_clean(
    args: argparse.Namespace,
    cfg: CleanDiscordConfig,
    ledger: DeletionLedger,
    client: DiscordClient | None,
    data_dump: str,
) -> list[ChannelRunSummary]:
    """Executa a limpeza não interativa dos canais pedidos."""
    work = select_channels(args, data_dump)

    engine = DeletionEngine(
        client,
        ledger,
        pacing_seconds=cfg.pacing_seconds,
        max_retries=cfg.max_retries,
        rate_limit_fallback_seconds=cfg.rate_limit_fallback_seconds,
        dry_run=args.dry_run,
        on_rate_limit=print_rate_limit,
    )
    summaries = await clean_channels(engine, work)
    for summary in summaries:
        print_channel_summary(summary)

    total = {key: sum(s.counts()[key] for s in summaries) for key in ("succeeded", "failed", "skipped", "simulated")}
    logger.info(
        "Concluído. Apagadas: %s, falhas: %s, puladas: %s%s",
        total["succeeded"],
        total["failed"],
        total["skipped"],
        f", simuladas: {total['simulated']}" if args.dry_run else "",
    )
    return summaries


def configure_logging(args: argparse.Namespace) -> None:
    level = logging.INFO
    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # httpx registra cada requisição em INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    set_verbosity(verbose=args.verbose, quiet=args.quiet)


async def main(argv: list[str] | None = None) -> None:
    """Entry-point assíncrono."""
    load_dotenv()
    args = parse_args(argv)
    configure_logging(args)

    cfg = apply_overrides(load_config(), args)
    data_dump = args.data_dump or cfg.default_data_dump
    if not data_dump and args.interactive:
        data_dump = await ask_data_dump()
    if not data_dump:
        raise SystemExit("Informe o diretório do pacote de dados do Discord.")

    if not args.interactive and not args.channel and not args.all_channels:
        raise SystemExit("Use --channel ID, --all-channels ou -i (modo interativo).")

    if args.report_output:
        is_valid, err = validate_output_path(args.report_output)
        if not is_valid:
            raise SystemExit(f"Caminho de relatório inválido: {err}")

    # --dry-run nunca abre cliente da API, nem no modo interativo
    token = None if args.dry_run else resolve_token(required=not args.interactive)

    if not args.interactive and not args.dry_run and not args.yes:
        if not confirm_action():
            print("Cancelado.")
            return

    ledger_path = resolve_ledger_path(cfg.ledger_path)
    logger.info("Ledger: %s", ledger_path)

    try:
        async with AsyncExitStack() as stack:
            ledger = stack.enter_context(DeletionLedger(ledger_path))
            client = None
            if token:
                client = await stack.enter_async_context(
                    DiscordClient(
                        token,
                        base_url=cfg.api_base_url,
                        timeout=cfg.request_timeout_seconds,
                    )
                )

            if args.interactive:
                summaries = await interactive_main(data_dump, cfg, ledger, client, dry_run=args.dry_run)
            else:
                summaries = await run_clean(args, cfg, ledger, client, data_dump)
    except ArchiveError as e:
        logger.error("%s", e)
        return
    except StorageError as e:
        logger.error("Ledger indisponível: %s", e)
        return

    if args.report and summaries:
        path = generate_run_report(
            summaries,
            output_path=args.report_output,
            output_format=args.report,
            report_dir=cfg.default_report_dir,
        )
        logger.info("Relatório gerado: %s", path)


def run() -> None:
    """Entry-point síncrono (console script)."""
    asyncio.run(main())


if __name__ == "__main__":
    run()

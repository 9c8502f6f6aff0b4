"""Módulo de geração de relatórios para CleanDiscord.

Gera relatórios das execuções de limpeza (uma linha por mensagem) em diversos formatos.
"""

import csv
import json
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable

from .cleaner import ChannelRunSummary

VALID_FORMATS = {"csv", "json", "txt"}

CSV_FIELDNAMES = ["Canal", "Mensagem", "Resultado", "Motivo", "Detalhe"]

_OUTCOME_LABELS = {
    "succeeded": "Apagada",
    "failed": "Falhou",
    "skipped": "Já apagada",
    "simulated": "Simulada",
}


def _get_timestamp() -> str:
    """Retorna timestamp atual formatado para nomes de arquivo."""
    return datetime.now().strftime("%Y%m%d_%H%M%S")


def validate_output_path(output_path: str) -> tuple[bool, str | None]:
    """Verifica se é possível escrever um relatório no caminho informado.

    Returns:
        Tupla (válido, mensagem_de_erro).
    """
    if not output_path or not output_path.strip():
        return False, "caminho vazio"

    path = Path(output_path).expanduser()
    if path.exists() and path.is_dir():
        return False, f"{path} é um diretório"

    parent = path.parent
    while not parent.exists():
        if parent == parent.parent:
            break
        parent = parent.parent

    if not os.access(parent, os.W_OK):
        return False, f"sem permissão de escrita em {parent}"

    return True, None


def summary_rows(summaries: Iterable[ChannelRunSummary]) -> list[dict[str, Any]]:
    """Achata os resumos em uma linha por mensagem."""
    items: list[dict[str, Any]] = []
    for summary in summaries:
        for message_id in sorted(summary.succeeded):
            items.append(_row(summary.channel_id, message_id, "succeeded"))
        for message_id, reason in summary.failed.items():
            items.append(
                _row(
                    summary.channel_id,
                    message_id,
                    "failed",
                    reason=reason.value,
                    detail=summary.errors.get(message_id, ""),
                )
            )
        for message_id in sorted(summary.skipped):
            items.append(_row(summary.channel_id, message_id, "skipped"))
        for message_id in summary.simulated:
            items.append(_row(summary.channel_id, message_id, "simulated"))
    return items


def _row(channel_id: str, message_id: str, outcome: str, reason: str = "", detail: str = "") -> dict[str, Any]:
    return {
        "channel_id": channel_id,
        "message_id": message_id,
        "outcome": outcome,
        "reason": reason,
        "detail": detail,
    }


def generate_run_report(
    summaries: list[ChannelRunSummary],
    output_path: str | None = None,
    output_format: str = "csv",
    report_dir: str = "relatorios",
) -> str:
    """Gera relatório de uma execução de limpeza.

    Args:
        summaries: Resumos dos canais processados.
        output_path: Caminho do arquivo de saída. Se None, usa padrão com timestamp.
        output_format: Formato do relatório (csv, json ou txt).
        report_dir: Diretório usado quando output_path é None.

    Returns:
        Caminho do arquivo gerado.
    """
    if output_format not in VALID_FORMATS:
        raise ValueError(f"Formato não suportado: {output_format}. Use um de: {', '.join(sorted(VALID_FORMATS))}")

    items = summary_rows(summaries)

    if output_path is None:
        output_path = f"{report_dir}/run_{_get_timestamp()}.{output_format}"

    output_file = Path(output_path)
    output_file.parent.mkdir(parents=True, exist_ok=True)

    if output_format == "csv":
        _write_csv_report(items, output_file)
    elif output_format == "json":
        _write_json_report(items, output_file, summaries)
    else:
        _write_txt_report(items, output_file, summaries)

    return str(output_file)


def _write_csv_report(items: list[dict[str, Any]], output_file: Path) -> None:
    """Escreve relatório em formato CSV."""
    with open(output_file, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=CSV_FIELDNAMES)
        writer.writeheader()
        writer.writerows(
            {
                "Canal": item["channel_id"],
                "Mensagem": item["message_id"],
                "Resultado": _OUTCOME_LABELS[item["outcome"]],
                "Motivo": item["reason"],
                "Detalhe": item["detail"],
            }
            for item in items
        )


def _write_json_report(
    items: list[dict[str, Any]], output_file: Path, summaries: list[ChannelRunSummary]
) -> None:
    """Escreve relatório em formato JSON."""
    report = {
        "generated_at": datetime.now().isoformat(),
        "report_type": "deletion_run",
        "channels": {s.channel_id: s.counts() for s in summaries},
        "total": len(items),
        "items": items,
    }

    with open(output_file, "w", encoding="utf-8") as f:
        json.dump(report, f, ensure_ascii=False, indent=2)


def _write_txt_report(
    items: list[dict[str, Any]], output_file: Path, summaries: list[ChannelRunSummary]
) -> None:
    """Escreve relatório em formato TXT formatado."""
    lines: list[str] = []

    lines.append("=" * 50)
    lines.append("RELATÓRIO DE LIMPEZA")
    lines.append(f"Gerado em: {datetime.now().strftime('%d/%m/%Y às %H:%M')}")
    lines.append(f"Total: {len(items)} mensagem(ns)")
    lines.append("=" * 50)
    lines.append("")

    for summary in summaries:
        counts = summary.counts()
        lines.append(
            f"Canal {summary.channel_id}: {counts['succeeded']} apagada(s), "
            f"{counts['failed']} falha(s), {counts['skipped']} já apagada(s)"
        )
    if summaries:
        lines.append("")

    if not items:
        lines.append("(Nenhuma mensagem processada)")
    else:
        for i, item in enumerate(items, 1):
            lines.append(f"[{i}] {item['channel_id']}/{item['message_id']} - {_OUTCOME_LABELS[item['outcome']]}")
            if item["reason"]:
                lines.append(f"    Motivo: {item['reason']}")
            if item["detail"]:
                lines.append(f"    Detalhe: {item['detail']}")

    with open(output_file, "w", encoding="utf-8") as f:
        f.write("\n".join(lines))

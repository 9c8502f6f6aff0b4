"""Cliente HTTP para a API do Discord (apenas a operação de apagar mensagem)."""

import enum
import logging
from dataclasses import dataclass

import httpx

logger = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = "https://discord.com/api/v9"

# Tamanho máximo do corpo de resposta guardado como diagnóstico
_MAX_DETAIL_CHARS = 500


class StatusKind(enum.Enum):
    """Classificação do resultado de uma tentativa de exclusão."""

    SUCCESS = "Success"
    RATE_LIMITED = "RateLimited"
    CLIENT_ERROR = "ClientError"
    SERVER_ERROR = "ServerError"
    NETWORK_FAILURE = "NetworkFailure"


@dataclass(frozen=True)
class RemoteDeleteResult:
    """Resultado de uma chamada DELETE.

    Attributes:
        status_kind: Classificação do resultado.
        status_code: Código HTTP (None quando não houve resposta).
        retry_after_seconds: Espera sugerida pelo servidor; só em RATE_LIMITED.
        error_detail: Diagnóstico opaco (corpo da resposta ou texto da exceção).
    """

    status_kind: StatusKind
    status_code: int | None = None
    retry_after_seconds: float | None = None
    error_detail: str = ""

    @property
    def ok(self) -> bool:
        return self.status_kind is StatusKind.SUCCESS


def _parse_retry_after(response: httpx.Response) -> float | None:
    """Extrai o tempo de espera de uma resposta 429.

    O Discord envia `retry_after` no corpo JSON (segundos, com fração); o header
    `Retry-After` é usado como alternativa.
    """
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict) and body.get("retry_after") is not None:
        try:
            return max(0.0, float(body["retry_after"]))
        except (TypeError, ValueError):
            pass

    header = response.headers.get("Retry-After")
    if header:
        try:
            return max(0.0, float(header))
        except ValueError:
            logger.debug("Header Retry-After inválido: %r", header)

    return None


def classify_response(response: httpx.Response) -> RemoteDeleteResult:
    """Converte uma resposta HTTP em RemoteDeleteResult."""
    status = response.status_code

    if status in (200, 204):
        return RemoteDeleteResult(StatusKind.SUCCESS, status_code=status)

    detail = response.text[:_MAX_DETAIL_CHARS]

    if status == 429:
        return RemoteDeleteResult(
            StatusKind.RATE_LIMITED,
            status_code=status,
            retry_after_seconds=_parse_retry_after(response),
            error_detail=detail,
        )

    if status >= 500:
        return RemoteDeleteResult(StatusKind.SERVER_ERROR, status_code=status, error_detail=detail)

    return RemoteDeleteResult(StatusKind.CLIENT_ERROR, status_code=status, error_detail=detail)


class DiscordClient:
    """Cliente assíncrono que apaga mensagens via API REST do Discord.

    O token é guardado apenas nesta instância; cada execução cria o seu cliente.

    Example:
        async with DiscordClient(token) as client:
            result = await client.delete_message("123", "456")
    """

    def __init__(
        self,
        token: str,
        *,
        base_url: str = DEFAULT_API_BASE_URL,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._headers = {"Authorization": token}
        self._owns_http_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout)

    async def delete_message(self, channel_id: str, message_id: str) -> RemoteDeleteResult:
        """Apaga uma mensagem. Nunca levanta exceção: falhas viram RemoteDeleteResult."""
        url = f"{self.base_url}/channels/{channel_id}/messages/{message_id}"
        try:
            response = await self._http.delete(url, headers=self._headers)
        except httpx.TransportError as e:
            logger.debug("Falha de transporte em DELETE %s: %s", url, e)
            return RemoteDeleteResult(
                StatusKind.NETWORK_FAILURE,
                error_detail=f"{type(e).__name__}: {e}",
            )

        return classify_response(response)

    async def aclose(self) -> None:
        if self._owns_http_client:
            await self._http.aclose()

    async def __aenter__(self) -> "DiscordClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

"""
Cliente da API de preços da Scryfall.

Consulta o endpoint /cards/named por nome exato (e código de set opcional) e
decodifica apenas os campos usados pela planilha. A descrição completa da
resposta está em https://scryfall.com/docs/api/cards.
"""
import logging
from dataclasses import dataclass, field

import requests

from .__version__ import __version__
from .config import DEFAULT_PRICING_INTERVAL
from .errors import DecodeError, RateLimitCanceled, TransportError
from .gateway import RateLimiter, mount_rate_limiter

logger = logging.getLogger(__name__)

NAMED_CARD_ENDPOINT = "https://api.scryfall.com/cards/named"

# A Scryfall exige User-Agent e Accept explícitos
DEFAULT_HEADERS = {
    "User-Agent": f"pricesheet/{__version__}",
    "Accept": "application/json",
}


@dataclass(frozen=True)
class Prices:
    """
    Preços cotados em dólar, como texto decimal. Vazio quando não há cotação.

    Attributes:
        usd (str): Preço da versão comum.
        usd_foil (str): Preço da versão foil.
        usd_etched (str): Preço da versão etched.
    """
    usd: str = ""
    usd_foil: str = ""
    usd_etched: str = ""


@dataclass(frozen=True)
class PriceQuote:
    """
    Subconjunto da resposta da API relevante para a planilha.

    Attributes:
        name (str): Nome canônico da carta.
        set_name (str): Nome de exibição do set.
        prices (Prices): Preços cotados.
        found (bool): False quando a API respondeu com um objeto de erro (ex: carta não encontrada).
    """
    name: str = ""
    set_name: str = ""
    prices: Prices = field(default_factory=Prices)
    found: bool = True


def _text(payload: dict, key: str, card_name: str) -> str:
    value = payload.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise DecodeError(
            f"Resposta da Scryfall para '{card_name}': campo '{key}' não é texto: {value!r}"
        )
    return value


def decode_quote(payload, card_name: str) -> PriceQuote:
    """
    Converte o JSON da resposta em PriceQuote.

    Campos ausentes ou nulos viram texto vazio; campos com tipo errado são erro.

    Args:
        payload: JSON já decodificado.
        card_name (str): Nome consultado, usado nas mensagens de erro.

    Returns:
        PriceQuote: Cotação decodificada.

    Raises:
        DecodeError: Se o JSON não tiver o formato esperado.
    """
    if not isinstance(payload, dict):
        raise DecodeError(f"Resposta da Scryfall para '{card_name}' não é um objeto JSON")

    if payload.get("object") == "error":
        logger.warning(
            "Scryfall não retornou a carta '%s': %s",
            card_name,
            payload.get("details", "sem detalhes"),
        )
        return PriceQuote(found=False)

    prices = payload.get("prices")
    if prices is None:
        prices = {}
    if not isinstance(prices, dict):
        raise DecodeError(f"Resposta da Scryfall para '{card_name}': 'prices' não é um objeto")

    return PriceQuote(
        name=_text(payload, "name", card_name),
        set_name=_text(payload, "set_name", card_name),
        prices=Prices(
            usd=_text(prices, "usd", card_name),
            usd_foil=_text(prices, "usd_foil", card_name),
            usd_etched=_text(prices, "usd_etched", card_name),
        ),
    )


class PricingClient:
    """
    Consulta preços de cartas por nome exato, respeitando o rate limit da Scryfall.

    Args:
        session (requests.Session | None): Sessão HTTP. Se omitida, é criada uma
            sessão com os cabeçalhos exigidos e o rate limiter montado.
        limiter (RateLimiter | None): Limiter do canal de preços, usado apenas
            quando a sessão é criada aqui.
        endpoint (str): URL do endpoint de carta por nome.
        timeout (float): Timeout de cada requisição, em segundos.
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        limiter: RateLimiter | None = None,
        endpoint: str = NAMED_CARD_ENDPOINT,
        timeout: float = 30.0,
    ):
        if session is None:
            session = requests.Session()
            session.headers.update(DEFAULT_HEADERS)
            mount_rate_limiter(session, limiter or RateLimiter(DEFAULT_PRICING_INTERVAL))

        self.session = session
        self.endpoint = endpoint
        self.timeout = timeout

    def lookup(self, card_name: str, set_code: str | None = None) -> PriceQuote:
        """
        Busca a cotação de uma carta.

        Args:
            card_name (str): Nome exato da carta.
            set_code (str | None): Código do set, para refinar a busca.

        Returns:
            PriceQuote: Cotação decodificada. Cartas não encontradas voltam com found=False.

        Raises:
            TransportError: Se a requisição não pôde ser enviada ou a resposta lida.
            DecodeError: Se a resposta não for um JSON no formato esperado.
        """
        params = {"exact": card_name}
        if set_code:
            params["set"] = set_code

        logger.debug("Consultando Scryfall: %s", params)

        try:
            response = self.session.get(self.endpoint, params=params, timeout=self.timeout)
            body = response.content
        except (RateLimitCanceled, requests.RequestException) as e:
            raise TransportError(f"Erro consultando a Scryfall para '{card_name}': {e}") from e

        logger.debug("Scryfall respondeu %d para '%s' (%d bytes)", response.status_code, card_name, len(body))

        try:
            payload = response.json()
        except ValueError as e:
            raise DecodeError(f"Erro decodificando o JSON da Scryfall para '{card_name}': {e}") from e

        return decode_quote(payload, card_name)

    def close(self) -> None:
        self.session.close()

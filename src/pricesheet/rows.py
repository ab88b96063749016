"""
Processamento de uma linha da planilha de coleção.

Cada linha representa uma carta. O RowProcessor decide se a linha deve ser
consultada, escolhe o preço (comum ou foil) e produz as escritas de preço e de
timestamp. Toda E/S chega por parâmetros explícitos (lookup e write), então
linhas diferentes nunca compartilham estado além dos rate limiters.
"""
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum

from gspread.exceptions import APIError
from requests import RequestException

from .errors import ConfigurationError, PriceSheetError, WriteError
from .gateway import cell_name, get_header_mapping
from .pricing import PriceQuote

logger = logging.getLogger(__name__)

# A Scryfall pede que o preço de uma mesma carta não seja consultado mais de uma vez por dia
FRESHNESS_WINDOW = timedelta(hours=24)

CARD_NAME_HEADING = "card name"
SET_CODE_HEADING = "set code"
FOIL_HEADING = "foil"
LAST_UPDATED_HEADING = "last updated"
PRICE_HEADING = "price"

FOIL_TRUE_VALUES = {"true", "yes", "y", "x", "1", "foil", "sim", "s"}

# Frações de segundo de qualquer tamanho, para normalizar em microssegundos
FRACTION_PATTERN = re.compile(r"(?<=:\d\d)\.(\d+)")

Row = list
Lookup = Callable[[str, str | None], PriceQuote]


class RowOutcome(Enum):
    UPDATED = "updated"
    NOT_FOUND = "not_found"
    SKIPPED_FRESH = "skipped_fresh"
    SKIPPED_NO_NAME = "skipped_no_name"


@dataclass(frozen=True)
class ColumnMap:
    """
    Índices (0-based) das colunas reconhecidas na planilha.

    Attributes:
        card_name (int): Coluna "Card name".
        set_code (int): Coluna "Set code".
        foil (int): Coluna "Foil".
        last_updated (int): Coluna "Last updated".
        price (int): Coluna "Price".
    """
    card_name: int
    set_code: int
    foil: int
    last_updated: int
    price: int

    @classmethod
    def from_header(cls, header: Row) -> "ColumnMap":
        """
        Constrói o mapa a partir da linha de cabeçalho (títulos sem diferenciar maiúsculas).

        Raises:
            ConfigurationError: Se algum dos cinco títulos obrigatórios estiver ausente.
        """
        mapping = get_header_mapping(header)

        indices = []
        for heading in (
            CARD_NAME_HEADING,
            SET_CODE_HEADING,
            FOIL_HEADING,
            LAST_UPDATED_HEADING,
            PRICE_HEADING,
        ):
            if heading not in mapping:
                raise ConfigurationError(f'Coluna "{heading.capitalize()}" ausente no cabeçalho')
            indices.append(mapping[heading])

        return cls(*indices)


@dataclass(frozen=True)
class WriteIntent:
    """Escrita de um valor em uma única célula."""
    row_index: int
    column_index: int
    value: str

    @property
    def cell(self) -> str:
        return cell_name(self.row_index, self.column_index)


def cell_value(row: Row, index: int):
    """Valor da célula, ou None se a linha for mais curta que o índice."""
    if index < len(row):
        return row[index]
    return None


def parse_foil(value) -> bool:
    """
    Interpreta o valor da coluna Foil como booleano.

    Aceita caixas de seleção (bool), números diferentes de zero e textos como
    "yes", "true", "x" ou "foil". Qualquer outro valor, inclusive ausente, é False.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in FOIL_TRUE_VALUES
    return False


def parse_timestamp(value) -> datetime | None:
    """
    Lê um timestamp RFC 3339. Retorna None se o valor não for texto, não for
    válido ou não tiver fuso horário.
    """
    if not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    # fromisoformat só aceita 3 ou 6 dígitos de fração antes do Python 3.11
    text = FRACTION_PATTERN.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    try:
        when = datetime.fromisoformat(text)
    except ValueError:
        return None
    if when.tzinfo is None:
        return None
    return when


def format_timestamp(moment: datetime) -> str:
    """Formata um instante em RFC 3339, com precisão de segundos."""
    return moment.isoformat(timespec="seconds")


def local_now() -> datetime:
    return datetime.now(timezone.utc).astimezone()


class RowProcessor:
    """
    Decide e executa a atualização de preço de uma linha.

    Os passos são avaliados nesta ordem, e a primeira saída aplicável vence:
    1. Atualizada há menos de 24h: ignora
    2. Sem nome de carta textual: ignora
    3. Consulta o preço (com código de set, se houver)
    4. Escolhe o preço foil ou comum
    5. Escreve o preço e depois o timestamp

    Args:
        columns (ColumnMap): Índices das colunas reconhecidas.
        cutoff (datetime): Linhas atualizadas depois deste instante são ignoradas.
        clock (Callable[[], datetime]): Relógio usado no timestamp gravado.
    """

    def __init__(
        self,
        columns: ColumnMap,
        cutoff: datetime,
        clock: Callable[[], datetime] = local_now,
    ):
        self.columns = columns
        self.cutoff = cutoff
        self.clock = clock

    @classmethod
    def for_now(
        cls,
        columns: ColumnMap,
        clock: Callable[[], datetime] = local_now,
    ) -> "RowProcessor":
        """Cria um processador cuja janela de 24h termina no instante atual."""
        return cls(columns, clock() - FRESHNESS_WINDOW, clock)

    def is_fresh(self, row: Row) -> bool:
        when = parse_timestamp(cell_value(row, self.columns.last_updated))
        return when is not None and when > self.cutoff

    def plan(self, row_index: int, row: Row, lookup: Lookup) -> tuple[RowOutcome, list[WriteIntent]]:
        """
        Decide o que fazer com a linha, consultando o preço se necessário.

        Args:
            row_index (int): Índice da linha na aba (0-based; 0 é o cabeçalho).
            row (Row): Valores da linha.
            lookup (Lookup): Função de consulta de preço (nome, código de set).

        Returns:
            tuple[RowOutcome, list[WriteIntent]]: Resultado e escritas, na ordem em
            que devem ser aplicadas.
        """
        if self.is_fresh(row):
            logger.debug("Linha %d atualizada há menos de 24h, ignorando.", row_index + 1)
            return RowOutcome.SKIPPED_FRESH, []

        card_name = cell_value(row, self.columns.card_name)
        if not isinstance(card_name, str):
            logger.debug("Linha %d sem nome de carta, ignorando.", row_index + 1)
            return RowOutcome.SKIPPED_NO_NAME, []

        set_code = cell_value(row, self.columns.set_code)
        if not isinstance(set_code, str) or not set_code:
            set_code = None

        quote = lookup(card_name, set_code)

        if parse_foil(cell_value(row, self.columns.foil)):
            price = quote.prices.usd_foil
        else:
            price = quote.prices.usd

        writes = [WriteIntent(row_index, self.columns.price, price)]

        if not quote.found:
            # Sem timestamp, a linha volta a ser consultada na próxima execução
            return RowOutcome.NOT_FOUND, writes

        writes.append(
            WriteIntent(row_index, self.columns.last_updated, format_timestamp(self.clock()))
        )
        return RowOutcome.UPDATED, writes

    def process(
        self,
        row_index: int,
        row: Row,
        lookup: Lookup,
        write: Callable[[WriteIntent], object],
    ) -> RowOutcome:
        """
        Processa a linha e aplica as escritas resultantes, uma a uma.

        Args:
            row_index (int): Índice da linha na aba (0-based).
            row (Row): Valores da linha.
            lookup (Lookup): Função de consulta de preço.
            write (Callable[[WriteIntent], object]): Função que grava uma célula.

        Returns:
            RowOutcome: Resultado do processamento.

        Raises:
            TransportError, DecodeError: Se a consulta de preço falhar.
            WriteError: Se alguma escrita for rejeitada.
        """
        outcome, writes = self.plan(row_index, row, lookup)

        for intent in writes:
            what = "preço" if intent.column_index == self.columns.price else "timestamp"
            try:
                write(intent)
            except (APIError, RequestException, PriceSheetError) as e:
                raise WriteError(f"Erro gravando {what} na célula {intent.cell}: {e}") from e

        if outcome is RowOutcome.UPDATED:
            logger.info(
                "Linha %d: %s = %r",
                row_index + 1,
                cell_value(row, self.columns.card_name),
                writes[0].value,
            )
        return outcome

import logging
from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from gspread import Worksheet

from .config import Config
from .errors import ConfigurationError
from .gateway import RateLimiter, get_all_rows, get_spreadsheet, get_worksheet, update_cell
from .pricing import PricingClient
from .rows import ColumnMap, RowOutcome, RowProcessor, WriteIntent, local_now

logger = logging.getLogger(__name__)


@dataclass
class RunSummary:
    """Contagem de linhas por resultado em uma execução."""
    outcomes: Counter = field(default_factory=Counter)

    def record(self, outcome: RowOutcome) -> None:
        self.outcomes[outcome] += 1

    @property
    def updated(self) -> int:
        return self.outcomes[RowOutcome.UPDATED]

    @property
    def not_found(self) -> int:
        return self.outcomes[RowOutcome.NOT_FOUND]

    @property
    def skipped(self) -> int:
        return self.outcomes[RowOutcome.SKIPPED_FRESH] + self.outcomes[RowOutcome.SKIPPED_NO_NAME]


class SheetDriver:
    """
    Percorre as linhas da aba, em ordem, atualizando o preço de cada carta.

    A execução é interrompida no primeiro erro. Linhas já atualizadas até ali
    permanecem atualizadas.

    Args:
        worksheet (Worksheet): Aba com a coleção.
        pricing (PricingClient): Cliente da API de preços.
        clock (Callable[[], datetime] | None): Relógio para a janela de 24h e os timestamps.
    """

    def __init__(
        self,
        worksheet: Worksheet,
        pricing: PricingClient,
        clock: Callable[[], datetime] | None = None,
    ):
        self.worksheet = worksheet
        self.pricing = pricing
        self.clock = clock or local_now

    @classmethod
    def from_config(cls, config: Config | None = None) -> "SheetDriver":
        """
        Monta o driver a partir da configuração: um rate limiter por canal,
        conexão autenticada ao Sheets e cliente de preços.
        """
        config = config or Config()

        pricing_limiter = RateLimiter(config.pricing_interval)
        sheets_limiter = RateLimiter(config.sheets_interval)

        logger.info("Conectando ao Google Sheets...")
        spreadsheet = get_spreadsheet(
            config.spreadsheet_key,
            config.credentials_file,
            config.token_file,
            config.auth_code,
            sheets_limiter,
        )
        worksheet = get_worksheet(spreadsheet, config.sheet_name)

        return cls(worksheet, PricingClient(limiter=pricing_limiter))

    def close(self) -> None:
        """Fecha a sessão HTTP do cliente de preços."""
        self.pricing.close()

    def __enter__(self) -> "SheetDriver":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def _write(self, intent: WriteIntent) -> None:
        update_cell(self.worksheet, intent.row_index, intent.column_index, intent.value)

    def run(self) -> RunSummary:
        """
        Processa todas as linhas de dados da aba, sequencialmente.

        Returns:
            RunSummary: Contagem de linhas por resultado.

        Raises:
            ConfigurationError: Se a aba estiver vazia ou faltar uma coluna obrigatória.
            PriceSheetError: O primeiro erro ocorrido em qualquer linha.
        """
        rows = get_all_rows(self.worksheet)
        if not rows:
            raise ConfigurationError("A planilha não tem nenhuma linha")

        columns = ColumnMap.from_header(rows[0])
        processor = RowProcessor.for_now(columns, self.clock)
        summary = RunSummary()

        logger.info("Processando %d linhas de dados...", len(rows) - 1)

        for row_index in range(1, len(rows)):
            try:
                outcome = processor.process(
                    row_index, rows[row_index], self.pricing.lookup, self._write
                )
            except Exception as e:
                logger.error("Erro na linha %d, interrompendo: %s", row_index + 1, e)
                raise
            summary.record(outcome)

        logger.info(
            "Concluído: %d atualizadas, %d não encontradas, %d ignoradas.",
            summary.updated,
            summary.not_found,
            summary.skipped,
        )
        return summary

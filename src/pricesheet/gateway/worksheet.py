import logging

from gspread import Spreadsheet, Worksheet, WorksheetNotFound
from gspread.utils import ValueRenderOption

from ..errors import ConfigurationError

logger = logging.getLogger(__name__)


def get_worksheet(spreadsheet: Spreadsheet, worksheet_name: str | None) -> Worksheet:
    """
    Obtém uma aba de uma planilha do Google Sheets.

    Args:
        spreadsheet (Spreadsheet): A planilha do Google Sheets onde a aba será obtida.
        worksheet_name (str | None): Nome da aba. Vazio ou None retorna a primeira aba.

    Returns:
        Worksheet: A aba obtida.
    """
    if not worksheet_name:
        logger.debug("Nenhuma aba informada, usando a primeira aba de '%s'.", spreadsheet.title)
        return spreadsheet.sheet1

    try:
        logger.debug("Obtendo a aba '%s' da planilha '%s'.", worksheet_name, spreadsheet.title)
        worksheet = spreadsheet.worksheet(worksheet_name)
        logger.info("Aba obtida com sucesso: %s", worksheet.title)
        return worksheet

    except WorksheetNotFound as e:
        logger.error(
            "Aba '%s' não encontrada na planilha '%s'.", worksheet_name, spreadsheet.title
        )
        raise ConfigurationError(f"Aba '{worksheet_name}' não encontrada") from e


def get_header_mapping(header: list) -> dict[str, int]:
    """
    Mapeia os títulos de coluna, em minúsculas, para seus índices (0-based).

    Títulos que não são texto são ignorados. Se um título se repete, vale a
    primeira ocorrência.

    Args:
        header (list): Valores da linha de cabeçalho.

    Returns:
        dict[str, int]: Dicionário mapeando nomes de colunas para seus índices.
    """
    mapping: dict[str, int] = {}

    for index, column_name in enumerate(header):
        if not isinstance(column_name, str):
            continue
        key = column_name.strip().lower()
        if key in mapping:
            logger.warning("Coluna duplicada no cabeçalho ignorada: '%s'", column_name)
            continue
        mapping[key] = index

    logger.debug("Mapeamento de cabeçalho obtido: %s", mapping)
    return mapping


def get_all_rows(worksheet: Worksheet) -> list[list]:
    """
    Lê todas as linhas da aba, com valores não formatados.

    Linhas não são completadas até a largura do cabeçalho: células finais vazias
    simplesmente não aparecem. Caixas de seleção chegam como bool e números como
    int/float.

    Args:
        worksheet (Worksheet): Aba a ser lida.

    Returns:
        list[list]: Linhas da aba, começando pelo cabeçalho.
    """
    logger.debug("Lendo todas as linhas da aba '%s'.", worksheet.title)
    rows = worksheet.get(value_render_option=ValueRenderOption.unformatted)
    logger.info("%d linhas lidas da aba '%s'.", len(rows), worksheet.title)
    return [list(row) for row in rows]

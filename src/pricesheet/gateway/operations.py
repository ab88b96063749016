import logging

from gspread import Worksheet
from gspread.utils import ValueInputOption, rowcol_to_a1


logger = logging.getLogger(__name__)


def cell_name(row_index: int, column_index: int) -> str:
    """
    Converte uma posição 0-based em notação A1 (linha 1-based, coluna alfabética).

    Exemplos: (0, 0) -> "A1", (0, 25) -> "Z1", (0, 26) -> "AA1", (41, 2) -> "C42".
    """
    return rowcol_to_a1(row_index + 1, column_index + 1)


def update_cell(
        worksheet: Worksheet,
        row_index: int,
        column_index: int,
        value: str,
) -> str:
    """
    Escreve um valor literal (RAW, sem interpretar fórmulas) em uma única célula.

    Args:
        worksheet (Worksheet): Aba onde a célula será escrita.
        row_index (int): Índice da linha (0-based).
        column_index (int): Índice da coluna (0-based).
        value (str): Valor a ser escrito.

    Returns:
        str: Endereço A1 da célula escrita.
    """
    cell = cell_name(row_index, column_index)

    logger.debug(
        "Escrevendo na célula %s da aba '%s': %r",
        cell,
        worksheet.title,
        value,
    )

    worksheet.update(
        values=[[value]],
        range_name=cell,
        value_input_option=ValueInputOption.raw,
    )

    return cell

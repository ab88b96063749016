"""
Gateway para acesso ao Google Sheets.

Este módulo encapsula todas as operações de leitura e escrita na API do Google Sheets,
com todo o tráfego passando por um rate limiter dedicado.

Módulos:
    - _ratelimit: Rate limiter e adapter HTTP limitado
    - connection: Autenticação, conexão e obtenção de spreadsheets
    - worksheet: Obtenção de abas, leitura de linhas e cabeçalho
    - operations: Endereçamento e escrita de células
"""

from ._ratelimit import RateLimitedAdapter, RateLimiter, mount_rate_limiter
from .connection import connect, get_spreadsheet
from .operations import cell_name, update_cell
from .worksheet import get_all_rows, get_header_mapping, get_worksheet

__all__ = [
    "RateLimiter",
    "RateLimitedAdapter",
    "mount_rate_limiter",
    "connect",
    "get_spreadsheet",
    "get_worksheet",
    "get_header_mapping",
    "get_all_rows",
    "cell_name",
    "update_cell",
]

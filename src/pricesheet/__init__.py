"""
MTG Price Sheet

Atualiza os preços de uma coleção de cartas registrada no Google Sheets,
consultando a API pública da Scryfall e gravando o resultado na planilha.

Este módulo expõe as principais classes para uso externo:

- Config: Classe de configuração do atualizador
- SheetDriver: Percorre a planilha atualizando cada linha
- PricingClient: Cliente da API de preços
"""

from .__version__ import __version__
from .config import Config
from .driver import RunSummary, SheetDriver
from .pricing import PriceQuote, PricingClient

__all__ = [
    '__version__',
    'Config',
    'SheetDriver',
    'RunSummary',
    'PricingClient',
    'PriceQuote',
]

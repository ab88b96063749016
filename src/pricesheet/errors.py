"""
Hierarquia de exceções do atualizador de preços.

Toda falha que encerra a execução herda de PriceSheetError, permitindo que o
ponto de entrada trate os erros do domínio de forma uniforme.
"""


class PriceSheetError(Exception):
    """Erro base do pricesheet."""


class ConfigurationError(PriceSheetError, ValueError):
    """Configuração inválida: coluna obrigatória ausente, credenciais ilegíveis, planilha vazia."""


class TransportError(PriceSheetError):
    """Falha de rede ao falar com uma API remota."""


class RateLimitCanceled(TransportError):
    """A espera pelo rate limiter foi cancelada antes da requisição ser enviada."""


class DecodeError(PriceSheetError):
    """A resposta da API de preços não é um JSON no formato esperado."""


class WriteError(PriceSheetError):
    """A planilha rejeitou uma escrita."""

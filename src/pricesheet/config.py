from dataclasses import dataclass
import os
import math

from dotenv import load_dotenv

from .errors import ConfigurationError

# Carrega as variáveis de ambiente do arquivo .env
load_dotenv()

DEFAULT_CREDENTIALS_FILE = "creds.json"
DEFAULT_TOKEN_FILE = "token.json"

# A Scryfall pede no máximo 10 requisições por segundo; a API do Sheets, cerca de 1.
DEFAULT_PRICING_INTERVAL = 0.1
DEFAULT_SHEETS_INTERVAL = 1.0


def _interval_from_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"A variável de ambiente '{name}' deve ser numérica: {raw!r}")


@dataclass(frozen=True)
class Config:
    """
    Configurações do atualizador de preços, obtidas de argumentos ou variáveis de ambiente.

    Valores passados diretamente têm prioridade sobre o ambiente.

    Attributes:
        spreadsheet_key (str | None): Chave da planilha (a parte KEY de docs.google.com/spreadsheets/d/KEY/edit).
        sheet_name (str | None): Nome da aba a processar. Vazio usa a primeira aba.
        credentials_file (str | None): Arquivo JSON de credenciais (conta de serviço ou cliente OAuth).
        token_file (str | None): Arquivo onde o token OAuth é armazenado.
        auth_code (str | None): Código de autorização para obter um token OAuth, se necessário.
        pricing_interval (float | None): Intervalo mínimo entre requisições à API de preços, em segundos.
        sheets_interval (float | None): Intervalo mínimo entre requisições à API do Sheets, em segundos.
    """
    spreadsheet_key: str | None = None
    sheet_name: str | None = None
    credentials_file: str | None = None
    token_file: str | None = None
    auth_code: str | None = None
    pricing_interval: float | None = None
    sheets_interval: float | None = None

    def __post_init__(self):
        if self.spreadsheet_key is None:
            object.__setattr__(self, 'spreadsheet_key', os.getenv('SPREADSHEET_KEY'))
        if self.sheet_name is None:
            object.__setattr__(self, 'sheet_name', os.getenv('SHEET_NAME', ''))
        if self.credentials_file is None:
            object.__setattr__(
                self, 'credentials_file', os.getenv('CREDENTIALS_FILE', DEFAULT_CREDENTIALS_FILE)
            )
        if self.token_file is None:
            object.__setattr__(self, 'token_file', os.getenv('TOKEN_FILE', DEFAULT_TOKEN_FILE))
        if self.auth_code is None:
            object.__setattr__(self, 'auth_code', os.getenv('AUTH_CODE', ''))
        if self.pricing_interval is None:
            object.__setattr__(
                self,
                'pricing_interval',
                _interval_from_env('PRICING_INTERVAL', DEFAULT_PRICING_INTERVAL),
            )
        if self.sheets_interval is None:
            object.__setattr__(
                self,
                'sheets_interval',
                _interval_from_env('SHEETS_INTERVAL', DEFAULT_SHEETS_INTERVAL),
            )

        if not self.spreadsheet_key:
            raise ConfigurationError("A variável de ambiente 'SPREADSHEET_KEY' é obrigatória.")
        if not self.credentials_file:
            raise ConfigurationError("A variável de ambiente 'CREDENTIALS_FILE' é obrigatória.")
        if not math.isfinite(self.pricing_interval) or self.pricing_interval <= 0:
            raise ConfigurationError("O intervalo 'PRICING_INTERVAL' deve ser um número positivo e finito.")
        if not math.isfinite(self.sheets_interval) or self.sheets_interval <= 0:
            raise ConfigurationError("O intervalo 'SHEETS_INTERVAL' deve ser um número positivo e finito.")

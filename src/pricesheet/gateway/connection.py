import json
import logging
from pathlib import Path

from google.auth.credentials import Credentials
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials as UserCredentials
from google.oauth2.service_account import Credentials as ServiceAccountCredentials
from google_auth_oauthlib.flow import Flow
from gspread import Client, Spreadsheet, SpreadsheetNotFound

from ..errors import ConfigurationError
from ._ratelimit import RateLimiter, mount_rate_limiter


logger = logging.getLogger(__name__)

SCOPES = [
    'https://www.googleapis.com/auth/spreadsheets',
]

# O código de autorização é copiado da barra de endereços após o consentimento
REDIRECT_URI = 'http://localhost'


def _read_credentials_file(credentials_file: str) -> dict:
    try:
        with open(credentials_file, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Erro lendo credenciais de {credentials_file}: {e}") from e


def _save_token(token_file: str, credentials: UserCredentials) -> None:
    Path(token_file).write_text(credentials.to_json(), encoding="utf-8")
    logger.info("Token OAuth salvo em %s", token_file)


def _user_credentials(client_config: dict, token_file: str, auth_code: str | None) -> UserCredentials:
    """
    Obtém credenciais OAuth de usuário, reaproveitando o token salvo sempre que possível.

    Ordem de tentativa:
    1. Token salvo em token_file, renovado se estiver expirado
    2. Troca do auth_code por um novo token, que é salvo em token_file
    3. Sem token nem código: falha informando a URL de autorização

    Args:
        client_config (dict): Conteúdo do arquivo de cliente OAuth.
        token_file (str): Caminho do arquivo de token.
        auth_code (str | None): Código de autorização, se disponível.

    Returns:
        UserCredentials: Credenciais válidas.
    """
    token_path = Path(token_file)
    if token_path.exists():
        logger.debug("Carregando token OAuth de %s", token_file)
        credentials = UserCredentials.from_authorized_user_file(str(token_path), SCOPES)
        if credentials.valid:
            return credentials
        if credentials.expired and credentials.refresh_token:
            logger.info("Token OAuth expirado, renovando...")
            credentials.refresh(Request())
            _save_token(token_file, credentials)
            return credentials

    flow = Flow.from_client_config(
        client_config,
        scopes=SCOPES,
        redirect_uri=REDIRECT_URI,
        autogenerate_code_verifier=False,
    )

    if not auth_code:
        url, _ = flow.authorization_url(access_type='offline', prompt='consent')
        raise ConfigurationError(
            f"Nenhum token OAuth em {token_file}. Autorize o acesso em {url} "
            "e execute novamente informando o código com --authcode."
        )

    logger.debug("Trocando código de autorização por token OAuth")
    flow.fetch_token(code=auth_code)
    credentials = flow.credentials
    _save_token(token_file, credentials)
    return credentials


def _load_credentials(credentials_file: str, token_file: str, auth_code: str | None) -> Credentials:
    """
    Carrega credenciais do Google a partir do arquivo informado.

    Arquivos de conta de serviço são usados diretamente; qualquer outro arquivo é
    tratado como configuração de cliente OAuth.
    """
    info = _read_credentials_file(credentials_file)

    if info.get('type') == 'service_account':
        logger.debug("Usando conta de serviço de %s", credentials_file)
        return ServiceAccountCredentials.from_service_account_info(info, scopes=SCOPES)

    return _user_credentials(info, token_file, auth_code)


def connect(
    credentials_file: str,
    token_file: str,
    auth_code: str | None,
    limiter: RateLimiter,
) -> Client:
    """
    Conecta-se à API do Google Sheets com todo o tráfego passando pelo rate limiter.

    Args:
        credentials_file (str): Caminho para o arquivo de credenciais JSON.
        token_file (str): Caminho para o arquivo de token OAuth.
        auth_code (str | None): Código de autorização OAuth, se necessário.
        limiter (RateLimiter): Limiter do canal do Sheets.

    Returns:
        Client: Cliente autenticado do gspread.
    """
    logger.debug("Conectando à API do Google Sheets usando: %s", credentials_file)
    credentials = _load_credentials(credentials_file, token_file, auth_code)
    client = Client(auth=credentials)
    mount_rate_limiter(client.http_client.session, limiter)
    logger.info("Conexão estabelecida com sucesso à API do Google Sheets.")
    return client


def get_spreadsheet(
    spreadsheet_key: str,
    credentials_file: str,
    token_file: str,
    auth_code: str | None,
    limiter: RateLimiter,
) -> Spreadsheet:
    """
    Obtém uma planilha do Google Sheets pela sua chave.

    Args:
        spreadsheet_key (str): Chave da planilha do Google Sheets.
        credentials_file (str): Caminho para o arquivo de credenciais JSON.
        token_file (str): Caminho para o arquivo de token OAuth.
        auth_code (str | None): Código de autorização OAuth, se necessário.
        limiter (RateLimiter): Limiter do canal do Sheets.

    Returns:
        Spreadsheet: Objeto da planilha obtida.
    """
    client = connect(credentials_file, token_file, auth_code, limiter)
    try:
        logger.debug("Obtendo a planilha com chave: %s", spreadsheet_key)
        spreadsheet = client.open_by_key(spreadsheet_key)
        logger.info("Planilha obtida com sucesso: %s", spreadsheet.title)
        return spreadsheet

    except SpreadsheetNotFound as e:
        logger.error("Planilha com chave %s não encontrada.", spreadsheet_key)
        raise ConfigurationError(f"Planilha {spreadsheet_key} não encontrada") from e

"""Testes unitários para o módulo config."""
import pytest
import os
from unittest.mock import patch

from pricesheet.config import Config
from pricesheet.errors import ConfigurationError


class TestConfig:
    """Testes para a classe Config."""

    def test_config_with_env_variables(self):
        """Deve carregar configurações das variáveis de ambiente."""
        with patch.dict(os.environ, {
            'SPREADSHEET_KEY': 'test_key',
            'SHEET_NAME': 'Coleção',
            'CREDENTIALS_FILE': 'test_creds.json',
            'TOKEN_FILE': 'test_token.json',
            'AUTH_CODE': 'abc123',
            'PRICING_INTERVAL': '0.2',
            'SHEETS_INTERVAL': '2',
        }, clear=True):
            config = Config()

            assert config.spreadsheet_key == 'test_key'
            assert config.sheet_name == 'Coleção'
            assert config.credentials_file == 'test_creds.json'
            assert config.token_file == 'test_token.json'
            assert config.auth_code == 'abc123'
            assert config.pricing_interval == 0.2
            assert config.sheets_interval == 2.0

    def test_config_defaults(self):
        """Deve usar os padrões quando só a chave for informada."""
        with patch.dict(os.environ, {'SPREADSHEET_KEY': 'test_key'}, clear=True):
            config = Config()

            assert config.sheet_name == ''
            assert config.credentials_file == 'creds.json'
            assert config.token_file == 'token.json'
            assert config.auth_code == ''
            assert config.pricing_interval == 0.1
            assert config.sheets_interval == 1.0

    def test_config_with_direct_values(self):
        """Deve aceitar valores diretos ao invés de variáveis de ambiente."""
        config = Config(
            spreadsheet_key='direct_key',
            sheet_name='Cards',
            credentials_file='direct_creds.json',
            token_file='direct_token.json',
        )

        assert config.spreadsheet_key == 'direct_key'
        assert config.sheet_name == 'Cards'
        assert config.credentials_file == 'direct_creds.json'
        assert config.token_file == 'direct_token.json'

    def test_config_missing_spreadsheet_key_raises_error(self):
        """Deve lançar erro se SPREADSHEET_KEY não estiver definido."""
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(ValueError, match="SPREADSHEET_KEY"):
                Config()

    def test_config_invalid_interval_raises_error(self):
        """Deve lançar erro se o intervalo não for numérico."""
        with patch.dict(os.environ, {
            'SPREADSHEET_KEY': 'test_key',
            'PRICING_INTERVAL': 'rápido',
        }, clear=True):
            with pytest.raises(ConfigurationError, match="PRICING_INTERVAL"):
                Config()

    def test_config_non_positive_interval_raises_error(self):
        """Deve lançar erro se o intervalo não for positivo."""
        with pytest.raises(ConfigurationError, match="SHEETS_INTERVAL"):
            Config(spreadsheet_key='test_key', sheets_interval=0)

    @pytest.mark.parametrize("value", ["nan", "inf", "-inf", "NaN", "Infinity"])
    def test_config_non_finite_interval_from_env_raises_error(self, value):
        """Deve rejeitar intervalos nan ou infinitos vindos do ambiente."""
        with patch.dict(os.environ, {
            'SPREADSHEET_KEY': 'test_key',
            'PRICING_INTERVAL': value,
        }, clear=True):
            with pytest.raises(ConfigurationError, match="PRICING_INTERVAL"):
                Config()

    @pytest.mark.parametrize("value", [float('nan'), float('inf')])
    def test_config_non_finite_direct_interval_raises_error(self, value):
        """Deve rejeitar intervalos nan ou infinitos passados diretamente."""
        with pytest.raises(ConfigurationError, match="SHEETS_INTERVAL"):
            Config(spreadsheet_key='test_key', sheets_interval=value)

    def test_config_is_frozen(self):
        """Deve ser imutável (frozen dataclass)."""
        config = Config(spreadsheet_key='test_key')

        with pytest.raises(Exception):  # FrozenInstanceError
            config.spreadsheet_key = 'new_key'

    def test_config_direct_overrides_env(self):
        """Valores diretos devem ter prioridade sobre variáveis de ambiente."""
        with patch.dict(os.environ, {
            'SPREADSHEET_KEY': 'env_key',
            'SHEET_NAME': 'env_sheet',
        }):
            config = Config(spreadsheet_key='direct_key', sheet_name='direct_sheet')

            assert config.spreadsheet_key == 'direct_key'
            assert config.sheet_name == 'direct_sheet'

"""Testes unitários para o módulo rows."""

from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest
from gspread.exceptions import APIError

from pricesheet.errors import ConfigurationError, TransportError, WriteError
from pricesheet.pricing import PriceQuote, Prices
from pricesheet.rows import (
    ColumnMap,
    RowOutcome,
    RowProcessor,
    WriteIntent,
    cell_value,
    format_timestamp,
    parse_foil,
    parse_timestamp,
)

NOW = datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc)
HEADER = ["Card name", "Set code", "Foil", "Last updated", "Price"]
COLUMNS = ColumnMap(card_name=0, set_code=1, foil=2, last_updated=3, price=4)
QUOTE = PriceQuote(
    name="Giant Killer",
    set_name="Throne of Eldraine",
    prices=Prices(usd="0.25", usd_foil="1.50", usd_etched="3.00"),
)


def make_processor() -> RowProcessor:
    return RowProcessor.for_now(COLUMNS, clock=lambda: NOW)


def make_lookup(quote: PriceQuote = QUOTE) -> Mock:
    return Mock(return_value=quote)


class TestColumnMap:
    """Testes para ColumnMap.from_header."""

    def test_from_header(self):
        """Deve localizar as cinco colunas reconhecidas."""
        assert ColumnMap.from_header(HEADER) == COLUMNS

    def test_from_header_case_insensitive_any_order(self):
        """Deve aceitar títulos em qualquer caixa e ordem, com colunas extras."""
        header = ["Notes", "PRICE", "last updated", "FOIL", "Set Code", "card NAME"]

        result = ColumnMap.from_header(header)

        assert result == ColumnMap(card_name=5, set_code=4, foil=3, last_updated=2, price=1)

    @pytest.mark.parametrize(
        "missing, message",
        [
            ("Card name", 'Coluna "Card name" ausente'),
            ("Set code", 'Coluna "Set code" ausente'),
            ("Foil", 'Coluna "Foil" ausente'),
            ("Last updated", 'Coluna "Last updated" ausente'),
            ("Price", 'Coluna "Price" ausente'),
        ],
    )
    def test_from_header_missing_column(self, missing, message):
        """Deve lançar ConfigurationError nomeando a coluna ausente."""
        header = [heading for heading in HEADER if heading != missing]

        with pytest.raises(ConfigurationError, match=message):
            ColumnMap.from_header(header)


class TestHelpers:
    """Testes para as funções auxiliares."""

    def test_cell_value_beyond_row_is_none(self):
        """Índices além do tamanho da linha devem ser tratados como ausentes."""
        assert cell_value(["a", "b"], 1) == "b"
        assert cell_value(["a", "b"], 2) is None
        assert cell_value([], 0) is None

    @pytest.mark.parametrize(
        "value, expected",
        [
            (True, True),
            (False, False),
            ("TRUE", True),
            ("yes", True),
            (" Y ", True),
            ("x", True),
            ("1", True),
            ("foil", True),
            ("sim", True),
            ("no", False),
            ("", False),
            ("0", False),
            (1, True),
            (0, False),
            (None, False),
        ],
    )
    def test_parse_foil(self, value, expected):
        """Deve interpretar o valor da coluna Foil como booleano."""
        assert parse_foil(value) is expected

    def test_parse_timestamp_with_offset(self):
        """Deve ler timestamps RFC 3339 com fuso."""
        result = parse_timestamp("2026-10-18T09:00:00-03:00")

        assert result == NOW

    def test_parse_timestamp_zulu(self):
        """Deve aceitar o sufixo Z."""
        assert parse_timestamp("2026-10-18T12:00:00Z") == NOW

    @pytest.mark.parametrize(
        "value, microseconds",
        [
            ("2026-10-18T12:00:00.5Z", 500000),
            ("2026-10-18T12:00:00.25+00:00", 250000),
            ("2026-10-18T12:00:00.123Z", 123000),
            ("2026-10-18T12:00:00.1234Z", 123400),
            ("2026-10-18T12:00:00.123456789+00:00", 123456),
        ],
    )
    def test_parse_timestamp_fractional_seconds(self, value, microseconds):
        """Deve aceitar frações de segundo com qualquer número de dígitos."""
        assert parse_timestamp(value) == NOW + timedelta(microseconds=microseconds)

    @pytest.mark.parametrize("value", ["", "ontem", "2026-10-18", "2026-10-18T12:00:00", None, 45000.5])
    def test_parse_timestamp_invalid(self, value):
        """Valores inválidos, sem fuso ou que não são texto devem retornar None."""
        assert parse_timestamp(value) is None

    def test_format_timestamp_round_trip(self):
        """O timestamp formatado deve ser lido de volta como o mesmo instante."""
        text = format_timestamp(NOW)

        assert text == "2026-10-18T12:00:00+00:00"
        assert parse_timestamp(text) == NOW

    def test_write_intent_cell(self):
        """WriteIntent deve expor o endereço A1 da célula."""
        assert WriteIntent(41, 2, "0.25").cell == "C42"


class TestRowProcessorFreshness:
    """Testes para a verificação de atualização recente."""

    def test_recent_row_is_skipped(self):
        """Linha atualizada há menos de 24h não deve ser consultada nem escrita."""
        processor = make_processor()
        lookup = make_lookup()
        write = Mock()
        recent = format_timestamp(NOW - timedelta(hours=23))

        outcome = processor.process(1, ["Giant Killer", "", False, recent, "0.20"], lookup, write)

        assert outcome is RowOutcome.SKIPPED_FRESH
        lookup.assert_not_called()
        write.assert_not_called()

    def test_row_older_than_a_day_is_processed(self):
        """Linha atualizada há 24h e 1s deve ser processada."""
        processor = make_processor()
        lookup = make_lookup()
        write = Mock()
        stale = format_timestamp(NOW - timedelta(hours=24, seconds=1))

        outcome = processor.process(1, ["Giant Killer", "", False, stale, "0.20"], lookup, write)

        assert outcome is RowOutcome.UPDATED
        lookup.assert_called_once_with("Giant Killer", None)

    def test_unparseable_timestamp_is_processed(self):
        """Timestamp inválido não deve impedir a atualização."""
        processor = make_processor()
        lookup = make_lookup()

        outcome = processor.process(1, ["Giant Killer", "", False, "ontem"], lookup, Mock())

        assert outcome is RowOutcome.UPDATED


class TestRowProcessorName:
    """Testes para a verificação do nome da carta."""

    def test_short_row_is_skipped(self):
        """Linha sem a coluna de nome deve ser ignorada sem erro."""
        processor = RowProcessor.for_now(
            ColumnMap(card_name=5, set_code=1, foil=2, last_updated=3, price=4),
            clock=lambda: NOW,
        )
        lookup = make_lookup()
        write = Mock()

        outcome = processor.process(1, ["", "eld"], lookup, write)

        assert outcome is RowOutcome.SKIPPED_NO_NAME
        lookup.assert_not_called()
        write.assert_not_called()

    def test_empty_row_is_skipped(self):
        """Linha vazia deve ser ignorada sem erro."""
        lookup = make_lookup()

        outcome = make_processor().process(1, [], lookup, Mock())

        assert outcome is RowOutcome.SKIPPED_NO_NAME
        lookup.assert_not_called()

    @pytest.mark.parametrize("name", [None, 42, True])
    def test_non_text_name_is_skipped(self, name):
        """Nome que não é texto deve ser ignorado sem erro."""
        lookup = make_lookup()
        write = Mock()

        outcome = make_processor().process(1, [name, "eld"], lookup, write)

        assert outcome is RowOutcome.SKIPPED_NO_NAME
        lookup.assert_not_called()
        write.assert_not_called()


class TestRowProcessorLookup:
    """Testes para consulta e escolha de preço."""

    def test_set_code_is_forwarded(self):
        """Deve consultar com o código de set quando presente."""
        lookup = make_lookup()

        make_processor().process(1, ["Giant Killer", "eld"], lookup, Mock())

        lookup.assert_called_once_with("Giant Killer", "eld")

    @pytest.mark.parametrize("set_code", ["", 123])
    def test_missing_or_non_text_set_code_is_absent(self, set_code):
        """Código de set vazio ou não textual deve ser tratado como ausente."""
        lookup = make_lookup()

        make_processor().process(1, ["Giant Killer", set_code], lookup, Mock())

        lookup.assert_called_once_with("Giant Killer", None)

    @pytest.mark.parametrize(
        "foil, expected",
        [(True, "1.50"), ("yes", "1.50"), (False, "0.25"), ("", "0.25")],
    )
    def test_price_selection(self, foil, expected):
        """Deve escolher o preço foil quando a coluna Foil for verdadeira."""
        write = Mock()

        make_processor().process(1, ["Giant Killer", "", foil], make_lookup(), write)

        assert write.call_args_list[0].args[0] == WriteIntent(1, 4, expected)

    def test_absent_foil_uses_standard_price(self):
        """Sem coluna Foil na linha, deve usar o preço comum."""
        write = Mock()

        make_processor().process(1, ["Giant Killer"], make_lookup(), write)

        assert write.call_args_list[0].args[0].value == "0.25"

    def test_lookup_failure_propagates(self):
        """Falha na consulta deve ser propagada, sem escritas."""
        lookup = Mock(side_effect=TransportError("sem rede"))
        write = Mock()

        with pytest.raises(TransportError):
            make_processor().process(1, ["Giant Killer"], lookup, write)

        write.assert_not_called()


class TestRowProcessorWrites:
    """Testes para as escritas de preço e timestamp."""

    def test_writes_price_then_timestamp(self):
        """Deve escrever o preço e depois o timestamp atual."""
        write = Mock()

        outcome = make_processor().process(6, ["Giant Killer", "", False, "", ""], make_lookup(), write)

        assert outcome is RowOutcome.UPDATED
        intents = [call.args[0] for call in write.call_args_list]
        assert intents == [
            WriteIntent(6, 4, "0.25"),
            WriteIntent(6, 3, "2026-10-18T12:00:00+00:00"),
        ]
        assert [intent.cell for intent in intents] == ["E7", "D7"]

    def test_plan_has_no_side_effects(self):
        """plan deve apenas decidir as escritas, sem aplicá-las."""
        outcome, writes = make_processor().plan(1, ["Giant Killer"], make_lookup())

        assert outcome is RowOutcome.UPDATED
        assert [intent.column_index for intent in writes] == [4, 3]

    def test_not_found_writes_price_only(self):
        """Carta não encontrada deve limpar o preço sem gravar o timestamp."""
        write = Mock()

        outcome = make_processor().process(
            1, ["Carta Inexistente"], make_lookup(PriceQuote(found=False)), write
        )

        assert outcome is RowOutcome.NOT_FOUND
        write.assert_called_once_with(WriteIntent(1, 4, ""))

    def test_price_write_failure(self):
        """Falha ao gravar o preço deve virar WriteError com a célula, sem gravar o timestamp."""
        write = Mock(side_effect=APIError(Mock(status_code=400)))

        with pytest.raises(WriteError, match="preço na célula E2"):
            make_processor().process(1, ["Giant Killer"], make_lookup(), write)

        assert write.call_count == 1

    def test_timestamp_write_failure(self):
        """Falha ao gravar o timestamp deve virar WriteError com a célula."""
        write = Mock(side_effect=[None, TransportError("cancelado")])

        with pytest.raises(WriteError, match="timestamp na célula D2"):
            make_processor().process(1, ["Giant Killer"], make_lookup(), write)

        assert write.call_count == 2

"""Tests for receipt field extraction."""

import pytest

from tiquete_scan.extraction.field_extractor import (
    ExtractedReceiptData,
    FieldExtractor,
    extract,
)
from tiquete_scan.extraction.strategies import (
    CompanyMatcher,
    GuideKeywordTicket,
    date_from_lines,
    net_weight_from_lines,
    ticket_internal_code,
    ticket_longest_number,
    unit_price_from_lines,
)
from tiquete_scan.extraction.text_utils import parse_amount, split_lines, strip_accents
from tiquete_scan.utils.config import (
    DEFAULT_GUIDE_KEYWORDS,
    CompanyAlias,
    ExtractionConfig,
)

NIT_AND_TICKET_TEXT = (
    "NIT 900123456\n"
    "PROVEEDOR FRUTAS DEL VALLE SAS BODEGA\n"
    "TIQUETE 0001234567\n"
)


class TestTextUtils:
    """Tests for text normalization helpers."""

    def test_strip_accents(self) -> None:
        assert strip_accents("GUÍA de Tránsito VEHÍCULO Código") == (
            "guia de transito vehiculo codigo"
        )

    def test_split_lines_drops_blanks(self) -> None:
        assert split_lines("  uno \r\n\n   \ndos") == ["uno", "dos"]


class TestParseAmount:
    """Tests for the price separator convention.

    A single separator followed by exactly three digits is a thousands
    separator (Colombian pesos are written ``$1.250``); otherwise a lone
    separator is the decimal point, and with both present the right-most
    one is the decimal point.
    """

    @pytest.mark.parametrize(
        ("token", "expected"),
        [
            ("1.250", 1250.0),
            ("1,250", 1250.0),
            ("1,250.50", 1250.5),
            ("1.250,50", 1250.5),
            ("1.250.000", 1250000.0),
            ("1250,5", 1250.5),
            ("12.5", 12.5),
            ("1250", 1250.0),
            ("1250.", 1250.0),
            ("12345.678", 12345.678),
        ],
    )
    def test_conventions(self, token: str, expected: float) -> None:
        assert parse_amount(token) == pytest.approx(expected)

    def test_no_digits(self) -> None:
        assert parse_amount("") is None
        assert parse_amount(".,") is None

    def test_overflowing_token(self) -> None:
        assert parse_amount("9" * 400) is None


class TestCompanyMatcher:
    """Tests for the company allow-list strategy."""

    def test_default_company(self) -> None:
        matcher = CompanyMatcher(ExtractionConfig().companies)
        assert matcher("Extractora\nOLEOFLORES S.A.S.") == "Oleoflores"

    def test_case_insensitive(self) -> None:
        matcher = CompanyMatcher(
            [CompanyAlias(name="Oleoflores", variants=["OLEOFLORES"])]
        )
        assert matcher("planta oleoflores") == "Oleoflores"

    def test_first_line_wins(self) -> None:
        matcher = CompanyMatcher(
            [
                CompanyAlias(name="Oleoflores", variants=["OLEOFLORES"]),
                CompanyAlias(
                    name="Palmas del Cesar", variants=["PALMAS DEL CESAR"]
                ),
            ]
        )
        text = "PALMAS DEL CESAR S.A.\nCliente: OLEOFLORES"
        assert matcher(text) == "Palmas del Cesar"

    def test_name_used_when_no_variants(self) -> None:
        matcher = CompanyMatcher([CompanyAlias(name="Palmeras")])
        assert matcher("Recibido por PALMERAS") == "Palmeras"

    def test_no_match(self) -> None:
        matcher = CompanyMatcher(ExtractionConfig().companies)
        assert matcher("Planta extractora desconocida") is None


class TestDateStrategy:
    """Tests for date extraction."""

    def test_day_month_year(self) -> None:
        assert date_from_lines("Fecha: 05/03/2024 Lote 12") == "2024-03-05"

    def test_year_month_day(self) -> None:
        assert date_from_lines("2024-03-05 Lote 12") == "2024-03-05"

    def test_zero_padding(self) -> None:
        assert date_from_lines("Fecha 5-3-2024") == "2024-03-05"
        assert date_from_lines("2024/3/5") == "2024-03-05"

    def test_first_line_wins(self) -> None:
        text = "Entrada 01/02/2023\nSalida 04/05/2024"
        assert date_from_lines(text) == "2023-02-01"

    def test_no_date(self) -> None:
        assert date_from_lines("Hora 10:32\nNIT 900.123.456-7") is None


class TestGuideKeywordTier:
    """Tests for ticket tier A (guide keyword window)."""

    def setup_method(self) -> None:
        self.strategy = GuideKeywordTicket(DEFAULT_GUIDE_KEYWORDS)

    def test_number_after_keyword(self) -> None:
        text = "GUIA DE TRANSPORTE VEHICULO 1000082175 CODIGO 884"
        assert self.strategy(text) == "1000082175"

    def test_accented_keyword(self) -> None:
        assert self.strategy("Guía de transporte No. 123456789") == "123456789"

    def test_ocr_misreading(self) -> None:
        assert self.strategy("GULA 1000082175") == "1000082175"

    def test_stops_at_codigo(self) -> None:
        text = "GUIA TRANSPORTE CODIGO 123456789012"
        assert self.strategy(text) is None

    def test_stops_at_nit(self) -> None:
        assert self.strategy("GUIA NIT 900123456") is None

    def test_number_outside_window(self) -> None:
        text = "GUIA " + "x" * 200 + " 1000082175"
        assert self.strategy(text) is None

    def test_no_keyword(self) -> None:
        assert self.strategy(NIT_AND_TICKET_TEXT) is None


class TestLongestNumberTier:
    """Tests for ticket tier B (longest plausible number)."""

    def test_skips_nit_context(self) -> None:
        assert ticket_longest_number(NIT_AND_TICKET_TEXT) == "0001234567"

    def test_longest_wins(self) -> None:
        text = "Lote 123456789\nRef 123456789012"
        assert ticket_longest_number(text) == "123456789012"

    def test_only_nit_number(self) -> None:
        assert ticket_longest_number("NIT 900123456") is None

    def test_short_numbers_ignored(self) -> None:
        assert ticket_longest_number("Interno 884512") is None


class TestInternalCodeTier:
    """Tests for ticket tier C (internal code line)."""

    def test_codigo_interno(self) -> None:
        assert ticket_internal_code("CODIGO INTERNO 884512") == "884512"

    def test_accented_codigo(self) -> None:
        assert ticket_internal_code("Código: 4521") == "4521"

    def test_line_without_digits_skipped(self) -> None:
        assert ticket_internal_code("CODIGO\nInterno 12345") == "12345"

    def test_no_code_line(self) -> None:
        assert ticket_internal_code("Lote 4521") is None


class TestNetWeightStrategy:
    """Tests for net weight extraction."""

    def test_thousands_point_stripped(self) -> None:
        assert net_weight_from_lines("PESO NETO: 4.590 KG") == 4590

    def test_thousands_comma_stripped(self) -> None:
        assert net_weight_from_lines("Peso neto 4,590") == 4590

    def test_plain_number(self) -> None:
        assert net_weight_from_lines("NETO 850 KG") == 850

    def test_first_neto_line_with_digits(self) -> None:
        text = "PESO BRUTO: 12.340\nPESO NETO\nNETO 700"
        assert net_weight_from_lines(text) == 700

    def test_no_neto_line(self) -> None:
        assert net_weight_from_lines("PESO BRUTO: 12.340") is None

    def test_overlong_digit_run_skipped(self) -> None:
        assert net_weight_from_lines("PESO NETO " + "9" * 5000) is None
        text = "PESO NETO " + "9" * 5000 + "\nNETO 700"
        assert net_weight_from_lines(text) == 700


class TestUnitPriceStrategy:
    """Tests for unit price extraction."""

    def test_peso_sign_and_cop(self) -> None:
        assert unit_price_from_lines("Valor Unitario: $1.250 COP") == 1250.0

    def test_decimal_comma(self) -> None:
        assert unit_price_from_lines("PRECIO 1250,5") == 1250.5

    def test_grouped_with_decimals(self) -> None:
        assert unit_price_from_lines("Valor: $1,250.50") == 1250.5

    def test_first_matching_line(self) -> None:
        text = "Precio kg 980\nValor total $4.498.200"
        assert unit_price_from_lines(text) == 980.0

    def test_line_without_number_skipped(self) -> None:
        assert unit_price_from_lines("VALOR UNITARIO\nPrecio 1.300") == 1300.0

    def test_no_price_line(self) -> None:
        assert unit_price_from_lines("PESO NETO 4.590") is None


class TestFieldExtractor:
    """Tests for the assembled extractor."""

    def setup_method(self) -> None:
        self.extractor = FieldExtractor()

    def test_full_receipt(self, receipt_text: str) -> None:
        data = self.extractor.extract(receipt_text, 87.5)
        assert data.empresa_nombre == "Oleoflores"
        assert data.fecha == "2024-03-05"
        assert data.numero_tiquete == "1000082175"
        assert data.kilogramos == 4590
        assert data.valor_unitario == 1250.0
        assert data.raw_text == receipt_text
        assert data.confidence == 87.5

    def test_empty_text(self) -> None:
        data = extract("", 0)
        assert data.fecha is None
        assert data.kilogramos is None
        assert data.numero_tiquete is None
        assert data.valor_unitario is None
        assert data.empresa_nombre is None
        assert data.raw_text == ""
        assert data.confidence == 0
        assert data.found_fields() == []

    def test_garbage_text(self) -> None:
        data = self.extractor.extract("\x00\xff###\n\n$$$ �", 3.0)
        assert data.found_fields() == []
        assert data.confidence == 3.0

    def test_bytes_input(self) -> None:
        raw = b"PESO NETO 4.590\xff"
        data = self.extractor.extract(raw, 50.0)  # type: ignore[arg-type]
        assert data.kilogramos == 4590
        assert isinstance(data.raw_text, str)

    def test_overlong_numbers(self) -> None:
        text = "PESO NETO " + "9" * 5000 + "\nVALOR " + "9" * 400
        data = self.extractor.extract(text, 50.0)
        assert data.kilogramos is None
        assert data.valor_unitario is None
        assert data.confidence == 50.0

    def test_deterministic(self, receipt_text: str) -> None:
        first = self.extractor.extract(receipt_text, 90.0)
        second = self.extractor.extract(receipt_text, 90.0)
        assert first == second

    def test_tier_b_fallback(self) -> None:
        data = self.extractor.extract(NIT_AND_TICKET_TEXT, 70.0)
        assert data.numero_tiquete == "0001234567"

    def test_tier_c_fallback(self) -> None:
        data = self.extractor.extract("CODIGO INTERNO 884512\nNETO 700", 70.0)
        assert data.numero_tiquete == "884512"
        assert data.kilogramos == 700

    def test_codigo_blocks_tier_a_but_not_tier_b(self) -> None:
        data = self.extractor.extract("GUIA TRANSPORTE CODIGO 123456789012", 60.0)
        assert data.numero_tiquete == "123456789012"

    def test_custom_companies(self) -> None:
        config = ExtractionConfig(
            companies=[CompanyAlias(name="Palmas del Cesar", variants=["PALMACEITE"])]
        )
        data = extract("Planta PALMACEITE\nOLEOFLORES", 80.0, config=config)
        assert data.empresa_nombre == "Palmas del Cesar"

    def test_custom_guide_keywords(self) -> None:
        config = ExtractionConfig(guide_keywords=["remision"])
        data = extract("REMISIÓN 987654321\nNIT 1", 80.0, config=config)
        assert data.numero_tiquete == "987654321"

    def test_record_is_immutable(self, receipt_text: str) -> None:
        data = self.extractor.extract(receipt_text, 90.0)
        with pytest.raises(AttributeError):
            data.fecha = "2000-01-01"  # type: ignore[misc]

    def test_to_dict_uses_form_keys(self, receipt_text: str) -> None:
        payload = self.extractor.extract(receipt_text, 90.0).to_dict()
        assert payload == {
            "fecha": "2024-03-05",
            "kilogramos": 4590,
            "numeroTiquete": "1000082175",
            "valorUnitario": 1250.0,
            "empresaNombre": "Oleoflores",
            "rawText": receipt_text,
            "confidence": 90.0,
        }

    def test_strategy_order(self) -> None:
        tiers = self.extractor.strategies["numero_tiquete"]
        assert isinstance(tiers[0], GuideKeywordTicket)
        assert tiers[1:] == [ticket_longest_number, ticket_internal_code]

    def test_extracted_data_defaults(self) -> None:
        data = ExtractedReceiptData(raw_text="x", confidence=1.0)
        assert data.to_dict()["numeroTiquete"] is None

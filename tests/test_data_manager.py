"""Unit tests documenting the expected behavior of the data access layer."""

from __future__ import annotations

import configparser
from datetime import date
from decimal import Decimal
from pathlib import Path

import openpyxl
import pytest

from naxos_pos import constants, data_manager  # noqa: E402


def test_find_config_file_respects_explicit_path(config_file: Path):
    """Supplying an explicit path should be treated as the winning answer."""

    result = data_manager.find_config_file(config_file)
    assert result == config_file


def test_find_config_file_discovers_in_parent_directories(tmp_path, monkeypatch):
    """Auto-discovery should walk up from the working directory."""

    config_file = tmp_path / "config.ini"
    config_file.write_text("[Api]\nBaseUrl=http://pos.test\n")
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)
    monkeypatch.chdir(nested)

    assert data_manager.find_config_file() == config_file


def test_find_config_file_raises_when_missing(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    with pytest.raises(FileNotFoundError):
        data_manager.find_config_file()


def test_read_config_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        data_manager.read_config(tmp_path / "not_there.ini")


def test_parse_settings_from_generated_file(config_factory):
    """Settings written by the setup helper should parse into typed values."""

    bundle = config_factory(base_url="https://naxos.example/", location_id=4, token="abc")

    settings = data_manager.parse_settings(data_manager.read_config(bundle.config_path))

    assert settings == data_manager.ConfigSettings(
        api_base_url="https://naxos.example",
        api_token="abc",
        timeout_seconds=10.0,
        location_id=4,
        page_size=10,
    )


def test_parse_settings_blank_token_means_none(config_file):
    settings = data_manager.parse_settings(data_manager.read_config(config_file))

    assert settings.api_token is None


def test_parse_settings_uses_defaults_for_optional_entries():
    parser = configparser.ConfigParser()
    parser.read_string("[Api]\nBaseUrl=http://pos.test\n[Defaults]\nLocationId=2\n")

    settings = data_manager.parse_settings(parser)

    assert settings.timeout_seconds == data_manager.DEFAULT_TIMEOUT_SECONDS
    assert settings.page_size == data_manager.DEFAULT_PAGE_SIZE


@pytest.mark.parametrize(
    "text",
    [
        "[Other]\nvalue=1",
        "[Api]\nBaseUrl=http://pos.test\n",
        "[Defaults]\nLocationId=1\n",
    ],
)
def test_parse_settings_requires_expected_entries(text):
    """Missing keys should result in a descriptive KeyError."""

    parser = configparser.ConfigParser()
    parser.read_string(text)
    with pytest.raises(KeyError):
        data_manager.parse_settings(parser)


@pytest.mark.parametrize("option", ["Api.TimeoutSeconds=0", "Defaults.PageSize=-5"])
def test_parse_settings_rejects_non_positive_numbers(option):
    section, assignment = option.split(".", 1)
    parser = configparser.ConfigParser()
    parser.read_string("[Api]\nBaseUrl=http://pos.test\n[Defaults]\nLocationId=1\n")
    key, value = assignment.split("=")
    parser[section][key] = value

    with pytest.raises(ValueError):
        data_manager.parse_settings(parser)


# ---------------------------------------------------------------------------
# Coercion helpers
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("100", Decimal("100")),
        (50, Decimal("50")),
        (12.5, Decimal("12.5")),
        (" 7.25 ", Decimal("7.25")),
        (Decimal("3.10"), Decimal("3.10")),
        (None, Decimal("0")),
        ("", Decimal("0")),
        ("abc", Decimal("0")),
        ("NaN", Decimal("0")),
        ("Infinity", Decimal("0")),
        (True, Decimal("0")),
    ],
)
def test_coerce_amount(raw, expected):
    assert data_manager.coerce_amount(raw) == expected


@pytest.mark.parametrize(
    "raw, expected",
    [(3, 3), ("4", 4), ("2.0", 2), (None, 0), ("x", 0), ("inf", 0)],
)
def test_coerce_int(raw, expected):
    assert data_manager.coerce_int(raw) == expected


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("2024-01-10T23:59:59-05:00", date(2024, 1, 10)),
        ("2024-01-10 00:00:00", date(2024, 1, 10)),
        ("2024-01-10", date(2024, 1, 10)),
        ("2024-13-40T00:00:00Z", None),
        ("10/01/2024", None),
        ("", None),
        (None, None),
    ],
)
def test_parse_calendar_date_reads_leading_date(raw, expected):
    assert data_manager.parse_calendar_date(raw) == expected


# ---------------------------------------------------------------------------
# Sales payload normalization
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("key", constants.SALES_ENVELOPE_KEYS)
def test_normalize_sales_payload_accepts_envelopes(key):
    payload = {key: [{"sale_id": 1}, {"sale_id": "2"}]}

    sales = data_manager.normalize_sales_payload(payload)

    assert [sale.sale_id for sale in sales] == [1, 2]


def test_normalize_sales_payload_accepts_bare_list():
    assert len(data_manager.normalize_sales_payload([{"sale_id": 1}])) == 1


@pytest.mark.parametrize("payload", [{"items": []}, {"sales": "nope"}, "text", None, 42])
def test_normalize_sales_payload_unknown_shape_is_empty(payload, caplog):
    caplog.set_level("WARNING")

    assert data_manager.normalize_sales_payload(payload) == []
    assert caplog.records


def test_normalize_sales_payload_skips_non_object_entries():
    sales = data_manager.normalize_sales_payload([{"sale_id": 1}, "junk", None, {"sale_id": 2}])

    assert [sale.sale_id for sale in sales] == [1, 2]


def test_deserialize_sale_tolerates_loose_fields():
    sale = data_manager.deserialize_sale(
        {
            "sale_id": 11,
            "opened_at": "2024-06-01T10:00:00Z",
            "total": "15.50",
            "status": None,
            "observation": "  ",
            "location_id": "3",
            "items": [
                {"product_name": "Soda", "variant_name": "Lata", "quantity": "2", "unit_price": "7.75", "line_total": None},
                "ignored",
            ],
            "payments": None,
        }
    )

    assert sale.total == Decimal("15.50")
    assert sale.status == ""
    assert sale.observation is None
    assert sale.location_id == 3
    assert sale.sale_date == date(2024, 6, 1)
    assert len(sale.items) == 1
    assert sale.items[0].quantity == 2
    assert sale.items[0].line_total == Decimal("0")
    assert sale.payments == ()


def test_deserialize_sale_requires_identifier():
    with pytest.raises(data_manager.PayloadError):
        data_manager.deserialize_sale({"total": 5})


def test_deserialize_payment_keeps_method_label_verbatim():
    payment = data_manager.deserialize_payment({"method": "QR", "amount": "12", "reference": "abc"})

    assert payment == data_manager.SalePayment(method="QR", amount=Decimal("12"), reference="abc")


# ---------------------------------------------------------------------------
# Menu catalog
# ---------------------------------------------------------------------------


def test_deserialize_menu_reads_products_variants_and_flavors(catalog):
    assert [product.name for product in catalog.products] == ["Granizado", "Soda", "Agua"]
    assert catalog.find_product(3).category == constants.FALLBACK_CATEGORY
    assert catalog.find_variant(10).current_price == Decimal("3500")
    assert catalog.find_variant(30).current_price is None
    assert [variant.variant_id for variant in catalog.variants_for(1)] == [10, 11]
    assert catalog.flavors_for(1) == ("Fresa", "Mango")
    assert catalog.flavors_for(2) == ()


def test_deserialize_menu_accepts_bare_menu(menu_payload):
    catalog = data_manager.deserialize_menu(menu_payload["menu"])

    assert len(catalog.products) == 3


def test_deserialize_menu_handles_missing_sections():
    catalog = data_manager.deserialize_menu({"menu": {}})

    assert catalog.products == ()
    assert catalog.find_product(1) is None


def test_products_by_category_orders_granizados_first():
    catalog = data_manager.MenuCatalog(
        products=(
            data_manager.Product(1, "Te", "Calientes"),
            data_manager.Product(2, "Limon", "Granizados"),
            data_manager.Product(3, "Agua", "Bebidas"),
            data_manager.Product(4, "Cola", "Bebidas"),
        )
    )

    grouped = catalog.products_by_category()

    assert list(grouped) == ["Granizados", "Bebidas", "Calientes"]
    assert [product.name for product in grouped["Bebidas"]] == ["Agua", "Cola"]


# ---------------------------------------------------------------------------
# Deletion receipts
# ---------------------------------------------------------------------------


def test_deserialize_deletion_receipt_reads_counts():
    receipt = data_manager.deserialize_deletion_receipt(
        {"message": "Venta eliminada", "sale_id": 5, "deleted_items": 2, "deleted_payments": 1},
        sale_id=99,
    )

    assert receipt == data_manager.DeletionReceipt(5, 2, 1, "Venta eliminada")


def test_deserialize_deletion_receipt_defaults_when_body_empty():
    receipt = data_manager.deserialize_deletion_receipt({}, sale_id=7)

    assert (receipt.sale_id, receipt.deleted_items, receipt.deleted_payments) == (7, 0, 0)


# ---------------------------------------------------------------------------
# Report export
# ---------------------------------------------------------------------------


def test_write_sales_workbook_creates_sales_and_summary_sheets(tmp_path, make_sale):
    sales = [
        make_sale(1, total=Decimal("20"), payments=(("EFECTIVO", Decimal("20")),)),
        make_sale(2, total="12.5", payments=(("TARJETA", Decimal("12.5")),)),
    ]

    path = data_manager.write_sales_workbook(
        tmp_path / "out" / "report.xlsx",
        sales=sales,
        total_count=2,
        total_amount=Decimal("32.5"),
        by_payment_method={"EFECTIVO": Decimal("20"), "TARJETA": Decimal("12.5")},
    )

    workbook = openpyxl.load_workbook(path)
    assert workbook.sheetnames == [data_manager.SALES_SHEET, data_manager.SUMMARY_SHEET]

    sales_rows = list(workbook[data_manager.SALES_SHEET].iter_rows(values_only=True))
    assert sales_rows[0] == tuple(data_manager.SALES_COLUMNS)
    assert sales_rows[1][0] == 1
    assert sales_rows[2][3] == 12.5
    assert sales_rows[2][4] == "TARJETA 12.5"

    summary = {row[0]: row[1] for row in workbook[data_manager.SUMMARY_SHEET].iter_rows(min_row=2, values_only=True)}
    assert summary == {
        "TotalCount": 2,
        "TotalAmount": 32.5,
        "Payment:EFECTIVO": 20,
        "Payment:TARJETA": 12.5,
    }


def test_write_sales_workbook_replaces_existing_file(tmp_path):
    destination = tmp_path / "report.xlsx"
    destination.write_bytes(b"stale")

    data_manager.write_sales_workbook(
        destination,
        sales=[],
        total_count=0,
        total_amount=Decimal("0"),
        by_payment_method={},
    )

    workbook = openpyxl.load_workbook(destination)
    assert workbook[data_manager.SALES_SHEET].max_row == 1

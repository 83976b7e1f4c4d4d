"""Data access layer for NAXOS POS.

This module provides low-level helpers that translate between the outside
world and typed records. Business logic belongs elsewhere.

The public API is designed around three responsibilities:

1. Configuration handling: finding and parsing ``config.ini``.
2. Payload normalization: turning loosely shaped JSON from the sales service
   into immutable records, once, at the boundary.
3. Report export: writing filtered sales and their summary to an ``.xlsx``
   workbook.
"""


from __future__ import annotations

import configparser
import re
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Sequence

import openpyxl
from openpyxl.styles import Font

from . import log
from .constants import FALLBACK_CATEGORY, PRIORITY_CATEGORIES, SALES_ENVELOPE_KEYS


CONFIG_FILE_NAME = "config.ini"
DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_PAGE_SIZE = 10

SALES_SHEET = "Sales"
SUMMARY_SHEET = "Summary"
SALES_COLUMNS: Sequence[str] = (
    "SaleID",
    "OpenedAt",
    "Status",
    "Total",
    "Payments",
    "Items",
    "Observation",
)

_LEADING_DATE = re.compile(r"^\s*(\d{4}-\d{2}-\d{2})")


class PayloadError(ValueError):
    """Raised when a service record lacks a required identifier."""


@dataclass(frozen=True)
class ConfigSettings:
    """Typed representation of the ``config.ini`` settings we care about."""

    api_base_url: str
    api_token: Optional[str]
    timeout_seconds: float
    location_id: int
    page_size: int


@dataclass(frozen=True)
class Product:
    """Catalog product as published by the menu endpoint."""

    product_id: int
    name: str
    category: str = FALLBACK_CATEGORY
    description: Optional[str] = None


@dataclass(frozen=True)
class Variant:
    """Purchasable size of a product carrying its own current price."""

    variant_id: int
    product_id: int
    variant_name: str
    current_price: Optional[Decimal] = None
    ounces: Optional[Decimal] = None


@dataclass(frozen=True)
class MenuCatalog:
    """Snapshot of products, variants and active flavors."""

    products: tuple[Product, ...] = ()
    variants: tuple[Variant, ...] = ()
    flavors: Mapping[int, tuple[str, ...]] = field(default_factory=dict)

    def find_product(self, product_id: int) -> Optional[Product]:
        return next((p for p in self.products if p.product_id == product_id), None)

    def find_variant(self, variant_id: int) -> Optional[Variant]:
        return next((v for v in self.variants if v.variant_id == variant_id), None)

    def variants_for(self, product_id: int) -> list[Variant]:
        return [variant for variant in self.variants if variant.product_id == product_id]

    def flavors_for(self, product_id: int) -> tuple[str, ...]:
        return tuple(self.flavors.get(product_id, ()))

    def products_by_category(self) -> dict[str, list[Product]]:
        """Group products by category, granizados first and the rest sorted.

        Returns:
            dict[str, list[Product]]: Insertion-ordered mapping of category
                label to the products it holds, in catalog order.
        """

        grouped: dict[str, list[Product]] = {}
        for product in self.products:
            grouped.setdefault(product.category or FALLBACK_CATEGORY, []).append(product)

        ordered = [name for name in PRIORITY_CATEGORIES if name in grouped]
        ordered.extend(sorted(name for name in grouped if name not in PRIORITY_CATEGORIES))
        return {name: grouped[name] for name in ordered}


@dataclass(frozen=True)
class SaleItem:
    """Line of a recorded sale."""

    product_name: str
    variant_name: str
    flavor_name: Optional[str]
    quantity: int
    unit_price: Decimal
    line_total: Decimal


@dataclass(frozen=True)
class SalePayment:
    """Payment attached to a recorded sale."""

    method: str
    amount: Decimal
    reference: Optional[str] = None


@dataclass(frozen=True)
class Sale:
    """Read-only view of a sale owned by the sales service."""

    sale_id: int
    opened_at: str
    total: Any
    status: str = ""
    observation: Optional[str] = None
    items: tuple[SaleItem, ...] = ()
    payments: tuple[SalePayment, ...] = ()
    location_id: Optional[int] = None

    @property
    def sale_date(self) -> Optional[date]:
        """Calendar date of ``opened_at`` as written, ignoring time and offset."""

        return parse_calendar_date(self.opened_at)


@dataclass(frozen=True)
class DeletionReceipt:
    """Counts of cascaded records removed alongside a sale."""

    sale_id: int
    deleted_items: int
    deleted_payments: int
    message: str = ""

    def describe(self) -> str:
        return (
            f"Sale {self.sale_id} deleted "
            f"({self.deleted_items} item(s), {self.deleted_payments} payment(s) removed)"
        )


def find_config_file(explicit_path: Optional[Path] = None) -> Path:
    """Locate the configuration file that controls the client.

    If the caller provides ``explicit_path`` the value is returned immediately
    without any verification. When no explicit path is given the function walks
    up from the current working directory toward the filesystem root looking
    for a file named ``CONFIG_FILE_NAME``. The first match wins.

    Args:
        explicit_path (Path | None): Optional path to use instead of performing
            the upward search.

    Returns:
        Path: The path provided by the caller or the discovered configuration
            file.

    Raises:
        FileNotFoundError: If the search exhausts all parent directories without
            finding ``CONFIG_FILE_NAME``.
    """

    if explicit_path:
        return explicit_path

    current = Path.cwd()
    for p in (current, *current.parents):
        candidate = p / CONFIG_FILE_NAME
        if candidate.exists():
            return candidate

    raise FileNotFoundError(
        f"Configuration file not found: {CONFIG_FILE_NAME}")


def read_config(config_path: Path) -> configparser.ConfigParser:
    """Load ``config.ini`` and return a populated ``ConfigParser`` instance.

    Args:
        config_path (Path): Path to the configuration file, relative or
            absolute. ``~`` is expanded.

    Returns:
        configparser.ConfigParser: Initialized parser containing the raw
            configuration data. Required entries are validated later by
            :func:`parse_settings`.

    Raises:
        FileNotFoundError: If ``config_path`` does not exist after expansion and
            resolution.
    """

    config_path = config_path.expanduser().resolve()
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    parser = configparser.ConfigParser()
    parser.read(config_path, encoding="utf-8")
    return parser


def parse_settings(parser: configparser.ConfigParser) -> ConfigSettings:
    """Convert a ``ConfigParser`` into strongly typed :class:`ConfigSettings`.

    ``Api.BaseUrl`` and ``Defaults.LocationId`` are mandatory. The token,
    timeout and page size fall back to defaults when absent; a blank token is
    treated as no token.

    Args:
        parser (configparser.ConfigParser): Parsed configuration data.

    Returns:
        ConfigSettings: Immutable settings container.

    Raises:
        KeyError: If a required section or option is missing.
        ValueError: If a numeric option cannot be parsed or is not positive.
    """

    try:
        base_url = parser.get("Api", "BaseUrl")
        location_id = parser.getint("Defaults", "LocationId")
    except (configparser.NoSectionError, configparser.NoOptionError) as exc:
        raise KeyError(f"Missing required configuration entry: {exc}") from exc

    token = parser.get("Api", "Token", fallback="").strip() or None
    timeout = parser.getfloat("Api", "TimeoutSeconds", fallback=DEFAULT_TIMEOUT_SECONDS)
    page_size = parser.getint("Defaults", "PageSize", fallback=DEFAULT_PAGE_SIZE)

    if timeout <= 0:
        raise ValueError(f"TimeoutSeconds must be positive, got {timeout}")
    if page_size <= 0:
        raise ValueError(f"PageSize must be positive, got {page_size}")

    return ConfigSettings(
        api_base_url=base_url.strip().rstrip("/"),
        api_token=token,
        timeout_seconds=timeout,
        location_id=location_id,
        page_size=page_size,
    )


def coerce_amount(value: Any) -> Decimal:
    """Coerce a loosely typed monetary value into a finite Decimal.

    Numbers and numeric text are accepted. ``None``, booleans, blanks, text
    that does not parse, NaN and infinities all degrade to ``Decimal("0")`` so
    one malformed record cannot break a whole report.
    """

    if value is None or isinstance(value, bool):
        return Decimal("0")
    if isinstance(value, Decimal):
        candidate = value
    else:
        text = str(value).strip()
        if not text:
            return Decimal("0")
        try:
            candidate = Decimal(text)
        except InvalidOperation:
            return Decimal("0")
    if not candidate.is_finite():
        return Decimal("0")
    return candidate


def coerce_int(value: Any, default: int = 0) -> int:
    """Coerce integers and integral text, falling back to ``default``."""

    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    try:
        return int(Decimal(str(value).strip()))
    except (InvalidOperation, ValueError, OverflowError):
        return default


def parse_calendar_date(value: Any) -> Optional[date]:
    """Return the leading ``YYYY-MM-DD`` of ``value`` as a date, if any."""

    if value is None:
        return None
    match = _LEADING_DATE.match(str(value))
    if match is None:
        return None
    try:
        return date.fromisoformat(match.group(1))
    except ValueError:
        return None


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value)
    return text if text.strip() else None


def _require_id(record: Mapping[str, Any], key: str) -> int:
    raw = record.get(key)
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        log.error("Record is missing required identifier '%s': %r", key, raw)
        raise PayloadError(f"Missing or invalid '{key}' in service record") from exc


def deserialize_sale_item(raw: Mapping[str, Any]) -> SaleItem:
    """Convert a raw sale item mapping into a :class:`SaleItem`."""

    return SaleItem(
        product_name=str(raw.get("product_name") or ""),
        variant_name=str(raw.get("variant_name") or ""),
        flavor_name=_optional_text(raw.get("flavor_name")),
        quantity=coerce_int(raw.get("quantity")),
        unit_price=coerce_amount(raw.get("unit_price")),
        line_total=coerce_amount(raw.get("line_total")),
    )


def deserialize_payment(raw: Mapping[str, Any]) -> SalePayment:
    """Convert a raw payment mapping into a :class:`SalePayment`."""

    return SalePayment(
        method=str(raw.get("method") or ""),
        amount=coerce_amount(raw.get("amount")),
        reference=_optional_text(raw.get("reference")),
    )


def deserialize_sale(raw: Mapping[str, Any]) -> Sale:
    """Convert one sale mapping from the service into a :class:`Sale`.

    Numeric fields tolerate text and nulls. Item and payment lists that are
    missing or not lists are treated as empty, and their non-mapping entries
    are skipped.

    Args:
        raw (Mapping[str, Any]): Sale record as decoded from JSON.

    Returns:
        Sale: Normalized, immutable sale.

    Raises:
        PayloadError: If ``sale_id`` is missing or not an integer.
    """

    sale_id = _require_id(raw, "sale_id")
    location_raw = raw.get("location_id")
    return Sale(
        sale_id=sale_id,
        opened_at=str(raw.get("opened_at") or ""),
        total=coerce_amount(raw.get("total")),
        status=str(raw.get("status") or ""),
        observation=_optional_text(raw.get("observation")),
        items=tuple(deserialize_sale_item(item) for item in _mapping_entries(raw.get("items"))),
        payments=tuple(deserialize_payment(payment) for payment in _mapping_entries(raw.get("payments"))),
        location_id=coerce_int(location_raw) if location_raw is not None else None,
    )


def _mapping_entries(value: Any) -> Iterable[Mapping[str, Any]]:
    if not isinstance(value, list):
        return []
    return [entry for entry in value if isinstance(entry, Mapping)]


def unwrap_sales_listing(payload: Any) -> list[Any]:
    """Extract the sales array from a bare list or a known envelope.

    Args:
        payload (Any): Decoded JSON body of the listing endpoint.

    Returns:
        list[Any]: The raw sales entries. Unknown shapes produce an empty list
            and a warning naming the keys that were present.
    """

    if isinstance(payload, list):
        return payload
    if isinstance(payload, Mapping):
        for key in SALES_ENVELOPE_KEYS:
            candidate = payload.get(key)
            if isinstance(candidate, list):
                return candidate
        log.warning("Sales listing has no known array field; keys=%s", sorted(payload))
        return []
    log.warning("Sales listing has unexpected type %s", type(payload).__name__)
    return []


def normalize_sales_payload(payload: Any) -> list[Sale]:
    """Normalize the sales listing response into canonical :class:`Sale` records."""

    sales: list[Sale] = []
    for entry in unwrap_sales_listing(payload):
        if not isinstance(entry, Mapping):
            log.warning("Skipping non-object sales entry: %r", entry)
            continue
        sales.append(deserialize_sale(entry))
    log.debug("Normalized %d sales from listing payload", len(sales))
    return sales


def deserialize_menu(payload: Any) -> MenuCatalog:
    """Convert the public menu payload into a :class:`MenuCatalog`.

    The endpoint nests the menu under ``menu``; a bare menu object is accepted
    too. Products and variants without identifiers raise :class:`PayloadError`.
    """

    menu = payload.get("menu", payload) if isinstance(payload, Mapping) else {}
    if not isinstance(menu, Mapping):
        menu = {}

    products = tuple(
        Product(
            product_id=_require_id(raw, "product_id"),
            name=str(raw.get("name") or ""),
            category=str(raw.get("categoria") or FALLBACK_CATEGORY),
            description=_optional_text(raw.get("description")),
        )
        for raw in _mapping_entries(menu.get("productos"))
    )
    variants = tuple(
        Variant(
            variant_id=_require_id(raw, "variant_id"),
            product_id=_require_id(raw, "product_id"),
            variant_name=str(raw.get("variant_name") or ""),
            current_price=(
                coerce_amount(raw.get("precio_actual")) if raw.get("precio_actual") is not None else None
            ),
            ounces=coerce_amount(raw.get("ounces")) if raw.get("ounces") is not None else None,
        )
        for raw in _mapping_entries(menu.get("variantes"))
    )
    flavors: dict[int, tuple[str, ...]] = {}
    for raw in _mapping_entries(menu.get("sabores")):
        active = raw.get("sabores_activos")
        if isinstance(active, list):
            flavors[_require_id(raw, "product_id")] = tuple(str(name) for name in active if name)

    log.debug(
        "Deserialized menu with %d products, %d variants, %d flavor lists",
        len(products),
        len(variants),
        len(flavors),
    )
    return MenuCatalog(products=products, variants=variants, flavors=flavors)


def deserialize_deletion_receipt(payload: Any, *, sale_id: int) -> DeletionReceipt:
    """Convert a deletion response into a :class:`DeletionReceipt`."""

    body = payload if isinstance(payload, Mapping) else {}
    return DeletionReceipt(
        sale_id=coerce_int(body.get("sale_id"), default=sale_id),
        deleted_items=coerce_int(body.get("deleted_items")),
        deleted_payments=coerce_int(body.get("deleted_payments")),
        message=str(body.get("message") or ""),
    )


def serialize_sale_row(sale: Sale) -> list[object]:
    """Convert a sale into the ``Sales`` sheet column ordering.

    Returns:
        list[object]: Values arranged as ``SALES_COLUMNS``, keeping the total
            as a :class:`~decimal.Decimal`.
    """

    payments = "; ".join(f"{payment.method} {payment.amount}" for payment in sale.payments)
    return [
        sale.sale_id,
        sale.opened_at,
        sale.status,
        coerce_amount(sale.total),
        payments,
        len(sale.items),
        sale.observation,
    ]


def write_sales_workbook(
    destination: Path,
    *,
    sales: Sequence[Sale],
    total_count: int,
    total_amount: Decimal,
    by_payment_method: Mapping[str, Decimal],
) -> Path:
    """Write filtered sales and their summary to an ``.xlsx`` workbook.

    The destination path is expanded and resolved; parent directories are
    created on demand. An existing file is replaced.

    Args:
        destination (Path): Target workbook path.
        sales (Sequence[Sale]): Rows for the ``Sales`` sheet, in display order.
        total_count (int): Number of sales in the report.
        total_amount (Decimal): Sum of sale totals in the report.
        by_payment_method (Mapping[str, Decimal]): Amount per payment method.

    Returns:
        Path: The resolved path that was written.
    """

    dest = Path(destination).expanduser().resolve()
    dest.parent.mkdir(parents=True, exist_ok=True)

    workbook = openpyxl.Workbook()
    if workbook.active and workbook.active.title == "Sheet":
        workbook.remove(workbook.active)

    bold_font = Font(bold=True)

    sales_sheet = workbook.create_sheet(title=SALES_SHEET)
    sales_sheet.append(list(SALES_COLUMNS))
    for cell in sales_sheet[1]:
        cell.font = bold_font
    for sale in sales:
        sales_sheet.append(serialize_sale_row(sale))

    summary_sheet = workbook.create_sheet(title=SUMMARY_SHEET)
    summary_sheet.append(["Metric", "Value"])
    for cell in summary_sheet[1]:
        cell.font = bold_font
    summary_sheet.append(["TotalCount", total_count])
    summary_sheet.append(["TotalAmount", total_amount])
    for method, amount in by_payment_method.items():
        summary_sheet.append([f"Payment:{method}", amount])

    workbook.save(dest)
    log.info("Exported %d sales to '%s'", len(sales), dest)
    return dest

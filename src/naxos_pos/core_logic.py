"""Business logic layer for NAXOS POS.

This module holds the order composition flow (selection, cart, settlement) and
the sales reporting engine (date filtering, aggregation, pagination). Every
state transition is a pure function returning a new immutable value; the only
side effects are the calls into :mod:`naxos_pos.api_client` made through the
:class:`RuntimeContext`.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

from . import data_manager, log
from .api_client import SalesApiClient
from .constants import (
    DEFAULT_QUANTITY_INPUT,
    PENDING_TRANSFER_REFERENCE,
    PaymentMethod,
    SelectionPhase,
)
from .data_manager import MenuCatalog, Product, Sale, Variant, coerce_amount


CENT = Decimal("0.01")


class OrderError(Exception):
    """Base class for errors raised while building or settling an order."""


class ValidationError(OrderError):
    """Raised when a selection, quantity, or cart rule is violated."""


class EmptyCartError(ValidationError):
    """Raised when settlement is attempted on an empty cart."""


class CartIndexError(ValidationError):
    """Raised when a cart position does not exist."""


@dataclass(frozen=True)
class RuntimeContext:
    """Container for configuration and the service client used by the BLL."""

    settings: data_manager.ConfigSettings
    client: SalesApiClient
    _cache: Dict[str, Dict[str, Any]] = field(default_factory=dict, repr=False, compare=False)


def round_money(amount: Decimal) -> Decimal:
    """Round a monetary amount to cents using half-up rounding."""

    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


# ---------------------------------------------------------------------------
# Runtime context and cached service reads
# ---------------------------------------------------------------------------


def _get_cache_bucket(context: RuntimeContext, name: str) -> Dict[str, Any]:
    """Return a mutable cache bucket dedicated to the supplied name.

    Buckets are keyed by domain area (``menu``, ``sales``) and hold the last
    successful service read so repeated commands within one context do not
    refetch.
    """

    bucket = context._cache.get(name)
    if bucket is None:
        log.debug("Initializing cache bucket '%s'", name)
        bucket = {}
        context._cache[name] = bucket
    return bucket


def _invalidate_cache(context: RuntimeContext, *names: str) -> None:
    """Evict one or more cache buckets after a remote mutation.

    Args:
        context (RuntimeContext): Active runtime context whose cache should be
            pruned.
        *names (str): Bucket identifiers to remove. Missing buckets are
            ignored.
    """

    if not names:
        return

    log.debug("Invalidating cache buckets: %s", ", ".join(names))

    for name in names:
        context._cache.pop(name, None)


def load_runtime_context(config_path: Optional[Path] = None) -> RuntimeContext:
    """Load configuration settings and build a service client.

    Args:
        config_path (Path | None): Optional override path for the configuration
            file. When omitted the data layer searches upward from the current
            working directory.

    Returns:
        RuntimeContext: Context ready for orchestration functions.

    Raises:
        FileNotFoundError: If the configuration file cannot be located.
        KeyError: When mandatory configuration options are missing.
    """

    located_config = data_manager.find_config_file(config_path)
    resolved_config = Path(located_config).expanduser().resolve()
    parser = data_manager.read_config(resolved_config)
    settings = data_manager.parse_settings(parser)
    client = SalesApiClient(
        settings.api_base_url,
        token=settings.api_token,
        timeout=settings.timeout_seconds,
    )
    log.info("Loaded runtime context for service '%s'", settings.api_base_url)
    return RuntimeContext(settings=settings, client=client)


def load_menu(context: RuntimeContext) -> MenuCatalog:
    """Return the menu catalog, fetching it once per context.

    Raises:
        RemoteError: If the menu endpoint fails.
    """

    bucket = _get_cache_bucket(context, "menu")
    if "catalog" not in bucket:
        bucket["catalog"] = data_manager.deserialize_menu(context.client.fetch_menu())
    return bucket["catalog"]


def fetch_sales(context: RuntimeContext, *, refresh: bool = False) -> List[Sale]:
    """Fetch and normalize the sales listing.

    The listing is normalized exactly once at the boundary and cached on the
    context. A failed fetch raises instead of returning an empty list so callers
    can tell "no sales" apart from "could not load sales".

    Args:
        context (RuntimeContext): Runtime context providing the client and
            caches.
        refresh (bool): When ``True`` the cached listing is discarded first.

    Returns:
        list[Sale]: Copy of the cached sales in service order.

    Raises:
        RemoteError: If the listing endpoint fails.
        PayloadError: If a sale record has no usable ``sale_id``.
    """

    if refresh:
        _invalidate_cache(context, "sales")
    bucket = _get_cache_bucket(context, "sales")
    if "all" not in bucket:
        sales = data_manager.normalize_sales_payload(context.client.list_sales())
        bucket["all"] = sales
        bucket["by_id"] = {sale.sale_id: sale for sale in sales}
        log.debug("Populated sales cache with %d entries", len(sales))
    return list(bucket["all"])


def _unwrap_sale(payload: Any) -> Mapping[str, Any]:
    if isinstance(payload, Mapping) and isinstance(payload.get("sale"), Mapping):
        return payload["sale"]
    if isinstance(payload, Mapping):
        return payload
    raise data_manager.PayloadError("Sale response is not an object")


def get_sale(context: RuntimeContext, sale_id: int) -> Sale:
    """Fetch one sale by id, bypassing the listing cache."""

    return data_manager.deserialize_sale(_unwrap_sale(context.client.get_sale(sale_id)))


def delete_sale(context: RuntimeContext, sale_id: int) -> data_manager.DeletionReceipt:
    """Delete a sale remotely and report how many child records went with it."""

    payload = context.client.delete_sale(sale_id)
    _invalidate_cache(context, "sales")
    receipt = data_manager.deserialize_deletion_receipt(payload, sale_id=sale_id)
    log.info(
        "Deleted sale %s (items=%d, payments=%d)",
        receipt.sale_id,
        receipt.deleted_items,
        receipt.deleted_payments,
    )
    return receipt


def update_sale_observation(context: RuntimeContext, sale_id: int, observation: Optional[str]) -> Optional[Sale]:
    """Replace the observation of a recorded sale.

    Returns:
        Sale | None: The updated sale when the service echoes it back.
    """

    payload = context.client.update_sale(sale_id, {"observation": normalize_observation(observation)})
    _invalidate_cache(context, "sales")
    log.info("Updated observation for sale %s", sale_id)
    if isinstance(payload, Mapping) and isinstance(payload.get("sale"), Mapping):
        return data_manager.deserialize_sale(payload["sale"])
    return None


# ---------------------------------------------------------------------------
# Selection state machine
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CartItem:
    """Committed cart line with a price snapshot taken at selection time."""

    product_id: int
    product_name: str
    variant_id: int
    variant_name: str
    flavor: Optional[str]
    quantity: int
    unit_price: Decimal

    def __post_init__(self) -> None:
        if self.quantity <= 0:
            raise ValidationError("Quantity must be greater than zero")
        if self.unit_price < 0:
            raise ValidationError("Unit price must be zero or positive")

    @property
    def line_total(self) -> Decimal:
        return round_money(self.unit_price * self.quantity)


@dataclass(frozen=True)
class SelectionState:
    """In-progress choice of product, flavor, variant and quantity."""

    product: Optional[Product] = None
    flavor_options: Tuple[str, ...] = ()
    flavor: Optional[str] = None
    variant: Optional[Variant] = None
    quantity_input: str = DEFAULT_QUANTITY_INPUT

    @property
    def requires_flavor(self) -> bool:
        return bool(self.flavor_options)

    @property
    def phase(self) -> SelectionPhase:
        if self.product is None:
            return SelectionPhase.NO_PRODUCT
        flavor_done = self.flavor is not None or not self.requires_flavor
        if self.variant is not None:
            return SelectionPhase.READY if flavor_done else SelectionPhase.VARIANT_CHOSEN
        if self.flavor is not None:
            return SelectionPhase.FLAVOR_CHOSEN
        return SelectionPhase.PRODUCT_CHOSEN


def select_product(
    state: SelectionState,
    product: Product,
    flavor_options: Iterable[str] = (),
) -> SelectionState:
    """Start a fresh selection for ``product``.

    Flavor, variant and quantity are reset regardless of what ``state`` held.
    ``flavor_options`` are the flavors the product currently offers; an empty
    collection means the product takes no flavor.
    """

    return SelectionState(product=product, flavor_options=tuple(flavor_options))


def select_flavor(state: SelectionState, flavor: str) -> SelectionState:
    """Choose a flavor for the current product.

    Raises:
        ValidationError: If no product is selected, the product offers no
            flavors, or ``flavor`` is not among its options.
    """

    if state.product is None:
        raise ValidationError("Select a product before choosing a flavor")
    if not state.requires_flavor:
        log.warning("Flavor '%s' chosen for product without flavors '%s'", flavor, state.product.name)
        raise ValidationError(f"Product '{state.product.name}' does not offer flavors")
    if flavor not in state.flavor_options:
        log.warning("Unknown flavor '%s' for product '%s'", flavor, state.product.name)
        raise ValidationError(f"Flavor '{flavor}' is not available for '{state.product.name}'")
    return replace(state, flavor=flavor)


def select_variant(state: SelectionState, variant: Variant) -> SelectionState:
    """Choose the size/packaging variant for the current product.

    Raises:
        ValidationError: If no product is selected or the variant belongs to a
            different product.
    """

    if state.product is None:
        raise ValidationError("Select a product before choosing a size")
    if variant.product_id != state.product.product_id:
        log.warning(
            "Variant %s belongs to product %s, not %s",
            variant.variant_id,
            variant.product_id,
            state.product.product_id,
        )
        raise ValidationError(f"Size '{variant.variant_name}' does not belong to '{state.product.name}'")
    return replace(state, variant=variant)


def set_quantity(state: SelectionState, raw_text: str) -> SelectionState:
    """Store the quantity exactly as typed; parsing waits until commit."""

    return replace(state, quantity_input=raw_text)


def clear_selection(state: SelectionState) -> SelectionState:
    """Abandon the current selection (the "back" action)."""

    return SelectionState()


def parse_quantity(raw_text: Optional[str]) -> int:
    """Parse typed quantity text into a positive integer.

    Raises:
        ValidationError: If the text is blank, not a whole number, or not
            greater than zero.
    """

    text = (raw_text or "").strip()
    try:
        quantity = int(text)
    except ValueError as exc:
        log.warning("Quantity validation failed: %r", raw_text)
        raise ValidationError(f"Quantity must be a whole number, got '{text}'") from exc
    if quantity <= 0:
        log.warning("Quantity validation failed: %s", quantity)
        raise ValidationError("Quantity must be greater than zero")
    return quantity


def commit_to_cart(state: SelectionState) -> Tuple[CartItem, SelectionState]:
    """Turn a complete selection into a cart item.

    Preconditions are checked in order: a product and a variant must be
    selected, a flavor must be chosen when the product offers any, and the
    quantity must parse to a positive integer. The unit price is copied from
    the variant's current price, or zero when the catalog has none.

    Args:
        state (SelectionState): Current selection.

    Returns:
        tuple[CartItem, SelectionState]: The committed item and an empty
            selection.

    Raises:
        ValidationError: When any precondition fails. ``state`` is not
            modified.
    """

    if state.product is None:
        raise ValidationError("Select a product first")
    if state.variant is None:
        log.warning("Commit rejected: no size selected for '%s'", state.product.name)
        raise ValidationError("Select a size before adding to the cart")
    if state.requires_flavor and state.flavor is None:
        log.warning("Commit rejected: no flavor selected for '%s'", state.product.name)
        raise ValidationError(f"Select a flavor for '{state.product.name}'")

    quantity = parse_quantity(state.quantity_input)
    price = state.variant.current_price if state.variant.current_price is not None else Decimal("0")

    item = CartItem(
        product_id=state.product.product_id,
        product_name=state.product.name,
        variant_id=state.variant.variant_id,
        variant_name=state.variant.variant_name,
        flavor=state.flavor,
        quantity=quantity,
        unit_price=price,
    )
    log.debug("Committed %s x %s (%s)", item.quantity, item.product_name, item.variant_name)
    return item, SelectionState()


# ---------------------------------------------------------------------------
# Cart ledger
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CartLedger:
    """Ordered, immutable collection of committed cart items."""

    items: Tuple[CartItem, ...] = ()

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[CartItem]:
        return iter(self.items)

    @property
    def is_empty(self) -> bool:
        return not self.items

    def add(self, item: CartItem) -> "CartLedger":
        return CartLedger(items=(*self.items, item))

    def remove_at(self, index: int) -> "CartLedger":
        """Return a ledger without the entry at ``index``.

        Negative indices are rejected rather than counted from the end.

        Raises:
            CartIndexError: If ``index`` does not address an entry.
        """

        if not 0 <= index < len(self.items):
            log.warning("Cart removal rejected: index %s outside 0..%d", index, len(self.items) - 1)
            raise CartIndexError(f"No cart entry at position {index}")
        return CartLedger(items=self.items[:index] + self.items[index + 1:])

    def total(self) -> Decimal:
        return sum((item.line_total for item in self.items), Decimal("0"))

    def clear(self) -> "CartLedger":
        return CartLedger()


# ---------------------------------------------------------------------------
# Settlement
# ---------------------------------------------------------------------------


def normalize_observation(observation: Optional[str]) -> Optional[str]:
    """Trim free text; blank text becomes ``None``."""

    if observation is None:
        return None
    trimmed = observation.strip()
    return trimmed or None


def _json_number(amount: Decimal) -> int | float:
    return int(amount) if amount == amount.to_integral_value() else float(amount)


@dataclass(frozen=True)
class SettlementItem:
    variant_id: int
    flavor_name: Optional[str]
    quantity: int
    unit_price: Decimal


@dataclass(frozen=True)
class SettlementPayment:
    method: PaymentMethod
    amount: Decimal
    reference: Optional[str] = None


@dataclass(frozen=True)
class SettlementRequest:
    """Wire-level request for recording a full sale."""

    location_id: int
    observation: Optional[str]
    items: Tuple[SettlementItem, ...]
    payments: Tuple[SettlementPayment, ...]

    def to_payload(self) -> Dict[str, Any]:
        return {
            "location_id": self.location_id,
            "observation": self.observation,
            "items": [
                {
                    "variant_id": item.variant_id,
                    "flavor_name": item.flavor_name,
                    "quantity": item.quantity,
                    "unit_price": _json_number(item.unit_price),
                }
                for item in self.items
            ],
            "payments": [
                {
                    "method": payment.method.value,
                    "amount": _json_number(payment.amount),
                    "reference": payment.reference,
                }
                for payment in self.payments
            ],
        }


def compose_settlement(
    ledger: CartLedger,
    method: PaymentMethod,
    observation: Optional[str] = None,
    *,
    location_id: int,
    reference: Optional[str] = None,
) -> SettlementRequest:
    """Build the settlement request for the current cart.

    Items are expressed by variant id and flavor name; the sales service
    resolves flavor names to its own identifiers. The whole cart is settled
    with a single payment of ``ledger.total()``. Transfers without an explicit
    reference carry :data:`PENDING_TRANSFER_REFERENCE`.

    Args:
        ledger (CartLedger): Cart to settle. Must not be empty.
        method (PaymentMethod): How the customer paid.
        observation (str | None): Free text; trimmed, blank becomes ``None``.
        location_id (int): Point-of-sale location identifier.
        reference (str | None): Optional payment reference.

    Returns:
        SettlementRequest: Immutable request ready for :meth:`to_payload`.

    Raises:
        EmptyCartError: If ``ledger`` holds no items.
        ValidationError: If ``method`` is not a :class:`PaymentMethod`.
    """

    if ledger.is_empty:
        log.warning("Settlement rejected: cart is empty")
        raise EmptyCartError("Cannot settle an empty cart")
    if not isinstance(method, PaymentMethod):
        log.error("Unsupported payment method provided: %s", method)
        raise ValidationError(f"Unsupported payment method: {method}")

    payment_reference = normalize_observation(reference)
    if payment_reference is None and method is PaymentMethod.TRANSFER:
        payment_reference = PENDING_TRANSFER_REFERENCE

    return SettlementRequest(
        location_id=location_id,
        observation=normalize_observation(observation),
        items=tuple(
            SettlementItem(
                variant_id=item.variant_id,
                flavor_name=item.flavor,
                quantity=item.quantity,
                unit_price=item.unit_price,
            )
            for item in ledger
        ),
        payments=(SettlementPayment(method=method, amount=ledger.total(), reference=payment_reference),),
    )


@dataclass(frozen=True)
class OrderSession:
    """Everything the cashier has entered for the order being built."""

    selection: SelectionState = field(default_factory=SelectionState)
    ledger: CartLedger = field(default_factory=CartLedger)
    payment_method: PaymentMethod = PaymentMethod.CASH
    observation: Optional[str] = None

    def with_selection(self, selection: SelectionState) -> "OrderSession":
        return replace(self, selection=selection)

    def add_to_cart(self) -> "OrderSession":
        item, selection = commit_to_cart(self.selection)
        return replace(self, selection=selection, ledger=self.ledger.add(item))

    def remove_from_cart(self, index: int) -> "OrderSession":
        return replace(self, ledger=self.ledger.remove_at(index))

    def go_back(self) -> "OrderSession":
        return replace(self, selection=clear_selection(self.selection))

    def with_payment_method(self, method: PaymentMethod) -> "OrderSession":
        return replace(self, payment_method=method)

    def with_observation(self, observation: Optional[str]) -> "OrderSession":
        return replace(self, observation=observation)

    def settled(self) -> "OrderSession":
        """Session after a confirmed settlement: empty cart, no observation."""

        return replace(
            self,
            selection=SelectionState(),
            ledger=self.ledger.clear(),
            observation=None,
        )


@dataclass(frozen=True)
class SettlementResult:
    session: OrderSession
    request: SettlementRequest
    response: Any


def submit_settlement(
    context: RuntimeContext,
    session: OrderSession,
    *,
    reference: Optional[str] = None,
) -> SettlementResult:
    """Settle the session's cart through the sales service.

    The request is composed before any network traffic so validation errors
    never reach the service. The returned session is only produced after the
    service confirms; on failure the exception propagates and the caller still
    holds its unchanged ``session`` to retry with.

    Args:
        context (RuntimeContext): Runtime context with settings and client.
        session (OrderSession): Session holding cart, method and observation.
        reference (str | None): Optional payment reference.

    Returns:
        SettlementResult: The cleared session, the request sent, and the raw
            service response.

    Raises:
        EmptyCartError: If the cart is empty.
        RemoteError: If the service rejects the sale or cannot be reached.
    """

    request = compose_settlement(
        session.ledger,
        session.payment_method,
        session.observation,
        location_id=context.settings.location_id,
        reference=reference,
    )
    response = context.client.create_full_sale(request.to_payload())
    _invalidate_cache(context, "sales")
    log.info(
        "Recorded sale with %d item(s) for %s via %s",
        len(request.items),
        request.payments[0].amount,
        request.payments[0].method.value,
    )
    return SettlementResult(session=session.settled(), request=request, response=response)


# ---------------------------------------------------------------------------
# Sales query and reporting
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DateRangeFilter:
    """Inclusive calendar-date bounds; either side may be open."""

    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @classmethod
    def from_strings(cls, start: Optional[str] = None, end: Optional[str] = None) -> "DateRangeFilter":
        """Build a filter from ``YYYY-MM-DD`` text; blanks mean unbounded.

        Raises:
            ValidationError: If a non-blank bound is not a valid ISO date.
        """

        return cls(start_date=_parse_bound(start, "start"), end_date=_parse_bound(end, "end"))

    @property
    def is_unbounded(self) -> bool:
        return self.start_date is None and self.end_date is None

    def includes(self, sale_date: Optional[date]) -> bool:
        if self.is_unbounded:
            return True
        if sale_date is None:
            return False
        if self.start_date is not None and sale_date < self.start_date:
            return False
        if self.end_date is not None and sale_date > self.end_date:
            return False
        return True


def _parse_bound(value: Optional[str], label: str) -> Optional[date]:
    if value is None or not value.strip():
        return None
    try:
        return date.fromisoformat(value.strip())
    except ValueError as exc:
        raise ValidationError(f"Invalid {label} date '{value}', expected YYYY-MM-DD") from exc


def filter_sales(sales: Iterable[Sale], date_range: DateRangeFilter) -> List[Sale]:
    """Keep the sales whose calendar date falls inside ``date_range``.

    Dates come from the leading ``YYYY-MM-DD`` of ``opened_at`` so the time of
    day and offset never push a sale onto a neighbouring day. Without bounds
    every sale is returned; with any bound, sales without a readable date are
    dropped.
    """

    if date_range.is_unbounded:
        return list(sales)
    return [sale for sale in sales if date_range.includes(sale.sale_date)]


def total_amount(sales: Iterable[Sale]) -> Decimal:
    """Sum sale totals, treating unreadable totals as zero."""

    return sum((coerce_amount(sale.total) for sale in sales), Decimal("0"))


def total_count(sales: Sequence[Sale]) -> int:
    return len(sales)


def totals_by_payment_method(sales: Iterable[Sale]) -> Dict[str, Decimal]:
    """Accumulate payment amounts per method label.

    Every payment of every sale contributes. The result is not reconciled
    against sale totals, so its sum may differ from :func:`total_amount`.
    """

    totals: Dict[str, Decimal] = {}
    for sale in sales:
        for payment in sale.payments:
            totals[payment.method] = totals.get(payment.method, Decimal("0")) + coerce_amount(payment.amount)
    return totals


@dataclass(frozen=True)
class SalesReport:
    filtered: Tuple[Sale, ...]
    total_count: int
    total_amount: Decimal
    by_payment_method: Mapping[str, Decimal]


def build_sales_report(sales: Iterable[Sale], date_range: DateRangeFilter) -> SalesReport:
    """Filter ``sales`` by date and compute the report figures over the result."""

    filtered = filter_sales(sales, date_range)
    report = SalesReport(
        filtered=tuple(filtered),
        total_count=total_count(filtered),
        total_amount=total_amount(filtered),
        by_payment_method=totals_by_payment_method(filtered),
    )
    log.debug(
        "Built sales report: count=%d amount=%s methods=%s",
        report.total_count,
        report.total_amount,
        dict(report.by_payment_method),
    )
    return report


def export_sales_report(report: SalesReport, destination: Path) -> Path:
    """Write ``report`` to an ``.xlsx`` workbook at ``destination``."""

    return data_manager.write_sales_workbook(
        destination,
        sales=report.filtered,
        total_count=report.total_count,
        total_amount=report.total_amount,
        by_payment_method=report.by_payment_method,
    )


# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PaginationView:
    """Page window over a collection of ``total_items`` entries.

    ``page`` is 1-based and may be out of range; :attr:`current_page` clamps
    it into ``1..page_count``.
    """

    total_items: int
    page: int = 1
    page_size: int = data_manager.DEFAULT_PAGE_SIZE

    def __post_init__(self) -> None:
        if self.page_size <= 0:
            raise ValueError(f"Page size must be positive, got {self.page_size}")
        if self.total_items < 0:
            raise ValueError(f"Item count cannot be negative, got {self.total_items}")

    @classmethod
    def for_items(cls, items: Sequence[Any], *, page: int = 1, page_size: int = data_manager.DEFAULT_PAGE_SIZE) -> "PaginationView":
        return cls(total_items=len(items), page=page, page_size=page_size)

    @property
    def page_count(self) -> int:
        return max(1, -(-self.total_items // self.page_size))

    @property
    def current_page(self) -> int:
        return min(max(self.page, 1), self.page_count)

    @property
    def window_start(self) -> int:
        return (self.current_page - 1) * self.page_size

    @property
    def window_end(self) -> int:
        return min(self.window_start + self.page_size, self.total_items)

    @property
    def has_previous(self) -> bool:
        return self.current_page > 1

    @property
    def has_next(self) -> bool:
        return self.current_page < self.page_count

    def with_page(self, page: int) -> "PaginationView":
        return replace(self, page=page)

    def with_page_size(self, page_size: int) -> "PaginationView":
        """Change the page size and go back to the first page."""

        return replace(self, page_size=page_size, page=1)

    def slice(self, items: Sequence[Any]) -> List[Any]:
        return list(items[self.window_start:self.window_end])

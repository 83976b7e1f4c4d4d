"""Enumerations and fixed values shared across the NAXOS POS modules.

Centralises domain constants so that the data access layer (DAL), business
logic layer (BLL), and the command-line front end rely on a single source of
truth for wire labels and defaults.
"""

from __future__ import annotations

from enum import Enum


class PaymentMethod(str, Enum):
    """Enumerate the payment methods accepted by the sales service."""

    CASH = "EFECTIVO"
    CARD = "TARJETA"
    TRANSFER = "TRANSFERENCIA"
    OTHER = "OTRO"


class SelectionPhase(str, Enum):
    """Enumerate the stages of the product selection flow."""

    NO_PRODUCT = "NO_PRODUCT"
    PRODUCT_CHOSEN = "PRODUCT_CHOSEN"
    FLAVOR_CHOSEN = "FLAVOR_CHOSEN"
    VARIANT_CHOSEN = "VARIANT_CHOSEN"
    READY = "READY"


# Placeholder the service expects on transfers until the bank reference arrives.
PENDING_TRANSFER_REFERENCE = "Referencia pendiente"

DEFAULT_QUANTITY_INPUT = "1"

# Keys under which the sales listing endpoint may wrap its array.
SALES_ENVELOPE_KEYS: tuple[str, ...] = ("sales", "data", "results")

FALLBACK_CATEGORY = "Otros"
PRIORITY_CATEGORIES: tuple[str, ...] = ("Granizados", "granizados", "Granizado", "granizado")


__all__ = [
    "PaymentMethod",
    "SelectionPhase",
    "PENDING_TRANSFER_REFERENCE",
    "DEFAULT_QUANTITY_INPUT",
    "SALES_ENVELOPE_KEYS",
    "FALLBACK_CATEGORY",
    "PRIORITY_CATEGORIES",
]

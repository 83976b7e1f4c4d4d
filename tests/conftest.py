"""Shared pytest fixtures and utilities for NAXOS POS tests."""

from __future__ import annotations

import argparse
import sys
import uuid
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable, Iterator
from unittest.mock import Mock

import pytest

# Ensure source packages are importable without installation.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"

for candidate in (SRC_DIR, PROJECT_ROOT):
    candidate_str = str(candidate)
    if candidate_str not in sys.path:
        sys.path.insert(0, candidate_str)

from naxos_pos import api_client, cli, core_logic, data_manager  # noqa: E402
from setup_config import create_config_file  # noqa: E402

DEFAULT_BASE_URL = "http://pos.test"
DEFAULT_LOCATION_ID = 1


@dataclass(frozen=True)
class ConfigBundle:
    """Container bundling together config metadata for tests."""

    directory: Path
    config_path: Path
    base_url: str
    location_id: int


@pytest.fixture(scope="session", autouse=True)
def _restore_sys_path() -> Iterator[None]:
    """Ensure sys.path modifications are undone after the test session."""

    original = sys.path.copy()
    try:
        yield
    finally:
        sys.path[:] = original


@pytest.fixture
def config_factory(tmp_path: Path) -> Callable[..., ConfigBundle]:
    """Provide a callable that writes config files on demand."""

    def _create_config(
        *,
        base_url: str = DEFAULT_BASE_URL,
        location_id: int = DEFAULT_LOCATION_ID,
        token: str | None = None,
    ) -> ConfigBundle:
        bundle_dir = tmp_path / f"bundle_{uuid.uuid4().hex}"
        config_path = create_config_file(
            bundle_dir / "config.ini",
            base_url=base_url,
            token=token,
            location_id=location_id,
        )
        return ConfigBundle(
            directory=bundle_dir,
            config_path=config_path,
            base_url=base_url,
            location_id=location_id,
        )

    return _create_config


@pytest.fixture
def config_file(config_factory: Callable[..., ConfigBundle]) -> Path:
    """Convenience fixture returning only the config path."""

    return config_factory().config_path


# ---------------------------------------------------------------------------
# CLI layer fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_parser() -> argparse.ArgumentParser:
    """Return a fresh CLI parser instance for tests."""

    return argparse.ArgumentParser(prog="naxos-pos", description="NAXOS CLI")


@pytest.fixture
def subparsers_action(
    cli_parser: argparse.ArgumentParser,
) -> argparse._SubParsersAction[argparse.ArgumentParser]:
    """Return the subparser action used to register commands."""

    return cli_parser.add_subparsers(dest="command")


@pytest.fixture
def command_spec_iterable() -> list[cli.CommandSpec]:
    """Provide a list of command specs for indexing tests."""

    def _make_spec(name: str) -> cli.CommandSpec:
        return cli.CommandSpec(
            name,
            f"{name} help",
            lambda subparsers: subparsers.add_parser(name),
            lambda *_: 0,
        )

    return [_make_spec("alpha"), _make_spec("beta"), _make_spec("gamma")]


# ---------------------------------------------------------------------------
# Core logic fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> data_manager.ConfigSettings:
    """Provide default configuration settings for runtime context tests."""

    return data_manager.ConfigSettings(
        api_base_url=DEFAULT_BASE_URL,
        api_token=None,
        timeout_seconds=5.0,
        location_id=DEFAULT_LOCATION_ID,
        page_size=10,
    )


@pytest.fixture
def client() -> Mock:
    """Return a mock sales service client."""

    return Mock(spec=api_client.SalesApiClient, name="client")


@pytest.fixture
def context(settings: data_manager.ConfigSettings, client: Mock) -> core_logic.RuntimeContext:
    """Assemble a runtime context from injected settings and client mocks."""

    return core_logic.RuntimeContext(settings=settings, client=client)


@pytest.fixture
def menu_payload() -> dict[str, Any]:
    """Menu body as published by the public menu endpoint."""

    return {
        "menu": {
            "productos": [
                {"product_id": 1, "categoria": "Granizados", "name": "Granizado", "description": "Hielo"},
                {"product_id": 2, "categoria": "Sodas", "name": "Soda", "description": None},
                {"product_id": 3, "categoria": None, "name": "Agua", "description": ""},
            ],
            "variantes": [
                {"variant_id": 10, "product_id": 1, "variant_name": "12 oz", "ounces": 12, "precio_actual": "3500"},
                {"variant_id": 11, "product_id": 1, "variant_name": "16 oz", "ounces": 16, "precio_actual": 4500},
                {"variant_id": 20, "product_id": 2, "variant_name": "Lata", "ounces": 12, "precio_actual": "2.335"},
                {"variant_id": 30, "product_id": 3, "variant_name": "Botella", "ounces": 20, "precio_actual": None},
            ],
            "sabores": [
                {"product_id": 1, "sabores_activos": ["Fresa", "Mango"]},
            ],
        }
    }


@pytest.fixture
def catalog(menu_payload: dict[str, Any]) -> data_manager.MenuCatalog:
    return data_manager.deserialize_menu(menu_payload)


@pytest.fixture
def granizado(catalog: data_manager.MenuCatalog) -> data_manager.Product:
    return catalog.find_product(1)


@pytest.fixture
def soda(catalog: data_manager.MenuCatalog) -> data_manager.Product:
    return catalog.find_product(2)


@pytest.fixture
def make_sale() -> Callable[..., data_manager.Sale]:
    """Factory for sale records with sensible defaults."""

    def _make(
        sale_id: int = 1,
        *,
        opened_at: str = "2024-01-10T12:00:00Z",
        total: Any = Decimal("0"),
        payments: tuple[tuple[str, Any], ...] = (),
    ) -> data_manager.Sale:
        return data_manager.Sale(
            sale_id=sale_id,
            opened_at=opened_at,
            total=total,
            status="PAID",
            payments=tuple(data_manager.SalePayment(method=method, amount=amount) for method, amount in payments),
        )

    return _make

"""Command-line entry points for the NAXOS POS toolkit.

All orchestration in this module is limited to argparse wiring, translating
command-line arguments into the values consumed by the business layer, and
printing results. Keeping the CLI thin lets tests and other front-ends reuse
the same parser configuration.
"""

from __future__ import annotations

import argparse
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Mapping, MutableMapping, Optional, Sequence

from . import core_logic, data_manager, log
from .api_client import RemoteError
from .constants import PaymentMethod


@dataclass(frozen=True)
class CommandSpec:
    """Describe how a CLI sub-command is configured and executed."""

    name: str
    help_text: str
    register: Callable[[argparse._SubParsersAction[argparse.ArgumentParser]], argparse.ArgumentParser]
    execute: Callable[[core_logic.RuntimeContext, argparse.Namespace], int]


@dataclass(frozen=True)
class ItemSpec:
    """One ``--item`` argument: product, variant, typed quantity, flavor."""

    product_id: int
    variant_id: int
    quantity_text: str
    flavor: Optional[str] = None


def parse_item_spec(text: str) -> ItemSpec:
    """Parse ``PRODUCT:VARIANT:QTY[:FLAVOR]`` for argparse.

    The quantity is kept as text so the business layer applies its own
    validation. Flavor names may themselves contain colons.
    """

    parts = text.split(":", 3)
    if len(parts) < 3:
        raise argparse.ArgumentTypeError(f"Expected PRODUCT:VARIANT:QTY[:FLAVOR], got '{text}'")
    try:
        product_id = int(parts[0])
        variant_id = int(parts[1])
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Product and variant ids must be integers in '{text}'") from exc
    flavor = parts[3].strip() if len(parts) == 4 and parts[3].strip() else None
    return ItemSpec(product_id=product_id, variant_id=variant_id, quantity_text=parts[2], flavor=flavor)


def build_parser() -> argparse.ArgumentParser:
    """Construct the top-level CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="naxos-pos",
        description="Command-line tools for the NAXOS point of sale.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Optional path to config.ini (defaults to ./config.ini).",
    )
    return parser


def configure_subcommands(
    parser: argparse.ArgumentParser,
) -> Mapping[str, CommandSpec]:
    """Wire all CLI sub-commands onto the supplied parser."""
    subparsers = parser.add_subparsers(dest="command", required=True, title="commands")
    write_specs = register_write_commands(subparsers)
    read_specs = register_read_commands(subparsers)
    return build_command_table([*write_specs.values(), *read_specs.values()])


def register_write_commands(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> Dict[str, CommandSpec]:
    """Declare commands that change data on the sales service."""
    specs = {
        "sale": register_sale_command(subparsers),
        "delete-sale": register_delete_sale_command(subparsers),
        "update-observation": register_update_observation_command(subparsers),
    }
    for spec in specs.values():
        spec.register(subparsers)
    return specs


def register_read_commands(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> Dict[str, CommandSpec]:
    """Declare read-only commands such as listings and reports."""
    specs = {
        "menu": register_menu_command(subparsers),
        "sales": register_sales_command(subparsers),
        "report": register_report_command(subparsers),
        "show-sale": register_show_sale_command(subparsers),
        "export": register_export_command(subparsers),
    }
    for spec in specs.values():
        spec.register(subparsers)
    return specs


def _add_date_range_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--start-date", default=None, help="First day to include (YYYY-MM-DD).")
    parser.add_argument("--end-date", default=None, help="Last day to include (YYYY-MM-DD).")


def register_sale_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``sale``."""
    name = "sale"
    help_text = "Build a cart from menu items and record it as a sale."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.add_argument(
            "--item",
            dest="items",
            action="append",
            type=parse_item_spec,
            required=True,
            metavar="PRODUCT:VARIANT:QTY[:FLAVOR]",
        )
        parser.add_argument(
            "--payment-method",
            choices=[member.value for member in PaymentMethod],
            default=PaymentMethod.CASH.value,
        )
        parser.add_argument("--observation", default=None)
        parser.add_argument("--reference", default=None, help="Payment reference, e.g. a transfer number.")
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_sale)


def register_delete_sale_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``delete-sale``."""
    name = "delete-sale"
    help_text = "Delete a recorded sale with its items and payments."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.add_argument("--sale-id", type=int, required=True)
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_delete_sale)


def register_update_observation_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``update-observation``."""
    name = "update-observation"
    help_text = "Replace the observation of a recorded sale."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.add_argument("--sale-id", type=int, required=True)
        parser.add_argument("--observation", default="")
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_update_observation)


def register_menu_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``menu``."""
    name = "menu"
    help_text = "Display products, sizes and flavors by category."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_menu)


def register_sales_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``sales``."""
    name = "sales"
    help_text = "List recorded sales, one page at a time."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        _add_date_range_arguments(parser)
        parser.add_argument("--page", type=int, default=1)
        parser.add_argument("--page-size", type=int, default=None)
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_sales_listing)


def register_report_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``report``."""
    name = "report"
    help_text = "Display sale count, amount, and payment-method breakdown."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        _add_date_range_arguments(parser)
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_report)


def register_show_sale_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``show-sale``."""
    name = "show-sale"
    help_text = "Display one sale with its items and payments."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.add_argument("--sale-id", type=int, required=True)
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_show_sale)


def register_export_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``export``."""
    name = "export"
    help_text = "Export the sales report to an Excel workbook."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        _add_date_range_arguments(parser)
        parser.add_argument("--output", type=Path, required=True)
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_export)


def load_runtime_context(config_path: Optional[Path] = None) -> core_logic.RuntimeContext:
    """Resolve the runtime context for CLI operations."""
    target = Path(config_path) if config_path is not None else Path.cwd() / "config.ini"
    return core_logic.load_runtime_context(target)


def dispatch_command(
    context: core_logic.RuntimeContext,
    args: argparse.Namespace,
    command_table: Mapping[str, CommandSpec],
) -> int:
    """Dispatch the parsed arguments to the configured executor."""
    if not hasattr(args, "command") or args.command is None:
        raise KeyError("No command specified")
    spec = command_table.get(args.command)
    if spec is None:
        raise KeyError(f"Unknown command: {args.command}")
    return spec.execute(context, args)


def build_command_table(
    specs: Iterable[CommandSpec],
) -> MutableMapping[str, CommandSpec]:
    """Build an index of command specifications keyed by command name."""
    table: Dict[str, CommandSpec] = {}
    for spec in specs:
        if spec.name in table:
            raise ValueError(f"Duplicate command name: {spec.name}")
        table[spec.name] = spec
    return table


def format_money(amount: Decimal) -> str:
    return f"${amount:,.2f}"


def translate_date_range(args: argparse.Namespace) -> core_logic.DateRangeFilter:
    """Translate CLI args into a date range filter."""
    return core_logic.DateRangeFilter.from_strings(
        getattr(args, "start_date", None),
        getattr(args, "end_date", None),
    )


def apply_item_spec(
    session: core_logic.OrderSession,
    catalog: data_manager.MenuCatalog,
    spec: ItemSpec,
) -> core_logic.OrderSession:
    """Drive the selection flow for one ``--item`` and commit it to the cart."""
    product = catalog.find_product(spec.product_id)
    if product is None:
        raise core_logic.ValidationError(f"Unknown product id: {spec.product_id}")
    variant = catalog.find_variant(spec.variant_id)
    if variant is None:
        raise core_logic.ValidationError(f"Unknown variant id: {spec.variant_id}")

    selection = core_logic.select_product(session.selection, product, catalog.flavors_for(product.product_id))
    if spec.flavor is not None:
        selection = core_logic.select_flavor(selection, spec.flavor)
    selection = core_logic.select_variant(selection, variant)
    selection = core_logic.set_quantity(selection, spec.quantity_text)
    return session.with_selection(selection).add_to_cart()


def translate_sale(context: core_logic.RuntimeContext, args: argparse.Namespace) -> core_logic.OrderSession:
    """Translate CLI args into a ready-to-settle order session."""
    catalog = core_logic.load_menu(context)
    session = core_logic.OrderSession(payment_method=PaymentMethod(args.payment_method))
    for spec in args.items:
        session = apply_item_spec(session, catalog, spec)
    return session.with_observation(args.observation)


def render_cart(ledger: core_logic.CartLedger) -> List[str]:
    lines = []
    for index, item in enumerate(ledger):
        flavor = f" [{item.flavor}]" if item.flavor else ""
        lines.append(
            f"{index}. {item.quantity} x {item.product_name} {item.variant_name}{flavor}"
            f" @ {format_money(item.unit_price)} = {format_money(item.line_total)}"
        )
    lines.append(f"Total: {format_money(ledger.total())}")
    return lines


def render_sale_row(sale: data_manager.Sale) -> str:
    methods = ", ".join(payment.method for payment in sale.payments) or "-"
    return (
        f"#{sale.sale_id}  {sale.opened_at}  {format_money(data_manager.coerce_amount(sale.total))}"
        f"  {sale.status or '-'}  {methods}  {sale.observation or ''}"
    ).rstrip()


def render_sale_detail(sale: data_manager.Sale) -> List[str]:
    lines = [
        f"Sale #{sale.sale_id}",
        f"Opened: {sale.opened_at}",
        f"Status: {sale.status or '-'}",
        f"Observation: {sale.observation or '-'}",
        "Items:",
    ]
    for item in sale.items:
        flavor = f" [{item.flavor_name}]" if item.flavor_name else ""
        lines.append(
            f"  {item.quantity} x {item.product_name} {item.variant_name}{flavor}"
            f" @ {format_money(item.unit_price)} = {format_money(item.line_total)}"
        )
    lines.append("Payments:")
    for payment in sale.payments:
        reference = f" ({payment.reference})" if payment.reference else ""
        lines.append(f"  {payment.method}{reference}: {format_money(payment.amount)}")
    lines.append(f"Total: {format_money(data_manager.coerce_amount(sale.total))}")
    return lines


def render_report(report: core_logic.SalesReport) -> List[str]:
    lines = [
        f"Sales: {report.total_count}",
        f"Amount: {format_money(report.total_amount)}",
        "By payment method:",
    ]
    if not report.by_payment_method:
        lines.append("  (none)")
    for method, amount in report.by_payment_method.items():
        lines.append(f"  {method}: {format_money(amount)}")
    return lines


def _emit(lines: Iterable[str]) -> None:
    for line in lines:
        print(line)


def run_sale(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Execute the order composition and settlement workflow via the BLL."""
    session = translate_sale(context, args)
    _emit(render_cart(session.ledger))
    result = core_logic.submit_settlement(context, session, reference=args.reference)
    print(f"Sale recorded ({result.request.payments[0].method.value}).")
    return 0


def run_delete_sale(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Execute the sale deletion workflow."""
    receipt = core_logic.delete_sale(context, args.sale_id)
    print(receipt.describe())
    return 0


def run_update_observation(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Execute the observation update workflow."""
    core_logic.update_sale_observation(context, args.sale_id, args.observation)
    print(f"Observation updated for sale {args.sale_id}.")
    return 0


def run_menu(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Execute the menu listing workflow."""
    catalog = core_logic.load_menu(context)
    for category, products in catalog.products_by_category().items():
        print(category)
        for product in products:
            print(f"  [{product.product_id}] {product.name}")
            for variant in catalog.variants_for(product.product_id):
                price = variant.current_price if variant.current_price is not None else Decimal("0")
                print(f"      ({variant.variant_id}) {variant.variant_name} {format_money(price)}")
            flavors = catalog.flavors_for(product.product_id)
            if flavors:
                print(f"      flavors: {', '.join(flavors)}")
    return 0


def run_sales_listing(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Execute the paginated sales listing workflow."""
    date_range = translate_date_range(args)
    filtered = core_logic.filter_sales(core_logic.fetch_sales(context), date_range)
    if not filtered:
        print("No sales found.")
        return 0
    page_size = args.page_size if args.page_size is not None else context.settings.page_size
    view = core_logic.PaginationView.for_items(filtered, page=args.page, page_size=page_size)
    _emit(render_sale_row(sale) for sale in view.slice(filtered))
    print(
        f"Page {view.current_page} of {view.page_count} "
        f"(showing {view.window_start + 1}-{view.window_end} of {view.total_items})"
    )
    return 0


def run_report(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Execute the sales summary reporting workflow."""
    report = core_logic.build_sales_report(core_logic.fetch_sales(context), translate_date_range(args))
    _emit(render_report(report))
    return 0


def run_show_sale(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Execute the single sale detail workflow."""
    _emit(render_sale_detail(core_logic.get_sale(context, args.sale_id)))
    return 0


def run_export(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Execute the report export workflow."""
    report = core_logic.build_sales_report(core_logic.fetch_sales(context), translate_date_range(args))
    destination = core_logic.export_sales_report(report, args.output)
    print(f"Exported {report.total_count} sale(s) to {destination}")
    return 0


def handle_cli_error(error: Exception) -> int:
    """Convert raised exceptions into user-friendly exit codes."""
    if isinstance(error, core_logic.OrderError):
        log.error("%s", error)
        return 2
    if isinstance(error, FileNotFoundError):
        log.error("%s", error)
        return 3
    if isinstance(error, RemoteError):
        log.error("%s", error)
        return 4
    log.error("%s", error)
    return 1


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point that orchestrates parsing and execution."""
    parser = build_parser()
    command_table = configure_subcommands(parser)
    args = parser.parse_args(argv)
    try:
        context = load_runtime_context(getattr(args, "config", None))
        return dispatch_command(context, args, command_table)
    except Exception as error:
        return handle_cli_error(error)

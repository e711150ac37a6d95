from __future__ import annotations

import asyncio
import json
import logging
import subprocess
import sys
import uuid
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any, TypeVar

import typer
from rich import print
from rich.markup import escape

from tally.auth import TokenSigner
from tally.catalog import HttpProductCatalog, ProductCatalog, StaticProductCatalog
from tally.config import Settings
from tally.core.db import OrderRepository, SqliteOrderStore
from tally.core.errors import TallyError, ValidationError
from tally.core.logging import configure_logging, get_logger
from tally.core.models import PaymentGenerationContent
from tally.core.schemas import OrderContentPayload, ProductPayload
from tally.core.money import DEFAULT_CURRENCY, Currency
from tally.payments import RedirectUrls, get_assembler
from tally.pricing import price_order
from tally.services import (
    PaymentService,
    SummaryBuilder,
    collect_priced_rows,
    export_priced_lines,
    run_doctor_checks,
)

app = typer.Typer(no_args_is_help=True, help="Tally CLI: order pricing and payment request assembly")

T = TypeVar("T")

CatalogFileOption = typer.Option(
    None,
    "--catalog-file",
    help="JSON file with a list of products to use instead of the catalog service",
)


def _load_settings(base_dir: Path | None = None) -> Settings:
    settings = Settings.load(base_dir=base_dir)
    settings.ensure_directories()
    return settings


def _load_json(path: Path) -> Any:
    try:
        with path.open("r", encoding="utf-8-sig") as fh:
            return json.load(fh)
    except (OSError, json.JSONDecodeError) as exc:
        raise typer.BadParameter(f"Cannot read {path}: {exc}") from exc


def _build_catalog(settings: Settings, catalog_file: Path | None) -> ProductCatalog:
    if catalog_file is None:
        return HttpProductCatalog(settings.catalog_base_url, timeout_sec=settings.catalog_timeout_sec)
    payload = _load_json(catalog_file)
    if not isinstance(payload, list):
        raise typer.BadParameter("Catalog file must hold a JSON list of products")
    try:
        return StaticProductCatalog([ProductPayload.parse(entry) for entry in payload])
    except ValidationError as exc:
        raise typer.BadParameter(f"Bad product in {catalog_file}: {exc}") from exc


def _run_with_catalog(
    settings: Settings,
    catalog_file: Path | None,
    work: Callable[[ProductCatalog], Awaitable[T]],
) -> T:
    catalog = _build_catalog(settings, catalog_file)

    async def _main() -> T:
        try:
            return await work(catalog)
        finally:
            if isinstance(catalog, HttpProductCatalog):
                await catalog.close()

    try:
        return asyncio.run(_main())
    except TallyError as exc:
        print(f"[red]{exc.__class__.__name__}[/red] ({exc.category}): {exc}")
        raise typer.Exit(1) from exc


def _start_logging(settings: Settings, name: str) -> tuple[logging.LoggerAdapter, str]:
    correlation_id = uuid.uuid4().hex
    configure_logging(settings.logs_dir, correlation_id=correlation_id, console=False)
    return get_logger(name, correlation_id), correlation_id


@app.command("init")
def init_command(
    base_dir: Path | None = typer.Option(None, help="Project root (defaults to the current directory)"),
) -> None:
    settings = _load_settings(base_dir=base_dir)
    with OrderRepository(settings.db_path) as repository:
        executed = repository.migrate()
    print(f"[green]Initialized[/green]. DB: {settings.db_path}")
    print(f"Migrations: {executed if executed else 'none pending'}")


@app.command("submit")
def submit_command(
    order_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Checkout JSON: order, items, addresses"),
) -> None:
    settings = _load_settings()
    try:
        content = OrderContentPayload.parse(_load_json(order_file))
    except ValidationError as exc:
        print(f"[red]Invalid order[/red]: {exc}")
        raise typer.Exit(1) from exc

    with OrderRepository(settings.db_path) as repository:
        repository.migrate()
        order_id = repository.create_order(content)
    print(f"[green]Order stored[/green]: id={order_id}, items={len(content.items)}")


@app.command("price")
def price_command(
    order_id: int = typer.Argument(..., help="Order id"),
    currency: str = typer.Option(DEFAULT_CURRENCY.code, help="ISO currency code to price in"),
    catalog_file: Path | None = CatalogFileOption,
) -> None:
    settings = _load_settings()
    logger, _ = _start_logging(settings, "tally.price")
    money = Currency.from_code(currency) or DEFAULT_CURRENCY

    with OrderRepository(settings.db_path) as repository:
        repository.migrate()
        store = SqliteOrderStore(repository)

        async def work(catalog: ProductCatalog):  # noqa: ANN202
            await store.order(order_id)
            items = await store.items(order_id)
            return await price_order(items, currency, catalog, settings.tax_policy())

        price_map, totals = _run_with_catalog(settings, catalog_file, work)

    logger.info("Priced order %s in %s: subtotal=%s tax=%s", order_id, money.code, totals.subtotal_cents, totals.tax_cents)
    print(f"Order {order_id} in {money.code}:")
    for line in totals.lines:
        product = price_map[line.item_id].product
        print(
            f"- {product.sku or product.id} x{line.quantity}: "
            f"{money.amount(line.line_total_cents)} (tax {money.amount(line.line_tax_cents)})"
        )
    print(f"Subtotal: {money.amount(totals.subtotal_cents)}")
    print(f"Tax: {money.amount(totals.tax_cents)}")
    print(f"[green]Total[/green]: {money.amount(totals.total_with_tax_cents)}")


@app.command("summary")
def summary_command(
    order_id: int = typer.Argument(..., help="Order id"),
    currency: str | None = typer.Option(None, help="Currency for totals when the order has no cached total"),
    token: str | None = typer.Option(None, help="Inbound bearer token to reuse"),
    catalog_file: Path | None = CatalogFileOption,
) -> None:
    settings = _load_settings()
    logger, _ = _start_logging(settings, "tally.summary")

    with OrderRepository(settings.db_path) as repository:
        repository.migrate()

        async def work(catalog: ProductCatalog):  # noqa: ANN202
            builder = SummaryBuilder(
                store=SqliteOrderStore(repository),
                catalog=catalog,
                token_signer=TokenSigner(settings.token_secret, settings.token_ttl_sec),
                tax_policy=settings.tax_policy(),
                placeholder_email_domain=settings.placeholder_email_domain,
                logger=logger,
            )
            return await builder.build_summary(order_id, currency=currency, bearer_token=token)

        summary = _run_with_catalog(settings, catalog_file, work)

    typer.echo(json.dumps(summary.to_dict(), ensure_ascii=False, indent=2))


@app.command("payment")
def payment_command(
    order_id: int = typer.Argument(..., help="Order id"),
    currency: str = typer.Option(DEFAULT_CURRENCY.code, help="ISO currency code"),
    shipping: int | None = typer.Option(None, help="Shipping, minor units"),
    handling: int | None = typer.Option(None, help="Handling fee, minor units"),
    shipping_discount: int | None = typer.Option(None, help="Shipping discount, minor units"),
    insurance: int | None = typer.Option(None, help="Insurance, minor units"),
    gift_wrap: int | None = typer.Option(None, help="Gift wrap, minor units"),
    processor: str | None = typer.Option(None, help="Payment processor (defaults to TALLY_PAYMENT_PROCESSOR)"),
    catalog_file: Path | None = CatalogFileOption,
) -> None:
    settings = _load_settings()
    logger, correlation_id = _start_logging(settings, "tally.payment")
    try:
        assembler = get_assembler(processor or settings.payment_processor)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    content = PaymentGenerationContent(
        currency=currency,
        shipping=shipping,
        handling=handling,
        shipping_discount=shipping_discount,
        insurance=insurance,
        gift_wrap=gift_wrap,
    )

    with OrderRepository(settings.db_path) as repository:
        repository.migrate()

        async def work(catalog: ProductCatalog):  # noqa: ANN202
            service = PaymentService(
                store=SqliteOrderStore(repository),
                catalog=catalog,
                assembler=assembler,
                tax_policy=settings.tax_policy(),
                payee_email=settings.payee_email,
                redirects=RedirectUrls(return_url=settings.return_url, cancel_url=settings.cancel_url),
                logger=logger,
            )
            return await service.generate(order_id, content)

        request = _run_with_catalog(settings, catalog_file, work)

    typer.echo(json.dumps(request.to_dict(), ensure_ascii=False, indent=2))
    print(f"[green]Payment request assembled[/green]. correlation_id={correlation_id}")


@app.command("export")
def export_command(
    currency: str = typer.Option(DEFAULT_CURRENCY.code, help="ISO currency code to price in"),
    format: str = typer.Option("xlsx,csv", help="Comma separated formats: xlsx,csv"),
    out: Path | None = typer.Option(None, help="Export directory"),
    catalog_file: Path | None = CatalogFileOption,
) -> None:
    formats = [item.strip().lower() for item in format.split(",") if item.strip()]
    supported = {"xlsx", "csv"}
    unknown = [item for item in formats if item not in supported]
    if unknown:
        raise typer.BadParameter(f"Unsupported formats: {unknown}")

    settings = _load_settings()
    logger, _ = _start_logging(settings, "tally.export")
    out_dir = (out or settings.exports_dir).resolve()

    with OrderRepository(settings.db_path) as repository:
        repository.migrate()

        async def work(catalog: ProductCatalog):  # noqa: ANN202
            return await collect_priced_rows(repository, catalog, currency, settings.tax_policy(), logger)

        rows, stats = _run_with_catalog(settings, catalog_file, work)

    files = export_priced_lines(rows, formats=formats, out_dir=out_dir)
    print("[green]Export finished[/green]")
    for key, value in stats.items():
        print(f"- {key}: {value}")
    for file_path in files:
        print(f"- {file_path}")


@app.command("doctor")
def doctor_command() -> None:
    settings = _load_settings()
    checks = run_doctor_checks(settings)

    print("Doctor results:")
    for check in checks:
        status = check["status"].upper()
        print(f"- {escape(f'[{status}]')} {check['check']}: {escape(check['detail'])}")


@app.command("tests")
def tests_command() -> None:
    result = subprocess.run([sys.executable, "-m", "pytest", "-q"], check=False)
    if result.returncode != 0:
        raise typer.Exit(result.returncode)
    print("[green]Tests passed[/green]")


if __name__ == "__main__":
    app()

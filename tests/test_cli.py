from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
from typer.testing import CliRunner

from tally.cli import app

runner = CliRunner()

CATALOG = [
    {
        "id": 1,
        "sku": "MUG-01",
        "name": "Mug",
        "prices": [{"currency": "USD", "cents": 500}, {"currency": "EUR", "cents": 450}],
    },
    {"id": 2, "sku": "LAMP-02", "name": "Desk lamp", "prices": [{"currency": "USD", "cents": 1000}]},
]

ORDER = {
    "firstname": "Ann",
    "lastname": "Lee",
    "email": "ann@example.com",
    "phone": "+1-555-0100",
    "items": [{"productID": 1, "quantity": 2, "taxCode": "standard"}, {"productID": 2, "quantity": 1}],
    "shippingAddress": {"street": "1 Main St", "city": "Springfield", "zip": "62701", "country": "US"},
}


@pytest.fixture()
def project(tmp_path: Path, monkeypatch) -> Path:  # noqa: ANN001
    monkeypatch.setenv("TALLY_HOME", str(tmp_path))
    monkeypatch.setenv("TALLY_TAX_RATES", "standard=1000")
    monkeypatch.setenv("TALLY_TOKEN_SECRET", "cli-secret")
    monkeypatch.chdir(tmp_path)
    (tmp_path / "catalog.json").write_text(json.dumps(CATALOG), encoding="utf-8")
    (tmp_path / "order.json").write_text(json.dumps(ORDER), encoding="utf-8")
    yield tmp_path
    root = logging.getLogger()
    for handler in list(root.handlers):
        handler.close()
        root.removeHandler(handler)


def _submit(project: Path) -> None:
    assert runner.invoke(app, ["init"]).exit_code == 0
    result = runner.invoke(app, ["submit", str(project / "order.json")])
    assert result.exit_code == 0, result.output
    assert "id=1" in result.output


def test_init_creates_database(project: Path) -> None:
    result = runner.invoke(app, ["init"])

    assert result.exit_code == 0, result.output
    assert (project / "data" / "tally.sqlite3").exists()
    assert "001_orders.sql" in result.output


def test_submit_rejects_invalid_order(project: Path) -> None:
    bad = project / "bad.json"
    bad.write_text(json.dumps({"email": "ann@example.com", "items": []}), encoding="utf-8")

    result = runner.invoke(app, ["submit", str(bad)])

    assert result.exit_code == 1
    assert "Invalid order" in result.output


def test_price_command(project: Path) -> None:
    _submit(project)

    result = runner.invoke(app, ["price", "1", "--catalog-file", str(project / "catalog.json")])

    assert result.exit_code == 0, result.output
    assert "Subtotal: 20.00" in result.output
    assert "Tax: 1.00" in result.output
    assert "Total: 21.00" in result.output


def test_payment_command_prints_request(project: Path) -> None:
    _submit(project)

    result = runner.invoke(
        app,
        [
            "payment",
            "1",
            "--shipping",
            "300",
            "--shipping-discount",
            "100",
            "--handling",
            "50",
            "--catalog-file",
            str(project / "catalog.json"),
        ],
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output.split("Payment request assembled")[0])
    assert payload["transactions"][0]["amount"]["total"] == "23.50"
    assert payload["transactions"][0]["item_list"]["shipping_address"]["recipient_name"] == "Ann Lee"


def test_payment_command_reports_missing_price(project: Path) -> None:
    _submit(project)

    result = runner.invoke(app, ["payment", "1", "--currency", "EUR", "--catalog-file", str(project / "catalog.json")])

    assert result.exit_code == 1
    assert "PriceResolutionFailed" in result.output


def test_payment_command_rejects_unknown_processor(project: Path) -> None:
    _submit(project)

    result = runner.invoke(app, ["payment", "1", "--processor", "stripe", "--catalog-file", str(project / "catalog.json")])

    assert result.exit_code != 0


def test_summary_command(project: Path) -> None:
    _submit(project)

    result = runner.invoke(
        app, ["summary", "1", "--currency", "USD", "--catalog-file", str(project / "catalog.json")]
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["total"] == 2000
    assert payload["tax"] == 100
    assert payload["email"] == "ann@example.com"
    assert payload["authToken"].count(".") == 2


def test_summary_of_unknown_order(project: Path) -> None:
    runner.invoke(app, ["init"])

    result = runner.invoke(app, ["summary", "9", "--currency", "USD", "--catalog-file", str(project / "catalog.json")])

    assert result.exit_code == 1
    assert "OrderNotFound" in result.output


def test_export_command_writes_csv(project: Path) -> None:
    _submit(project)

    result = runner.invoke(app, ["export", "--format", "csv", "--catalog-file", str(project / "catalog.json")])

    assert result.exit_code == 0, result.output
    assert (project / "exports" / "tally_export.csv").exists()
    assert "lines: 2" in result.output


def test_export_command_rejects_unknown_format(project: Path) -> None:
    result = runner.invoke(app, ["export", "--format", "pdf"])

    assert result.exit_code != 0

from __future__ import annotations

import platform
import sys

import httpx

from tally.config import DEFAULT_TOKEN_SECRET, Settings
from tally.core.db import OrderRepository, applied_migrations
from tally.payments import available_assemblers


def run_doctor_checks(settings: Settings, client: httpx.Client | None = None) -> list[dict[str, str]]:
    checks: list[dict[str, str]] = []

    checks.append(
        {
            "check": "python_version",
            "status": "ok" if sys.version_info >= (3, 11) else "warn",
            "detail": platform.python_version(),
        }
    )

    if settings.db_path.exists():
        with OrderRepository(settings.db_path) as repository:
            migrations = applied_migrations(repository.connection)
        checks.append(
            {
                "check": "db_migrations",
                "status": "ok" if migrations else "warn",
                "detail": ", ".join(migrations) if migrations else "run `tally init`",
            }
        )
    else:
        checks.append({"check": "db_migrations", "status": "warn", "detail": f"no database at {settings.db_path}"})

    checks.append(
        {
            "check": "token_secret",
            "status": "warn" if settings.token_secret == DEFAULT_TOKEN_SECRET else "ok",
            "detail": "TALLY_TOKEN_SECRET is the default" if settings.token_secret == DEFAULT_TOKEN_SECRET else "set",
        }
    )

    known = available_assemblers()
    checks.append(
        {
            "check": "payment_processor",
            "status": "ok" if settings.payment_processor in known else "fail",
            "detail": f"{settings.payment_processor} (known: {', '.join(known)})",
        }
    )

    http = client or httpx.Client(timeout=settings.catalog_timeout_sec)
    try:
        response = http.get(settings.catalog_base_url)
        # the collection root may 404 or 405; any HTTP answer means the service is up
        checks.append(
            {
                "check": "catalog",
                "status": "ok" if response.status_code < 500 else "warn",
                "detail": f"{settings.catalog_base_url} -> HTTP {response.status_code}",
            }
        )
    except httpx.HTTPError as exc:
        checks.append({"check": "catalog", "status": "warn", "detail": f"{exc.__class__.__name__}: {exc}"})
    finally:
        if client is None:
            http.close()

    return checks

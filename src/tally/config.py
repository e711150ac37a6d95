from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from tally.pricing import NoTaxPolicy, RateTaxPolicy, TaxPolicy

DEFAULT_TOKEN_SECRET = "change-me"
DEFAULT_PLACEHOLDER_EMAIL_DOMAIN = "guest.tally.invalid"


def parse_tax_rates(raw: str | None) -> dict[str, int]:
    """Parse `standard=825,reduced=500` into basis points per tax code."""
    rates: dict[str, int] = {}
    if not raw:
        return rates
    for chunk in raw.split(","):
        chunk = chunk.strip()
        if not chunk:
            continue
        code, sep, value = chunk.partition("=")
        if not sep or not code.strip():
            raise ValueError(f"Bad tax rate entry {chunk!r}, expected code=basis_points")
        rates[code.strip().lower()] = int(value.strip())
    return rates


@dataclass(slots=True)
class Settings:
    root_dir: Path
    data_dir: Path
    db_path: Path
    logs_dir: Path
    exports_dir: Path
    catalog_base_url: str
    token_secret: str
    catalog_timeout_sec: float = 10.0
    token_ttl_sec: int = 3600
    placeholder_email_domain: str = DEFAULT_PLACEHOLDER_EMAIL_DOMAIN
    payee_email: str = "payments@example.com"
    return_url: str = "https://example.com/checkout/success"
    cancel_url: str = "https://example.com/checkout/cancel"
    payment_processor: str = "paypal"
    tax_rates_bps: dict[str, int] = field(default_factory=dict)
    default_tax_bps: int = 0

    @classmethod
    def load(cls, base_dir: Path | None = None) -> Settings:
        load_dotenv(override=False)

        root_env = os.getenv("TALLY_HOME")
        root_dir = Path(root_env).expanduser().resolve() if root_env else (base_dir or Path.cwd()).resolve()

        data_dir = Path(os.getenv("TALLY_DATA_DIR", root_dir / "data")).expanduser().resolve()
        db_path = Path(os.getenv("TALLY_DB_PATH", data_dir / "tally.sqlite3")).expanduser().resolve()
        logs_dir = Path(os.getenv("TALLY_LOG_DIR", root_dir / "logs")).expanduser().resolve()
        exports_dir = Path(os.getenv("TALLY_EXPORT_DIR", root_dir / "exports")).expanduser().resolve()

        return cls(
            root_dir=root_dir,
            data_dir=data_dir,
            db_path=db_path,
            logs_dir=logs_dir,
            exports_dir=exports_dir,
            catalog_base_url=os.getenv("TALLY_CATALOG_URL", "http://localhost:8081/products"),
            catalog_timeout_sec=float(os.getenv("TALLY_CATALOG_TIMEOUT_SEC", "10")),
            token_secret=os.getenv("TALLY_TOKEN_SECRET", DEFAULT_TOKEN_SECRET),
            token_ttl_sec=int(os.getenv("TALLY_TOKEN_TTL_SEC", "3600")),
            placeholder_email_domain=os.getenv(
                "TALLY_PLACEHOLDER_EMAIL_DOMAIN", DEFAULT_PLACEHOLDER_EMAIL_DOMAIN
            ).strip().lstrip("@").lower(),
            payee_email=os.getenv("TALLY_PAYEE_EMAIL", "payments@example.com"),
            return_url=os.getenv("TALLY_RETURN_URL", "https://example.com/checkout/success"),
            cancel_url=os.getenv("TALLY_CANCEL_URL", "https://example.com/checkout/cancel"),
            payment_processor=os.getenv("TALLY_PAYMENT_PROCESSOR", "paypal").strip().lower(),
            tax_rates_bps=parse_tax_rates(os.getenv("TALLY_TAX_RATES")),
            default_tax_bps=int(os.getenv("TALLY_DEFAULT_TAX_BPS", "0")),
        )

    def ensure_directories(self) -> None:
        for path in [self.root_dir, self.data_dir, self.logs_dir, self.exports_dir]:
            path.mkdir(parents=True, exist_ok=True)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def tax_policy(self) -> TaxPolicy:
        if not self.tax_rates_bps and not self.default_tax_bps:
            return NoTaxPolicy()
        return RateTaxPolicy(self.tax_rates_bps, default_rate_bps=self.default_tax_bps)

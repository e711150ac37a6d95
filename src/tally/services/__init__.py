from .doctor import run_doctor_checks
from .exporter import collect_priced_rows, export_priced_lines
from .payment import PaymentService
from .summary import OrderSummary, SummaryBuilder, is_placeholder_email

__all__ = [
    "OrderSummary",
    "PaymentService",
    "SummaryBuilder",
    "collect_priced_rows",
    "export_priced_lines",
    "is_placeholder_email",
    "run_doctor_checks",
]

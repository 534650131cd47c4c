import csv
import re
from io import StringIO
from typing import Sequence

from models import Transaction


def sanitize_csv_value(value: str) -> str:
    """
    Sanitize CSV values to prevent formula injection by prefixing dangerous patterns with tab.
    """
    if not value or value.strip() == "":
        return ""

    value = value.strip()

    formula_triggers = ("=", "+", "-", "@", "\t", "\r")

    if value.startswith(formula_triggers):
        return "\t" + value

    # Whole words only, so descriptions like "Shopping" pass through.
    dangerous_patterns = [
        r"^cmd\b",
        r"^powershell\b",
        r"^bash\b",
        r"^sh\b",
        r"^http[s]?://",
    ]

    for pattern in dangerous_patterns:
        if re.match(pattern, value, re.IGNORECASE):
            return "\t" + value

    return value


def format_cents(cents: int) -> str:
    return f"{abs(cents) / 100:.2f}"


def export_transactions(transactions: Sequence[Transaction]) -> str:
    output = StringIO()
    writer = csv.writer(output)
    writer.writerow(["Date", "Description", "Type", "Amount"])
    for txn in transactions:
        writer.writerow(
            [
                txn.date.isoformat(),
                sanitize_csv_value(txn.description or ""),
                txn.type.value,
                format_cents(txn.amount_cents),
            ]
        )
    return output.getvalue()


def export_filename(start, end) -> str:
    return f"transactions_{start.isoformat()}_to_{end.isoformat()}.csv"

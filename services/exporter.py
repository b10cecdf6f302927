"""CSV export of transactions."""
import csv
import io
import logging
from datetime import tzinfo
from decimal import Decimal
from typing import Iterable, Optional

import config
from models.transaction import Transaction

logger = logging.getLogger(__name__)

CSV_FIELDS = ['id', 'type', 'amount', 'description', 'date']
EXPORT_FILENAME = 'transactions.csv'


def format_amount(amount: Decimal) -> str:
    """Plain notation without trailing zeros: 100, 10.5, 0.01."""
    if amount == 0:
        return '0'
    text = format(amount, 'f')
    if '.' in text:
        text = text.rstrip('0').rstrip('.')
    return text


def transactions_to_csv(transactions: Iterable[Transaction], tz: Optional[tzinfo] = None) -> str:
    """Render transactions as CSV text, one row per record in the given order.

    Dates are written as YYYY-MM-DD in the reference time zone. Fields holding
    commas, quotes or line breaks are quoted by the csv module.
    """
    tz = tz or config.REFERENCE_TZ
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL)
    writer.writerow(CSV_FIELDS)

    count = 0
    for transaction in transactions:
        writer.writerow([
            transaction.id,
            transaction.type,
            format_amount(transaction.amount),
            transaction.description,
            transaction.date.astimezone(tz).strftime('%Y-%m-%d'),
        ])
        count += 1

    logger.debug(f"Rendered {count} transactions as CSV.")
    return buffer.getvalue()

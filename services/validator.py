"""Record-level validation applied before a transaction is persisted."""
import logging
from datetime import datetime, timezone, tzinfo
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

import config
from models.errors import ValidationError
from models.transaction import TransactionCreate
from utils.dates import truncate_to_millis

logger = logging.getLogger(__name__)

_FIELD_MESSAGES = {
    'type': "Transaction type must be 'income' or 'expense'",
    'amount': "Amount must be a number",
    'description': "Description must be text",
    'date': "Date must be an ISO 8601 date or date-time",
}

_ERROR_MESSAGES = {
    ('amount', 'greater_than_equal'): "Amount cannot be negative",
    ('amount', 'finite_number'): "Amount must be a finite number",
    ('amount', 'value_error'): "Amount has too many digits or is too large",
    ('description', 'string_too_short'): "Description is required",
    ('description', 'string_too_long'): "Description too long",
}


def _to_domain_error(exc: PydanticValidationError) -> ValidationError:
    """Translate the first pydantic error into a ValidationError naming its field."""
    error = exc.errors()[0]
    loc = error.get('loc') or ('body',)
    field = str(loc[0])
    if error.get('type') == 'missing':
        message = f"{field.capitalize()} is required"
    else:
        default = _FIELD_MESSAGES.get(field, error.get("msg", "Invalid value"))
        message = _ERROR_MESSAGES.get((field, error.get("type")), default)
    return ValidationError(field, message)


def validate_transaction(
    payload: Any,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
) -> TransactionCreate:
    """Validate and normalize a candidate transaction.

    Args:
        payload: Decoded request body with ``type``, ``amount``, ``description``
            and an optional ``date``.
        now: Aware reference instant for the future-date check. Defaults to the
            current UTC time.
        tz: Zone used to read naive dates. Defaults to the configured
            reference zone.

    Returns:
        TransactionCreate with a trimmed description and a UTC date truncated to
        milliseconds.

    Raises:
        ValidationError: naming the first offending field.
    """
    now = now or datetime.now(timezone.utc)
    tz = tz or config.REFERENCE_TZ

    if not isinstance(payload, dict):
        raise ValidationError('body', "Request body must be a JSON object")

    try:
        record = TransactionCreate.model_validate(payload, context={'tz': tz})
    except PydanticValidationError as e:
        error = _to_domain_error(e)
        logger.debug(f"Rejected transaction payload on '{error.field}': {e}")
        raise error from e

    when = record.date if record.date is not None else now
    if when > now:
        raise ValidationError('date', "Transaction date cannot be in the future")

    return record.model_copy(update={'date': truncate_to_millis(when)})


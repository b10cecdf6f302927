"""Balance and income/expense totals computed from stored transactions."""
from decimal import Decimal
from typing import Iterable

from models.transaction import Summary, Transaction


def _signed_amount(transaction: Transaction) -> Decimal:
    if transaction.type == 'income':
        return transaction.amount
    if transaction.type == 'expense':
        return -transaction.amount
    # Unreachable for validated models; guards records built with model_construct
    raise ValueError(f"Transaction {transaction.id} has unknown type {transaction.type!r}")


def compute_balance(transactions: Iterable[Transaction]) -> Decimal:
    """Income minus expense, accumulated exactly as Decimal."""
    balance = Decimal(0)
    for transaction in transactions:
        balance += _signed_amount(transaction)
    return balance


def compute_summary(transactions: Iterable[Transaction]) -> Summary:
    """Separate income and expense totals."""
    income = Decimal(0)
    expense = Decimal(0)
    for transaction in transactions:
        if transaction.type == 'income':
            income += transaction.amount
        elif transaction.type == 'expense':
            expense += transaction.amount
        else:
            # Same guard as _signed_amount
            raise ValueError(f"Transaction {transaction.id} has unknown type {transaction.type!r}")
    return Summary(income=income, expense=expense)

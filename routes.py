"""API Routes for transactions"""
from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request, Response
from typing import Annotated, Any, List, Optional
import logging

from models.results import NotFound
from models.transaction import BalanceResponse, Summary, Transaction
from services import aggregator, exporter, query_builder
from services.transaction_store import TransactionStore
from services.validator import validate_transaction

router = APIRouter()
logger = logging.getLogger(__name__)

# --- Dependency Function ---
def get_transaction_store(request: Request) -> TransactionStore:
    """Dependency returning the store created at application startup."""
    store = getattr(request.app.state, "transaction_store", None)
    if store is None:
        logger.error("Transaction store not found in application state. Check MongoDB connection.")
        raise HTTPException(status_code=503, detail="Database service not available.")
    return store

# Type hint for the dependency
TransactionStoreDep = Annotated[TransactionStore, Depends(get_transaction_store)]

# --- API Routes ---

@router.post("/transactions", status_code=201, response_model=Transaction, summary="Create Transaction")
async def create_transaction(store: TransactionStoreDep, payload: Any = Body(...)) -> Transaction:
    """Validates the payload and stores a new transaction."""
    record = validate_transaction(payload)
    return (await store.create(record)).unwrap()

@router.get("/transactions", response_model=List[Transaction], summary="Get All Transactions", description="Retrieves all transactions sorted by date descending.")
async def get_transactions(store: TransactionStoreDep) -> List[Transaction]:
    transactions = (await store.find_all()).unwrap()
    logger.info("Fetched all transactions")
    return transactions

@router.get("/balance", response_model=BalanceResponse, summary="Calculate Balance")
async def get_balance(store: TransactionStoreDep) -> BalanceResponse:
    """Income minus expense over every stored transaction."""
    transactions = (await store.find_all()).unwrap()
    balance = aggregator.compute_balance(transactions)
    logger.info(f"Calculated balance over {len(transactions)} transactions")
    return BalanceResponse(balance=balance)

@router.get("/transactions/search", response_model=List[Transaction], summary="Search Transactions", description="Filters transactions by calendar day and/or type.")
async def search_transactions(
    store: TransactionStoreDep,
    date: Optional[str] = Query(None, description="Calendar day to match (YYYY-MM-DD)."),
    type: Optional[str] = Query(None, description="'income', 'expense' or 'all'."),
) -> List[Transaction]:
    filter_ = query_builder.build_search_filter(date=date, type=type)
    transactions = (await store.find_all(filter_)).unwrap()
    logger.info(f"Searched transactions (date={date}, type={type}): {len(transactions)} found")
    return transactions

@router.get("/transactions/export", summary="Export Transactions", description="Downloads matching transactions as CSV.")
async def export_transactions(
    store: TransactionStoreDep,
    start_date: Optional[str] = Query(None, alias="startDate", description="First day included (YYYY-MM-DD)."),
    end_date: Optional[str] = Query(None, alias="endDate", description="Last day included (YYYY-MM-DD)."),
    type: Optional[str] = Query(None, description="'income', 'expense' or 'all'."),
) -> Response:
    filter_ = query_builder.build_export_filter(start_date=start_date, end_date=end_date, type=type)
    transactions = (await store.find_all(filter_)).unwrap()
    csv_text = exporter.transactions_to_csv(transactions)
    logger.info(f"Exported {len(transactions)} transactions to CSV")
    return Response(
        content=csv_text,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{exporter.EXPORT_FILENAME}"'},
    )

@router.delete("/transactions/{transaction_id}", response_model=Optional[Transaction], summary="Delete Transaction", description="Deletes a transaction by id. Returns null when no transaction has that id.")
async def delete_transaction(transaction_id: str, store: TransactionStoreDep) -> Optional[Transaction]:
    deleted = (await store.delete_by_id(transaction_id)).unwrap()
    if isinstance(deleted, NotFound):
        return None
    return deleted

@router.get("/summary", response_model=Summary, summary="Get Summary", description="Totals of income and expense.")
async def get_summary(store: TransactionStoreDep) -> Summary:
    transactions = (await store.find_all()).unwrap()
    summary = aggregator.compute_summary(transactions)
    logger.info("Fetched summary")
    return summary

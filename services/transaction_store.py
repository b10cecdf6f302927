"""Persistence of transactions in a MongoDB collection."""
import logging
from datetime import timezone
from decimal import Decimal
from typing import Any, Dict, List, Union

from bson import ObjectId
from bson.decimal128 import Decimal128
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorCollection # Type hint for collection
from pydantic import ValidationError as PydanticValidationError
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import PyMongoError

from models.errors import PersistenceError
from models.filters import ALL, Filter
from models.results import Err, NotFound, Ok, Result
from models.transaction import Transaction, TransactionCreate
from services.query_builder import to_mongo_query

logger = logging.getLogger(__name__)

# Newest first; equal dates keep insertion order (ObjectIds grow within a process)
SORT_ORDER = [('date', DESCENDING), ('_id', ASCENDING)]


def to_document(record: TransactionCreate) -> Dict[str, Any]:
    """Build the BSON-ready document for a validated record."""
    return {
        'type': record.type,
        'amount': Decimal128(record.amount),
        'description': record.description,
        'date': record.date.astimezone(timezone.utc),
    }


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal128):
        return value.to_decimal()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        # Older documents stored amounts as plain numbers
        return Decimal(str(value))
    raise ValueError(f"unexpected amount value {value!r}")


def from_document(doc: Dict[str, Any]) -> Transaction:
    """Map a stored document back to a Transaction.

    Raises:
        ValueError: if the document does not describe a valid transaction.
    """
    date = doc.get('date')
    if date is not None and date.tzinfo is None:
        # Clients created without tz_aware hand back naive UTC datetimes
        date = date.replace(tzinfo=timezone.utc)
    return Transaction(
        id=str(doc['_id']),
        type=doc.get('type'),
        amount=_to_decimal(doc.get('amount')),
        description=doc.get('description'),
        date=date,
    )


class TransactionStore:
    """Stores transactions in a single collection.

    Every method performs one storage round-trip and reports failures as
    ``Err(PersistenceError)`` instead of raising.
    """

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    async def ensure_indexes(self) -> None:
        try:
            await self.collection.create_index([('date', DESCENDING)])
            logger.info(f"Ensured date index on collection '{self.collection.name}'.")
        except PyMongoError as e:
            logger.error(f"Could not create date index on '{self.collection.name}': {e}")

    async def create(self, record: TransactionCreate) -> Result[Transaction]:
        document = to_document(record)
        try:
            result = await self.collection.insert_one(document)
        except PyMongoError as e:
            logger.error(f"Database error creating transaction: {e}")
            return Err(PersistenceError("Failed to create transaction"))

        document['_id'] = result.inserted_id
        transaction = from_document(document)
        logger.info(f"Transaction created: {transaction.id}")
        return Ok(transaction)

    async def find_all(self, filter_: Filter = ALL) -> Result[List[Transaction]]:
        """Return matching transactions, newest first."""
        query = to_mongo_query(filter_)
        transactions = []
        try:
            cursor = self.collection.find(query).sort(SORT_ORDER)
            async for doc in cursor:
                transactions.append(from_document(doc))
        except PyMongoError as e:
            logger.error(f"Database error fetching transactions with query {query}: {e}")
            return Err(PersistenceError("Failed to fetch transactions"))
        except (KeyError, ValueError, PydanticValidationError) as e:
            logger.error(f"Stored transaction failed to load: {e}")
            return Err(PersistenceError("Stored transaction data is invalid"))

        logger.info(f"Fetched {len(transactions)} transactions for query {query}.")
        return Ok(transactions)

    async def delete_by_id(self, transaction_id: str) -> Result[Union[Transaction, NotFound]]:
        try:
            object_id = ObjectId(transaction_id)
        except (InvalidId, TypeError):
            logger.info(f"Delete requested for malformed id '{transaction_id}'.")
            return Ok(NotFound(id=transaction_id))

        try:
            doc = await self.collection.find_one_and_delete({'_id': object_id})
        except PyMongoError as e:
            logger.error(f"Database error deleting transaction {transaction_id}: {e}")
            return Err(PersistenceError("Failed to delete transaction"))

        if doc is None:
            logger.info(f"Transaction {transaction_id} not found for deletion.")
            return Ok(NotFound(id=transaction_id))

        logger.info(f"Transaction deleted: {transaction_id}")
        try:
            return Ok(from_document(doc))
        except (KeyError, ValueError, PydanticValidationError) as e:
            logger.error(f"Deleted transaction {transaction_id} failed to load: {e}")
            return Err(PersistenceError("Stored transaction data is invalid"))

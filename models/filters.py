"""Filter variants used to select stored transactions."""
from datetime import date, datetime
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from models.transaction import TransactionType


class _Filter(BaseModel):
    model_config = ConfigDict(frozen=True)


class AllFilter(_Filter):
    """Matches every record."""
    kind: Literal['all'] = 'all'


class ByDate(_Filter):
    """One calendar day: ``start <= date < end``.

    ``start`` and ``end`` are the UTC instants of midnight at the beginning of
    ``day`` and of the following day in the reference time zone.
    """
    kind: Literal['date'] = 'date'
    day: date
    start: datetime
    end: datetime

    @model_validator(mode='after')
    def check_bounds(self):
        if self.end <= self.start:
            raise ValueError('day filter end must be after its start')
        return self


class ByDateRange(_Filter):
    """Closed range: ``start <= date <= end``. Either bound may be open."""
    kind: Literal['range'] = 'range'
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    @model_validator(mode='after')
    def check_bounds(self):
        if self.start is None and self.end is None:
            raise ValueError('date range needs at least one bound')
        if self.start is not None and self.end is not None and self.start > self.end:
            raise ValueError('start date must not be after end date')
        return self


class ByType(_Filter):
    kind: Literal['type'] = 'type'
    type: TransactionType


SimpleFilter = Annotated[Union[ByDate, ByDateRange, ByType], Field(discriminator='kind')]


class Combined(_Filter):
    """All of the contained filters must match."""
    kind: Literal['combined'] = 'combined'
    filters: List[SimpleFilter] = Field(min_length=2)


Filter = Annotated[
    Union[AllFilter, ByDate, ByDateRange, ByType, Combined],
    Field(discriminator='kind'),
]

ALL = AllFilter()

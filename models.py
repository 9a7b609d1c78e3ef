"""
models.py — Python dataclasses for the farm log application.

Each entity maps to one collection in the record store. Records travel as
plain dicts keyed by attribute name, with the identifier under 'Id'.
Dates are kept as ISO strings ('YYYY-MM-DD' or full date-time).
"""

from dataclasses import dataclass, asdict, fields
from typing import Optional


FARM_UNITS = ('acres', 'hectares', 'sq ft', 'sq m')
CROP_STATUSES = ('planted', 'growing', 'harvested')
TASK_PRIORITIES = ('low', 'medium', 'high')
TASK_STATUSES = ('Open', 'InProgress', 'Completed', 'Blocked')
EXPENSE_CATEGORIES = ('Seeds', 'Fertilizer', 'Equipment', 'Labor', 'Maintenance', 'Other')


class RecordMixin:
    """Conversion between dataclasses and record store dicts."""

    @classmethod
    def field_names(cls):
        return [f.name for f in fields(cls) if f.name != 'id']

    @classmethod
    def from_record(cls, record):
        """Build an instance from a record dict, ignoring unknown keys."""
        if record is None:
            return None
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in record.items() if k in known}
        if 'Id' in record:
            values['id'] = record['Id']
        return cls(**values)

    def to_record(self):
        """Record dict for the store: attributes plus 'Id' when assigned."""
        record = asdict(self)
        record_id = record.pop('id')
        if record_id is not None:
            record['Id'] = record_id
        return record

    def to_dict(self):
        return asdict(self)


@dataclass
class Farm(RecordMixin):
    """A farm. Crops, tasks and expenses point at it through farm_id."""
    id: Optional[int] = None
    name: str = ""
    location: str = ""
    size: float = 0.0
    unit: str = "acres"
    created_at: Optional[str] = None


@dataclass
class Crop(RecordMixin):
    """A planting on one field of a farm."""
    id: Optional[int] = None
    farm_id: Optional[int] = None
    variety: str = ""
    planting_date: Optional[str] = None
    expected_harvest: Optional[str] = None
    field: str = ""
    notes: str = ""
    status: str = "planted"

    @property
    def is_active(self) -> bool:
        return self.status != 'harvested'


@dataclass
class Task(RecordMixin):
    """Scheduled farm activity.

    `status` is the source of truth. `completed` is kept in step with it for
    records written before the status field existed; when a record has no
    status the boolean decides.
    """
    id: Optional[int] = None
    farm_id: Optional[int] = None
    crop_id: Optional[int] = None
    title: str = ""
    description: str = ""
    due_date: Optional[str] = None
    priority: str = "medium"
    status: Optional[str] = None
    completed: bool = False
    created_at: Optional[str] = None

    @property
    def is_completed(self) -> bool:
        if self.status:
            return self.status == 'Completed'
        return bool(self.completed)


@dataclass
class Expense(RecordMixin):
    """Money spent on a farm."""
    id: Optional[int] = None
    farm_id: Optional[int] = None
    amount: float = 0.0
    category: str = ""
    date: Optional[str] = None
    notes: str = ""
    created_at: Optional[str] = None

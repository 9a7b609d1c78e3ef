"""
repositories.py — CRUD façade over a record store, one class per entity.

Every repository talks to a record store client (store.LocalRecordStore or
records_client.RecordsClient) through the same five calls and applies the
same policy:

- reads are fail-soft: an unreachable or failing store is logged and
  notified, and the read returns [] / None
- mutations raise PersistenceError; each rejected record is notified on its own
- callers reload the collection after a mutation instead of patching it

Repositories are built once per app by build_repositories() and bound to a
request-scoped notifier with Repositories.bind().
"""

import copy
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from errors import (
    CollaboratorUnavailable, FetchFailure, PersistenceError, ReferentialIntegrityError
)
from models import Farm, Crop, Task, Expense
from utils.dates import parse_date, in_month

logger = logging.getLogger(__name__)


def _silent(category, message):
    pass


def _now_iso():
    return datetime.now().isoformat(timespec='seconds')


def _farm_clause(farm_id):
    return {'FieldName': 'farm_id', 'Operator': 'EqualTo', 'Values': [farm_id], 'Include': True}


class BaseRepository:
    """Shared CRUD logic. Subclasses set table_name, model and label."""

    table_name = None
    model = None
    label = 'record'

    def __init__(self, client, notify=None):
        self.client = client
        self.notify = notify or _silent

    def bind(self, notify):
        """Copy of this repository that reports to `notify(category, message)`."""
        bound = copy.copy(self)
        bound.notify = notify
        return bound

    def _params(self, where=None):
        params = {'fields': self.model.field_names()}
        if where:
            params['where'] = where
        return params

    # ========================================
    # Reads
    # ========================================

    def _fetch(self, where=None, strict=False):
        """Fetch and convert records. With strict=True failures raise PersistenceError."""
        try:
            if self.client is None:
                raise CollaboratorUnavailable("No record store configured")
            response = self.client.fetch_records(self.table_name, self._params(where))
            if not response.get('success'):
                raise FetchFailure(response.get('message') or f"Failed to fetch {self.table_name}")
        except CollaboratorUnavailable as e:
            logger.warning("Record store unavailable for %s: %s", self.table_name, e)
            if strict:
                raise PersistenceError(str(e)) from e
            return []
        except FetchFailure as e:
            logger.warning("Fetching %s failed: %s", self.table_name, e)
            if strict:
                raise PersistenceError(str(e)) from e
            self.notify('error', str(e))
            return []

        return [self.model.from_record(r) for r in response.get('data') or []]

    def get_all(self):
        """Full collection; [] when the store fails."""
        return self._fetch()

    def get_by_id(self, record_id):
        """Matching entity or None. Never raises for not-found."""
        try:
            if self.client is None:
                raise CollaboratorUnavailable("No record store configured")
            response = self.client.get_record_by_id(self.table_name, record_id, self._params())
        except (CollaboratorUnavailable, FetchFailure) as e:
            logger.warning("Reading %s %s failed: %s", self.label, record_id, e)
            return None

        if response.get('success') is False:
            logger.warning("Reading %s %s failed: %s", self.label, record_id, response.get('message'))
            return None
        return self.model.from_record(response.get('data'))

    def get_by_farm(self, farm_id):
        return self._fetch(where=[_farm_clause(farm_id)])

    # ========================================
    # Mutations
    # ========================================

    def _report_failures(self, action, failures):
        for failure in failures:
            field_errors = failure.get('errors') or []
            for field_error in field_errors:
                message = f"{field_error.get('fieldLabel', 'field')}: {field_error.get('message', '')}"
                logger.error("Failed to %s %s: %s", action, self.label, message)
                self.notify('error', message)
            if not field_errors:
                message = failure.get('message') or f"Failed to {action} {self.label}"
                logger.error("Failed to %s %s: %s", action, self.label, message)
                self.notify('error', message)

    def _call(self, method, payload, action):
        if self.client is None:
            raise PersistenceError("No record store configured")
        try:
            response = getattr(self.client, method)(self.table_name, payload)
        except CollaboratorUnavailable as e:
            logger.error("Failed to %s %s: %s", action, self.label, e)
            self.notify('error', f"Failed to {action} {self.label}")
            raise PersistenceError(str(e)) from e

        if not response.get('success'):
            message = response.get('message') or f"Failed to {action} {self.label}"
            logger.error("Failed to %s %s: %s", action, self.label, message)
            self.notify('error', message)
            raise PersistenceError(message)
        return response.get('results') or []

    def _first_success(self, results, action, fallback):
        """First successful record of a batch; every failed item is reported."""
        successes = [r for r in results if r.get('success')]
        failures = [r for r in results if not r.get('success')]
        if failures:
            self._report_failures(action, failures)
        if not successes:
            raise PersistenceError(f"Failed to {action} {self.label}", failures=failures)
        return self.model.from_record(successes[0].get('data') or fallback)

    def _prepare_create(self, fields):
        return dict(fields)

    def _prepare_update(self, fields):
        return dict(fields)

    def create(self, fields):
        """Submit a new record. The store assigns the identifier."""
        record = self._prepare_create(fields)
        record.pop('id', None)
        record.pop('Id', None)
        results = self._call('create_record', {'records': [record]}, 'create')
        return self._first_success(results, 'create', record)

    def update(self, record_id, fields):
        """Replace the given fields of record `record_id`."""
        record = self._prepare_update(fields)
        record.pop('id', None)
        record['Id'] = record_id
        results = self._call('update_record', {'records': [record]}, 'update')
        return self._first_success(results, 'update', record)

    def delete_many(self, record_ids):
        """Remove records; returns how many were removed."""
        if not record_ids:
            return 0
        results = self._call('delete_record', {'RecordIds': list(record_ids)}, 'delete')
        return sum(1 for r in results if r.get('success'))

    def delete(self, record_id):
        """True iff a record was removed."""
        return self.delete_many([record_id]) > 0


class FarmRepository(BaseRepository):
    table_name = 'farms'
    model = Farm
    label = 'farm'

    def __init__(self, client, notify=None, dependents=()):
        super().__init__(client, notify)
        self.dependents = tuple(dependents)

    def _prepare_create(self, fields):
        record = dict(fields)
        record.setdefault('created_at', _now_iso())
        return record

    def delete(self, farm_id, cascade=False):
        """Delete a farm.

        Refuses with ReferentialIntegrityError while crops, tasks or expenses
        still reference it, unless cascade=True, in which case those are
        deleted first.
        """
        dependents = {}
        for repo in self.dependents:
            items = repo._fetch(where=[_farm_clause(farm_id)], strict=True)
            if items:
                dependents[repo.table_name] = [item.id for item in items]

        if dependents and not cascade:
            summary = ", ".join(f"{len(ids)} {table}" for table, ids in dependents.items())
            raise ReferentialIntegrityError(
                f"Farm {farm_id} still has {summary}", dependents=dependents
            )

        for repo in self.dependents:
            if repo.table_name in dependents:
                removed = repo.delete_many(dependents[repo.table_name])
                logger.info("Cascade removed %d %s of farm %s", removed, repo.table_name, farm_id)

        return super().delete(farm_id)


class CropRepository(BaseRepository):
    table_name = 'crops'
    model = Crop
    label = 'crop'

    def _prepare_create(self, fields):
        record = dict(fields)
        if not record.get('status'):
            record['status'] = 'planted'
        return record


class TaskRepository(BaseRepository):
    table_name = 'tasks'
    model = Task
    label = 'task'

    def _prepare_create(self, fields):
        record = dict(fields)
        if not record.get('status'):
            record['status'] = 'Completed' if record.get('completed') else 'Open'
        record['completed'] = record['status'] == 'Completed'
        record.setdefault('created_at', _now_iso())
        return record

    def _prepare_update(self, fields):
        # Keep the legacy boolean in step with the status.
        record = dict(fields)
        if record.get('status'):
            record['completed'] = record['status'] == 'Completed'
        elif 'completed' in record:
            record['status'] = 'Completed' if record['completed'] else 'Open'
        return record

    def complete(self, task_id):
        """Mark a task completed. No guard against completing twice."""
        return self.update(task_id, {'status': 'Completed', 'completed': True})

    def get_upcoming(self, window_days=7, today=None):
        """Open tasks due within [today, today + window_days], calendar days."""
        today = today or date.today()
        if isinstance(today, datetime):
            today = today.date()
        horizon = today + timedelta(days=window_days)

        upcoming = []
        for task in self.get_all():
            if task.is_completed:
                continue
            due = parse_date(task.due_date)
            if due is not None and today <= due.date() <= horizon:
                upcoming.append(task)
        return upcoming


class ExpenseRepository(BaseRepository):
    table_name = 'expenses'
    model = Expense
    label = 'expense'

    def _prepare_create(self, fields):
        record = dict(fields)
        record.setdefault('created_at', _now_iso())
        return record

    def get_monthly_total(self, month=None, year=None, today=None):
        """Sum of expenses dated in the given month (defaults to today's)."""
        today = today or date.today()
        month = month or today.month
        year = year or today.year
        return monthly_total(self.get_all(), month, year)


def monthly_total(expenses, month, year):
    total = sum(float(e.amount or 0) for e in expenses if in_month(e.date, month, year))
    return round(total, 2)


# ========================================
# Assembly
# ========================================

@dataclass
class Repositories:
    """The four repositories of one application/session."""
    farms: FarmRepository
    crops: CropRepository
    tasks: TaskRepository
    expenses: ExpenseRepository

    def bind(self, notify):
        crops = self.crops.bind(notify)
        tasks = self.tasks.bind(notify)
        expenses = self.expenses.bind(notify)
        farms = self.farms.bind(notify)
        farms.dependents = (crops, tasks, expenses)
        return Repositories(farms=farms, crops=crops, tasks=tasks, expenses=expenses)


def build_repositories(client):
    """Build the repositories over one record store client."""
    crops = CropRepository(client)
    tasks = TaskRepository(client)
    expenses = ExpenseRepository(client)
    farms = FarmRepository(client, dependents=(crops, tasks, expenses))
    return Repositories(farms=farms, crops=crops, tasks=tasks, expenses=expenses)

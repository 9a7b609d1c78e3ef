"""
store.py — Local record store backed by a SQLite key-value table.

Stands in for a remote record store: every collection is a JSON array kept
under a fixed key (farmlog_<table>) and lazily seeded from the bundled
defaults on first access. The class answers the same calls as
records_client.RecordsClient so repositories do not care which one they use.

Identifiers come from a per-table counter (farmlog_<table>_seq) and are
never reused after a delete.
Uses WAL mode and one connection per operation.
"""

import json
import logging
import os
import random
import sqlite3
import threading
import time

from errors import FetchFailure, NotFoundError, PersistenceError

logger = logging.getLogger(__name__)

KEY_PREFIX = 'farmlog_'

# Read-modify-write on a collection must not interleave across threads.
_write_lock = threading.RLock()


def get_db_path() -> str:
    """Get the store path from environment or default."""
    default_path = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'data', 'farmlog.db')
    return os.environ.get('FARMLOG_DB_PATH', default_path)


# ========================================
# Seed data
# ========================================

SEED_DATA = {
    'farms': [
        {'Id': 1, 'name': 'Green Valley Farm', 'location': 'Fresno, CA', 'size': 120,
         'unit': 'acres', 'created_at': '2024-01-15T08:00:00'},
        {'Id': 2, 'name': 'Sunrise Orchards', 'location': 'Yakima, WA', 'size': 45,
         'unit': 'hectares', 'created_at': '2024-02-03T08:00:00'},
        {'Id': 3, 'name': 'Riverside Plots', 'location': 'Sacramento, CA', 'size': 18,
         'unit': 'acres', 'created_at': '2024-03-10T08:00:00'},
    ],
    'crops': [
        {'Id': 1, 'farm_id': 1, 'variety': 'Tomatoes', 'planting_date': '2024-03-15',
         'expected_harvest': '2024-07-20', 'field': 'North Field', 'notes': 'Drip irrigation',
         'status': 'growing'},
        {'Id': 2, 'farm_id': 1, 'variety': 'Corn', 'planting_date': '2024-04-01',
         'expected_harvest': '2024-08-15', 'field': 'East Field', 'notes': '',
         'status': 'planted'},
        {'Id': 3, 'farm_id': 2, 'variety': 'Apples', 'planting_date': '2023-04-10',
         'expected_harvest': '2024-09-30', 'field': 'Block A', 'notes': 'Honeycrisp',
         'status': 'growing'},
        {'Id': 4, 'farm_id': 3, 'variety': 'Lettuce', 'planting_date': '2024-02-01',
         'expected_harvest': '2024-04-05', 'field': 'Bed 2', 'notes': '',
         'status': 'harvested'},
    ],
    'tasks': [
        {'Id': 1, 'farm_id': 1, 'crop_id': 1, 'title': 'Stake tomato plants',
         'description': 'Use 6ft stakes along the north rows', 'due_date': '2024-05-02',
         'priority': 'high', 'status': 'Open', 'completed': False,
         'created_at': '2024-04-20T09:30:00'},
        {'Id': 2, 'farm_id': 1, 'crop_id': 2, 'title': 'Side-dress corn with nitrogen',
         'description': '', 'due_date': '2024-05-20', 'priority': 'medium',
         'status': 'InProgress', 'completed': False, 'created_at': '2024-04-22T10:00:00'},
        {'Id': 3, 'farm_id': 2, 'crop_id': None, 'title': 'Service the orchard sprayer',
         'description': 'Replace nozzles and check pump pressure', 'due_date': '2024-04-28',
         'priority': 'low', 'status': 'Completed', 'completed': True,
         'created_at': '2024-04-01T14:15:00'},
    ],
    'expenses': [
        {'Id': 1, 'farm_id': 1, 'amount': 450.0, 'category': 'Seeds', 'date': '2024-03-10',
         'notes': 'Tomato and corn seed', 'created_at': '2024-03-10T16:00:00'},
        {'Id': 2, 'farm_id': 1, 'amount': 1200.0, 'category': 'Equipment', 'date': '2024-04-02',
         'notes': 'Drip line', 'created_at': '2024-04-02T11:00:00'},
        {'Id': 3, 'farm_id': 2, 'amount': 320.5, 'category': 'Fertilizer', 'date': '2024-04-15',
         'notes': '', 'created_at': '2024-04-15T09:00:00'},
        {'Id': 4, 'farm_id': 3, 'amount': 600.0, 'category': 'Labor', 'date': '2024-04-05',
         'notes': 'Lettuce harvest crew', 'created_at': '2024-04-05T18:00:00'},
    ],
}


# ========================================
# Where-clause evaluation
# ========================================

def _matches(record, clause):
    """Evaluate one {FieldName, Operator, Values, Include} clause."""
    value = record.get(clause['FieldName'])
    values = clause.get('Values') or []
    operator = clause.get('Operator', 'EqualTo')

    if operator == 'EqualTo':
        hit = value in values
    elif value is None or not values:
        hit = False
    elif operator == 'GreaterThanOrEqualTo':
        hit = value >= values[0]
    elif operator == 'LessThanOrEqualTo':
        hit = value <= values[0]
    else:
        raise FetchFailure(f"Unsupported operator: {operator}")

    return hit if clause.get('Include', True) else not hit


def _project(record, field_names):
    if not field_names:
        return dict(record)
    projected = {'Id': record['Id']}
    for name in field_names:
        projected[name] = record.get(name)
    return projected


class LocalRecordStore:
    """Record store over a SQLite key-value table."""

    def __init__(self, db_path=None, simulate_latency=False, seed=True):
        self.db_path = db_path or get_db_path()
        self.simulate_latency = simulate_latency
        self.seed = seed
        self.init_db()

    # ========================================
    # Connection management
    # ========================================

    def get_db(self) -> sqlite3.Connection:
        """Get a connection with WAL mode enabled."""
        os.makedirs(os.path.dirname(os.path.abspath(self.db_path)), exist_ok=True)
        conn = sqlite3.connect(self.db_path)
        conn.execute("PRAGMA journal_mode=WAL")
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self):
        """Create the key-value table if it doesn't exist."""
        conn = self.get_db()
        conn.execute("""
            CREATE TABLE IF NOT EXISTS kv_store (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)
        conn.commit()
        conn.close()

    def _delay(self):
        if self.simulate_latency:
            time.sleep(random.uniform(0.2, 0.5))

    # ========================================
    # Key-value access
    # ========================================

    def get_item(self, key, default=None):
        conn = self.get_db()
        try:
            row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
        finally:
            conn.close()
        if row:
            return row['value']
        return default

    def set_item(self, key, value):
        conn = self.get_db()
        try:
            conn.execute(
                "INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, CURRENT_TIMESTAMP) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = CURRENT_TIMESTAMP",
                (key, value)
            )
            conn.commit()
        finally:
            conn.close()

    def _load(self, table):
        """Return the collection, seeding it on first access."""
        key = KEY_PREFIX + table
        raw = self.get_item(key)
        if raw is None:
            records = [dict(r) for r in SEED_DATA.get(table, [])] if self.seed else []
            self._save(table, records)
            highest = max((r['Id'] for r in records), default=0)
            self.set_item(f'{KEY_PREFIX}{table}_seq', str(highest))
            logger.info("Seeded %s with %d records", key, len(records))
            return records
        try:
            records = json.loads(raw)
        except json.JSONDecodeError as e:
            raise FetchFailure(f"Corrupt data under {key}: {e}") from e
        return records if isinstance(records, list) else []

    def _save(self, table, records):
        self.set_item(KEY_PREFIX + table, json.dumps(records, ensure_ascii=False))

    def _next_id(self, table, records):
        seq_key = f'{KEY_PREFIX}{table}_seq'
        last = int(self.get_item(seq_key, '0'))
        highest = max((r['Id'] for r in records), default=0)
        next_id = max(last, highest) + 1
        self.set_item(seq_key, str(next_id))
        return next_id

    # ========================================
    # Record store calls
    # ========================================

    def fetch_records(self, table, params=None):
        """All records of a table, narrowed by conjoined where clauses."""
        params = params or {}
        self._delay()
        try:
            records = self._load(table)
        except sqlite3.Error as e:
            return {'success': False, 'data': [], 'message': f"Storage error: {e}"}

        where = params.get('where') or []
        data = [
            _project(r, params.get('fields'))
            for r in records
            if all(_matches(r, clause) for clause in where)
        ]
        return {'success': True, 'data': data}

    def get_record_by_id(self, table, record_id, params=None):
        params = params or {}
        self._delay()
        try:
            records = self._load(table)
        except sqlite3.Error as e:
            return {'success': False, 'data': None, 'message': f"Storage error: {e}"}
        for record in records:
            if record['Id'] == record_id:
                return {'success': True, 'data': _project(record, params.get('fields'))}
        return {'success': True, 'data': None}

    def create_record(self, table, payload):
        """Insert each record with a fresh Id."""
        self._delay()
        results = []
        with _write_lock:
            try:
                records = self._load(table)
                for item in payload.get('records', []):
                    if not isinstance(item, dict):
                        results.append({'success': False, 'message': 'Record must be an object'})
                        continue
                    new_record = {k: v for k, v in item.items() if k != 'Id'}
                    new_record['Id'] = self._next_id(table, records)
                    records.append(new_record)
                    results.append({'success': True, 'data': dict(new_record)})
                self._save(table, records)
            except sqlite3.Error as e:
                raise PersistenceError(f"Storage error: {e}") from e
        return {'success': True, 'results': results}

    def update_record(self, table, payload):
        """Overwrite the given fields of each record, keyed by Id.

        Raises NotFoundError when an Id is not in the collection.
        """
        self._delay()
        results = []
        with _write_lock:
            try:
                records = self._load(table)
                by_id = {r['Id']: r for r in records}
                for item in payload.get('records', []):
                    record_id = item.get('Id')
                    if record_id not in by_id:
                        raise NotFoundError(f"{table} record {record_id} not found")
                    by_id[record_id].update(item)
                    by_id[record_id]['Id'] = record_id
                    results.append({'success': True, 'data': dict(by_id[record_id])})
                self._save(table, records)
            except sqlite3.Error as e:
                raise PersistenceError(f"Storage error: {e}") from e
        return {'success': True, 'results': results}

    def delete_record(self, table, payload):
        self._delay()
        ids = set(payload.get('RecordIds', []))
        with _write_lock:
            try:
                records = self._load(table)
                kept = [r for r in records if r['Id'] not in ids]
                self._save(table, kept)
            except sqlite3.Error as e:
                raise PersistenceError(f"Storage error: {e}") from e
        removed = {r['Id'] for r in records} & ids
        results = [
            {'success': True} if rid in removed
            else {'success': False, 'message': f"{table} record {rid} not found"}
            for rid in payload.get('RecordIds', [])
        ]
        return {'success': True, 'results': results}

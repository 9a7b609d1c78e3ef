"""
tests/test_controllers.py — Screen controllers with a pinned "now".

Tests cover:
- All-or-nothing parallel load, failure state and retry
- Stale loads discarded after unmount
- Filters (idempotent, clearable) and ordering
- Validate -> mutate -> reload cycle and notifications
- Dashboard metrics
"""

from datetime import datetime

import pytest

from controllers.base import FAILED, IDLE, READY
from controllers.crops import CropListController
from controllers.dashboard import DashboardController
from controllers.expenses import ExpenseListController
from controllers.farms import FarmListController
from controllers.tasks import TaskListController
from errors import NotFoundError, ReferentialIntegrityError, ValidationError
from repositories import build_repositories

NOW = datetime(2024, 5, 10, 9, 0)


class BreakableStore:
    """Wraps a store; while broken every read raises."""

    def __init__(self, store):
        self.store = store
        self.broken = False

    def fetch_records(self, table, params=None):
        if self.broken:
            raise RuntimeError("disk on fire")
        return self.store.fetch_records(table, params)

    def __getattr__(self, name):
        return getattr(self.store, name)


@pytest.fixture
def base_repos(seeded_store):
    return build_repositories(seeded_store)


@pytest.fixture
def populated(empty_store):
    """Two farms with crops, tasks and expenses spread around NOW."""
    repos = build_repositories(empty_store)
    repos.farms.create({'name': 'North', 'location': 'A', 'size': 10})
    repos.farms.create({'name': 'South', 'location': 'B', 'size': 20})
    repos.crops.create({'farm_id': 1, 'variety': 'Corn', 'planting_date': '2024-04-01',
                        'expected_harvest': '2024-08-01', 'field': 'F1', 'status': 'growing'})
    repos.crops.create({'farm_id': 2, 'variety': 'Kale', 'planting_date': '2024-02-01',
                        'expected_harvest': '2024-04-01', 'field': 'F2', 'status': 'harvested'})
    for title, farm_id, due, status, priority in [
        ('future', 1, '2024-06-01', 'Open', 'low'),
        ('overdue', 1, '2024-05-01', 'Open', 'high'),
        ('done', 2, '2024-04-01', 'Completed', 'high'),
        ('soon', 2, '2024-05-12', 'InProgress', 'medium'),
    ]:
        repos.tasks.create({'farm_id': farm_id, 'title': title, 'due_date': due,
                            'status': status, 'priority': priority})
    for farm_id, amount, category, day in [
        (1, 100.0, 'Seeds', '2024-05-02'),
        (1, 50.25, 'Labor', '2024-05-20'),
        (2, 75.0, 'Seeds', '2024-04-28'),
        (2, 10.0, 'Other', '2024-05-05'),
    ]:
        repos.expenses.create({'farm_id': farm_id, 'amount': amount,
                               'category': category, 'date': day})
    return repos


class TestLoading:

    def test_load_joins_all_fetches(self, base_repos):
        controller = TaskListController(base_repos, now=NOW)
        assert controller.state == IDLE
        assert controller.load()
        assert controller.state == READY
        assert set(controller.data) == {'tasks', 'farms', 'crops'}
        assert len(controller.farms) == 3

    def test_one_failing_fetch_fails_the_screen(self, seeded_store):
        breakable = BreakableStore(seeded_store)
        breakable.broken = True
        controller = FarmListController(build_repositories(breakable), now=NOW)

        assert controller.load() is False
        assert controller.state == FAILED
        assert controller.error == "Failed to load farms"
        assert controller.view()['farms'] == []

    def test_retry_after_failure(self, seeded_store):
        breakable = BreakableStore(seeded_store)
        breakable.broken = True
        controller = CropListController(build_repositories(breakable), now=NOW)
        controller.load()

        breakable.broken = False
        assert controller.retry()
        assert controller.state == READY
        assert controller.error is None
        assert len(controller.crops) == 4

    def test_unmounted_load_is_discarded(self, base_repos):

        class UnmountMidway(TaskListController):
            def fetchers(self):
                jobs = super().fetchers()
                fetch_tasks = jobs['tasks']

                def tasks_then_unmount():
                    result = fetch_tasks()
                    self.unmount()
                    return result

                jobs['tasks'] = tasks_then_unmount
                return jobs

        controller = UnmountMidway(base_repos, now=NOW)
        assert controller.load() is False
        assert controller.data == {}

    def test_fail_soft_collection_still_loads(self):

        class FailingStore:
            def fetch_records(self, table, params=None):
                return {'success': False, 'message': f'{table} offline'}

        controller = FarmListController(build_repositories(FailingStore()), now=NOW)
        assert controller.load()
        assert controller.farms == []
        assert {'category': 'error', 'message': 'farms offline'} in controller.notifier.messages


class TestTaskList:

    def test_sort_order(self, populated):
        controller = TaskListController(populated, now=NOW)
        controller.load()
        assert [t.title for t in controller.visible()] == ['overdue', 'soon', 'future', 'done']

    def test_status_filters(self, populated):
        controller = TaskListController(populated, now=NOW)
        controller.load()

        expected = {
            'pending': ['overdue', 'soon', 'future'],
            'completed': ['done'],
            'overdue': ['overdue'],
            'due-soon': ['soon'],
            'InProgress': ['soon'],
        }
        for status, titles in expected.items():
            controller.set_filters(status=status)
            assert [t.title for t in controller.visible()] == titles, status

    def test_filters_are_idempotent_and_clearable(self, populated):
        controller = TaskListController(populated, now=NOW)
        controller.load()

        controller.set_filters(farm=1, priority='high')
        first = [t.id for t in controller.visible()]
        controller.set_filters(farm=1, priority='high')
        assert [t.id for t in controller.visible()] == first == [2]

        controller.set_filters(farm=None, priority='')
        assert controller.filters == {}
        controller.clear_filters()
        assert len(controller.visible()) == 4

    def test_view_decorates_tasks(self, populated):
        controller = TaskListController(populated, now=NOW)
        controller.load()
        task = next(t for t in controller.view()['tasks'] if t['title'] == 'overdue')
        assert task['farm_name'] == 'North'
        assert task['crop_name'] is None
        assert task['tags'] == ['overdue']
        assert task['due_label'] == 'May 01'
        assert task['display_status'] == 'Open'

    def test_create_reloads_and_notifies(self, populated):
        controller = TaskListController(populated, now=NOW)
        controller.load()
        task = controller.create({'farm_id': 1, 'crop_id': 1, 'title': 'Scout pests',
                                  'due_date': '2024-05-11'})

        assert task.status == 'Open'
        assert task.id in [t.id for t in controller.tasks]
        assert controller.notifier.messages[-1] == {
            'category': 'success', 'message': 'Task created successfully'
        }

    def test_invalid_input_never_reaches_store(self, populated):
        controller = TaskListController(populated, now=NOW)
        controller.load()
        with pytest.raises(ValidationError) as excinfo:
            controller.create({'farm_id': 1, 'crop_id': 1, 'title': '', 'due_date': ''})
        assert set(excinfo.value.errors) == {'title', 'due_date'}
        assert len(populated.tasks.get_all()) == 4

    def test_update_missing_task_is_notified_and_raised(self, populated):
        controller = TaskListController(populated, now=NOW)
        controller.load()
        with pytest.raises(NotFoundError):
            controller.update(99, {'farm_id': 1, 'title': 'Ghost', 'due_date': '2024-05-11'})
        assert controller.notifier.messages[-1] == {
            'category': 'error', 'message': 'Failed to save task'
        }

    def test_complete(self, populated):
        controller = TaskListController(populated, now=NOW)
        controller.load()
        controller.complete(2)
        controller.set_filters(status='completed')
        assert sorted(t.title for t in controller.visible()) == ['done', 'overdue']


class TestOtherScreens:

    def test_crop_filters(self, populated):
        controller = CropListController(populated, now=NOW)
        controller.load()
        controller.set_filters(status='harvested')
        view = controller.view()
        assert [c['variety'] for c in view['crops']] == ['Kale']
        assert view['crops'][0]['farm_name'] == 'South'
        assert view['crops'][0]['planted_label'] == 'Feb 01, 2024'

    def test_farm_crop_counts(self, populated):
        controller = FarmListController(populated, now=NOW)
        controller.load()
        assert controller.crop_counts() == {1: 1, 2: 1}

    def test_farm_delete_guard(self, populated):
        controller = FarmListController(populated, now=NOW)
        controller.load()
        with pytest.raises(ReferentialIntegrityError):
            controller.delete(1)
        assert controller.delete(1, cascade=True)
        assert [f.name for f in controller.farms] == ['South']

    def test_expense_month_filter_order_and_totals(self, populated):
        controller = ExpenseListController(populated, now=NOW)
        controller.load()
        controller.set_filters(month='2024-05')

        assert [e.date for e in controller.visible()] == ['2024-05-20', '2024-05-05', '2024-05-02']
        assert controller.totals() == {
            'total': 160.25,
            'by_category': {'Labor': 50.25, 'Other': 10.0, 'Seeds': 100.0},
            'count': 3,
            'average': 53.42,
        }

    def test_expense_farm_and_category_filters(self, populated):
        controller = ExpenseListController(populated, now=NOW)
        controller.load()
        controller.set_filters(farm=2, category='Seeds')
        assert [e.amount for e in controller.visible()] == [75.0]

    def test_expense_export_uses_filtered_set(self, populated):
        controller = ExpenseListController(populated, now=NOW)
        controller.load()
        controller.set_filters(month='2024-04')
        buffer, filename = controller.export()
        assert filename == 'farmlog_expenses_2024-04.xlsx'
        assert buffer.getvalue()[:2] == b'PK'


class TestDashboard:

    def test_metrics(self, populated):
        controller = DashboardController(populated, now=NOW)
        assert controller.load()
        assert controller.metrics() == {
            'total_farms': 2,
            'active_crops': 1,
            'upcoming_tasks': 1,
            'monthly_expenses': 160.25,
        }

    def test_view_lists(self, populated):
        controller = DashboardController(populated, now=NOW)
        controller.load()
        view = controller.view()
        assert view['has_farms'] is True
        assert [t['title'] for t in view['upcoming_tasks']] == ['soon']
        assert view['upcoming_tasks'][0]['due_label'] == 'In 2 days'
        assert [c['variety'] for c in view['active_crops']] == ['Corn']


class TestUnparseableStoredDates:

    @pytest.fixture
    def legacy(self, populated):
        populated.tasks.create({'farm_id': 1, 'title': 'legacy', 'due_date': '05/02/2024',
                                'status': 'Open'})
        populated.expenses.create({'farm_id': 1, 'amount': 5.0, 'category': 'Other',
                                   'date': 'last Tuesday'})
        return populated

    def test_task_list_treats_them_as_undated(self, legacy):
        controller = TaskListController(legacy, now=NOW)
        assert controller.load()
        view = controller.view()
        assert [t['title'] for t in view['tasks']] == ['overdue', 'soon', 'future', 'legacy', 'done']
        task = view['tasks'][3]
        assert task['due_label'] == ''
        assert task['tags'] == []

    def test_dashboard_still_loads(self, legacy):
        controller = DashboardController(legacy, now=NOW)
        assert controller.load()
        assert controller.metrics()['upcoming_tasks'] == 1

    def test_expense_sorts_last_and_skips_month_filter(self, legacy):
        controller = ExpenseListController(legacy, now=NOW)
        controller.load()
        assert controller.visible()[-1].date == 'last Tuesday'
        controller.set_filters(month='2024-05')
        assert 'last Tuesday' not in [e.date for e in controller.visible()]

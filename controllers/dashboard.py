"""
controllers/dashboard.py — Dashboard summary.

Loads farms, crops, upcoming tasks (next 7 days) and all expenses together
and derives the four headline metrics:
- total farms
- active crops (anything not harvested)
- upcoming tasks
- expenses for the current calendar month
"""

from controllers.base import ScreenController, farm_name
from repositories import monthly_total
from utils.dates import format_relative_date, sort_tasks, task_display_status

UPCOMING_WINDOW_DAYS = 7
RECENT_LIMIT = 5


class DashboardController(ScreenController):
    error_message = "Failed to load dashboard data"

    def fetchers(self):
        today = self.current_time().date()
        return {
            'farms': self.repos.farms.get_all,
            'crops': self.repos.crops.get_all,
            'upcoming_tasks': lambda: self.repos.tasks.get_upcoming(UPCOMING_WINDOW_DAYS, today=today),
            'expenses': self.repos.expenses.get_all,
        }

    def metrics(self):
        now = self.current_time()
        farms = self.data.get('farms', [])
        crops = self.data.get('crops', [])
        return {
            'total_farms': len(farms),
            'active_crops': sum(1 for c in crops if c.is_active),
            'upcoming_tasks': len(self.data.get('upcoming_tasks', [])),
            'monthly_expenses': monthly_total(self.data.get('expenses', []), now.month, now.year),
        }

    def view(self):
        now = self.current_time()
        farms = self.data.get('farms', [])
        crops = self.data.get('crops', [])
        upcoming = sort_tasks(self.data.get('upcoming_tasks', []), now=now)[:RECENT_LIMIT]

        view = self.snapshot()
        view['metrics'] = self.metrics()
        view['has_farms'] = bool(farms)
        view['upcoming_tasks'] = [
            dict(
                task.to_dict(),
                farm_name=farm_name(farms, task.farm_id),
                display_status=task_display_status(task, now=now),
                due_label=format_relative_date(task.due_date, now=now),
            )
            for task in upcoming
        ]
        view['active_crops'] = [
            dict(crop.to_dict(), farm_name=farm_name(farms, crop.farm_id))
            for crop in crops if crop.is_active
        ][:RECENT_LIMIT]
        return view

"""
controllers/tasks.py — Task list screen.

Loads tasks, farms and crops together. Filters: farm, status (pending,
completed, overdue, due-soon, or one of the task statuses) and priority.
Order: completed last, overdue first, then by due date.
"""

from controllers.base import ScreenController, farm_name
from models import TASK_STATUSES
from utils.dates import (
    format_relative_date, is_due_soon, is_overdue, sort_tasks,
    task_display_status, task_due_tags
)
from utils.validators import validate_task


class TaskListController(ScreenController):
    error_message = "Failed to load tasks"

    def fetchers(self):
        return {
            'tasks': self.repos.tasks.get_all,
            'farms': self.repos.farms.get_all,
            'crops': self.repos.crops.get_all,
        }

    @property
    def tasks(self):
        return self.data.get('tasks', [])

    @property
    def farms(self):
        return self.data.get('farms', [])

    @property
    def crops(self):
        return self.data.get('crops', [])

    def _status_matches(self, task, status, now):
        if status == 'completed':
            return task.is_completed
        if status == 'pending':
            return not task.is_completed
        if status == 'overdue':
            return not task.is_completed and is_overdue(task.due_date, now=now)
        if status == 'due-soon':
            return not task.is_completed and is_due_soon(task.due_date, now=now)
        if status in TASK_STATUSES:
            current = task.status or ('Completed' if task.completed else 'Open')
            return current == status
        return True

    def visible(self):
        """Filtered and sorted tasks. Pure pass over the loaded data."""
        now = self.current_time()
        result = list(self.tasks)

        farm_id = self.filters.get('farm')
        if farm_id:
            result = [t for t in result if t.farm_id == int(farm_id)]

        status = self.filters.get('status')
        if status:
            result = [t for t in result if self._status_matches(t, status, now)]

        priority = self.filters.get('priority')
        if priority:
            result = [t for t in result if t.priority == priority]

        return sort_tasks(result, now=now)

    def crop_name(self, crop_id):
        if not crop_id:
            return None
        crop = next((c for c in self.crops if c.id == crop_id), None)
        return crop.variety if crop else "Unknown Crop"

    def serialize(self, task):
        now = self.current_time()
        item = task.to_dict()
        item.update({
            'farm_name': farm_name(self.farms, task.farm_id),
            'crop_name': self.crop_name(task.crop_id),
            'display_status': task_display_status(task, now=now),
            'tags': task_due_tags(task, now=now),
            'due_label': format_relative_date(task.due_date, now=now),
        })
        return item

    def view(self):
        view = self.snapshot()
        view['tasks'] = [self.serialize(t) for t in self.visible()]
        view['farms'] = [f.to_dict() for f in self.farms]
        view['crops'] = [c.to_dict() for c in self.crops]
        return view

    # ========================================
    # Mutations
    # ========================================

    def create(self, fields):
        self.ensure_loaded()
        cleaned = self._validated(validate_task, fields, self.farms, self.crops)
        return self._mutate(
            lambda: self.repos.tasks.create(cleaned),
            "Task created successfully", "Failed to save task",
        )

    def update(self, task_id, fields):
        self.ensure_loaded()
        cleaned = self._validated(validate_task, fields, self.farms, self.crops)
        return self._mutate(
            lambda: self.repos.tasks.update(task_id, cleaned),
            "Task updated successfully", "Failed to save task",
        )

    def complete(self, task_id):
        return self._mutate(
            lambda: self.repos.tasks.complete(task_id),
            "Task completed!", "Failed to complete task",
        )

    def delete(self, task_id):
        return self._mutate(
            lambda: self.repos.tasks.delete(task_id),
            "Task deleted successfully", "Failed to delete task",
        )

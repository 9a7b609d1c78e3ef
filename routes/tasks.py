"""
routes/tasks.py — Task API routes.

Provides:
- GET    /api/tasks                      — Tasks (?farm=<id>&status=...&priority=...)
- POST   /api/tasks                      — Add a task
- PUT    /api/tasks/<task_id>            — Edit a task
- POST   /api/tasks/<task_id>/complete   — Mark a task completed
- DELETE /api/tasks/<task_id>            — Delete a task
"""

from flask import Blueprint, request

from controllers.tasks import TaskListController
from routes.common import controller_for, load_or_fail, payload, respond

tasks_bp = Blueprint('tasks', __name__, url_prefix='/api/tasks')


def _controller():
    controller = controller_for(TaskListController)
    controller.set_filters(
        farm=request.args.get('farm', type=int),
        status=request.args.get('status', ''),
        priority=request.args.get('priority', ''),
    )
    return controller


@tasks_bp.route('', methods=['GET'])
def list_tasks():
    controller = _controller()
    failed = load_or_fail(controller)
    if failed:
        return failed
    return respond(**controller.view())


@tasks_bp.route('', methods=['POST'])
def add_task():
    controller = _controller()
    task = controller.create(payload())
    return respond(201, task=task.to_dict(), **controller.view())


@tasks_bp.route('/<int:task_id>', methods=['PUT'])
def edit_task(task_id):
    controller = _controller()
    task = controller.update(task_id, payload())
    return respond(task=task.to_dict(), **controller.view())


@tasks_bp.route('/<int:task_id>/complete', methods=['POST'])
def complete_task(task_id):
    controller = _controller()
    task = controller.complete(task_id)
    return respond(task=task.to_dict(), **controller.view())


@tasks_bp.route('/<int:task_id>', methods=['DELETE'])
def delete_task(task_id):
    controller = _controller()
    deleted = controller.delete(task_id)
    return respond(deleted=deleted, **controller.view())

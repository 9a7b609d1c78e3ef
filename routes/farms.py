"""
routes/farms.py — Farm API routes.

Provides:
- GET    /api/farms             — Farms with crop counts
- POST   /api/farms             — Add a farm
- PUT    /api/farms/<farm_id>   — Edit a farm
- DELETE /api/farms/<farm_id>   — Delete a farm (?cascade=1 removes its crops, tasks, expenses)
"""

from flask import Blueprint, request

from controllers.farms import FarmListController
from routes.common import controller_for, load_or_fail, payload, respond

farms_bp = Blueprint('farms', __name__, url_prefix='/api/farms')


@farms_bp.route('', methods=['GET'])
def list_farms():
    """Farm grid data."""
    controller = controller_for(FarmListController)
    failed = load_or_fail(controller)
    if failed:
        return failed
    return respond(**controller.view())


@farms_bp.route('', methods=['POST'])
def add_farm():
    controller = controller_for(FarmListController)
    farm = controller.create(payload())
    return respond(201, farm=farm.to_dict(), **controller.view())


@farms_bp.route('/<int:farm_id>', methods=['PUT'])
def edit_farm(farm_id):
    controller = controller_for(FarmListController)
    farm = controller.update(farm_id, payload())
    return respond(farm=farm.to_dict(), **controller.view())


@farms_bp.route('/<int:farm_id>', methods=['DELETE'])
def delete_farm(farm_id):
    cascade = request.args.get('cascade', '0').lower() in ('1', 'true', 'yes')
    controller = controller_for(FarmListController)
    deleted = controller.delete(farm_id, cascade=cascade)
    return respond(deleted=deleted, **controller.view())

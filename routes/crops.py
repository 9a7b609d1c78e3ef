"""
routes/crops.py — Crop API routes.

Provides:
- GET    /api/crops             — Crops (?farm=<id>&status=planted|growing|harvested)
- POST   /api/crops             — Add a crop
- PUT    /api/crops/<crop_id>   — Edit a crop
- DELETE /api/crops/<crop_id>   — Delete a crop
"""

from flask import Blueprint, request

from controllers.crops import CropListController
from routes.common import controller_for, load_or_fail, payload, respond

crops_bp = Blueprint('crops', __name__, url_prefix='/api/crops')


def _controller():
    controller = controller_for(CropListController)
    controller.set_filters(
        farm=request.args.get('farm', type=int),
        status=request.args.get('status', ''),
    )
    return controller


@crops_bp.route('', methods=['GET'])
def list_crops():
    controller = _controller()
    failed = load_or_fail(controller)
    if failed:
        return failed
    return respond(**controller.view())


@crops_bp.route('', methods=['POST'])
def add_crop():
    controller = _controller()
    crop = controller.create(payload())
    return respond(201, crop=crop.to_dict(), **controller.view())


@crops_bp.route('/<int:crop_id>', methods=['PUT'])
def edit_crop(crop_id):
    controller = _controller()
    crop = controller.update(crop_id, payload())
    return respond(crop=crop.to_dict(), **controller.view())


@crops_bp.route('/<int:crop_id>', methods=['DELETE'])
def delete_crop(crop_id):
    controller = _controller()
    deleted = controller.delete(crop_id)
    return respond(deleted=deleted, **controller.view())

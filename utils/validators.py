"""
utils/validators.py — Input validation helpers.

Validates form field records before any record store call:
- Farms (name, location, positive size, known unit)
- Crops (farm, variety, dates with harvest strictly after planting, field)
- Tasks (title, due date, farm, crop belonging to the same farm)
- Expenses (positive amount, known category, date, farm)

Each validator returns (cleaned_fields, errors). `errors` maps attribute
names to the message shown next to the offending field; an empty dict means
the input is valid. Foreign keys are checked against the farms/crops the
caller already holds.
"""

import math

from models import (
    FARM_UNITS, CROP_STATUSES, TASK_PRIORITIES, TASK_STATUSES, EXPENSE_CATEGORIES
)
from utils.dates import parse_date


def _text(fields, name):
    value = fields.get(name)
    return str(value).strip() if value is not None else ''


def _int_or_none(value):
    if value is None or value == '':
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _positive_number(value):
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) and number > 0 else None


def _date_text(fields, name):
    """(iso string or None, parse ok) for a date field."""
    text = _text(fields, name)
    if not text:
        return None, True
    try:
        parse_date(text, strict=True)
    except ValueError:
        return None, False
    return text, True


def _check_farm(fields, farms, errors):
    farm_id = _int_or_none(fields.get('farm_id'))
    if farm_id is None:
        errors['farm_id'] = "Farm is required"
    elif farms is not None and farm_id not in {f.id for f in farms}:
        errors['farm_id'] = "Selected farm does not exist"
    return farm_id


def validate_farm(fields):
    errors = {}
    name = _text(fields, 'name')
    location = _text(fields, 'location')
    size = _positive_number(fields.get('size'))
    unit = _text(fields, 'unit') or 'acres'

    if not name:
        errors['name'] = "Farm name is required"
    if not location:
        errors['location'] = "Location is required"
    if size is None:
        errors['size'] = "Valid size is required"
    if unit not in FARM_UNITS:
        errors['unit'] = "Unit must be one of: " + ", ".join(FARM_UNITS)

    cleaned = {'name': name, 'location': location, 'size': size, 'unit': unit}
    return cleaned, errors


def validate_crop(fields, farms=None):
    errors = {}
    farm_id = _check_farm(fields, farms, errors)
    variety = _text(fields, 'variety')
    field = _text(fields, 'field')
    status = _text(fields, 'status') or 'planted'
    planting_date, planting_ok = _date_text(fields, 'planting_date')
    expected_harvest, harvest_ok = _date_text(fields, 'expected_harvest')

    if not variety:
        errors['variety'] = "Crop variety is required"

    if not planting_ok:
        errors['planting_date'] = "Planting date is not a valid date"
    elif not planting_date:
        errors['planting_date'] = "Planting date is required"

    if not harvest_ok:
        errors['expected_harvest'] = "Expected harvest date is not a valid date"
    elif not expected_harvest:
        errors['expected_harvest'] = "Expected harvest date is required"
    elif planting_date and parse_date(expected_harvest) <= parse_date(planting_date):
        errors['expected_harvest'] = "Harvest date must be after planting date"

    if not field:
        errors['field'] = "Field location is required"
    if status not in CROP_STATUSES:
        errors['status'] = "Status must be one of: " + ", ".join(CROP_STATUSES)

    cleaned = {
        'farm_id': farm_id,
        'variety': variety,
        'planting_date': planting_date,
        'expected_harvest': expected_harvest,
        'field': field,
        'notes': _text(fields, 'notes'),
        'status': status,
    }
    return cleaned, errors


def validate_task(fields, farms=None, crops=None):
    errors = {}
    farm_id = _check_farm(fields, farms, errors)
    title = _text(fields, 'title')
    priority = _text(fields, 'priority') or 'medium'
    status = _text(fields, 'status') or None
    crop_id = _int_or_none(fields.get('crop_id'))
    due_date, due_ok = _date_text(fields, 'due_date')

    if not title:
        errors['title'] = "Task title is required"

    if not due_ok:
        errors['due_date'] = "Due date is not a valid date"
    elif not due_date:
        errors['due_date'] = "Due date is required"

    if priority not in TASK_PRIORITIES:
        errors['priority'] = "Priority must be one of: " + ", ".join(TASK_PRIORITIES)
    if status is not None and status not in TASK_STATUSES:
        errors['status'] = "Status must be one of: " + ", ".join(TASK_STATUSES)

    if crop_id is not None and crops is not None:
        crop = next((c for c in crops if c.id == crop_id), None)
        if crop is None:
            errors['crop_id'] = "Selected crop does not exist"
        elif farm_id is not None and crop.farm_id != farm_id:
            errors['crop_id'] = "Crop must belong to the selected farm"

    cleaned = {
        'farm_id': farm_id,
        'crop_id': crop_id,
        'title': title,
        'description': _text(fields, 'description'),
        'due_date': due_date,
        'priority': priority,
    }
    if status is not None:
        cleaned['status'] = status
    return cleaned, errors


def validate_expense(fields, farms=None):
    errors = {}
    farm_id = _check_farm(fields, farms, errors)
    amount = _positive_number(fields.get('amount'))
    category = _text(fields, 'category')
    expense_date, date_ok = _date_text(fields, 'date')

    if amount is None:
        errors['amount'] = "Valid amount is required"
    if not category:
        errors['category'] = "Category is required"
    elif category not in EXPENSE_CATEGORIES:
        errors['category'] = "Category must be one of: " + ", ".join(EXPENSE_CATEGORIES)

    if not date_ok:
        errors['date'] = "Date is not a valid date"
    elif not expense_date:
        errors['date'] = "Date is required"

    cleaned = {
        'farm_id': farm_id,
        'amount': round(amount, 2) if amount is not None else None,
        'category': category,
        'date': expense_date,
        'notes': _text(fields, 'notes'),
    }
    return cleaned, errors

"""
tests/test_validators.py — Form validation before any record store call.
"""

from models import Crop, Farm
from utils.validators import validate_crop, validate_expense, validate_farm, validate_task

FARMS = [Farm(id=1, name='Green Valley Farm'), Farm(id=2, name='Sunrise Orchards')]
CROPS = [Crop(id=10, farm_id=1, variety='Tomatoes'), Crop(id=20, farm_id=2, variety='Apples')]


def _crop(**overrides):
    fields = {
        'farm_id': '1', 'variety': 'Corn', 'planting_date': '2024-04-01',
        'expected_harvest': '2024-08-15', 'field': 'East Field',
    }
    fields.update(overrides)
    return fields


def _task(**overrides):
    fields = {'farm_id': 1, 'title': 'Irrigate', 'due_date': '2024-05-12'}
    fields.update(overrides)
    return fields


class TestFarm:

    def test_valid_farm_is_cleaned(self):
        cleaned, errors = validate_farm({'name': '  North  ', 'location': 'Fresno', 'size': '12.5'})
        assert errors == {}
        assert cleaned == {'name': 'North', 'location': 'Fresno', 'size': 12.5, 'unit': 'acres'}

    def test_required_fields(self):
        _, errors = validate_farm({})
        assert errors == {
            'name': "Farm name is required",
            'location': "Location is required",
            'size': "Valid size is required",
        }

    def test_size_must_be_positive_number(self):
        for size in ('0', '-3', 'abc', 'nan', 'inf'):
            _, errors = validate_farm({'name': 'A', 'location': 'B', 'size': size})
            assert errors == {'size': "Valid size is required"}, size

    def test_unknown_unit(self):
        _, errors = validate_farm({'name': 'A', 'location': 'B', 'size': 1, 'unit': 'furlongs'})
        assert 'unit' in errors


class TestCrop:

    def test_valid_crop(self):
        cleaned, errors = validate_crop(_crop(), FARMS)
        assert errors == {}
        assert cleaned['farm_id'] == 1
        assert cleaned['status'] == 'planted'

    def test_harvest_on_planting_day_rejected(self):
        _, errors = validate_crop(_crop(expected_harvest='2024-04-01'), FARMS)
        assert errors == {'expected_harvest': "Harvest date must be after planting date"}

    def test_harvest_before_planting_rejected(self):
        _, errors = validate_crop(_crop(expected_harvest='2024-03-01'), FARMS)
        assert errors['expected_harvest'] == "Harvest date must be after planting date"

    def test_unparseable_date(self):
        _, errors = validate_crop(_crop(planting_date='someday'), FARMS)
        assert 'planting_date' in errors

    def test_unknown_farm(self):
        _, errors = validate_crop(_crop(farm_id=9), FARMS)
        assert errors == {'farm_id': "Selected farm does not exist"}

    def test_missing_fields(self):
        _, errors = validate_crop({}, FARMS)
        assert errors['farm_id'] == "Farm is required"
        assert errors['variety'] == "Crop variety is required"
        assert errors['planting_date'] == "Planting date is required"
        assert errors['expected_harvest'] == "Expected harvest date is required"
        assert errors['field'] == "Field location is required"


class TestTask:

    def test_valid_task_without_crop(self):
        cleaned, errors = validate_task(_task(crop_id=''), FARMS, CROPS)
        assert errors == {}
        assert cleaned['crop_id'] is None
        assert cleaned['priority'] == 'medium'
        assert 'status' not in cleaned

    def test_crop_must_belong_to_farm(self):
        _, errors = validate_task(_task(crop_id=20), FARMS, CROPS)
        assert errors == {'crop_id': "Crop must belong to the selected farm"}

    def test_unknown_crop(self):
        _, errors = validate_task(_task(crop_id=99), FARMS, CROPS)
        assert errors == {'crop_id': "Selected crop does not exist"}

    def test_required_fields(self):
        _, errors = validate_task({}, FARMS, CROPS)
        assert errors['title'] == "Task title is required"
        assert errors['due_date'] == "Due date is required"
        assert errors['farm_id'] == "Farm is required"

    def test_status_must_be_known(self):
        cleaned, errors = validate_task(_task(status='InProgress'), FARMS, CROPS)
        assert errors == {}
        assert cleaned['status'] == 'InProgress'
        _, errors = validate_task(_task(status='Someday'), FARMS, CROPS)
        assert 'status' in errors


class TestExpense:

    def test_valid_expense_rounds_amount(self):
        cleaned, errors = validate_expense(
            {'farm_id': 2, 'amount': '19.999', 'category': 'Seeds', 'date': '2024-05-01'}, FARMS
        )
        assert errors == {}
        assert cleaned['amount'] == 20.0

    def test_invalid_amount_and_missing_fields(self):
        _, errors = validate_expense({'farm_id': 2, 'amount': '0'}, FARMS)
        assert errors == {
            'amount': "Valid amount is required",
            'category': "Category is required",
            'date': "Date is required",
        }

    def test_unknown_category(self):
        _, errors = validate_expense(
            {'farm_id': 1, 'amount': 5, 'category': 'Snacks', 'date': '2024-05-01'}, FARMS
        )
        assert 'category' in errors

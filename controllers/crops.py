"""
controllers/crops.py — Crop list screen (crops + farms, filters farm/status).
"""

from controllers.base import ScreenController, farm_name
from utils.dates import format_date
from utils.validators import validate_crop


class CropListController(ScreenController):
    error_message = "Failed to load crops"

    def fetchers(self):
        return {
            'crops': self.repos.crops.get_all,
            'farms': self.repos.farms.get_all,
        }

    @property
    def crops(self):
        return self.data.get('crops', [])

    @property
    def farms(self):
        return self.data.get('farms', [])

    def visible(self):
        result = list(self.crops)

        farm_id = self.filters.get('farm')
        if farm_id:
            result = [c for c in result if c.farm_id == int(farm_id)]

        status = self.filters.get('status')
        if status:
            result = [c for c in result if c.status == status]

        return result

    def serialize(self, crop):
        item = crop.to_dict()
        item['farm_name'] = farm_name(self.farms, crop.farm_id)
        item['planted_label'] = format_date(crop.planting_date)
        item['harvest_label'] = format_date(crop.expected_harvest)
        return item

    def view(self):
        view = self.snapshot()
        view['crops'] = [self.serialize(c) for c in self.visible()]
        view['farms'] = [f.to_dict() for f in self.farms]
        return view

    def create(self, fields):
        self.ensure_loaded()
        cleaned = self._validated(validate_crop, fields, self.farms)
        return self._mutate(
            lambda: self.repos.crops.create(cleaned),
            "Crop added successfully", "Failed to save crop",
        )

    def update(self, crop_id, fields):
        self.ensure_loaded()
        cleaned = self._validated(validate_crop, fields, self.farms)
        return self._mutate(
            lambda: self.repos.crops.update(crop_id, cleaned),
            "Crop updated successfully", "Failed to save crop",
        )

    def delete(self, crop_id):
        return self._mutate(
            lambda: self.repos.crops.delete(crop_id),
            "Crop deleted successfully", "Failed to delete crop",
        )

"""
controllers/farms.py — Farm grid screen.

Loads farms and crops together and counts crops per farm. Deleting a farm
that still has crops, tasks or expenses is refused unless cascade is asked
for.
"""

from collections import Counter

from controllers.base import ScreenController
from utils.validators import validate_farm


class FarmListController(ScreenController):
    error_message = "Failed to load farms"

    def fetchers(self):
        return {
            'farms': self.repos.farms.get_all,
            'crops': self.repos.crops.get_all,
        }

    @property
    def farms(self):
        return self.data.get('farms', [])

    @property
    def crops(self):
        return self.data.get('crops', [])

    def crop_counts(self):
        counts = Counter(c.farm_id for c in self.crops)
        return {farm.id: counts.get(farm.id, 0) for farm in self.farms}

    def view(self):
        counts = self.crop_counts()
        view = self.snapshot()
        view['farms'] = [
            dict(farm.to_dict(), crop_count=counts.get(farm.id, 0))
            for farm in self.farms
        ]
        return view

    def create(self, fields):
        cleaned = self._validated(validate_farm, fields)
        return self._mutate(
            lambda: self.repos.farms.create(cleaned),
            "Farm created successfully", "Failed to save farm",
        )

    def update(self, farm_id, fields):
        cleaned = self._validated(validate_farm, fields)
        return self._mutate(
            lambda: self.repos.farms.update(farm_id, cleaned),
            "Farm updated successfully", "Failed to save farm",
        )

    def delete(self, farm_id, cascade=False):
        return self._mutate(
            lambda: self.repos.farms.delete(farm_id, cascade=cascade),
            "Farm deleted successfully", "Failed to delete farm",
        )

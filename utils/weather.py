"""
utils/weather.py — Weather widget data.

Two sources:
- mock: fixed current conditions and a five-day forecast
- remote: Open-Meteo daily forecast for the configured coordinates

Both return {'location', 'current': {...}, 'forecast': [{day, temp, condition, icon}]}.
"""

import logging
from datetime import datetime

import requests

logger = logging.getLogger(__name__)

API_URL = "https://api.open-meteo.com/v1/forecast"

MOCK_WEATHER = {
    'location': 'Fresno, CA',
    'current': {'temp': 72, 'condition': 'Sunny', 'icon': 'Sun', 'humidity': 45, 'wind_speed': 8},
    'forecast': [
        {'day': 'Today', 'temp': 72, 'condition': 'Sunny', 'icon': 'Sun'},
        {'day': 'Tomorrow', 'temp': 75, 'condition': 'Partly Cloudy', 'icon': 'PartlyCloudyDay'},
        {'day': 'Wed', 'temp': 68, 'condition': 'Cloudy', 'icon': 'Cloud'},
        {'day': 'Thu', 'temp': 71, 'condition': 'Light Rain', 'icon': 'CloudRain'},
        {'day': 'Fri', 'temp': 74, 'condition': 'Sunny', 'icon': 'Sun'},
    ],
}

# WMO weather codes -> (condition, icon)
WEATHER_CODES = {
    0: ('Sunny', 'Sun'),
    1: ('Mostly Sunny', 'Sun'),
    2: ('Partly Cloudy', 'PartlyCloudyDay'),
    3: ('Cloudy', 'Cloud'),
    45: ('Fog', 'CloudFog'),
    48: ('Fog', 'CloudFog'),
    51: ('Drizzle', 'CloudDrizzle'),
    53: ('Drizzle', 'CloudDrizzle'),
    55: ('Drizzle', 'CloudDrizzle'),
    61: ('Light Rain', 'CloudRain'),
    63: ('Rain', 'CloudRain'),
    65: ('Heavy Rain', 'CloudRain'),
    71: ('Snow', 'CloudSnow'),
    80: ('Showers', 'CloudRain'),
    95: ('Thunderstorm', 'CloudLightning'),
}


def _describe(code):
    return WEATHER_CODES.get(code, ('Unknown', 'Cloud'))


class WeatherService:

    def __init__(self, mode='mock', latitude=None, longitude=None, location=None,
                 timeout=10, session=None):
        self.mode = mode
        self.latitude = latitude
        self.longitude = longitude
        self.location = location or MOCK_WEATHER['location']
        self.timeout = timeout
        self.session = session or requests

    def get_current_weather(self):
        if self.mode != 'remote':
            return MOCK_WEATHER
        return self._fetch_remote()

    def get_forecast(self):
        return self.get_current_weather()['forecast']

    def _fetch_remote(self):
        params = {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "current": "temperature_2m,relative_humidity_2m,weather_code,wind_speed_10m",
            "daily": "weather_code,temperature_2m_max",
            "temperature_unit": "fahrenheit",
            "wind_speed_unit": "mph",
            "timezone": "auto",
            "forecast_days": 5,
        }
        response = self.session.get(API_URL, params=params, timeout=self.timeout)
        response.raise_for_status()
        data = response.json()

        current = data['current']
        condition, icon = _describe(current.get('weather_code'))
        daily = data['daily']
        forecast = []
        for i, day in enumerate(daily['time']):
            if i == 0:
                label = 'Today'
            elif i == 1:
                label = 'Tomorrow'
            else:
                label = datetime.strptime(day, '%Y-%m-%d').strftime('%a')
            day_condition, day_icon = _describe(daily['weather_code'][i])
            forecast.append({
                'day': label,
                'temp': round(daily['temperature_2m_max'][i]),
                'condition': day_condition,
                'icon': day_icon,
            })

        return {
            'location': self.location,
            'current': {
                'temp': round(current['temperature_2m']),
                'condition': condition,
                'icon': icon,
                'humidity': current.get('relative_humidity_2m'),
                'wind_speed': current.get('wind_speed_10m'),
            },
            'forecast': forecast,
        }

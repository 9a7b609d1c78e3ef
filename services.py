"""
services.py — Application-scoped service objects.

Built once in create_app() and stored on app.extensions['farmlog'];
routes reach them through current_services().
"""

from dataclasses import dataclass

from flask import current_app

from records_client import RecordsClient
from repositories import Repositories, build_repositories
from store import LocalRecordStore
from utils.connectivity import ConnectivityMonitor
from utils.weather import WeatherService


@dataclass
class FarmLogServices:
    repositories: Repositories
    store: LocalRecordStore
    connectivity: ConnectivityMonitor
    weather: WeatherService


def build_services(config):
    """Wire the record store client, repositories and helpers from app config."""
    store = LocalRecordStore(
        config['FARMLOG_DB_PATH'],
        simulate_latency=config['FARMLOG_SIMULATE_LATENCY'],
        seed=config['FARMLOG_SEED'],
    )

    if config['FARMLOG_BACKEND'] == 'remote':
        client = RecordsClient(
            config['FARMLOG_API_BASE_URL'],
            api_key=config['FARMLOG_API_KEY'],
            timeout=config['FARMLOG_API_TIMEOUT'],
        )
    else:
        client = store

    weather = WeatherService(
        mode=config['FARMLOG_WEATHER_MODE'],
        latitude=config['FARMLOG_WEATHER_LAT'],
        longitude=config['FARMLOG_WEATHER_LON'],
        location=config['FARMLOG_WEATHER_LOCATION'],
    )

    return FarmLogServices(
        repositories=build_repositories(client),
        store=store,
        connectivity=ConnectivityMonitor(store),
        weather=weather,
    )


def current_services() -> FarmLogServices:
    return current_app.extensions['farmlog']

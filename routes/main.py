"""
routes/main.py — Dashboard, session, connectivity and weather routes.

Provides:
- GET  /api/session        — CSRF token for mutating calls
- GET  /api/dashboard      — Headline metrics, upcoming tasks, active crops, weather
- GET  /api/connectivity   — Offline flag and last sync time
- POST /api/connectivity   — {"online": bool} transition
- GET  /api/weather        — Current conditions and forecast
"""

import logging

import requests
from flask import Blueprint
from flask_wtf.csrf import generate_csrf

from controllers.dashboard import DashboardController
from routes.common import controller_for, load_or_fail, payload, respond
from services import current_services

logger = logging.getLogger(__name__)

main_bp = Blueprint('main', __name__, url_prefix='/api')


def _weather():
    """Weather widget data, or None when the forecast service is down."""
    try:
        return current_services().weather.get_current_weather()
    except (requests.RequestException, KeyError, ValueError) as e:
        logger.warning("Weather unavailable: %s", e)
        return None


@main_bp.route('/session')
def session_info():
    return respond(csrf_token=generate_csrf())


@main_bp.route('/dashboard')
def dashboard():
    """Dashboard — metrics for the four summary cards plus recent lists."""
    controller = controller_for(DashboardController)
    failed = load_or_fail(controller)
    if failed:
        return failed
    return respond(weather=_weather(), **controller.view())


@main_bp.route('/connectivity', methods=['GET'])
def connectivity_status():
    return respond(**current_services().connectivity.status())


@main_bp.route('/connectivity', methods=['POST'])
def connectivity_change():
    online = payload().get('online')
    if isinstance(online, str):
        online = online.lower() in ('1', 'true', 'yes')
    if online is None:
        return respond(400, success=False, error="'online' is required")

    monitor = current_services().connectivity
    status = monitor.mark_online() if online else monitor.mark_offline()
    return respond(**status)


@main_bp.route('/weather')
def weather():
    data = _weather()
    if data is None:
        return respond(502, success=False, error="Weather service unavailable")
    return respond(**data)

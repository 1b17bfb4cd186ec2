"""
gateway/dependencies.py

FastAPI dependency providers for the alerting services.
The broadcaster lives on app.state so each app instance owns its own.
"""

from fastapi import Depends, Request

from gateway.services.alerts import AlertService
from gateway.services.notification import NotificationBroadcaster
from gateway.services.persistence import AlertStore, SqlAlertStore

_store = SqlAlertStore()


def get_alert_store() -> AlertStore:
    return _store


def get_alert_service(store: AlertStore = Depends(get_alert_store)) -> AlertService:
    return AlertService(store)


def get_broadcaster(request: Request) -> NotificationBroadcaster:
    return request.app.state.broadcaster

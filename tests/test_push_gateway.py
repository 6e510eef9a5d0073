import threading
import time
from types import SimpleNamespace

import firebase_admin
import pytest
from firebase_admin import messaging
from firebase_admin.exceptions import InternalError, InvalidArgumentError, UnavailableError

from app.core.exceptions import ExternalServiceError
from app.services import push_gateway as gateway_module
from app.services.push_gateway import FirebasePushGateway, PushMessage, is_invalid_token_error


@pytest.mark.parametrize("error,expected", [
    (messaging.UnregisteredError("Requested entity was not found."), True),
    (messaging.SenderIdMismatchError("SenderId mismatch"), True),
    (InvalidArgumentError("The registration token is not a valid FCM registration token"), True),
    (InvalidArgumentError("Message payload exceeds the maximum size"), False),
    (InternalError("Internal error encountered."), False),
    (None, False),
])
def test_invalid_token_classification(error, expected):
    assert is_invalid_token_error(error) is expected


def test_payload_errors_keep_the_token(monkeypatch):
    def fake_send_each(messages, app=None):
        responses = [
            SimpleNamespace(success=False, exception=InvalidArgumentError("Message payload exceeds the maximum size")),
            SimpleNamespace(success=False, exception=messaging.UnregisteredError("Requested entity was not found.")),
            SimpleNamespace(success=True, exception=None),
        ]
        return SimpleNamespace(responses=responses, success_count=1, failure_count=2)

    monkeypatch.setattr(messaging, "send_each", fake_send_each)
    gateway = FirebasePushGateway("service-account.json")
    monkeypatch.setattr(gateway, "_get_app", lambda: None)

    results = gateway._send_sync([
        PushMessage(token="tok-big", title="t", body="b"),
        PushMessage(token="tok-gone", title="t", body="b"),
        PushMessage(token="tok-ok", title="t", body="b"),
    ])

    assert [(r.token, r.success, r.is_invalid_token) for r in results] == [
        ("tok-big", False, False),
        ("tok-gone", False, True),
        ("tok-ok", True, False),
    ]


def test_app_is_initialised_once_across_threads(monkeypatch):
    initialised = []

    def missing_app(name):
        raise ValueError(name)

    def initialize_app(cred, name):
        time.sleep(0.05)
        if initialised:
            raise ValueError(f"The default Firebase app already exists: {name}")
        initialised.append(name)
        return SimpleNamespace(name=name)

    monkeypatch.setattr(firebase_admin, "get_app", missing_app)
    monkeypatch.setattr(firebase_admin, "initialize_app", initialize_app)
    monkeypatch.setattr(gateway_module.credentials, "Certificate", lambda path: object())

    gateway = FirebasePushGateway("service-account.json")
    apps, errors = [], []

    def worker():
        try:
            apps.append(gateway._get_app())
        except ValueError as e:
            errors.append(e)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert initialised == [FirebasePushGateway.APP_NAME]
    assert len({id(app) for app in apps}) == 1


async def test_disabled_gateway_sends_nothing():
    gateway = FirebasePushGateway(None)
    assert await gateway.send_each([PushMessage(token="tok", title="t", body="b")]) == []


async def test_transport_failure_becomes_external_service_error(monkeypatch):
    def unavailable(messages, app=None):
        raise UnavailableError("FCM is down")

    monkeypatch.setattr(messaging, "send_each", unavailable)
    gateway = FirebasePushGateway("service-account.json")
    monkeypatch.setattr(gateway, "_get_app", lambda: None)

    with pytest.raises(ExternalServiceError):
        await gateway.send_each([PushMessage(token="tok", title="t", body="b")])

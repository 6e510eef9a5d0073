"""
Push notification gateway backed by Firebase Cloud Messaging.

firebase-admin is synchronous, so each batch is sent from a worker thread.
Without FIREBASE_CREDENTIALS_PATH the gateway is disabled: it logs and sends
nothing, which keeps local development and tests free of credentials.
"""
import asyncio
import logging
import threading
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Dict, List, Optional

import firebase_admin
from firebase_admin import credentials, messaging
from firebase_admin.exceptions import FirebaseError, InvalidArgumentError

from app.config import settings
from app.core.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)

# Errors meaning the token will never work again
INVALID_TOKEN_ERRORS = (
    messaging.UnregisteredError,
    messaging.SenderIdMismatchError,
)

# INVALID_ARGUMENT also covers bad payloads; only these mean a bad token
INVALID_TOKEN_MARKERS = (
    "registration token",
    "registration-token",
)


def is_invalid_token_error(error: Optional[Exception]) -> bool:
    """True when FCM rejected the device token itself, not the message."""
    if isinstance(error, INVALID_TOKEN_ERRORS):
        return True
    if isinstance(error, InvalidArgumentError):
        text = str(error).lower()
        return any(marker in text for marker in INVALID_TOKEN_MARKERS)
    return False


@dataclass
class PushMessage:
    token: str
    title: str
    body: str
    data: Dict[str, str] = field(default_factory=dict)
    collapse_key: Optional[str] = None


@dataclass
class PushResult:
    token: str
    success: bool
    error: Optional[str] = None
    is_invalid_token: bool = False


class FirebasePushGateway:
    """Sends PushMessages through firebase_admin.messaging.send_each."""

    APP_NAME = "chinthanaprabha-push"

    def __init__(self, credentials_path: Optional[str] = None):
        self.credentials_path = credentials_path
        self._app: Optional[firebase_admin.App] = None
        self._app_lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return bool(self.credentials_path)

    def _get_app(self) -> firebase_admin.App:
        # Batches run in worker threads; initialise the named app only once
        with self._app_lock:
            if self._app is None:
                try:
                    self._app = firebase_admin.get_app(self.APP_NAME)
                except ValueError:
                    cred = credentials.Certificate(self.credentials_path)
                    self._app = firebase_admin.initialize_app(cred, name=self.APP_NAME)
                    logger.info("Firebase app initialized for push notifications")
            return self._app

    @staticmethod
    def _to_firebase(message: PushMessage) -> messaging.Message:
        android = messaging.AndroidConfig(priority="high", collapse_key=message.collapse_key)
        apns = None
        if message.collapse_key:
            apns = messaging.APNSConfig(headers={"apns-collapse-id": message.collapse_key})
        return messaging.Message(
            token=message.token,
            notification=messaging.Notification(title=message.title, body=message.body),
            data=message.data,
            android=android,
            apns=apns,
        )

    def _send_sync(self, messages: List[PushMessage]) -> List[PushResult]:
        batch = messaging.send_each(
            [self._to_firebase(m) for m in messages],
            app=self._get_app(),
        )
        results = []
        for message, response in zip(messages, batch.responses):
            if response.success:
                results.append(PushResult(token=message.token, success=True))
                continue
            error = response.exception
            results.append(PushResult(
                token=message.token,
                success=False,
                error=str(error),
                is_invalid_token=is_invalid_token_error(error),
            ))
        logger.info(
            f"Push batch sent: {batch.success_count} succeeded, {batch.failure_count} failed"
        )
        return results

    async def send_each(self, messages: List[PushMessage]) -> List[PushResult]:
        """
        Send one batch (at most 500 messages).

        Per-message failures come back as PushResults; a failure of the whole
        call (auth, network) raises ExternalServiceError.
        """
        if not messages:
            return []
        if not self.enabled:
            logger.info(f"Push disabled, skipping {len(messages)} message(s)")
            return []
        try:
            return await asyncio.to_thread(self._send_sync, messages)
        except FirebaseError as e:
            raise ExternalServiceError(f"FCM send failed: {e}") from e


@lru_cache()
def get_push_gateway() -> FirebasePushGateway:
    """FastAPI dependency; overridden in tests."""
    return FirebasePushGateway(settings.FIREBASE_CREDENTIALS_PATH)

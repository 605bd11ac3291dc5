import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from twilio.http.http_client import TwilioHttpClient
from twilio.rest import Client

from app.core.config import Settings
from app.interfaces.INotifier import INotifier

logger = logging.getLogger(__name__)


def _whatsapp(number: str) -> str:
    # Twilio requires the "whatsapp:" prefix
    return number if number.startswith("whatsapp:") else f"whatsapp:{number}"


class NotificationService(INotifier):
    """
    Sends new-order alerts to the admin over WhatsApp (Twilio).

    Messages go out on a single background worker so the request that placed
    the order never waits on Twilio. Failures are logged and dropped.
    """

    def __init__(self, settings: Settings, client: Optional[Client] = None):
        self.client = client
        self.enabled = False
        self.from_number = settings.TWILIO_FROM_NUMBER
        self.admin_number = settings.ADMIN_PHONE_NUMBER
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="notifier")

        # Only initialize if credentials exist in .env
        if self.client is None and settings.TWILIO_ACCOUNT_SID and settings.TWILIO_AUTH_TOKEN:
            try:
                self.client = Client(
                    settings.TWILIO_ACCOUNT_SID,
                    settings.TWILIO_AUTH_TOKEN,
                    http_client=TwilioHttpClient(timeout=settings.NOTIFY_TIMEOUT_SECONDS),
                )
            except Exception as e:
                logger.error(f"❌ Failed to initialize Twilio Client: {e}")
                self.client = None

        if self.client is not None and self.from_number and self.admin_number:
            self.enabled = True
            logger.info("✅ NotificationService: Twilio Client Initialized")
        else:
            logger.warning("⚠️ NotificationService: Credentials missing in .env. Notifications disabled.")

    def notify(self, text: str) -> None:
        if not self.enabled:
            logger.info(f"🔕 Notification skipped (disabled): {text.splitlines()[0] if text else ''}")
            return
        try:
            self._executor.submit(self._send, text)
        except RuntimeError as e:
            # Executor already shut down
            logger.error(f"❌ Notification not queued: {e}")

    def _send(self, text: str) -> None:
        try:
            self.client.messages.create(
                from_=_whatsapp(self.from_number),
                body=text,
                to=_whatsapp(self.admin_number)
            )
            logger.info(f"✅ Admin Notification Sent to {self.admin_number}")
        except Exception as e:
            logger.error(f"❌ Failed to send Admin Notification: {e}")

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

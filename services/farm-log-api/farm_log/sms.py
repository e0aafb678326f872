import logging
import os

import httpx

CLOSE_BASE_URL = os.getenv("CLOSE_BASE_URL", "https://api.close.com")
CLOSE_API_KEY = os.getenv("CLOSE_API_KEY", "").strip() or None
CLOSE_TIMEOUT = float(os.getenv("CLOSE_TIMEOUT", "15"))
CLOSE_SMS_PATH = "/api/v1/activity/sms/"

LOGGER = logging.getLogger(__name__)

_close_client: httpx.AsyncClient | None = None


class SmsDeliveryError(Exception):
    pass


async def startup_close_client() -> None:
    global _close_client
    if _close_client is None:
        _close_client = httpx.AsyncClient(
            base_url=CLOSE_BASE_URL, timeout=httpx.Timeout(CLOSE_TIMEOUT)
        )


async def shutdown_close_client() -> None:
    global _close_client
    if _close_client is not None:
        await _close_client.aclose()
        _close_client = None


def get_close_client() -> httpx.AsyncClient:
    if _close_client is None:
        raise RuntimeError("Close client is not initialized")
    return _close_client


async def send_sms(phone_number: str, body: str, client: httpx.AsyncClient) -> None:
    """Send one SMS through the Close activity API.

    Raises SmsDeliveryError when the key is missing, the request fails, or
    Close answers with a non-2xx status.
    """
    if not CLOSE_API_KEY:
        raise SmsDeliveryError("CLOSE_API_KEY is not set")

    LOGGER.info("Sending SMS to %s", phone_number)
    try:
        response = await client.post(
            CLOSE_SMS_PATH,
            json={"to": phone_number, "body": body},
            headers={"Authorization": f"Bearer {CLOSE_API_KEY}"},
        )
    except httpx.HTTPError as exc:
        raise SmsDeliveryError(f"Close SMS request failed: {exc}") from exc
    if not response.is_success:
        raise SmsDeliveryError(
            f"Close SMS request failed ({response.status_code}): {response.text}"
        )
    LOGGER.info("SMS sent to %s", phone_number)

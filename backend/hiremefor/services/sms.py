import logging
from typing import Any, Dict

import httpx

from .. import config
from ..errors import SmsDeliveryError
from ..models import OtpPurpose

logger = logging.getLogger(__name__)

OTP_MESSAGES = {
    OtpPurpose.REGISTRATION: "Your Hire Me For registration code is: {code}. Valid for {minutes} minutes.",
    OtpPurpose.PIN_RESET: "Your Hire Me For PIN reset code is: {code}. Valid for {minutes} minutes.",
}


def gateway_configured() -> bool:
    token_id = config.BULKSMS_TOKEN_ID
    return bool(token_id and config.BULKSMS_TOKEN_SECRET and token_id != "your_token_id_here")


def international_number(phone_number: str) -> str:
    code = config.SMS_COUNTRY_CODE
    if phone_number.startswith(code):
        return phone_number
    return code + (phone_number[1:] if phone_number.startswith("0") else phone_number)


def send_sms(phone_number: str, message: str) -> Dict[str, Any]:
    if not gateway_configured():
        # development mode: nothing leaves the process
        logger.info("SMS (development mode, not sent) to=%s message=%s", phone_number, message)
        return {"success": True, "development": True}

    to = international_number(phone_number)
    try:
        r = httpx.post(
            config.BULKSMS_API_URL,
            json={"to": to, "body": message, "from": config.BULKSMS_SENDER_ID},
            auth=(config.BULKSMS_TOKEN_ID, config.BULKSMS_TOKEN_SECRET),
            timeout=30,
        )
        r.raise_for_status()
    except httpx.HTTPError as e:
        logger.error("BulkSMS API error for %s: %s", to, e)
        raise SmsDeliveryError("Failed to send SMS") from e

    logger.info("SMS sent to %s", to)
    return r.json() if r.content else {"success": True}


def send_otp(phone_number: str, code: str, purpose: OtpPurpose) -> Dict[str, Any]:
    template = OTP_MESSAGES.get(purpose, OTP_MESSAGES[OtpPurpose.REGISTRATION])
    return send_sms(phone_number, template.format(code=code, minutes=config.OTP_TTL_MINUTES))

"""One-time codes proving control of a phone number.

A code is issued -> consumed, or silently expires. Verification collapses
every failure (wrong, expired, used, never issued) into ``OtpInvalid``.
"""
import logging
import secrets
from datetime import timedelta

from sqlalchemy.orm import Session

from ..config import OTP_TTL_MINUTES
from ..db import utcnow
from ..errors import OtpInvalid
from ..models import OtpCode, OtpPurpose

logger = logging.getLogger(__name__)


def generate_code() -> str:
    return str(100000 + secrets.randbelow(900000))


def issue(db: Session, phone_number: str, purpose: OtpPurpose) -> str:
    # earlier unused codes for the same phone stay valid until they expire
    code = generate_code()
    db.add(OtpCode(
        phone_number=phone_number,
        code=code,
        purpose=purpose.value,
        expires_at=utcnow() + timedelta(minutes=OTP_TTL_MINUTES),
        used=False,
    ))
    db.commit()
    logger.info("Issued %s OTP for %s", purpose.value, phone_number)
    return code


def verify(db: Session, phone_number: str, code: str, purpose: OtpPurpose, commit: bool = True) -> int:
    """Consume the newest matching live code and return its id."""
    if not phone_number or not code:
        raise OtpInvalid()
    otp = (
        db.query(OtpCode)
        .filter(
            OtpCode.phone_number == phone_number,
            OtpCode.code == code,
            OtpCode.purpose == purpose.value,
            OtpCode.expires_at > utcnow(),
            OtpCode.used.is_(False),
        )
        .order_by(OtpCode.created_at.desc(), OtpCode.id.desc())
        .first()
    )
    if otp is None:
        raise OtpInvalid()
    # guarded update so two concurrent verifications cannot both consume it
    consumed = (
        db.query(OtpCode)
        .filter(OtpCode.id == otp.id, OtpCode.used.is_(False))
        .update({OtpCode.used: True}, synchronize_session=False)
    )
    if not consumed:
        raise OtpInvalid()
    if commit:
        db.commit()
    return otp.id

import logging
import re
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException
from sqlalchemy.orm import Session

from ..db import get_db
from ..errors import OtpInvalid, SmsDeliveryError
from ..models import OtpPurpose, Worker
from ..schemas import CreatePinIn, LoginIn, PhoneIn, ResetPinIn, VerifyOtpIn
from ..security import hash_secret, verify_secret
from ..services import otp, sms
from ..services.sessions import (
    SessionRole,
    bearer_token,
    create_session,
    invalidate_all_sessions,
    invalidate_session,
)

logger = logging.getLogger(__name__)
router = APIRouter()

PHONE_RE = re.compile(r"^\d{10}$")
PIN_RE = re.compile(r"^\d{4}$")


def valid_phone(phone_number: Optional[str]) -> bool:
    return bool(phone_number and PHONE_RE.match(phone_number))


def valid_pin(pin: Optional[str]) -> bool:
    return bool(pin and PIN_RE.match(pin))


def _worker_by_phone(db: Session, phone_number: str) -> Optional[Worker]:
    return db.query(Worker).filter(Worker.phone_number == phone_number).first()


def _issue_and_send(db: Session, phone_number: str, purpose: OtpPurpose, failure: str) -> None:
    code = otp.issue(db, phone_number, purpose)
    try:
        sms.send_otp(phone_number, code, purpose)
    except SmsDeliveryError:
        raise HTTPException(status_code=500, detail=failure) from None


@router.post("/request-otp")
def request_otp(body: PhoneIn, db: Session = Depends(get_db)):
    if not valid_phone(body.phone_number):
        raise HTTPException(status_code=400, detail="Phone number must be 10 digits")
    if _worker_by_phone(db, body.phone_number):
        raise HTTPException(status_code=400, detail="Phone number already registered")

    _issue_and_send(db, body.phone_number, OtpPurpose.REGISTRATION, "Failed to send OTP")
    return {"message": "OTP sent successfully"}


@router.post("/verify-otp")
def verify_otp(body: VerifyOtpIn, db: Session = Depends(get_db)):
    if not body.phone_number or not body.code:
        raise HTTPException(status_code=400, detail="Phone number and OTP code required")
    try:
        otp.verify(db, body.phone_number, body.code, OtpPurpose.REGISTRATION)
    except OtpInvalid:
        raise HTTPException(status_code=400, detail="Invalid or expired OTP") from None

    # echoed back to the client only; nothing is stored server-side
    return {
        "message": "OTP verified successfully",
        "temp_token": str(uuid.uuid4()),
        "phone_number": body.phone_number,
    }


@router.post("/create-pin")
def create_pin(body: CreatePinIn):
    if not valid_pin(body.pin):
        raise HTTPException(status_code=400, detail="PIN must be 4 digits")
    return {
        "message": "PIN created successfully",
        "phone_number": body.phone_number,
        "pin_hash": hash_secret(body.pin),
    }


@router.post("/login")
def login(body: LoginIn, db: Session = Depends(get_db)):
    if not body.phone_number or not body.pin:
        raise HTTPException(status_code=400, detail="Phone number and PIN required")

    worker = _worker_by_phone(db, body.phone_number)
    if not worker or not verify_secret(body.pin, worker.pin_hash):
        logger.info("Failed login for %s", body.phone_number)
        raise HTTPException(status_code=401, detail="Invalid phone number or PIN")

    token, _ = create_session(db, worker.id, SessionRole.WORKER)
    logger.info("Worker %s logged in", worker.id)
    return {
        "message": "Login successful",
        "token": token,
        "worker": {"id": worker.id, "first_name": worker.first_name, "surname": worker.surname},
    }


@router.post("/logout")
def logout(authorization: Optional[str] = Header(None), db: Session = Depends(get_db)):
    invalidate_session(db, bearer_token(authorization), SessionRole.WORKER)
    return {"message": "Logged out successfully"}


@router.post("/reset-pin-request")
def reset_pin_request(body: PhoneIn, db: Session = Depends(get_db)):
    if not valid_phone(body.phone_number):
        raise HTTPException(status_code=400, detail="Phone number must be 10 digits")
    if not _worker_by_phone(db, body.phone_number):
        raise HTTPException(status_code=400, detail="Phone number not registered")

    _issue_and_send(db, body.phone_number, OtpPurpose.PIN_RESET, "Failed to send reset OTP")
    return {"message": "PIN reset OTP sent successfully"}


@router.post("/reset-pin")
def reset_pin(body: ResetPinIn, db: Session = Depends(get_db)):
    if not body.phone_number or not body.code or not body.new_pin:
        raise HTTPException(status_code=400, detail="Phone number, OTP, and new PIN required")
    if not valid_pin(body.new_pin):
        raise HTTPException(status_code=400, detail="PIN must be 4 digits")

    try:
        otp.verify(db, body.phone_number, body.code, OtpPurpose.PIN_RESET, commit=False)
    except OtpInvalid:
        db.rollback()
        raise HTTPException(status_code=400, detail="Invalid or expired OTP") from None

    worker = _worker_by_phone(db, body.phone_number)
    if worker is None:
        db.rollback()
        raise HTTPException(status_code=400, detail="Phone number not registered")
    worker.pin_hash = hash_secret(body.new_pin)
    invalidate_all_sessions(db, worker.id, SessionRole.WORKER, commit=False)
    db.commit()
    logger.info("PIN reset for %s", body.phone_number)
    return {"message": "PIN reset successfully"}

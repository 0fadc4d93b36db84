# letmein/server/routers/sync.py
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session, select

from letmein.core.models import Client, utcnow
from ..database import get_session
from ..models import Account, StoredProfile

logger = logging.getLogger(__name__)

router = APIRouter()

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def to_millis(ts: datetime) -> int:
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return (ts - EPOCH) // timedelta(milliseconds=1)


def from_millis(ms: int) -> datetime:
    return EPOCH + timedelta(milliseconds=ms)


def get_account(session: Session, payload: Client) -> Account:
    if not payload.name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="name is required")
    if not payload.verify:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="verify code is required")

    # row lock serializes concurrent syncs of one account
    statement = select(Account).where(Account.name == payload.name).with_for_update()
    account = session.exec(statement).first()
    if account is None:
        account = Account(name=payload.name, verify=payload.verify)
        session.add(account)
        session.flush()
        logger.info("created account %s", payload.name)
    elif account.verify != payload.verify:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN,
                            detail="verify code does not match this account")
    return account


@router.post("/sync")
def sync_profiles(payload: Client, session: Session = Depends(get_session)) -> Dict[str, Any]:
    account = get_account(session, payload)
    account_id: int = account.id  # type: ignore

    # every later sync of this account gets a strictly greater stamp, so rows
    # it writes always fall after the watermark returned here
    stamp = account.next_stamp(to_millis(utcnow()))
    session.add(account)

    # 1. PUSH: upsert every dirty profile the client sent, tombstones included
    for incoming in payload.profiles:
        if not incoming.uuid:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="profile uuid is required")
        stored = session.exec(
            select(StoredProfile).where(
                StoredProfile.account_id == account_id,
                StoredProfile.uuid == incoming.uuid,
            )
        ).first()
        if stored is None:
            stored = StoredProfile(account_id=account_id, uuid=incoming.uuid)
            logger.info("[INSERT] %s", incoming.uuid)
        else:
            logger.info("[UPDATE] %s", incoming.uuid)
        stored.assign(incoming)
        stored.updated_at = stamp
        session.add(stored)
    session.flush()

    # 2. PULL: everything changed since the client's previous sync, read
    # inside the same transaction as the push
    statement = select(StoredProfile).where(StoredProfile.account_id == account_id)
    if payload.previous_sync_at is not None:
        statement = statement.where(StoredProfile.updated_at > to_millis(payload.previous_sync_at))
    statement = statement.order_by(StoredProfile.updated_at, StoredProfile.id)
    changed = session.exec(statement).all()
    profiles = [p.to_profile() for p in changed]

    try:
        session.commit()
    except Exception as e:
        session.rollback()
        logger.error("sync commit failed: %s", e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

    logger.info("returning %d profiles to %s", len(profiles), payload.name)
    response = Client(
        name=payload.name,
        verify=payload.verify,
        profiles=profiles,
        previous_sync_at=from_millis(stamp),
    )
    return response.to_document()

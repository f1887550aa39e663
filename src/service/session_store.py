"""세션 행 저장소.

조건부 삭제는 모두 단일 DELETE 문으로 처리한다.
(조회 후 삭제를 두 번의 왕복으로 나누면 동시 검증/정리 작업과 경합한다)
이미 사라진 행을 삭제해도 0건 처리일 뿐 에러가 아니다.
"""

from datetime import datetime

from sqlalchemy import delete
from sqlmodel import Session

from model.session import UserSession


def insert(db: Session, session_id: str, user_id: int, expires_at: datetime) -> UserSession:
    row = UserSession(id=session_id, user_id=user_id, expires_at=expires_at)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def get(db: Session, session_id: str) -> UserSession | None:
    return db.get(UserSession, session_id)


def delete_by_id(db: Session, session_id: str) -> int:
    result = db.exec(delete(UserSession).where(UserSession.id == session_id))
    db.commit()
    return result.rowcount


def delete_if_expired(db: Session, session_id: str, now: datetime) -> int:
    result = db.exec(
        delete(UserSession).where(
            UserSession.id == session_id, UserSession.expires_at <= now
        )
    )
    db.commit()
    return result.rowcount


def delete_for_user(db: Session, user_id: int) -> int:
    result = db.exec(delete(UserSession).where(UserSession.user_id == user_id))
    db.commit()
    return result.rowcount


def delete_expired(db: Session, now: datetime) -> int:
    result = db.exec(delete(UserSession).where(UserSession.expires_at <= now))
    db.commit()
    return result.rowcount

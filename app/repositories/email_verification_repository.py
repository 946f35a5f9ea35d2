from sqlalchemy.orm import Session
from app.models import EmailVerificationToken
from datetime import datetime

class EmailVerificationRepository:
    def __init__(self, db: Session):
        self.db = db

    def create_token(self, user_id: str, token: str, expires_at: datetime) -> EmailVerificationToken:
        db_token = EmailVerificationToken(evt_user_id=user_id, evt_token=token, evt_expires_at=expires_at)
        self.db.add(db_token)
        self.db.commit()
        self.db.refresh(db_token)
        return db_token

    def get_token(self, token: str) -> EmailVerificationToken | None:
        return self.db.query(EmailVerificationToken).filter(EmailVerificationToken.evt_token == token).first()

    def mark_used(self, db_token: EmailVerificationToken):
        db_token.evt_used = True
        self.db.commit()

    def delete_expired(self, now: datetime) -> int:
        deleted = self.db.query(EmailVerificationToken).filter(EmailVerificationToken.evt_expires_at < now).delete()
        self.db.commit()
        return deleted

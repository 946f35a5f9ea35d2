from sqlalchemy.orm import Session
from app.models import PasswordResetToken
from datetime import datetime

class PasswordResetRepository:
    def __init__(self, db: Session):
        self.db = db

    def create_token(self, user_id: str, token: str, expires_at: datetime) -> PasswordResetToken:
        db_token = PasswordResetToken(prt_user_id=user_id, prt_token=token, prt_expires_at=expires_at)
        self.db.add(db_token)
        self.db.commit()
        self.db.refresh(db_token)
        return db_token

    def get_token(self, token: str) -> PasswordResetToken | None:
        return self.db.query(PasswordResetToken).filter(PasswordResetToken.prt_token == token).first()

    def mark_used(self, db_token: PasswordResetToken):
        db_token.prt_used = True
        self.db.commit()

    def delete_expired(self, now: datetime) -> int:
        deleted = self.db.query(PasswordResetToken).filter(PasswordResetToken.prt_expires_at < now).delete()
        self.db.commit()
        return deleted

from sqlalchemy.orm import Session
from app.models import AuthCode
from datetime import datetime

class AuthCodeRepository:
    def __init__(self, db: Session):
        self.db = db

    def create_code(self, user_id: str, code: str, client_id: str, redirect_uri: str | None, expires_at: datetime) -> AuthCode:
        db_code = AuthCode(
            acd_user_id=user_id,
            acd_code=code,
            acd_client_id=client_id,
            acd_redirect_uri=redirect_uri,
            acd_expires_at=expires_at,
        )
        self.db.add(db_code)
        self.db.commit()
        self.db.refresh(db_code)
        return db_code

    def get_code(self, code: str) -> AuthCode | None:
        return self.db.query(AuthCode).filter(AuthCode.acd_code == code).first()

    def delete_code(self, db_code: AuthCode):
        self.db.delete(db_code)
        self.db.commit()

    def delete_expired(self, now: datetime) -> int:
        deleted = self.db.query(AuthCode).filter(AuthCode.acd_expires_at < now).delete()
        self.db.commit()
        return deleted

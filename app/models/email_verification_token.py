from app.database import Base
from sqlalchemy import Column, Integer, TIMESTAMP, ForeignKey, String, Boolean
from sqlalchemy.sql import func

class EmailVerificationToken(Base):
    __tablename__ = "tbemailverificationtokens"

    evt_id = Column(Integer, primary_key=True, index=True)
    evt_user_id = Column(String(36), ForeignKey("tbusers.user_id", ondelete="CASCADE"), nullable=False)
    evt_token = Column(String(255), nullable=False, unique=True)
    evt_used = Column(Boolean, nullable=False, default=False)
    evt_expires_at = Column(TIMESTAMP(timezone=True), nullable=False)
    evt_created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())

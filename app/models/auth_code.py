from app.database import Base
from sqlalchemy import Column, Integer, TIMESTAMP, ForeignKey, String
from sqlalchemy.sql import func

class AuthCode(Base):
    """Código de autorización OAuth2 (account linking de Alexa), de un solo uso."""
    __tablename__ = "tbauthcodes"

    acd_id = Column(Integer, primary_key=True, index=True)
    acd_user_id = Column(String(36), ForeignKey("tbusers.user_id", ondelete="CASCADE"), nullable=False)
    acd_code = Column(String(255), nullable=False, unique=True)
    acd_client_id = Column(String(100), nullable=False)
    acd_redirect_uri = Column(String(512), nullable=True)
    acd_expires_at = Column(TIMESTAMP(timezone=True), nullable=False)
    acd_created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())

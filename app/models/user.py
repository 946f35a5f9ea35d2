# app/models/user.py

import uuid

from sqlalchemy import Column, String, Boolean, TIMESTAMP
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.database import Base

class User(Base):
    __tablename__ = "tbusers"

    user_id =             Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_email =          Column(String(150), nullable=False, unique=True)
    user_password =       Column(String(255), nullable=False)
    user_email_verified = Column(Boolean, nullable=False, default=False)
    user_created =        Column(TIMESTAMP(timezone=True), server_default=func.now())


    devices = relationship("Device", back_populates="user", cascade="all, delete-orphan")
    refresh_tokens = relationship("RefreshToken", back_populates="user", cascade="all, delete-orphan")

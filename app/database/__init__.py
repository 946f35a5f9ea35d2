from .database import Base, engine, SessionLocal, get_db

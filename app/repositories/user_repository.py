from app.models import User
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from app.core import logger

class UserRepository:

    def __init__(self,db:Session):
        self.db = db

    def get_user_id_repository(self,user_id:str)-> User | None:
        return self.db.query(User).filter(User.user_id == user_id).first()

    def get_user_by_email_repository(self,user_email:str) -> User | None:
        return self.db.query(User).filter(User.user_email == user_email).first()

    def create_user_repository(self,new_user:User)-> User|None:
        try:
            self.db.add(new_user)
            self.db.commit()
            self.db.refresh(new_user)
            logger.info("Usuario creado exitosamente")
            return new_user
        except SQLAlchemyError as e:
            logger.error(f"Usuario no creado en repository : {e}")
            self.db.rollback()
            return None

    def mark_email_verified_repository(self, user_id:str) -> bool:
        return self._update_user(user_id, user_email_verified=True)

    def change_password_user_repository(self,user_id:str,password_hashed:str)-> bool:
        return self._update_user(user_id, user_password=password_hashed)

    def _update_user(self, user_id:str, **changes) -> bool:
        try:
            user = self.get_user_id_repository(user_id)

            if not user:
                logger.debug(f"No se encontro usuario con el id {user_id}")
                return False

            for key, value in changes.items():
                setattr(user, key, value)

            self.db.commit()
            logger.info(f"Usuario {user_id} actualizado: {', '.join(changes)}")
            return True
        except SQLAlchemyError as e:
            logger.error(f"Usuario no actualizado con id {user_id}: {e}")
            self.db.rollback()
            return False

from sqlalchemy import Column, Integer, String, DateTime, JSON
from datetime import datetime
from tasktracker.core.database import Base
import bcrypt

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    username = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Autorisations : rôles non exclusifs ("staff", "manager", "admin")
    roles = Column(JSON, default=list)
    department = Column(String, nullable=True)

    def set_password(self, password: str):
        self.password_hash = bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()

    def verify_password(self, password: str) -> bool:
        return bcrypt.checkpw(password.encode(), self.password_hash.encode())

    def has_role(self, *roles) -> bool:
        held = set(self.roles or [])
        return any(getattr(r, "value", r) in held for r in roles)

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}', roles={self.roles})>"

# server/models/user.py

from sqlalchemy import Column, DateTime, String, Text, func
from . import Base


# -------------------------------
# User Model
# -------------------------------

class User(Base):
    """
    Database model for registered accounts.
    `password` only ever holds a bcrypt hash. Rows are written once at
    registration and never updated or deleted by the service.
    """
    __tablename__ = "users"

    user_id = Column(String(50), primary_key=True)
    user_name = Column(String(100), nullable=False)
    password = Column(Text, nullable=False)
    email = Column(String(150), nullable=False, unique=True)
    phone = Column(String(20), nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    def __repr__(self):
        return f"<User(user_id='{self.user_id}', user_name='{self.user_name}')>"

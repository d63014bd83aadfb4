"""User domain models: credentials and profile aggregates."""

from sqlalchemy import Column, Date, ForeignKey, Integer, String

from app.infrastructure.database import Base

DEFAULT_ROLE_ID = 1


class UserCredential(Base):
    __tablename__ = "user_credentials"

    user_id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(100), unique=True, nullable=False, index=True)
    password = Column(String(255), nullable=False)  # bcrypt hash
    role_id = Column(Integer, nullable=False, default=DEFAULT_ROLE_ID)

    def __repr__(self):
        return f"<UserCredential {self.username}>"


class UserProfile(Base):
    __tablename__ = "user_profiles"

    user_profile_id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("user_credentials.user_id"), unique=True, nullable=False)
    firstname = Column(String(100), nullable=False)
    lastname = Column(String(100), nullable=False)
    birthdate = Column(Date, nullable=True)
    gender = Column(String(20), nullable=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    mobile_number = Column(String(20), nullable=True)
    profile_image_url = Column(String(500), nullable=True)

    def __repr__(self):
        return f"<UserProfile {self.email}>"

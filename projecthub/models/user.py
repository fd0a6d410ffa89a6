from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import relationship

from projecthub.db.base import Base, new_id, utcnow
from projecthub.models.enums import UserRole


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String, nullable=True)
    email = Column(String, unique=True, index=True, nullable=True)
    image = Column(String, nullable=True)
    role = Column(String(20), default=UserRole.USER.value, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    # relationships
    comments = relationship("Comment", back_populates="author", passive_deletes=True)
    created_projects = relationship("Project", back_populates="creator", passive_deletes=True)
    projects = relationship("Project", secondary="project_users", back_populates="users")

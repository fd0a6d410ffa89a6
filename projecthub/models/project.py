from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime, Table
from sqlalchemy.orm import relationship

from projecthub.db.base import Base, new_id, utcnow
from projecthub.models.enums import ProjectStatus

# Users assigned to a project
project_users = Table(
    "project_users",
    Base.metadata,
    Column("project_id", String(36), ForeignKey("projects.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class Project(Base):
    __tablename__ = "projects"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    image = Column(String, nullable=True)
    status = Column(String(20), default=ProjectStatus.TODO.value, nullable=False)
    priority = Column(Integer, default=1, nullable=False)
    start_date = Column(DateTime(timezone=True), nullable=True)
    end_date = Column(DateTime(timezone=True), nullable=True)
    creator_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    # relationships
    creator = relationship("User", back_populates="created_projects")
    users = relationship("User", secondary=project_users, back_populates="projects")
    comments = relationship("Comment", back_populates="project", passive_deletes=True)

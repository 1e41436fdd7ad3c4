"""User ORM model: back-office accounts and their role."""
import uuid
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Enum as SAEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from ticket_admin.database import Base
from ticket_admin.services.authorization import Role


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(100), nullable=False)
    password_hash = Column(String(255), nullable=False, default="")
    role = Column(SAEnum(Role, native_enum=False), nullable=False, default=Role.customer)
    is_active = Column(Boolean, nullable=False, default=True)
    promoted_at = Column(DateTime(timezone=True), nullable=True)
    promoted_by_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user_permissions = relationship(
        "UserPermission",
        back_populates="user",
        cascade="all, delete-orphan",
        foreign_keys="UserPermission.user_id",
    )

    @property
    def permissions(self):
        return [up.permission for up in self.user_permissions]

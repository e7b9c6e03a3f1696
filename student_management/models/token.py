from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, DateTime
from student_management.db.base import Base

class RefreshToken(Base):
    __tablename__ = "refresh_tokens"

    id = Column(Integer, primary_key=True, index=True)
    token = Column(String(512), unique=True, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    is_revoked = Column(Boolean, default=False)
    created_at = Column(DateTime)
    expired_at = Column(DateTime)

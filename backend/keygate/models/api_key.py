import uuid
from datetime import datetime
from typing import Optional
from sqlalchemy import Column, String, Boolean, Integer, DateTime, Text, JSON, ForeignKey, Index
from sqlalchemy.orm import relationship

from keygate.database import Base, GUID
from keygate.permissions import PermissionSet, permission_set_from_blob
from keygate.utils.clock import as_naive_utc, utcnow


class APIKey(Base):
    __tablename__ = "user_api_keys"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    user_id = Column(GUID(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)

    # Secret: only the hash is stored, plus the first 10 chars for display
    key_hash = Column(String(64), unique=True, nullable=False, index=True)  # SHA256
    prefix = Column(String(16), nullable=False)

    # Policy document; see keygate.permissions.legacy for the accepted shapes
    permissions = Column(JSON, nullable=True)

    # Rate limiting (carried, enforced elsewhere)
    rate_limit = Column(Integer, default=60, nullable=False)

    # Status
    is_active = Column(Boolean, default=True, nullable=False)
    expires_at = Column(DateTime, nullable=True)
    last_used_at = Column(DateTime, nullable=True)

    # Rotation chain
    parent_key_id = Column(
        GUID(), ForeignKey("user_api_keys.id", ondelete="SET NULL"), nullable=True
    )
    version = Column(Integer, default=1, server_default="1", nullable=False)
    rotation_reason = Column(Text, nullable=True)
    rotated_at = Column(DateTime, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    user = relationship("User", back_populates="api_keys")

    # Indexes
    __table_args__ = (
        Index("idx_user_api_keys_user_id", "user_id"),
        Index("idx_user_api_keys_parent_key_id", "parent_key_id"),
        Index("idx_user_api_keys_version", "user_id", "version"),
    )

    def __repr__(self):
        return f"<APIKey {self.name} ({self.prefix}...) v{self.version}>"

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Expiry is computed, never stored: a key can be active yet expired."""
        if self.expires_at is None:
            return False
        now = as_naive_utc(now) if now else utcnow()
        return as_naive_utc(self.expires_at) < now

    def is_usable(self, now: Optional[datetime] = None) -> bool:
        return bool(self.is_active) and not self.is_expired(now)

    def permission_set(self) -> PermissionSet:
        return permission_set_from_blob(self.permissions)

"""System configuration model for operator-adjustable settings."""
from sqlalchemy import Column, Integer, String, Text
from sprinksync.config.database import Base


class SystemConfig(Base):
    """Key-value row for settings the operator can change at runtime."""
    __tablename__ = 'system_configs'

    id = Column(Integer, primary_key=True, index=True)
    key = Column(String(100), unique=True, nullable=False, index=True)
    value = Column(Text, nullable=False)  # Stored as text, converted on read
    description = Column(String(500), nullable=True)

    def __repr__(self):
        return f"<SystemConfig(key={self.key}, value={self.value})>"

    def get_int(self):
        """Get value as integer."""
        try:
            return int(self.value)
        except (ValueError, TypeError):
            return None

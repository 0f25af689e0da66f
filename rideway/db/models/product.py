import enum
import uuid
from datetime import datetime

from sqlalchemy import Column, String, Boolean, DateTime, Enum, Numeric, Text, JSON
from rideway.db.session import Base


class ProductType(str, enum.Enum):
    SIMPLE = "simple"
    COMFORTABLE = "comfortable"
    ELITE = "elite"


class Product(Base):
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    type = Column(
        Enum(ProductType, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    base_price = Column(Numeric(10, 2), nullable=False)
    description = Column(Text, nullable=True)
    features = Column(JSON, nullable=False, default=dict)
    is_active = Column(Boolean, nullable=False, default=True)  # soft-delete flag
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

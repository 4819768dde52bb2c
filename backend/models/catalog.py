from datetime import datetime
from uuid import uuid4

from sqlalchemy import Column, String, DateTime, Text, ForeignKey, Integer, Numeric, Boolean, Float
from sqlalchemy.orm import relationship

from core.database import Base, GUID


class Category(Base):
    """Product category shown in navigation and listing filters"""
    __tablename__ = "categories"

    id = Column(GUID, primary_key=True, default=uuid4)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True)
    description = Column(Text)
    image = Column(String(500))
    is_featured = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    products = relationship("Product", back_populates="category")


class Product(Base):
    """Sellable product"""
    __tablename__ = "products"

    id = Column(GUID, primary_key=True, default=uuid4)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True)
    description = Column(Text)
    price = Column(Numeric(10, 2), nullable=False)
    image = Column(String(500))
    rating = Column(Float, default=0.0)
    stock = Column(Integer, default=0)
    is_best_seller = Column(Boolean, default=False)
    is_active = Column(Boolean, default=True)
    category_id = Column(GUID, ForeignKey("categories.id", ondelete="SET NULL"))
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    category = relationship("Category", back_populates="products")

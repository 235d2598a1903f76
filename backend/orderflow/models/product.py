"""
Product and recipe (ingredient) models
"""
from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, Text, Boolean, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime

from orderflow.db.base import Base


class Product(Base):
    """Finished product. Read-only from the fulfillment workflow's point of view."""
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(50), unique=True, nullable=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    unit = Column(String(20), default="pcs", nullable=False)
    active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Recipe: raw materials needed to make one unit
    ingredients = relationship(
        "ProductIngredient",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductIngredient.sequence",
    )

    def __repr__(self):
        return f"<Product {self.code or self.id}: {self.name}>"


class ProductIngredient(Base):
    """One raw material line of a product recipe"""
    __tablename__ = "product_ingredients"
    __table_args__ = (
        UniqueConstraint("product_id", "raw_material_id", name="uq_product_ingredient_material"),
    )

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    raw_material_id = Column(Integer, ForeignKey("raw_materials.id"), nullable=False, index=True)

    # Quantity of raw material per unit of product
    quantity = Column(Numeric(18, 4), nullable=False)
    sequence = Column(Integer, default=1, nullable=False)

    product = relationship("Product", back_populates="ingredients")
    raw_material = relationship("RawMaterial")

    def __repr__(self):
        return f"<ProductIngredient product={self.product_id} material={self.raw_material_id} qty={self.quantity}>"

from __future__ import annotations

from ..extensions import db
from storefront.time_utils import to_utc_z


class Customer(db.Model):
    """Shopper profile; one per user, created at registration or on first profile save."""
    __tablename__ = "customers"
    __table_args__ = (
        db.UniqueConstraint("user_id", name="uq_customers_user"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    name = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(50), nullable=True)
    address = db.Column(db.String(500), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=True, onupdate=db.func.now())

    user = db.relationship("User", back_populates="customer")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "phone": self.phone,
            "address": self.address,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }

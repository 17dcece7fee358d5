from __future__ import annotations

from ..extensions import db
from storefront.time_utils import to_utc_z


class Employee(db.Model):
    __tablename__ = "employees"
    __table_args__ = (
        db.UniqueConstraint("user_id", name="uq_employees_user"),
        db.CheckConstraint("status IN ('active', 'inactive')", name="ck_employees_status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(50), nullable=True)
    # Job title shown in the back office, independent of the login role
    position = db.Column(db.String(100), nullable=True)
    status = db.Column(db.String(16), nullable=False, default="active")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    user = db.relationship("User", back_populates="employee")

    @property
    def employee_code(self) -> str:
        return f"{self.id:03d}"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "employee_code": self.employee_code,
            "user_id": self.user_id,
            "username": self.user.username if self.user else None,
            "role": self.user.role if self.user else None,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "position": self.position,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
        }

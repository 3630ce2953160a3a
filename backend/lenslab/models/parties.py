from __future__ import annotations

from ..extensions import db


class Customer(db.Model):
    __tablename__ = "customers"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    full_name = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(32), nullable=True, index=True)
    email = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {"id": self.id, "full_name": self.full_name, "phone": self.phone, "email": self.email}


class SalesPartner(db.Model):
    """Referral partner paid a commission on orders they bring in."""
    __tablename__ = "sales_partners"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    full_name = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(32), nullable=True)

    def to_dict(self) -> dict:
        return {"id": self.id, "full_name": self.full_name, "phone": self.phone}

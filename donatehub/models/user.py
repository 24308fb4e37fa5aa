from datetime import datetime
from decimal import Decimal
import uuid

from donatehub.extensions import db
from donatehub.utils.constants import UserRole


def gen_api_key():
    return str(uuid.uuid4())


class User(db.Model):
    __tablename__ = "users"

    __table_args__ = (
        db.CheckConstraint("balance >= 0", name="ck_users_balance_non_negative"),
    )

    # issued by the identity provider, never generated here
    id = db.Column(db.BigInteger, primary_key=True, autoincrement=False)
    first_name = db.Column(db.String(255))
    username = db.Column(db.String(255), unique=True, index=True)
    description = db.Column(db.Text, nullable=True)
    channel_url = db.Column(db.String(1024), nullable=True)
    channel_name = db.Column(db.String(255), unique=True, nullable=True, index=True)
    profile_img_url = db.Column(db.String(1024), nullable=True)
    banner_img_url = db.Column(db.String(1024), nullable=True)
    role = db.Column(db.String(30), nullable=False, default=UserRole.UNREGISTERED)
    api = db.Column(db.String(64), unique=True, default=gen_api_key)
    online = db.Column(db.Boolean, default=False, nullable=False)
    enable = db.Column(db.Boolean, default=False, nullable=False)
    last_online_at = db.Column(db.DateTime, default=datetime.utcnow)
    min_donation_amount = db.Column(db.Numeric(12, 2), nullable=True)
    full_registered_at = db.Column(db.DateTime, nullable=True)
    balance = db.Column(db.Numeric(12, 2), nullable=False, default=Decimal("0.00"))

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<User id={self.id} channel={self.channel_name!r} role={self.role}>"

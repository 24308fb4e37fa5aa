from datetime import datetime
import uuid

from donatehub.extensions import db
from donatehub.utils.constants import DonationStatus


def gen_external_ref():
    return f"don_{uuid.uuid4().hex[:20]}"


class Donation(db.Model):
    __tablename__ = "donations"

    __table_args__ = (
        db.CheckConstraint("amount > 0", name="ck_donations_amount_positive"),
        db.Index("idx_donations_streamer_created", "streamer_id", "created_at"),
        db.Index("idx_donations_status", "status"),
    )

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    donor_name = db.Column(db.String(255), nullable=False)
    message = db.Column(db.String(500), nullable=True)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    streamer_id = db.Column(db.BigInteger, db.ForeignKey("users.id"), nullable=False)

    method = db.Column(db.String(20), nullable=False)
    external_ref = db.Column(db.String(64), unique=True, nullable=False, default=gen_external_ref)
    status = db.Column(db.String(20), nullable=False, default=DonationStatus.PENDING)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    completed_at = db.Column(db.DateTime)

    streamer = db.relationship("User", backref="donations")

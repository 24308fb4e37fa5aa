from datetime import datetime

from donatehub.extensions import db
from donatehub.utils.constants import WithdrawStatus


class WithdrawRequest(db.Model):
    __tablename__ = "withdraw_requests"

    __table_args__ = (
        db.CheckConstraint("amount > 0", name="ck_withdraw_requests_amount_positive"),
        db.Index("idx_withdraw_requests_status", "status"),
    )

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    streamer_id = db.Column(db.BigInteger, db.ForeignKey("users.id"), nullable=False, index=True)

    amount = db.Column(db.Numeric(12, 2), nullable=False)
    card_number = db.Column(db.String(32), nullable=False)
    status = db.Column(db.String(20), nullable=False, default=WithdrawStatus.PENDING)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    processed_at = db.Column(db.DateTime)

    streamer = db.relationship("User", backref="withdraws")

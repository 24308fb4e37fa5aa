import logging
from datetime import datetime
from decimal import Decimal

from sqlalchemy import func, update
from sqlalchemy.exc import SQLAlchemyError

from donatehub.extensions import db
from donatehub.models.donation import Donation
from donatehub.models.user import User
from donatehub.models.withdraw_request import WithdrawRequest
from donatehub.utils.constants import DonationStatus, WithdrawStatus
from donatehub.utils.exceptions import ConflictError, InvalidArgumentError, NotFoundError


class SettlementService:
    """Pairs every terminal ledger transition with its balance mutation.

    A transition is an ``UPDATE ... WHERE status = 'PENDING'``; the balance is
    touched only when that statement changed exactly one row, and both writes
    are committed (or rolled back) together. Concurrent or repeated callbacks
    for the same entry therefore settle at most once.
    """

    def __init__(self, logger=None):
        self.log = logger or logging.getLogger(__name__)

    def credit(self, streamer_id, amount):
        amount = Decimal(amount)
        result = db.session.execute(
            update(User)
            .where(User.id == streamer_id)
            .values(balance=User.balance + amount)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise NotFoundError("Streamer not found", details={"streamer_id": streamer_id})
        self.log.info("Credited streamer %s with %s", streamer_id, amount)

    def debit(self, streamer_id, amount):
        amount = Decimal(amount)
        result = db.session.execute(
            update(User)
            .where(User.id == streamer_id, User.balance >= amount)
            .values(balance=User.balance - amount)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            if db.session.get(User, streamer_id) is None:
                raise NotFoundError("Streamer not found", details={"streamer_id": streamer_id})
            raise ConflictError(
                "Balance is lower than the withdraw amount",
                code="INSUFFICIENT_FUNDS",
                details={"streamer_id": streamer_id, "amount": str(amount)},
            )
        self.log.info("Debited streamer %s by %s", streamer_id, amount)

    def settle_donation(self, donation, completed):
        target = DonationStatus.COMPLETED if completed else DonationStatus.FAILED
        try:
            changed = self._transition(
                Donation, donation.id, DonationStatus.PENDING, target,
                completed_at=datetime.utcnow() if completed else None,
            )
            if not changed:
                raise ConflictError(
                    "Donation is already settled",
                    code="ALREADY_SETTLED",
                    details={"donation_id": donation.id},
                )
            if completed:
                self.credit(donation.streamer_id, donation.amount)
            db.session.commit()
        except (ConflictError, NotFoundError):
            db.session.rollback()
            raise
        except SQLAlchemyError:
            db.session.rollback()
            self.log.exception("Settlement of donation %s failed", donation.id)
            raise

        db.session.refresh(donation)
        self.log.info("Donation %s settled as %s", donation.id, target)
        return donation

    def settle_withdraw(self, withdraw, status):
        if status not in (WithdrawStatus.COMPLETED, WithdrawStatus.CANCELED):
            raise InvalidArgumentError(f"Cannot move a withdraw request to {status}")
        try:
            changed = self._transition(
                WithdrawRequest, withdraw.id, WithdrawStatus.PENDING, status,
                processed_at=datetime.utcnow(),
            )
            if not changed:
                raise ConflictError(
                    "Withdraw request is already processed",
                    code="ALREADY_SETTLED",
                    details={"withdraw_id": withdraw.id},
                )
            if status == WithdrawStatus.COMPLETED:
                self.debit(withdraw.streamer_id, withdraw.amount)
            db.session.commit()
        except (ConflictError, NotFoundError):
            db.session.rollback()
            self.log.warning("Withdraw %s was not moved to %s", withdraw.id, status)
            raise
        except SQLAlchemyError:
            db.session.rollback()
            self.log.exception("Settlement of withdraw %s failed", withdraw.id)
            raise

        db.session.refresh(withdraw)
        self.log.info("Withdraw %s settled as %s", withdraw.id, status)
        return withdraw

    def reconcile(self, streamer_id=None):
        """Compare stored balances with the completed ledger entries.

        Returns a list of ``{"streamer_id", "balance", "expected"}`` for every
        account whose balance drifted.
        """
        donated = (
            db.session.query(
                Donation.streamer_id.label("streamer_id"),
                func.coalesce(func.sum(Donation.amount), 0).label("total"),
            )
            .filter(Donation.status == DonationStatus.COMPLETED)
            .group_by(Donation.streamer_id)
            .subquery()
        )
        withdrawn = (
            db.session.query(
                WithdrawRequest.streamer_id.label("streamer_id"),
                func.coalesce(func.sum(WithdrawRequest.amount), 0).label("total"),
            )
            .filter(WithdrawRequest.status == WithdrawStatus.COMPLETED)
            .group_by(WithdrawRequest.streamer_id)
            .subquery()
        )

        q = (
            db.session.query(
                User.id,
                User.balance,
                func.coalesce(donated.c.total, 0),
                func.coalesce(withdrawn.c.total, 0),
            )
            .outerjoin(donated, donated.c.streamer_id == User.id)
            .outerjoin(withdrawn, withdrawn.c.streamer_id == User.id)
        )
        if streamer_id is not None:
            q = q.filter(User.id == streamer_id)

        mismatches = []
        for uid, balance, donated_total, withdrawn_total in q.all():
            expected = Decimal(str(donated_total)) - Decimal(str(withdrawn_total))
            if Decimal(str(balance or 0)).quantize(Decimal("0.01")) != expected.quantize(Decimal("0.01")):
                self.log.warning(
                    "Balance mismatch for streamer %s: stored %s, expected %s",
                    uid, balance, expected,
                )
                mismatches.append({
                    "streamer_id": uid,
                    "balance": Decimal(str(balance or 0)),
                    "expected": expected,
                })
        return mismatches

    @staticmethod
    def _transition(model, entry_id, from_status, to_status, **values):
        result = db.session.execute(
            update(model)
            .where(model.id == entry_id, model.status == from_status)
            .values(status=to_status, **values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

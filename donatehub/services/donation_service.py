import logging
from datetime import datetime, time
from decimal import Decimal

from sqlalchemy import func

from donatehub.extensions import db
from donatehub.models.donation import Donation
from donatehub.models.user import User
from donatehub.utils.constants import DonationStatus, PaymentMethod, UserRole
from donatehub.utils.exceptions import ConflictError, InvalidArgumentError, NotFoundError
from donatehub.utils.money import CENT, parse_amount
from donatehub.utils.pagination import paginate_query
from donatehub.utils.statistics import fill_days, window_start


class DonationService:
    def __init__(self, settlement, gateway, logger=None):
        self.settlement = settlement
        self.gateway = gateway
        self.log = logger or logging.getLogger(__name__)

    def create_donation(self, streamer_id, donor_name, amount, method, message=None):
        """Open a PENDING donation and return ``(donation, payment_url)``."""
        amount = parse_amount(amount)

        method = PaymentMethod.parse(method)
        if not method:
            raise InvalidArgumentError("Unknown payment method", details={"allowed": list(PaymentMethod.ALL)})

        streamer = db.session.get(User, streamer_id)
        if not streamer or not streamer.enable or streamer.role != UserRole.STREAMER:
            self.log.error("Donation for unknown streamer %s", streamer_id)
            raise NotFoundError("Streamer not found")

        if streamer.min_donation_amount and amount < streamer.min_donation_amount:
            raise InvalidArgumentError(
                "Amount is below the streamer's minimum donation",
                code="BELOW_MINIMUM",
                details={"min_donation_amount": float(streamer.min_donation_amount)},
            )

        donation = Donation(
            donor_name=donor_name,
            message=message,
            amount=amount,
            streamer_id=streamer.id,
            method=method,
            status=DonationStatus.PENDING,
        )
        db.session.add(donation)
        db.session.commit()

        self.log.info(
            "Donation %s created for streamer %s: %s via %s",
            donation.id, streamer.id, amount, method,
        )
        return donation, self.gateway.payment_link(donation)

    def complete_donation(self, method, body, headers=None):
        """Handle a provider callback; settles the matching donation once."""
        method = PaymentMethod.parse(method)
        if not method:
            raise InvalidArgumentError("Unknown payment method")

        notice = self.gateway.parse_callback(method, body, headers)
        donation = Donation.query.filter_by(external_ref=notice.reference, method=method).first()
        if not donation:
            self.log.error("Callback for unknown donation %s (%s)", notice.reference, method)
            raise NotFoundError("Donation not found", details={"reference": notice.reference})

        if donation.status != DonationStatus.PENDING:
            self.log.info("Repeated callback for settled donation %s", donation.id)
            raise ConflictError(
                "Donation is already settled",
                code="ALREADY_SETTLED",
                details={"donation_id": donation.id, "status": donation.status},
            )

        if notice.paid and notice.amount is not None and notice.amount != Decimal(donation.amount).quantize(CENT):
            self.log.error(
                "Amount mismatch for donation %s: paid %s, expected %s",
                donation.id, notice.amount, donation.amount,
            )
            raise InvalidArgumentError(
                "Paid amount does not match the donation",
                code="AMOUNT_MISMATCH",
                details={"expected": str(donation.amount), "paid": str(notice.amount)},
            )

        if not notice.final:
            # CLICK Prepare: the payer has not been charged yet
            self.log.info("Payment of donation %s prepared by %s", donation.id, method)
            return donation

        return self.settlement.settle_donation(donation, completed=notice.paid)

    def list_for_streamer(self, streamer_id, page, size):
        if not db.session.get(User, streamer_id):
            raise NotFoundError("Streamer not found")
        q = Donation.query.filter_by(streamer_id=streamer_id)
        return paginate_query(self._newest_first(q), page, size)

    def list_all(self, page, size):
        return paginate_query(self._newest_first(Donation.query), page, size)

    def statistics(self, streamer_id, days):
        """Completed donation totals per day over the trailing ``days`` days."""
        start = window_start(days)
        end = datetime.utcnow().date()
        if streamer_id is not None and not db.session.get(User, streamer_id):
            raise NotFoundError("Streamer not found")

        # bucketed by the day the payment was confirmed
        day = func.date(Donation.completed_at)
        q = (
            db.session.query(
                day.label("day"),
                func.coalesce(func.sum(Donation.amount), 0),
                func.count(Donation.id),
            )
            .filter(
                Donation.status == DonationStatus.COMPLETED,
                Donation.completed_at >= datetime.combine(start, time.min),
            )
        )
        if streamer_id is not None:
            q = q.filter(Donation.streamer_id == streamer_id)
        rows = q.group_by(day).all()

        return fill_days(
            [(d, {"amount": float(total), "count": count}) for d, total, count in rows],
            start,
            end,
            {"amount": 0.0, "count": 0},
        )

    @staticmethod
    def _newest_first(q):
        return q.order_by(Donation.created_at.desc(), Donation.id.desc())

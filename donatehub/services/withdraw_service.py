import logging
import re

from donatehub.extensions import db
from donatehub.models.user import User
from donatehub.models.withdraw_request import WithdrawRequest
from donatehub.utils.constants import WithdrawStatus
from donatehub.utils.exceptions import InvalidArgumentError, NotFoundError
from donatehub.utils.money import parse_amount
from donatehub.utils.pagination import paginate_query

CARD_NUMBER_RE = re.compile(r"^\d{16}$")


def normalize_card_number(card_number):
    digits = re.sub(r"[\s-]", "", card_number or "")
    if not CARD_NUMBER_RE.match(digits):
        raise InvalidArgumentError("Card number must contain 16 digits", code="INVALID_CARD")
    return digits


class WithdrawService:
    def __init__(self, settlement, logger=None):
        self.settlement = settlement
        self.log = logger or logging.getLogger(__name__)

    def create_withdraw(self, streamer_id, amount, card_number):
        amount = parse_amount(amount)
        card_number = normalize_card_number(card_number)

        streamer = db.session.get(User, streamer_id)
        if not streamer:
            raise NotFoundError("Streamer not found")

        # funds are not reserved; completion re-checks the balance
        if streamer.balance < amount:
            self.log.warning(
                "Withdraw of %s rejected for streamer %s, balance %s",
                amount, streamer_id, streamer.balance,
            )
            raise InvalidArgumentError(
                "Not enough balance",
                code="INSUFFICIENT_FUNDS",
                details={"balance": float(streamer.balance)},
            )

        wr = WithdrawRequest(
            streamer_id=streamer.id,
            amount=amount,
            card_number=card_number,
            status=WithdrawStatus.PENDING,
        )
        db.session.add(wr)
        db.session.commit()

        self.log.info("Withdraw %s requested by streamer %s: %s", wr.id, streamer_id, amount)
        return wr

    def set_status(self, withdraw_id, status):
        self.log.info("Withdraw %s status change to %s requested", withdraw_id, status)
        wr = db.session.get(WithdrawRequest, withdraw_id)
        if not wr:
            raise NotFoundError("Withdraw request not found")
        return self.settlement.settle_withdraw(wr, status)

    def list_by_status(self, page, size, status=None):
        q = self._filter_status(WithdrawRequest.query, status)
        return paginate_query(self._newest_first(q), page, size)

    def list_for_streamer_by_status(self, streamer_id, page, size, status=None):
        if not db.session.get(User, streamer_id):
            raise NotFoundError("Streamer not found")
        q = self._filter_status(WithdrawRequest.query.filter_by(streamer_id=streamer_id), status)
        return paginate_query(self._newest_first(q), page, size)

    @staticmethod
    def _filter_status(q, status):
        if not status:
            return q
        status = status.upper()
        if status not in WithdrawStatus.ALL:
            raise InvalidArgumentError("Unknown withdraw status", details={"allowed": list(WithdrawStatus.ALL)})
        return q.filter(WithdrawRequest.status == status)

    @staticmethod
    def _newest_first(q):
        return q.order_by(WithdrawRequest.created_at.desc(), WithdrawRequest.id.desc())

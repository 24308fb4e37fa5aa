import hashlib
import hmac
import json
import logging
from collections import namedtuple
from decimal import Decimal, InvalidOperation
from urllib.parse import parse_qsl, urlencode

from donatehub.utils.constants import PaymentMethod
from donatehub.utils.exceptions import InvalidArgumentError
from donatehub.utils.money import CENT

# final=False marks a notice that only announces a payment (CLICK Prepare);
# the donation is settled by the final one.
PaymentNotice = namedtuple("PaymentNotice", ["reference", "paid", "amount", "final"], defaults=[True])

CLICK_PREPARE = 0
CLICK_COMPLETE = 1

CLICK_SIGNED_FIELDS = (
    "click_trans_id",
    "service_id",
    "merchant_trans_id",
    "merchant_prepare_id",
    "amount",
    "action",
    "sign_time",
)


def _to_amount(value):
    try:
        return Decimal(str(value)).quantize(CENT)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidArgumentError("Callback amount is not a number", code="INVALID_CALLBACK")


def _decode(body):
    try:
        return body.decode("utf-8")
    except UnicodeDecodeError:
        raise InvalidArgumentError("Callback body is not valid UTF-8", code="INVALID_CALLBACK")


class PaymentGateway:
    """Payment links and callback parsing for the supported providers."""

    def __init__(self, config, logger=None):
        self.config = config
        self.log = logger or logging.getLogger(__name__)

    def payment_link(self, donation):
        amount = f"{Decimal(donation.amount):.2f}"
        if donation.method == PaymentMethod.CLICK:
            params = {
                "service_id": self.config.get("CLICK_SERVICE_ID"),
                "merchant_id": self.config.get("CLICK_MERCHANT_ID"),
                "amount": amount,
                "transaction_param": donation.external_ref,
            }
            return f"{self.config.get('CLICK_PAY_URL')}?{urlencode(params)}"

        if donation.method == PaymentMethod.MIRPAY:
            params = {
                "kassa_id": self.config.get("MIRPAY_KASSA_ID"),
                "summa": amount,
                "order_id": donation.external_ref,
            }
            return f"{self.config.get('MIRPAY_PAY_URL')}?{urlencode(params)}"

        raise InvalidArgumentError(f"Unsupported payment method {donation.method}")

    def parse_callback(self, method, body, headers=None):
        headers = headers or {}
        if isinstance(body, str):
            body = body.encode("utf-8")
        body = body or b""

        if method == PaymentMethod.CLICK:
            return self._parse_click(body)
        if method == PaymentMethod.MIRPAY:
            return self._parse_mirpay(body, headers)
        raise InvalidArgumentError(f"Unsupported payment method {method}")

    def _parse_click(self, body):
        data = dict(parse_qsl(_decode(body), keep_blank_values=True))
        if not data.get("merchant_trans_id"):
            raise InvalidArgumentError("merchant_trans_id is missing", code="INVALID_CALLBACK")

        secret = self.config.get("CLICK_SECRET_KEY")
        if secret:
            # click_trans_id + service_id + secret + merchant_trans_id + ...
            parts = [data.get(f, "") for f in CLICK_SIGNED_FIELDS]
            raw = parts[0] + parts[1] + secret + "".join(parts[2:])
            expected = hashlib.md5(raw.encode()).hexdigest()
            if not hmac.compare_digest(expected, data.get("sign_string", "")):
                self.log.warning("Click callback with a bad signature for %s", data["merchant_trans_id"])
                raise InvalidArgumentError("Invalid signature", code="INVALID_SIGNATURE")
        else:
            self.log.warning("CLICK_SECRET_KEY is not set, accepting an unsigned callback")

        try:
            error = int(data.get("error", "0"))
            action = int(data.get("action", ""))
        except ValueError:
            raise InvalidArgumentError("error and action must be integers", code="INVALID_CALLBACK")
        if action not in (CLICK_PREPARE, CLICK_COMPLETE):
            raise InvalidArgumentError(f"Unknown Click action {action}", code="INVALID_CALLBACK")

        amount = _to_amount(data["amount"]) if data.get("amount") else None
        return PaymentNotice(data["merchant_trans_id"], error == 0, amount, action == CLICK_COMPLETE)

    def _parse_mirpay(self, body, headers):
        secret = self.config.get("MIRPAY_SECRET_KEY")
        if secret:
            signature = headers.get("X-Mirpay-Signature", "")
            computed = hmac.new(secret.encode(), body, hashlib.sha512).hexdigest()
            if not signature or not hmac.compare_digest(computed, signature):
                self.log.warning("MirPay callback with a bad signature")
                raise InvalidArgumentError("Invalid signature", code="INVALID_SIGNATURE")
        else:
            self.log.warning("MIRPAY_SECRET_KEY is not set, accepting an unsigned callback")

        try:
            data = json.loads(_decode(body))
        except ValueError:
            raise InvalidArgumentError("Callback body is not valid JSON", code="INVALID_CALLBACK")
        if not isinstance(data, dict) or not data.get("order_id"):
            raise InvalidArgumentError("order_id is missing", code="INVALID_CALLBACK")

        amount = _to_amount(data["summa"]) if data.get("summa") is not None else None
        paid = str(data.get("status", "")).lower() == "success"
        return PaymentNotice(str(data["order_id"]), paid, amount)

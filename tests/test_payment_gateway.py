import hashlib
import hmac
import json
from decimal import Decimal

import pytest

from donatehub.services.payment_service import PaymentGateway
from donatehub.utils.constants import PaymentMethod
from donatehub.utils.exceptions import InvalidArgumentError

CLICK_SECRET = "click-secret"
MIRPAY_SECRET = "mirpay-secret"


@pytest.fixture
def gateway():
    return PaymentGateway({"CLICK_SECRET_KEY": CLICK_SECRET, "MIRPAY_SECRET_KEY": MIRPAY_SECRET})


def signed_click_body(ref, error="0", amount="10.00", action="1"):
    fields = {
        "click_trans_id": "555",
        "service_id": "101",
        "merchant_trans_id": ref,
        "merchant_prepare_id": "7",
        "amount": amount,
        "action": action,
        "sign_time": "2024-05-01 10:00:00",
        "error": error,
    }
    raw = (
        fields["click_trans_id"] + fields["service_id"] + CLICK_SECRET + fields["merchant_trans_id"]
        + fields["merchant_prepare_id"] + fields["amount"] + fields["action"] + fields["sign_time"]
    )
    fields["sign_string"] = hashlib.md5(raw.encode()).hexdigest()
    return "&".join(f"{k}={v}" for k, v in fields.items())


def test_click_signed_callback(gateway):
    notice = gateway.parse_callback(PaymentMethod.CLICK, signed_click_body("don_1").encode())

    assert notice.reference == "don_1"
    assert notice.paid is True
    assert notice.amount == Decimal("10.00")


def test_click_declined_callback(gateway):
    notice = gateway.parse_callback(PaymentMethod.CLICK, signed_click_body("don_1", error="-9"))

    assert notice.paid is False


def test_click_bad_signature(gateway):
    body = signed_click_body("don_1").replace("amount=10.00", "amount=1.00")

    with pytest.raises(InvalidArgumentError) as exc:
        gateway.parse_callback(PaymentMethod.CLICK, body)
    assert exc.value.code == "INVALID_SIGNATURE"


def test_click_missing_reference(gateway):
    with pytest.raises(InvalidArgumentError):
        gateway.parse_callback(PaymentMethod.CLICK, "amount=1")


def test_mirpay_signed_callback(gateway):
    body = json.dumps({"order_id": "don_2", "status": "success", "summa": "15"})
    signature = hmac.new(MIRPAY_SECRET.encode(), body.encode(), hashlib.sha512).hexdigest()

    notice = gateway.parse_callback(PaymentMethod.MIRPAY, body, {"X-Mirpay-Signature": signature})

    assert notice == ("don_2", True, Decimal("15.00"), True)


def test_mirpay_bad_signature(gateway):
    body = json.dumps({"order_id": "don_2", "status": "success"})

    with pytest.raises(InvalidArgumentError):
        gateway.parse_callback(PaymentMethod.MIRPAY, body, {"X-Mirpay-Signature": "deadbeef"})


def test_mirpay_malformed_body():
    gateway = PaymentGateway({})

    with pytest.raises(InvalidArgumentError):
        gateway.parse_callback(PaymentMethod.MIRPAY, "not json")
    with pytest.raises(InvalidArgumentError):
        gateway.parse_callback(PaymentMethod.MIRPAY, json.dumps({"status": "success"}))


def test_click_prepare_is_not_final(gateway):
    notice = gateway.parse_callback(PaymentMethod.CLICK, signed_click_body("don_1", action="0"))

    assert notice.paid is True
    assert notice.final is False

    notice = gateway.parse_callback(PaymentMethod.CLICK, signed_click_body("don_1", action="1"))
    assert notice.final is True


def test_click_requires_known_action():
    gateway = PaymentGateway({})

    for body in ("merchant_trans_id=don_1&error=0", "merchant_trans_id=don_1&action=7&error=0"):
        with pytest.raises(InvalidArgumentError) as exc:
            gateway.parse_callback(PaymentMethod.CLICK, body)
        assert exc.value.code == "INVALID_CALLBACK"


def test_mirpay_signature_covers_raw_bytes(gateway):
    body = b'{"order_id": "don_3", "status": "success", "note": "\xff\xfe"}'
    signature = hmac.new(MIRPAY_SECRET.encode(), body, hashlib.sha512).hexdigest()

    with pytest.raises(InvalidArgumentError) as exc:
        gateway.parse_callback(PaymentMethod.MIRPAY, body, {"X-Mirpay-Signature": signature})
    assert exc.value.code == "INVALID_CALLBACK"

    # a lossy decode before hashing no longer matches the signature
    replaced = body.decode("utf-8", errors="replace").encode()
    with pytest.raises(InvalidArgumentError) as exc:
        gateway.parse_callback(PaymentMethod.MIRPAY, replaced, {"X-Mirpay-Signature": signature})
    assert exc.value.code == "INVALID_SIGNATURE"

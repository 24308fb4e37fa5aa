class UserRole:
    UNREGISTERED = "UNREGISTERED"
    STREAMER = "STREAMER"
    ADMIN = "ADMIN"


class DonationStatus:
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    ALL = (PENDING, COMPLETED, FAILED)


class WithdrawStatus:
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    CANCELED = "CANCELED"

    ALL = (PENDING, COMPLETED, CANCELED)


class PaymentMethod:
    CLICK = "CLICK"
    MIRPAY = "MIRPAY"

    ALL = (CLICK, MIRPAY)

    @classmethod
    def parse(cls, value):
        """Normalise a path/body value to a known method, or None."""
        if not value:
            return None
        value = str(value).strip().upper()
        return value if value in cls.ALL else None

from flask import current_app

from donatehub.services.auth_service import AuthService
from donatehub.services.donation_service import DonationService
from donatehub.services.file_service import FileService
from donatehub.services.payment_service import PaymentGateway
from donatehub.services.settlement_service import SettlementService
from donatehub.services.user_service import UserService
from donatehub.services.withdraw_service import WithdrawService

EXTENSION_KEY = "donatehub.services"


class Services:
    """Service objects of one application, wired with the app's logger."""

    def __init__(self, config, logger):
        self.settlement = SettlementService(logger)
        self.gateway = PaymentGateway(config, logger)
        self.files = FileService(config, logger)
        self.auth = AuthService(config, logger)
        self.users = UserService(self.files, logger)
        self.donations = DonationService(self.settlement, self.gateway, logger)
        self.withdraws = WithdrawService(self.settlement, logger)


def init_services(app):
    app.extensions[EXTENSION_KEY] = Services(app.config, app.logger)
    return app.extensions[EXTENSION_KEY]


def get_services():
    return current_app.extensions[EXTENSION_KEY]

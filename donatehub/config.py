import os
from dotenv import load_dotenv

load_dotenv()


def _database_uri():
    uri = os.getenv("DATABASE_URL", "sqlite:///donatehub.db")
    sslrootcert = os.getenv("DB_SSLROOTCERT")
    if sslrootcert:
        uri = f"{uri}?sslmode=verify-full&sslrootcert={sslrootcert}"
    return uri


class Config:
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_DATABASE_URI = _database_uri()
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY")

    CORS_ORIGINS = os.getenv(
        "CORS_ORIGINS",
        "https://donatehub.uz"
    )

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    ACCESS_EXPIRES = int(os.getenv("ACCESS_EXPIRES", 86400))
    REFRESH_EXPIRES = int(os.getenv("REFRESH_EXPIRES", 604800))
    basedir = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

    # identity provider ids that sign in as administrators
    ADMIN_IDS = [int(i) for i in os.getenv("ADMIN_IDS", "").split(",") if i.strip()]
    TELEGRAM_BOT_TOKEN = os.getenv("TELEGRAM_BOT_TOKEN", "")

    UPLOADS_FOLDER = os.getenv("UPLOADS_FOLDER", os.path.join(basedir, "uploads"))
    STORAGE_UPLOAD_URL = os.getenv("STORAGE_UPLOAD_URL", "")
    STORAGE_API_KEY = os.getenv("STORAGE_API_KEY", "")

    CLICK_PAY_URL = os.getenv("CLICK_PAY_URL", "https://my.click.uz/services/pay")
    CLICK_SERVICE_ID = os.getenv("CLICK_SERVICE_ID", "")
    CLICK_MERCHANT_ID = os.getenv("CLICK_MERCHANT_ID", "")
    CLICK_SECRET_KEY = os.getenv("CLICK_SECRET_KEY", "")

    MIRPAY_PAY_URL = os.getenv("MIRPAY_PAY_URL", "https://mirpay.uz/pay")
    MIRPAY_KASSA_ID = os.getenv("MIRPAY_KASSA_ID", "")
    MIRPAY_SECRET_KEY = os.getenv("MIRPAY_SECRET_KEY", "")


class DevelopmentConfig(Config):
    DEBUG = True


class ProductionConfig(Config):
    DEBUG = False


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    JWT_SECRET_KEY = "test-secret-key-with-enough-length-for-hs256"
    ADMIN_IDS = [1]
    TELEGRAM_BOT_TOKEN = ""
    STORAGE_UPLOAD_URL = ""
    CLICK_SECRET_KEY = ""
    MIRPAY_SECRET_KEY = ""
    CLICK_SERVICE_ID = "101"
    CLICK_MERCHANT_ID = "202"
    MIRPAY_KASSA_ID = "303"


CONFIGS = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
}

from loguru import logger
import os

from app.core.config import LOG_DIR

LOG_FORMAT = "{time} | {level} | {message}"

# Create folder if missing
os.makedirs(LOG_DIR, exist_ok=True)

# Remove default handler
logger.remove()


def _only(log_type: str):
    return lambda record: record["extra"].get("log_type") == log_type


def _weekly(path: str, **options):
    options.setdefault("retention", "4 weeks")
    options.setdefault("level", "INFO")
    logger.add(path, rotation="1 week", enqueue=True, **options)


# Everything at INFO and above
_weekly(f"{LOG_DIR}/app.log", format=LOG_FORMAT)

# Inquiry / accept / reject / cancel trail
_weekly(f"{LOG_DIR}/bookings.log", filter=_only("booking"), format=LOG_FORMAT)

# Razorpay orders, verifications and failures
_weekly(f"{LOG_DIR}/payments.log", filter=_only("payment"), format=LOG_FORMAT)

# Expiry sweep and reminder runs
_weekly(f"{LOG_DIR}/sweeper.log", filter=_only("sweeper"), format=LOG_FORMAT)

# Errors are kept twice as long
_weekly(f"{LOG_DIR}/errors.log", retention="8 weeks", level="ERROR")


def get_logger():
    return logger

import logging

import bcrypt

logger = logging.getLogger(__name__)

SALT_ROUNDS = 10


def hash_password(password):
    try:
        hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=SALT_ROUNDS))
        return hashed.decode("utf-8")
    except (AttributeError, TypeError, ValueError) as exc:
        logger.error("Unable to hash password: %s", exc)
        return None


def compare_password(password, hashed):
    if not password or not hashed:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except (AttributeError, ValueError) as exc:
        logger.warning("Unable to compare password hash: %s", exc)
        return False

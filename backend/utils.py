import re
import unicodedata
from datetime import datetime

from bson import ObjectId
from bson.errors import InvalidId
from flask.json.provider import DefaultJSONProvider


class MongoJSONProvider(DefaultJSONProvider):
    """Renders ObjectId as hex string and datetimes as ISO-8601."""

    @staticmethod
    def default(o):
        if isinstance(o, ObjectId):
            return str(o)
        if isinstance(o, datetime):
            return o.isoformat()
        return DefaultJSONProvider.default(o)


def slugify(value):
    condensed = " ".join(str(value or "").split()).lower()
    ascii_name = (
        unicodedata.normalize("NFKD", condensed)
        .encode("ascii", "ignore")
        .decode("ascii")
    )
    return re.sub(r"[^a-z0-9]+", "-", ascii_name).strip("-")


def to_object_id(value):
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        return None


def public_user(user):
    if not user:
        return user
    return {k: v for k, v in user.items() if k not in ("password", "answer")}


def error_body(message, error):
    return {"success": False, "message": message, "error": str(error)}

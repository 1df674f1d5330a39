"""
Master key authentication for the Azure Cosmos DB SQL (DocumentDB) REST API.

Every request carries an ``authorization`` header holding an HMAC-SHA256
signature over the verb, resource type, resource id and request date:

    StringToSign = verb\\n resourceType\\n resourceId\\n date\\n \\n
    Signature    = Base64(HMAC-SHA256(UTF8(StringToSign), Base64Decode(MasterKey)))
    Header       = UrlEncode("type=master&ver=1.0&sig=" + Signature)

Reference: https://learn.microsoft.com/en-us/rest/api/cosmos-db/access-control-on-cosmosdb-resources
"""

import base64
import binascii
import hashlib
import hmac
import logging
from datetime import datetime, timezone
from email.utils import format_datetime
from typing import Optional
from urllib.parse import quote

from documentdb.auth.exceptions import InvalidMasterKeyError

logger = logging.getLogger(__name__)

TOKEN_TYPE = "master"
TOKEN_VERSION = "1.0"


def format_date(now: Optional[datetime] = None) -> str:
    """
    Format a timestamp as an RFC 1123 date in UTC.

    Day and month names are always English, whatever the process locale.
    Naive timestamps are taken to be UTC.

    Args:
        now: Timestamp to format (defaults to the current time)

    Returns:
        Date string such as ``Tue, 01 Nov 1994 08:12:31 GMT``
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return format_datetime(now.astimezone(timezone.utc), usegmt=True)


def decode_master_key(master_key: str) -> bytes:
    """
    Decode a base64 master key.

    Raises:
        InvalidMasterKeyError: If the key is empty or not valid base64
    """
    if not master_key:
        raise InvalidMasterKeyError("Master key is empty")
    try:
        return base64.b64decode(master_key, validate=True)
    except (binascii.Error, ValueError) as e:
        logger.warning("Master key rejected: not valid base64")
        raise InvalidMasterKeyError(f"Master key is not valid base64: {e}") from e


def build_string_to_sign(
    verb: str,
    resource_type: str,
    resource_id: str,
    date: str,
) -> str:
    """
    Build the string to sign for a request.

    Verb, resource type and date are lower-cased. The resource id is
    case-sensitive and kept as-is.

    Args:
        verb: HTTP method
        resource_type: Resource type segment (dbs, colls, docs, sprocs, udfs)
        resource_id: Resource id the request addresses (empty for feeds at the root)
        date: RFC 1123 date sent in the x-ms-date header

    Returns:
        String to sign
    """
    return (
        f"{verb.lower()}\n"
        f"{resource_type.lower()}\n"
        f"{resource_id}\n"
        f"{date.lower()}\n"
        "\n"
    )


def compute_signature(string_to_sign: str, master_key: str) -> str:
    """
    Compute HMAC-SHA256 signature.

    Args:
        string_to_sign: Output of ``build_string_to_sign``
        master_key: Base64-encoded master key

    Returns:
        Base64-encoded signature

    Raises:
        InvalidMasterKeyError: If the key cannot be decoded
    """
    key_bytes = decode_master_key(master_key)

    signature_bytes = hmac.new(
        key_bytes,
        string_to_sign.encode("utf-8"),
        hashlib.sha256
    ).digest()

    return base64.b64encode(signature_bytes).decode("utf-8")


def build_authorization_header(
    verb: str,
    resource_type: str,
    resource_id: str,
    date: str,
    master_key: str,
) -> str:
    """
    Build the url-encoded value of the ``authorization`` header.

    Raises:
        InvalidMasterKeyError: If the key cannot be decoded
    """
    string_to_sign = build_string_to_sign(verb, resource_type, resource_id, date)
    signature = compute_signature(string_to_sign, master_key)
    token = f"type={TOKEN_TYPE}&ver={TOKEN_VERSION}&sig={signature}"
    return quote(token, safe="-_.~")

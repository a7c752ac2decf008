"""
AWS Signature Version 2 signing for Query API requests.
"""
from base64 import b64encode
from collections import namedtuple
from hashlib import sha256
import hmac
from logging import getLogger

from .dateutil import format_iso8601, utc_now
from .params import Parameter, ParameterSet

# pylint: disable=C0103

# Signature method and version for AWS SigV2
HMAC_SHA256 = "HmacSHA256"
SIGNATURE_VERSION = "2"

# Query API requests are always POSTed to the root path.
_method = "POST"
_path = "/"

# Standard parameter names
_aws_access_key_id = "AWSAccessKeyId"
_signature = "Signature"
_signature_method = "SignatureMethod"
_signature_version = "SignatureVersion"
_timestamp = "Timestamp"
_version = "Version"

# Logging instance
log = getLogger("awsquery.signer")

class Credential(namedtuple("Credential", ["access_key", "secret_key"])):
    """
    An AWS access key id and its secret key.
    """
    __slots__ = ()

    def __repr__(self):
        # Never leak the secret key into logs or tracebacks.
        return "Credential(access_key=%r, secret_key=<hidden>)" % (
            self.access_key,)

class Request(object):
    """
    A single Query API call: the target host and API version, the
    credential to sign with, and the parameters to send.

    Parameters may be added until the request is encoded for the first
    time. Encoding signs the request exactly once; every later call to
    encode() returns the same string.
    """

    def __init__(self, host, version, credential, params=None, now=utc_now):
        """
        Request(
            host: str,
            version: str,
            credential: Credential,
            params: Optional[ParameterSet],
            now: Callable[[], datetime]=utc_now)

        host: The API endpoint hostname (e.g. "sdb.amazonaws.com").
        version: The API version string (e.g. "2009-04-15").
        credential: The Credential used to sign the request.
        params: Initial parameters; a new empty ParameterSet if omitted.
        now: Clock used to stamp the request when it is signed.
        """
        super(Request, self).__init__()
        self._host = host
        self._version = version
        self._credential = credential
        self._params = params if params is not None else ParameterSet()
        self._now = now
        self._encoded = None
        return

    @property
    def host(self):
        """
        The endpoint hostname the request is sent to.
        """
        return self._host

    @property
    def version(self):
        """
        The API version of the request.
        """
        return self._version

    @property
    def credential(self):
        """
        The credential used to sign the request.
        """
        return self._credential

    @property
    def params(self):
        """
        The ParameterSet of the request.
        """
        return self._params

    @property
    def finalized(self):
        """
        Whether the request has been signed.
        """
        return self._encoded is not None

    @property
    def url(self):
        """
        The URL the request is POSTed to.
        """
        return "https://" + self.host + _path

    def add(self, name, value):
        """
        Add a parameter to the request. A RuntimeError exception is raised
        if the request has already been signed.
        """
        if self.finalized:
            raise RuntimeError("Request to %s has already been signed" %
                               self.host)

        self._params.add(name, value)
        return

    def sign(self):
        """
        Add the standard parameters and the signature, then freeze the
        encoded form. Signing an already-signed request does nothing.
        """
        if self.finalized:
            return

        params = self._params
        params.add(_aws_access_key_id, self.credential.access_key)
        params.add(_signature_method, HMAC_SHA256)
        params.add(_signature_version, SIGNATURE_VERSION)
        params.add(_version, self.version)
        params.add(_timestamp, format_iso8601(self._now()))
        params.sort()

        unsigned = params.encode()
        canonical = canonical_string(self.host, unsigned)
        signature = compute_signature(self.credential.secret_key, canonical)
        params.add(_signature, signature)

        # The signature follows the sorted parameters it was computed over.
        self._encoded = (unsigned + "&" +
                         Parameter(_signature, signature).encode())

        log.debug("Signed request to %s: access_key=%s timestamp=%s",
                  self.host, self.credential.access_key,
                  params.get(_timestamp))
        return

    def encode(self):
        """
        The signed, encoded request body. The request is signed on the
        first call.
        """
        self.sign()
        return self._encoded

def canonical_string(host, encoded_params):
    """
    canonical_string(host, encoded_params) -> str

    The AWS SigV2 string to sign for a POST to host:
        "POST" + '\n' +
        host + '\n' +
        "/" + '\n' +
        encoded_params

    encoded_params must be the sorted form produced by ParameterSet.encode().
    """
    return "\n".join([_method, host, _path, encoded_params])

def compute_signature(secret_key, canonical):
    """
    compute_signature(secret_key, canonical) -> str

    The base64-encoded HMAC-SHA256 digest of the canonical string, keyed
    with the secret key.
    """
    if isinstance(secret_key, str):
        secret_key = secret_key.encode("utf-8")

    digest = hmac.new(secret_key, canonical.encode("utf-8"), sha256).digest()
    return b64encode(digest).decode("ascii")

# Local variables:
# mode: Python
# tab-width: 8
# indent-tabs-mode: nil
# End:
# vi: set expandtab tabstop=8

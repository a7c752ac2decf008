"""
Query API client: configuration, transport and retry.
"""
from logging import getLogger
from os import environ as os_environ
from random import Random
from time import monotonic, sleep as time_sleep

import httpx

from .exc import RequestCancelled
from .response import unmarshal
from .signer import Credential, Request

# pylint: disable=C0103

# Environment variables read by ClientConfig.from_environ
AWS_ACCESS_KEY_ID = "AWS_ACCESS_KEY_ID"
AWS_SECRET_ACCESS_KEY = "AWS_SECRET_ACCESS_KEY"
AWS_MAX_RETRIES = "AWS_MAX_RETRIES"

DEFAULT_MAX_RETRIES = 5
DEFAULT_TIMEOUT = 30.0

# charset=utf-8 is required by the SimpleDB endpoint, otherwise it fails
# signature checking.
_content_type = "application/x-www-form-urlencoded; charset=utf-8"

# Backoff parameters, in milliseconds
_backoff_base_ms = 100
_backoff_cap_ms = 2000
_jitter_ms = 200

# Responses with a status at or above this are retried.
_http_server_error = 500

# Logging instance
log = getLogger("awsquery.client")

class ClientConfig(object):
    # pylint: disable=R0902
    """
    Settings for a Client.
    """

    def __init__(self, **kw):
        """
        ClientConfig(
            access_key: str,
            secret_key: str,
            max_retries: int=5,
            timeout: Optional[float]=30.0)

        Create a new ClientConfig instance. Properties can be specified as
        keyword arguments.

        access_key: The AWS access key id.
        secret_key: The AWS secret key. Not validated; a bad key surfaces as
            an authentication APIError from the service.
        max_retries: How many times a failed call is retried. A call is
            attempted at most max_retries + 1 times.
        timeout: HTTP timeout for each attempt, in seconds (None disables).
        """
        super(ClientConfig, self).__init__()
        self._access_key = ""
        self._secret_key = ""
        self._max_retries = DEFAULT_MAX_RETRIES
        self._timeout = DEFAULT_TIMEOUT

        for key, value in kw.items():
            setattr(self, key, value)
        return

    @classmethod
    def from_environ(cls, environ=None):
        """
        Create a ClientConfig from AWS_ACCESS_KEY_ID, AWS_SECRET_ACCESS_KEY
        and AWS_MAX_RETRIES. A missing or invalid AWS_MAX_RETRIES value
        falls back to the default.

        environ defaults to os.environ.
        """
        if environ is None:
            environ = os_environ

        max_retries = DEFAULT_MAX_RETRIES
        max_retries_str = environ.get(AWS_MAX_RETRIES)
        if max_retries_str is not None:
            try:
                max_retries = int(max_retries_str)
                if max_retries < 0:
                    raise ValueError("negative")
            except ValueError:
                log.warning("Ignoring invalid %s value %r; using %d",
                            AWS_MAX_RETRIES, max_retries_str,
                            DEFAULT_MAX_RETRIES)
                max_retries = DEFAULT_MAX_RETRIES

        return cls(access_key=environ.get(AWS_ACCESS_KEY_ID, ""),
                   secret_key=environ.get(AWS_SECRET_ACCESS_KEY, ""),
                   max_retries=max_retries)

    @property
    def access_key(self):
        """
        The AWS access key id.
        """
        return self._access_key

    @access_key.setter
    def access_key(self, value):
        if not isinstance(value, str):
            raise TypeError("Expected access_key to be a string.")

        self._access_key = value
        return

    @property
    def secret_key(self):
        """
        The AWS secret key.
        """
        return self._secret_key

    @secret_key.setter
    def secret_key(self, value):
        if not isinstance(value, (str, bytes)):
            raise TypeError("Expected secret_key to be a string.")

        self._secret_key = value
        return

    @property
    def max_retries(self):
        """
        The number of times a failed call is retried.
        """
        return self._max_retries

    @max_retries.setter
    def max_retries(self, value):
        if not isinstance(value, int) or isinstance(value, bool):
            raise TypeError("Expected max_retries to be an integer.")

        if value < 0:
            raise ValueError("max_retries cannot be negative.")

        self._max_retries = value
        return

    @property
    def timeout(self):
        """
        The HTTP timeout for each attempt, in seconds.
        """
        return self._timeout

    @timeout.setter
    def timeout(self, value):
        if value is not None:
            if not isinstance(value, (int, float)):
                raise TypeError("Expected timeout to be a number.")

            if value <= 0:
                raise ValueError("timeout must be positive.")

        self._timeout = value
        return

    @property
    def credential(self):
        """
        The Credential built from access_key and secret_key.
        """
        return Credential(self.access_key, self.secret_key)

    def __repr__(self):
        return "ClientConfig(access_key=%r, max_retries=%r, timeout=%r)" % (
            self.access_key, self.max_retries, self.timeout)

def backoff_delay(attempt, random):
    """
    backoff_delay(attempt, random) -> float

    The delay, in seconds, before retry number attempt (1-based):
        min(2000ms, 100ms * 2**attempt) + uniform(0, 200ms)

    random must provide uniform(a, b), as random.Random does.
    """
    backoff = min(_backoff_cap_ms, _backoff_base_ms * 2 ** attempt)
    return (backoff + random.uniform(0, _jitter_ms)) / 1000.0

class Client(object):
    """
    Sends signed requests to AWS Query APIs.

    Each call is a single sequential flow: sign once, POST, and retry with
    exponential backoff on transport errors and 5xx responses.
    """

    def __init__(self, config=None, http_client=None, random=None,
                 sleep=None):
        """
        Client(
            config: Optional[ClientConfig],
            http_client: Optional[httpx.Client],
            random: Optional[random.Random],
            sleep: Optional[Callable[[float], None]])

        config: Client settings; read from the environment if omitted.
        http_client: An httpx.Client to send requests with. If omitted, each
            call opens (and closes) its own client.
        random: Source of retry jitter.
        sleep: Function used to wait between attempts when no cancellation
            event is supplied to do().
        """
        super(Client, self).__init__()
        self._config = config if config is not None else \
            ClientConfig.from_environ()
        self._http_client = http_client
        self._random = random if random is not None else Random()
        self._sleep = sleep if sleep is not None else time_sleep
        return

    @property
    def config(self):
        """
        The ClientConfig of this client.
        """
        return self._config

    @property
    def max_retries(self):
        """
        The number of times a failed call is retried.
        """
        return self._config.max_retries

    def new_request(self, host, version):
        """
        Create an unsigned Request for host and API version, signed with
        this client's credential.
        """
        return Request(host, version, self._config.credential)

    def do(self, request, response_type, cancel=None):
        """
        do(request, response_type, cancel=None) -> Response

        Send request and decode the result into response_type.

        Attempt 0 is sent immediately; attempts 1 to max_retries follow a
        backoff delay. A transport error or a status >= 500 triggers a
        retry; any other response is decoded and returned (or raised, for
        an APIError) at once. When every attempt fails, the last response
        received is decoded; if there was none, the last transport error
        is re-raised.

        cancel is an optional threading.Event. When set, the call raises
        RequestCancelled before the next attempt, including during a
        backoff wait.
        """
        last_response = None
        last_error = None

        for attempt in range(self.max_retries + 1):
            if attempt > 0:
                delay = backoff_delay(attempt, self._random)
                log.info("Retrying %s %s in %.3fs (retry %d of %d)",
                         request.host, request.params.get("Action", "-"),
                         delay, attempt, self.max_retries)
                self._wait(delay, cancel)

            if cancel is not None and cancel.is_set():
                raise RequestCancelled(
                    "Request to %s cancelled" % request.host)

            start = monotonic()
            try:
                response = self._post(request)
            except httpx.TransportError as e:
                log.debug("POST %s failed after %dms: %s", request.url,
                          (monotonic() - start) * 1000, e)
                last_error = e
                continue

            log.debug("POST %s -> HTTP %d in %dms", request.url,
                      response.status_code, (monotonic() - start) * 1000)
            last_response = response

            if response.status_code < _http_server_error:
                return unmarshal(response, response_type)

        if last_response is not None:
            return unmarshal(last_response, response_type)

        raise last_error

    def _wait(self, delay, cancel):
        if cancel is None:
            self._sleep(delay)
        elif cancel.wait(delay):
            raise RequestCancelled(
                "Request cancelled during retry backoff")
        return

    def _post(self, request):
        body = request.encode().encode("utf-8")
        headers = {"Content-Type": _content_type}

        if self._http_client is not None:
            return self._http_client.post(
                request.url, content=body, headers=headers)

        with httpx.Client(timeout=self._config.timeout) as http_client:
            return http_client.post(request.url, content=body, headers=headers)

def default_client(environ=None):
    """
    Create a Client configured from the environment (see
    ClientConfig.from_environ).
    """
    return Client(ClientConfig.from_environ(environ))

# Local variables:
# mode: Python
# tab-width: 8
# indent-tabs-mode: nil
# End:
# vi: set expandtab tabstop=8

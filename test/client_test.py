#!/usr/bin/env python
from threading import Event
from unittest import TestCase
from unittest.mock import patch

import httpx

from awsquery.client import (
    Client, ClientConfig, DEFAULT_MAX_RETRIES, backoff_delay, default_client)
from awsquery.encoding import percent_decode
from awsquery.exc import APIError, RequestCancelled
from awsquery.sdb import ListDomainsResponse

access_key = "AK"
secret_key = "SECRET"

error_xml = (
    b"<Response><Errors><Error><Code>AuthFailure</Code>"
    b"<Message>bad</Message></Error></Errors>"
    b"<RequestID>req-1</RequestID></Response>")

unavailable_xml = (
    b"<Response><Errors><Error><Code>ServiceUnavailable</Code>"
    b"<Message>try later</Message></Error></Errors></Response>")

list_domains_xml = (
    b"<ListDomainsResponse><ListDomainsResult>"
    b"<DomainName>a</DomainName></ListDomainsResult>"
    b"<ResponseMetadata><RequestId>req-2</RequestId>"
    b"<BoxUsage>0.0000071759</BoxUsage></ResponseMetadata>"
    b"</ListDomainsResponse>")

class FixedRandom(object):
    """
    Jitter source that always returns the same fraction of the range.
    """
    def __init__(self, fraction=0.5):
        self.fraction = fraction
        self.calls = []

    def uniform(self, a, b):
        self.calls.append((a, b))
        return a + (b - a) * self.fraction

class MockServer(object):
    """
    Serves a scripted list of outcomes: an int is answered with that status,
    an exception class is raised as a transport error.
    """
    def __init__(self, outcomes, body=error_xml):
        self.outcomes = list(outcomes)
        self.body = body
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 \
            else self.outcomes[0]

        if isinstance(outcome, type) and issubclass(outcome, Exception):
            raise outcome("scripted failure", request=request)

        body = list_domains_xml if outcome == 200 else self.body
        return httpx.Response(outcome, content=body)

class ClientTestCase(TestCase):
    def new_client(self, server, max_retries=3, random=None):
        self.sleeps = []
        config = ClientConfig(access_key=access_key, secret_key=secret_key,
                              max_retries=max_retries)
        http_client = httpx.Client(transport=httpx.MockTransport(server))
        self.addCleanup(http_client.close)
        return Client(config, http_client=http_client,
                      random=random or FixedRandom(),
                      sleep=self.sleeps.append)

    def list_domains(self, client, cancel=None):
        r = client.new_request("sdb.amazonaws.com", "2009-04-15")
        r.add("Action", "ListDomains")
        return client.do(r, ListDomainsResponse, cancel=cancel)

class RetryTest(ClientTestCase):
    def test_success_first_attempt(self):
        server = MockServer([200])
        result = self.list_domains(self.new_client(server))

        self.assertEqual(result.domains, ["a"])
        self.assertEqual(result.request_id, "req-2")
        self.assertEqual(len(server.requests), 1)
        self.assertEqual(self.sleeps, [])

    def test_request_format(self):
        server = MockServer([200])
        self.list_domains(self.new_client(server))

        request = server.requests[0]
        self.assertEqual(request.method, "POST")
        self.assertEqual(str(request.url), "https://sdb.amazonaws.com/")
        self.assertEqual(request.headers["content-type"],
                         "application/x-www-form-urlencoded; charset=utf-8")

        body = request.content.decode("utf-8")
        params = dict(pair.split("=", 1) for pair in body.split("&"))
        self.assertEqual(params["AWSAccessKeyId"], access_key)
        self.assertEqual(params["Action"], "ListDomains")
        self.assertEqual(params["SignatureMethod"], "HmacSHA256")
        self.assertEqual(params["SignatureVersion"], "2")
        self.assertEqual(params["Version"], "2009-04-15")
        self.assertTrue(percent_decode(params["Timestamp"]).endswith("Z"))
        self.assertTrue(params["Signature"])

    def test_transport_errors_exhaust_retries(self):
        server = MockServer([httpx.ConnectError])
        client = self.new_client(server, max_retries=3)

        with self.assertRaises(httpx.ConnectError):
            self.list_domains(client)

        self.assertEqual(len(server.requests), 4)
        self.assertEqual(len(self.sleeps), 3)

    def test_zero_retries(self):
        server = MockServer([httpx.ReadTimeout])
        client = self.new_client(server, max_retries=0)

        with self.assertRaises(httpx.ReadTimeout):
            self.list_domains(client)

        self.assertEqual(len(server.requests), 1)
        self.assertEqual(self.sleeps, [])

    def test_client_error_not_retried(self):
        server = MockServer([400])
        client = self.new_client(server)

        with self.assertRaises(APIError) as cm:
            self.list_domains(client)

        self.assertEqual(len(server.requests), 1)
        self.assertEqual(self.sleeps, [])
        self.assertEqual(cm.exception.codes, ["AuthFailure"])
        self.assertEqual(cm.exception.request_id, "req-1")
        self.assertEqual(cm.exception.status_code, 400)

    def test_server_error_retried_then_success(self):
        server = MockServer([503, 500, 200], body=unavailable_xml)
        result = self.list_domains(self.new_client(server))

        self.assertEqual(result.domains, ["a"])
        self.assertEqual(len(server.requests), 3)
        self.assertEqual(len(self.sleeps), 2)

    def test_server_error_exhausted_decodes_last_response(self):
        server = MockServer([503], body=unavailable_xml)
        client = self.new_client(server, max_retries=2)

        with self.assertRaises(APIError) as cm:
            self.list_domains(client)

        self.assertEqual(len(server.requests), 3)
        self.assertEqual(cm.exception.codes, ["ServiceUnavailable"])
        self.assertEqual(cm.exception.status_code, 503)

    def test_last_response_decoded_after_transport_error(self):
        server = MockServer([503, httpx.ConnectError], body=unavailable_xml)
        client = self.new_client(server, max_retries=2)

        with self.assertRaises(APIError) as cm:
            self.list_domains(client)

        self.assertEqual(len(server.requests), 3)
        self.assertEqual(cm.exception.status_code, 503)

    def test_same_body_every_attempt(self):
        server = MockServer([500, 502, 200], body=unavailable_xml)
        self.list_domains(self.new_client(server))

        bodies = set(request.content for request in server.requests)
        self.assertEqual(len(bodies), 1)

    def test_backoff_delays(self):
        server = MockServer([httpx.ConnectError])
        client = self.new_client(server, max_retries=6,
                                 random=FixedRandom(0.5))

        with self.assertRaises(httpx.ConnectError):
            self.list_domains(client)

        # min(2000, 100 * 2**n) + 100 jitter, in seconds
        self.assertEqual(
            [round(delay, 6) for delay in self.sleeps],
            [0.3, 0.5, 0.9, 1.7, 2.1, 2.1])

class CancelTest(ClientTestCase):
    def test_cancelled_before_first_attempt(self):
        server = MockServer([200])
        cancel = Event()
        cancel.set()

        with self.assertRaises(RequestCancelled):
            self.list_domains(self.new_client(server), cancel=cancel)

        self.assertEqual(server.requests, [])

    def test_cancel_skips_backoff(self):
        cancel = Event()

        def fail_and_cancel(request):
            cancel.set()
            raise httpx.ConnectError("refused", request=request)

        client = self.new_client(fail_and_cancel, max_retries=5)
        with self.assertRaises(RequestCancelled):
            self.list_domains(client, cancel=cancel)

        # The injected sleep is not used while a cancel event is waited on.
        self.assertEqual(self.sleeps, [])

class OwnHTTPClientTest(ClientTestCase):
    """
    Without an http_client, every attempt opens and closes its own
    httpx.Client using the configured timeout.
    """
    def setUp(self):
        self.opened = []
        self.server = MockServer([503, 200], body=unavailable_xml)
        real_client = httpx.Client

        def open_client(**kw):
            http_client = real_client(
                transport=httpx.MockTransport(self.server), **kw)
            self.opened.append((kw, http_client))
            return http_client

        patcher = patch("awsquery.client.httpx.Client",
                        side_effect=open_client)
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_retries_with_own_client(self):
        self.sleeps = []
        config = ClientConfig(access_key=access_key, secret_key=secret_key,
                              max_retries=2, timeout=7.5)
        client = Client(config, random=FixedRandom(),
                        sleep=self.sleeps.append)

        result = self.list_domains(client)

        self.assertEqual(result.domains, ["a"])
        self.assertEqual(len(self.server.requests), 2)
        self.assertEqual(len(self.sleeps), 1)

        self.assertEqual(len(self.opened), 2)
        for kw, http_client in self.opened:
            self.assertEqual(kw, {"timeout": 7.5})
            self.assertTrue(http_client.is_closed)

class BackoffDelayTest(TestCase):
    def test_bounds(self):
        for attempt in range(1, 10):
            low = backoff_delay(attempt, FixedRandom(0.0))
            high = backoff_delay(attempt, FixedRandom(1.0))
            base = min(2000, 100 * 2 ** attempt) / 1000.0

            self.assertAlmostEqual(low, base)
            self.assertAlmostEqual(high, base + 0.2)

    def test_jitter_range(self):
        random = FixedRandom()
        backoff_delay(1, random)
        self.assertEqual(random.calls, [(0, 200)])

class ClientConfigTest(TestCase):
    def test_from_environ(self):
        config = ClientConfig.from_environ({
            "AWS_ACCESS_KEY_ID": "AK",
            "AWS_SECRET_ACCESS_KEY": "SECRET",
            "AWS_MAX_RETRIES": "2",
        })
        self.assertEqual(config.access_key, "AK")
        self.assertEqual(config.secret_key, "SECRET")
        self.assertEqual(config.max_retries, 2)
        self.assertEqual(tuple(config.credential), ("AK", "SECRET"))

    def test_from_environ_defaults(self):
        config = ClientConfig.from_environ({})
        self.assertEqual(config.access_key, "")
        self.assertEqual(config.secret_key, "")
        self.assertEqual(config.max_retries, DEFAULT_MAX_RETRIES)

    def test_from_environ_invalid_retries(self):
        for value in ("lots", "-1", "", "2.5"):
            with self.assertLogs("awsquery.client", level="WARNING"):
                config = ClientConfig.from_environ({"AWS_MAX_RETRIES": value})
            self.assertEqual(config.max_retries, DEFAULT_MAX_RETRIES)

    def test_validation(self):
        with self.assertRaises(TypeError):
            ClientConfig(max_retries="3")
        with self.assertRaises(TypeError):
            ClientConfig(max_retries=True)
        with self.assertRaises(ValueError):
            ClientConfig(max_retries=-1)
        with self.assertRaises(TypeError):
            ClientConfig(access_key=None)
        with self.assertRaises(ValueError):
            ClientConfig(timeout=0)

    def test_repr_hides_secret(self):
        config = ClientConfig(access_key="AK", secret_key="SECRET")
        self.assertNotIn("SECRET", repr(config))

    def test_default_client(self):
        client = default_client({"AWS_ACCESS_KEY_ID": "AK",
                                 "AWS_SECRET_ACCESS_KEY": "SECRET"})
        self.assertEqual(client.max_retries, DEFAULT_MAX_RETRIES)
        r = client.new_request("ec2.amazonaws.com", "2011-11-01")
        self.assertEqual(r.credential.access_key, "AK")
        self.assertEqual(r.host, "ec2.amazonaws.com")

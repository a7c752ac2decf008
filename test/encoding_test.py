#!/usr/bin/env python
from string import ascii_letters, digits
from unittest import TestCase

from awsquery.encoding import percent_decode, percent_encode

# Characters that must never be escaped
unreserved = ascii_letters + digits + "-_.~"

samples = [
    "",
    "ListDomains",
    "select * from `aws-test-domain`",
    "65 degrees",
    "a+b=c&d",
    "/path/with?query",
    "percent%sign",
    "café",
    "日本語",
    "emoji \U0001F600",
    "tab\tnewline\n",
    unreserved,
]

class PercentEncodeTest(TestCase):
    def test_empty(self):
        self.assertEqual(percent_encode(""), "")

    def test_unreserved_untouched(self):
        self.assertEqual(percent_encode(unreserved), unreserved)

    def test_reserved_escaped(self):
        self.assertEqual(percent_encode(" "), "%20")
        self.assertEqual(percent_encode("+"), "%2B")
        self.assertEqual(percent_encode("*"), "%2A")
        self.assertEqual(percent_encode("/"), "%2F")
        self.assertEqual(percent_encode("="), "%3D")
        self.assertEqual(percent_encode("&"), "%26")
        self.assertEqual(percent_encode("%"), "%25")

    def test_uppercase_hex(self):
        self.assertEqual(percent_encode(":"), "%3A")
        self.assertEqual(percent_encode("é"), "%C3%A9")

    def test_bytes_input(self):
        self.assertEqual(percent_encode(b"a b\xff"), "a%20b%FF")

    def test_round_trip(self):
        for sample in samples:
            encoded = percent_encode(sample)
            self.assertEqual(percent_decode(encoded), sample)

            for c in encoded:
                self.assertTrue(c in unreserved or c == "%" or
                                c in "0123456789ABCDEF",
                                "Unexpected %r in %r" % (c, encoded))

    def test_decode_lowercase_hex(self):
        self.assertEqual(percent_decode("%c3%a9"), "é")

    def test_decode_invalid(self):
        for bad in ("%", "%4", "abc%", "%zz", "%+1", "%g0"):
            with self.assertRaises(ValueError):
                percent_decode(bad)

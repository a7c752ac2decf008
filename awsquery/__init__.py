#!/usr/bin/env python
"""
Client for the AWS Query APIs (EC2, SimpleDB) using Signature Version 2.
"""

from .client import Client, ClientConfig, default_client
from .encoding import percent_encode
from .exc import (
    APIError, AWSQueryError, ErrorDetail, ParseError, RequestCancelled)
from .params import Parameter, ParameterSet
from .response import Response, unmarshal
from .signer import Credential, Request

# Local variables:
# mode: Python
# tab-width: 8
# indent-tabs-mode: nil
# End:
# vi: set expandtab tabstop=8

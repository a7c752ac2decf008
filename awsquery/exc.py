#!/usr/bin/env python
"""
AWS Query API exceptions.
"""
from collections import namedtuple
from json import dumps as json_dumps

# A single remote error entry from an <Errors> envelope.
ErrorDetail = namedtuple("ErrorDetail", ["code", "message"])

class AWSQueryError(Exception):
    """
    Base class for errors raised by the AWS Query client itself.
    """
    pass

class APIError(AWSQueryError):
    """
    An error response returned by an AWS Query API.

    request_id is the identifier AWS assigned to the failed call; errors is a
    list of ErrorDetail(code, message) tuples in the order they appeared in
    the response.
    """
    def __init__(self, request_id="", errors=(), status_code=None):
        self.request_id = request_id
        self.errors = list(errors)
        self.status_code = status_code
        super(APIError, self).__init__(self._render())

    @property
    def codes(self):
        """
        The error codes, in response order.
        """
        return [error.code for error in self.errors]

    def _render(self):
        # aws: ->
        #         AuthFailure: "There is a problem with your secret"
        #         OMG: "Your servers are all gone!"
        lines = ["\t%s: %s\n" % (error.code,
                                 json_dumps(error.message, ensure_ascii=False))
                 for error in self.errors]
        return "aws: ->\n" + "".join(lines)

    def __str__(self):
        return self._render()

    def __repr__(self):
        return "APIError(request_id=%r, errors=%r)" % (
            self.request_id, self.errors)

class ParseError(AWSQueryError):
    """
    The response body could not be parsed as XML, or did not have the
    expected shape.
    """
    pass

class RequestCancelled(AWSQueryError):
    """
    The caller's cancellation signal was set before the call completed.
    """
    pass

# Local variables:
# mode: Python
# tab-width: 8
# indent-tabs-mode: nil
# End:
# vi: set expandtab tabstop=8

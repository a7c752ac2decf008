"""
Decoding of Query API XML responses.
"""
from logging import getLogger
from xml.etree.ElementTree import ParseError as XMLParseError, fromstring

from .exc import APIError, ErrorDetail, ParseError

# HTTP status code of a successful call
_http_ok = 200

# Paths searched, in order, for the request id of a response.
_request_id_paths = (
    "ResponseMetadata/RequestId",
    "requestId",
    "RequestId",
    "RequestID",
)

# Logging instance
log = getLogger("awsquery.response")

def parse_xml(body):
    """
    parse_xml(body) -> Element

    Parse an XML document and return its root element. Namespaces are
    removed from element tags so responses can be matched by local name
    regardless of the API's xmlns.

    A ParseError exception is raised if the document is not well-formed.
    """
    try:
        root = fromstring(body)
    except XMLParseError as e:
        raise ParseError("Invalid XML in response: %s" % e) from e

    for element in root.iter():
        if isinstance(element.tag, str) and element.tag.startswith("{"):
            element.tag = element.tag.split("}", 1)[1]

    return root

def child_text(element, path, default=""):
    """
    The text of the first element matching path, or default if there is
    no such element. An element with no text yields "".
    """
    child = element.find(path)
    if child is None:
        return default
    return child.text or ""

def child_texts(element, path):
    """
    The text of every element matching path, in document order.
    """
    return [child.text or "" for child in element.findall(path)]

def find_request_id(root):
    """
    The request id of a response document, or "" if it has none.
    """
    for path in _request_id_paths:
        request_id = child_text(root, path, None)
        if request_id is not None:
            return request_id
    return ""

class Response(object):
    """
    Base class for successful responses. Subclasses override from_xml to
    read their own fields, calling up to pick up the request id.
    """

    def __init__(self, request_id=""):
        super(Response, self).__init__()
        self.request_id = request_id
        return

    @classmethod
    def from_xml(cls, root):
        """
        Build a response from the root element of the response body.
        """
        return cls(request_id=find_request_id(root))

    def __repr__(self):
        return "%s(%s)" % (
            type(self).__name__,
            ", ".join(["%s=%r" % item for item in sorted(vars(self).items())]))

def api_error_from_xml(root, status_code=None):
    """
    Build an APIError from an error envelope of the form:
        <Response>
          <Errors>
            <Error><Code>...</Code><Message>...</Message></Error>
            ...
          </Errors>
          <RequestID>...</RequestID>
        </Response>
    """
    errors = [
        ErrorDetail(child_text(error, "Code"), child_text(error, "Message"))
        for error in root.findall("Errors/Error")]
    return APIError(request_id=find_request_id(root), errors=errors,
                    status_code=status_code)

def unmarshal(response, response_type):
    """
    unmarshal(response, response_type) -> Response

    Decode an HTTP response. A 200 response is parsed into response_type
    (via response_type.from_xml) and returned. Any other status is parsed
    as an error envelope and the resulting APIError is raised.

    A ParseError exception is raised if the body is not valid XML or does
    not match response_type. Errors reading the body propagate unchanged.
    """
    body = response.read()
    root = parse_xml(body)

    if response.status_code != _http_ok:
        error = api_error_from_xml(root, status_code=response.status_code)
        log.debug("API error (HTTP %d, request %s): %s",
                  response.status_code, error.request_id or "-",
                  ", ".join(error.codes))
        raise error

    try:
        return response_type.from_xml(root)
    except ValueError as e:
        raise ParseError("Cannot decode %s: %s" %
                         (response_type.__name__, e)) from e

# Local variables:
# mode: Python
# tab-width: 8
# indent-tabs-mode: nil
# End:
# vi: set expandtab tabstop=8

"""
Amazon SimpleDB Query API actions.

Every response carries the request id and the BoxUsage AWS charged for the
call. Indexed parameters (Attribute.N.Name, Item.N.ItemName, ...) are
numbered from zero.
"""
from collections import namedtuple

from .response import Response, child_text, child_texts

SDB_HOST = "sdb.amazonaws.com"
SDB_VERSION = "2009-04-15"

# An attribute to put or delete. expected_* make the operation
# conditional on the current value of expected_name.
Attribute = namedtuple(
    "Attribute",
    ["name", "value", "replace", "expected_name", "expected_value",
     "expected_exists"],
    defaults=("", False, "", "", False))

# An item and its attributes, for the batch operations.
Item = namedtuple("Item", ["name", "attributes"], defaults=((),))

# An attribute name/value pair returned by GetAttributes and Select.
AttributeValue = namedtuple("AttributeValue", ["name", "value"])

class SDBResponse(Response):
    """
    The result of a SimpleDB call.
    """

    def __init__(self, request_id="", box_usage=0.0):
        super(SDBResponse, self).__init__(request_id)
        self.box_usage = box_usage
        return

    @classmethod
    def from_xml(cls, root):
        return cls(**cls._metadata(root))

    @staticmethod
    def _metadata(root):
        return {
            "request_id": child_text(root, "ResponseMetadata/RequestId"),
            "box_usage": float(
                child_text(root, "ResponseMetadata/BoxUsage") or 0),
        }

class ListDomainsResponse(SDBResponse):
    """
    The result of ListDomains.
    """

    def __init__(self, request_id="", box_usage=0.0, domains=(),
                 next_token=""):
        super(ListDomainsResponse, self).__init__(request_id, box_usage)
        self.domains = list(domains)
        self.next_token = next_token
        return

    @classmethod
    def from_xml(cls, root):
        return cls(
            domains=child_texts(root, "ListDomainsResult/DomainName"),
            next_token=child_text(root, "ListDomainsResult/NextToken"),
            **cls._metadata(root))

class DomainMetadataResponse(SDBResponse):
    # pylint: disable=R0902
    """
    The result of DomainMetadata.
    """

    _fields = (
        ("timestamp", "Timestamp"),
        ("item_count", "ItemCount"),
        ("attribute_value_count", "AttributeValueCount"),
        ("attribute_name_count", "AttributeNameCount"),
        ("item_names_size_bytes", "ItemNamesSizeBytes"),
        ("attribute_values_size_bytes", "AttributeValuesSizeBytes"),
        ("attribute_names_size_bytes", "AttributeNamesSizeBytes"),
    )

    def __init__(self, request_id="", box_usage=0.0, **kw):
        super(DomainMetadataResponse, self).__init__(request_id, box_usage)
        for attr, _ in self._fields:
            setattr(self, attr, kw.pop(attr, 0))

        if kw:
            raise TypeError("Unexpected fields: %s" % ", ".join(sorted(kw)))
        return

    @classmethod
    def from_xml(cls, root):
        values = dict(
            (attr, int(child_text(root, "DomainMetadataResult/" + tag) or 0))
            for attr, tag in cls._fields)
        values.update(cls._metadata(root))
        return cls(**values)

class GetAttributesResponse(SDBResponse):
    """
    The result of GetAttributes.
    """

    def __init__(self, request_id="", box_usage=0.0, attributes=()):
        super(GetAttributesResponse, self).__init__(request_id, box_usage)
        self.attributes = list(attributes)
        return

    @classmethod
    def from_xml(cls, root):
        return cls(
            attributes=_attribute_values(root, "GetAttributesResult/Attribute"),
            **cls._metadata(root))

# An item returned by Select.
SelectItem = namedtuple("SelectItem", ["name", "attributes"])

class SelectResponse(SDBResponse):
    """
    The result of Select.
    """

    def __init__(self, request_id="", box_usage=0.0, items=(),
                 next_token=""):
        super(SelectResponse, self).__init__(request_id, box_usage)
        self.items = list(items)
        self.next_token = next_token
        return

    @classmethod
    def from_xml(cls, root):
        items = [
            SelectItem(child_text(item, "Name"),
                       _attribute_values(item, "Attribute"))
            for item in root.findall("SelectResult/Item")]
        return cls(
            items=items,
            next_token=child_text(root, "SelectResult/NextToken"),
            **cls._metadata(root))

def _attribute_values(element, path):
    return [AttributeValue(child_text(attr, "Name"), child_text(attr, "Value"))
            for attr in element.findall(path)]

def _add_expected(r, prefix, x, attribute):
    if not attribute.expected_name:
        return

    r.add("%sExpected.%d.Name" % (prefix, x), attribute.expected_name)
    if attribute.expected_exists:
        r.add("%sExpected.%d.Exists" % (prefix, x), "true")
    if attribute.expected_value:
        r.add("%sExpected.%d.Value" % (prefix, x), attribute.expected_value)
    return

def sdb_request(client, action):
    """
    Create a SimpleDB request for action.
    """
    r = client.new_request(SDB_HOST, SDB_VERSION)
    r.add("Action", action)
    return r

def list_domains(client, max_domains=0, next_token="", cancel=None):
    """
    list_domains(client, max_domains=0, next_token="") -> ListDomainsResponse
    """
    r = sdb_request(client, "ListDomains")
    if max_domains > 0:
        r.add("MaxNumberOfDomains", str(max_domains))
    if next_token:
        r.add("NextToken", next_token)

    return client.do(r, ListDomainsResponse, cancel=cancel)

def create_domain(client, domain, cancel=None):
    r = sdb_request(client, "CreateDomain")
    r.add("DomainName", domain)
    return client.do(r, SDBResponse, cancel=cancel)

def delete_domain(client, domain, cancel=None):
    r = sdb_request(client, "DeleteDomain")
    r.add("DomainName", domain)
    return client.do(r, SDBResponse, cancel=cancel)

def domain_metadata(client, domain, cancel=None):
    r = sdb_request(client, "DomainMetadata")
    r.add("DomainName", domain)
    return client.do(r, DomainMetadataResponse, cancel=cancel)

def put_attributes(client, domain, item, attributes, cancel=None):
    """
    put_attributes(client, domain, item, attributes) -> SDBResponse

    Set attributes (a sequence of Attribute) on an item. An attribute with
    replace=True overwrites existing values of the same name instead of
    adding another value.
    """
    r = sdb_request(client, "PutAttributes")
    r.add("DomainName", domain)
    r.add("ItemName", item)

    for x, a in enumerate(attributes):
        r.add("Attribute.%d.Name" % x, a.name)
        r.add("Attribute.%d.Value" % x, a.value)
        if a.replace:
            r.add("Attribute.%d.Replace" % x, "true")
        _add_expected(r, "", x, a)

    return client.do(r, SDBResponse, cancel=cancel)

def batch_put_attributes(client, domain, items, cancel=None):
    """
    batch_put_attributes(client, domain, items) -> SDBResponse

    Put the attributes of several items (a sequence of Item) in one call.
    """
    r = sdb_request(client, "BatchPutAttributes")
    r.add("DomainName", domain)

    for y, item in enumerate(items):
        r.add("Item.%d.ItemName" % y, item.name)
        for x, a in enumerate(item.attributes):
            r.add("Item.%d.Attribute.%d.Name" % (y, x), a.name)
            r.add("Item.%d.Attribute.%d.Value" % (y, x), a.value)
            if a.replace:
                r.add("Item.%d.Attribute.%d.Replace" % (y, x), "true")

    return client.do(r, SDBResponse, cancel=cancel)

def get_attributes(client, domain, item, names=(), consistent=False,
                   cancel=None):
    """
    get_attributes(client, domain, item, names=(), consistent=False)
        -> GetAttributesResponse

    Fetch the named attributes of an item, or all of them if names is
    empty.
    """
    r = sdb_request(client, "GetAttributes")
    r.add("DomainName", domain)
    r.add("ItemName", item)
    for x, name in enumerate(names):
        r.add("AttributeName.%d" % x, name)
    if consistent:
        r.add("ConsistentRead", "true")

    return client.do(r, GetAttributesResponse, cancel=cancel)

def delete_attributes(client, domain, item, attributes=(), cancel=None):
    """
    delete_attributes(client, domain, item, attributes=()) -> SDBResponse

    Delete attributes from an item. An attribute with an empty value
    deletes every value of that name; no attributes deletes the item.
    """
    r = sdb_request(client, "DeleteAttributes")
    r.add("DomainName", domain)
    r.add("ItemName", item)

    for x, a in enumerate(attributes):
        r.add("Attribute.%d.Name" % x, a.name)
        if a.value:
            r.add("Attribute.%d.Value" % x, a.value)
        _add_expected(r, "", x, a)

    return client.do(r, SDBResponse, cancel=cancel)

def batch_delete_attributes(client, domain, items, cancel=None):
    """
    batch_delete_attributes(client, domain, items) -> SDBResponse

    Delete attributes from several items in one call. An item with no
    attributes is deleted entirely.
    """
    r = sdb_request(client, "BatchDeleteAttributes")
    r.add("DomainName", domain)

    for y, item in enumerate(items):
        r.add("Item.%d.ItemName" % y, item.name)
        for x, a in enumerate(item.attributes):
            r.add("Item.%d.Attribute.%d.Name" % (y, x), a.name)
            if a.value:
                r.add("Item.%d.Attribute.%d.Value" % (y, x), a.value)

    return client.do(r, SDBResponse, cancel=cancel)

def select(client, expression, next_token="", consistent=False, cancel=None):
    """
    select(client, expression, next_token="", consistent=False)
        -> SelectResponse

    Run a SimpleDB select expression, e.g. "select * from `mydomain`".
    """
    r = sdb_request(client, "Select")
    r.add("SelectExpression", expression)
    if next_token:
        r.add("NextToken", next_token)
    if consistent:
        r.add("ConsistentRead", "true")

    return client.do(r, SelectResponse, cancel=cancel)

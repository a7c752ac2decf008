"""
Amazon EC2 Query API actions.
"""
from .dateutil import parse_iso8601
from .response import Response, child_text

EC2_HOST = "ec2.amazonaws.com"
EC2_VERSION = "2011-11-01"

class Instance(object):
    """
    An EC2 instance from a DescribeInstances reservation.
    """

    def __init__(self, instance_id="", state_name="", dns_name="",
                 ip_address="", launch_time=None):
        super(Instance, self).__init__()
        self.instance_id = instance_id
        self.state_name = state_name
        self.dns_name = dns_name
        self.ip_address = ip_address
        self.launch_time = launch_time
        return

    @classmethod
    def from_xml(cls, element):
        launch_time = child_text(element, "launchTime")
        return cls(
            instance_id=child_text(element, "instanceId"),
            state_name=child_text(element, "instanceState/name"),
            dns_name=child_text(element, "dnsName"),
            ip_address=child_text(element, "ipAddress"),
            launch_time=parse_iso8601(launch_time) if launch_time else None)

    def __repr__(self):
        return "Instance(instance_id=%r, state_name=%r)" % (
            self.instance_id, self.state_name)

class Reservation(object):
    """
    A group of instances launched together.
    """

    def __init__(self, reservation_id="", instances=()):
        super(Reservation, self).__init__()
        self.reservation_id = reservation_id
        self.instances = list(instances)
        return

    @classmethod
    def from_xml(cls, element):
        return cls(
            reservation_id=child_text(element, "reservationId"),
            instances=[Instance.from_xml(item) for item in
                       element.findall("instancesSet/item")])

    def __repr__(self):
        return "Reservation(reservation_id=%r, instances=%r)" % (
            self.reservation_id, self.instances)

class DescribeInstancesResponse(Response):
    """
    The result of DescribeInstances.
    """

    def __init__(self, request_id="", reservations=()):
        super(DescribeInstancesResponse, self).__init__(request_id)
        self.reservations = list(reservations)
        return

    @classmethod
    def from_xml(cls, root):
        base = Response.from_xml(root)
        return cls(
            request_id=base.request_id,
            reservations=[Reservation.from_xml(item) for item in
                          root.findall("reservationSet/item")])

    @property
    def instances(self):
        """
        Every instance across all reservations.
        """
        return [instance for reservation in self.reservations
                for instance in reservation.instances]

def ec2_request(client):
    """
    Create an EC2 request for client.
    """
    return client.new_request(EC2_HOST, EC2_VERSION)

def describe_instances(client, cancel=None):
    """
    describe_instances(client) -> DescribeInstancesResponse

    List the caller's EC2 instances.
    """
    r = ec2_request(client)
    r.add("Action", "DescribeInstances")
    return client.do(r, DescribeInstancesResponse, cancel=cancel)

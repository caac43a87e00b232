# Copyright DataStax, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.


class DefaultEndPoint(object):
    """
    Address and native transport port of the node a request was sent to.
    """

    def __init__(self, address, port=9042):
        self._address = address
        self._port = port

    @property
    def address(self):
        return self._address

    @property
    def port(self):
        return self._port

    def __eq__(self, other):
        return isinstance(other, DefaultEndPoint) and \
               self.address == other.address and self.port == other.port

    def __hash__(self):
        return hash((self.address, self.port))

    def __str__(self):
        return "%s:%d" % (self.address, self.port)

    def __repr__(self):
        return "<%s: %s:%d>" % (self.__class__.__name__, self.address, self.port)


class Coordinator(object):
    """
    The node, and optionally the shard of that node, that served a request.
    """

    endpoint = None
    """
    The :class:`DefaultEndPoint` (or any hashable endpoint) the request was
    sent to.
    """

    host_id = None
    """
    The :class:`uuid.UUID` the node reports as its host id, if known.
    """

    shard = None
    """
    The shard of the node whose connection carried the request, for
    shard-aware servers. :const:`None` otherwise.
    """

    def __init__(self, endpoint, host_id=None, shard=None):
        if endpoint is None:
            raise ValueError("A coordinator requires an endpoint")
        self.endpoint = endpoint
        self.host_id = host_id
        self.shard = shard

    def __eq__(self, other):
        if isinstance(other, Coordinator):
            return (self.endpoint, self.host_id, self.shard) == (other.endpoint, other.host_id, other.shard)
        return NotImplemented

    def __ne__(self, other):
        result = self.__eq__(other)
        return result if result is NotImplemented else not result

    def __hash__(self):
        return hash((self.endpoint, self.host_id, self.shard))

    def __str__(self):
        return str(self.endpoint)

    def __repr__(self):
        shard = (" shard=%d" % (self.shard,)) if self.shard is not None else ""
        return "<%s: %s%s>" % (self.__class__.__name__, self.endpoint, shard)

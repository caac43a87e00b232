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

import logging

logging.getLogger('cqlresponse').addHandler(logging.NullHandler())

__version_info__ = (0, 1, 0)
__version__ = '.'.join(map(str, __version_info__))


class ConsistencyLevel(object):
    """
    Consistency levels as reported back by the server in error frames.
    """

    ANY = 0
    ONE = 1
    TWO = 2
    THREE = 3
    QUORUM = 4
    ALL = 5
    LOCAL_QUORUM = 6
    EACH_QUORUM = 7
    SERIAL = 8
    LOCAL_SERIAL = 9
    LOCAL_ONE = 10


ConsistencyLevel.value_to_name = {
    ConsistencyLevel.ANY: 'ANY',
    ConsistencyLevel.ONE: 'ONE',
    ConsistencyLevel.TWO: 'TWO',
    ConsistencyLevel.THREE: 'THREE',
    ConsistencyLevel.QUORUM: 'QUORUM',
    ConsistencyLevel.ALL: 'ALL',
    ConsistencyLevel.LOCAL_QUORUM: 'LOCAL_QUORUM',
    ConsistencyLevel.EACH_QUORUM: 'EACH_QUORUM',
    ConsistencyLevel.SERIAL: 'SERIAL',
    ConsistencyLevel.LOCAL_SERIAL: 'LOCAL_SERIAL',
    ConsistencyLevel.LOCAL_ONE: 'LOCAL_ONE'
}


def consistency_value_to_name(value):
    return ConsistencyLevel.value_to_name.get(value, "Unknown") if value is not None else "Not Set"


class ResponseKind(object):
    """
    Opcodes of the response frames a server may send.
    """

    ERROR = 0x00
    READY = 0x02
    AUTHENTICATE = 0x03
    SUPPORTED = 0x06
    RESULT = 0x08
    EVENT = 0x0C
    AUTH_CHALLENGE = 0x0E
    AUTH_SUCCESS = 0x10

    @classmethod
    def name_of(cls, kind):
        return cls.value_to_name.get(kind, "UNKNOWN(0x%02x)" % (kind,))


ResponseKind.value_to_name = dict(
    (v, k) for k, v in vars(ResponseKind).items() if k.isupper())


class SchemaChangeType(object):
    DROPPED = 'DROPPED'
    CREATED = 'CREATED'
    UPDATED = 'UPDATED'


class SchemaTargetType(object):
    KEYSPACE = 'KEYSPACE'
    TABLE = 'TABLE'
    TYPE = 'TYPE'
    FUNCTION = 'FUNCTION'
    AGGREGATE = 'AGGREGATE'


class DriverException(Exception):
    """
    Base for all exceptions explicitly raised by this package.
    """
    pass


class ResponseConsumed(DriverException):
    """
    A response was used again after it had been converted into another value.
    """
    pass


class RequestAttemptError(DriverException):
    """
    Base for the failures of a single request attempt. These are handed to
    the request orchestrator unchanged; it alone decides whether to retry.
    """
    pass


class ServerError(RequestAttemptError):
    """
    The server answered the request with an error frame.
    """

    code = None
    """ The error code reported by the server """

    message = None
    """ The error message reported by the server """

    info = None
    """ Code-specific extra information decoded from the error frame, if any """

    def __init__(self, summary_message, code=None, message=None, info=None):
        self.code = code
        self.message = message
        self.info = info
        Exception.__init__(self, summary_message)


class ProtocolError(ServerError):
    """
    The server rejected a frame as a protocol violation.
    """
    pass


class AuthenticationFailed(ServerError):
    """
    Failed to authenticate.
    """
    pass


class Overloaded(ServerError):
    pass


class IsBootstrapping(ServerError):
    pass


class TruncateError(ServerError):
    pass


class Unavailable(ServerError):
    """
    There were not enough live replicas to satisfy the requested consistency
    level, so the coordinator node immediately failed the request without
    forwarding it to any replicas.
    """

    consistency = None
    """ The requested :class:`ConsistencyLevel` """

    required_replicas = None
    """ The number of replicas that needed to be live to complete the operation """

    alive_replicas = None
    """ The number of replicas that were actually alive """

    def __init__(self, summary_message, consistency=None, required_replicas=None, alive_replicas=None, **kwargs):
        self.consistency = consistency
        self.required_replicas = required_replicas
        self.alive_replicas = alive_replicas
        ServerError.__init__(self, summary_message + ' info=' +
                             repr({'consistency': consistency_value_to_name(consistency),
                                   'required_replicas': required_replicas,
                                   'alive_replicas': alive_replicas}), **kwargs)


class Timeout(ServerError):
    """
    Replicas failed to respond to the coordinator node before timing out.
    """

    consistency = None
    """ The requested :class:`ConsistencyLevel` """

    required_responses = None
    """ The number of required replica responses """

    received_responses = None
    """
    The number of replicas that responded before the coordinator timed out
    the operation
    """

    def __init__(self, summary_message, consistency=None, required_responses=None,
                 received_responses=None, extra_info=None, **kwargs):
        self.consistency = consistency
        self.required_responses = required_responses
        self.received_responses = received_responses

        info = {'consistency': consistency_value_to_name(consistency),
                'required_responses': required_responses,
                'received_responses': received_responses}
        info.update(extra_info or {})

        ServerError.__init__(self, summary_message + ' info=' + repr(info), **kwargs)


class ReadTimeout(Timeout):
    """
    A subclass of :exc:`Timeout` for read operations.
    """

    data_retrieved = None
    """
    A boolean indicating whether the requested data was retrieved
    by the coordinator from any replicas before it timed out the
    operation
    """

    def __init__(self, summary_message, data_retrieved=None, **kwargs):
        Timeout.__init__(self, summary_message, extra_info={'data_retrieved': data_retrieved}, **kwargs)
        self.data_retrieved = data_retrieved


class WriteTimeout(Timeout):
    """
    A subclass of :exc:`Timeout` for write operations.
    """

    write_type = None
    """ The type of write operation, as the server names it (``SIMPLE``, ``BATCH``, ...) """

    def __init__(self, summary_message, write_type=None, **kwargs):
        Timeout.__init__(self, summary_message, extra_info={'write_type': write_type}, **kwargs)
        self.write_type = write_type


class CoordinationFailure(ServerError):
    """
    Replicas sent a failure to the coordinator.
    """

    consistency = None
    required_responses = None
    received_responses = None

    failures = None
    """
    The number of replicas that sent a failure message
    """

    error_code_map = None
    """
    A map of inet addresses to error codes representing replicas that sent
    a failure message.  Only set when the server reports one.
    """

    def __init__(self, summary_message, consistency=None, required_responses=None,
                 received_responses=None, failures=None, error_code_map=None, **kwargs):
        self.consistency = consistency
        self.required_responses = required_responses
        self.received_responses = received_responses
        self.failures = failures
        self.error_code_map = error_code_map

        info_dict = {
            'consistency': consistency_value_to_name(consistency),
            'required_responses': required_responses,
            'received_responses': received_responses,
            'failures': failures
        }

        if error_code_map is not None:
            # make error codes look like "0x002a"
            formatted_map = dict((addr, '0x%04x' % err_code)
                                 for (addr, err_code) in error_code_map.items())
            info_dict['error_code_map'] = formatted_map

        ServerError.__init__(self, summary_message + ' info=' + repr(info_dict), **kwargs)


class ReadFailure(CoordinationFailure):

    data_retrieved = None

    def __init__(self, summary_message, data_retrieved=None, **kwargs):
        CoordinationFailure.__init__(self, summary_message, **kwargs)
        self.data_retrieved = data_retrieved


class WriteFailure(CoordinationFailure):

    write_type = None

    def __init__(self, summary_message, write_type=None, **kwargs):
        CoordinationFailure.__init__(self, summary_message, **kwargs)
        self.write_type = write_type


class FunctionFailure(ServerError):
    """
    User Defined Function failed during execution
    """

    keyspace = None
    function = None
    arg_types = None

    def __init__(self, summary_message, keyspace=None, function=None, arg_types=None, **kwargs):
        self.keyspace = keyspace
        self.function = function
        self.arg_types = arg_types
        ServerError.__init__(self, summary_message, **kwargs)


class CQLSyntaxError(ServerError):
    pass


class Unauthorized(ServerError):
    """
    The current user is not authorized to perform the requested operation.
    """
    pass


class InvalidRequest(ServerError):
    """
    A query was made that was invalid for some reason, such as trying to set
    the keyspace for a connection to a nonexistent keyspace.
    """
    pass


class ConfigurationException(ServerError):
    """
    Server indicated request error due to current configuration
    """
    pass


class AlreadyExists(ConfigurationException):
    """
    An attempt was made to create a keyspace or table that already exists.
    """

    keyspace = None
    """
    The name of the keyspace that already exists, or, if an attempt was
    made to create a new table, the keyspace that the table is in.
    """

    table = None
    """
    The name of the table that already exists, or, if an attempt was
    make to create a keyspace, :const:`None`.
    """

    def __init__(self, summary_message=None, keyspace=None, table=None, **kwargs):
        if table:
            message = "Table '%s.%s' already exists" % (keyspace, table)
        else:
            message = "Keyspace '%s' already exists" % (keyspace,)

        ConfigurationException.__init__(self, message, **kwargs)
        self.keyspace = keyspace
        self.table = table


class PreparedQueryNotFound(ServerError):
    """
    The node does not know the prepared statement id the request referenced.
    ``info`` holds that id.
    """
    pass


class UnexpectedResponse(RequestAttemptError):
    """
    The server replied with a response kind that is not valid for the request
    that was sent. This points at a protocol mismatch between the driver and
    the server rather than at a user error.
    """

    kind = None
    """ The :class:`ResponseKind` that was received """

    def __init__(self, kind):
        self.kind = kind
        Exception.__init__(self, "Received unexpected response from the server: %s"
                                 % (ResponseKind.name_of(kind),))


class NonfinishedPagingState(RequestAttemptError):
    """
    A request that asked for a complete result got a response that says more
    pages remain. Either the driver misused its internal API or the server has
    a bug; the rows are not returned as if they were complete.
    """

    def __init__(self, message="Unpaged query returned a non-empty paging state! "
                               "This is a driver-side or server-side bug."):
        Exception.__init__(self, message)


class ResultNotRows(DriverException):
    """
    Rows were requested from a result that carries none.
    """
    pass


class UnexpectedRowsResult(DriverException):
    """
    A result that was expected to carry no rows turned out to be a rows result.
    """
    pass

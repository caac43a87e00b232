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

"""
Response messages as handed over by the frame codec, already decoded.

Every response opcode has exactly one registered message class. Error frames
are :class:`ErrorMessage` subclasses selected by error code; RESULT frames are
:class:`ResultMessage` subclasses selected by result kind.
"""

from collections import namedtuple

from cqlresponse import ResponseKind, SchemaTargetType
from cqlresponse import (ServerError, ProtocolError, AuthenticationFailed,
                         Unavailable, Overloaded, IsBootstrapping, TruncateError,
                         WriteTimeout, ReadTimeout, ReadFailure, FunctionFailure,
                         WriteFailure, CQLSyntaxError, Unauthorized, InvalidRequest,
                         ConfigurationException, AlreadyExists, PreparedQueryNotFound)


ColumnMetadata = namedtuple("ColumnMetadata", ['keyspace_name', 'table_name', 'name', 'type'])

_message_types_by_opcode = {}


def register_class(cls):
    _message_types_by_opcode[cls.opcode] = cls


def get_registered_classes():
    return _message_types_by_opcode.copy()


class _RegisterMessageType(type):
    def __init__(cls, name, bases, dct):
        # only the class introducing an opcode owns it; RESULT kinds share 0x08
        if not name.startswith('_') and 'opcode' in dct:
            register_class(cls)


class _MessageType(object, metaclass=_RegisterMessageType):

    opcode = None
    name = None

    trace_id = None
    custom_payload = None
    warnings = None

    @property
    def response_kind(self):
        return self.opcode

    def __repr__(self):
        return '<%s(%s)>' % (self.__class__.__name__, ', '.join('%s=%r' % i for i in _get_params(self)))


def _get_params(message_obj):
    base_attrs = dir(_MessageType)
    return (
        (n, a) for n, a in message_obj.__dict__.items()
        if n not in base_attrs and not n.startswith('_') and not callable(a)
    )


error_classes = {}


class ErrorMessage(_MessageType, Exception):
    opcode = ResponseKind.ERROR
    name = 'ERROR'
    summary = 'Unknown'

    exception_class = ServerError
    expands_info = False

    def __init__(self, code, message, info=None):
        self.code = code
        self.message = message
        self.info = info

    def summary_msg(self):
        return 'Error from server: code=%04x [%s] message="%s"' \
               % (self.code, self.summary, self.message)

    def __str__(self):
        return '<%s>' % self.summary_msg()
    __repr__ = __str__

    def to_exception(self):
        kwargs = dict(self.info) if self.expands_info and self.info else {}
        return self.exception_class(self.summary_msg(), code=self.code,
                                    message=self.message, info=self.info, **kwargs)


class ErrorMessageSubclass(_RegisterMessageType):
    def __init__(cls, name, bases, dct):
        if dct.get('error_code') is not None:
            error_classes[cls.error_code] = cls


class ErrorMessageSub(ErrorMessage, metaclass=ErrorMessageSubclass):
    error_code = None


def error_message_for(code, message, info=None):
    """
    Builds the :class:`ErrorMessage` subclass registered for `code`, falling
    back to the base class for codes this package does not know.
    """
    subcls = error_classes.get(code, ErrorMessage)
    return subcls(code=code, message=message, info=info)


class ServerErrorMessage(ErrorMessageSub):
    summary = 'Server error'
    error_code = 0x0000


class ProtocolErrorMessage(ErrorMessageSub):
    summary = 'Protocol error'
    error_code = 0x000A
    exception_class = ProtocolError


class BadCredentials(ErrorMessageSub):
    summary = 'Bad credentials'
    error_code = 0x0100
    exception_class = AuthenticationFailed


class UnavailableErrorMessage(ErrorMessageSub):
    summary = 'Unavailable exception'
    error_code = 0x1000
    exception_class = Unavailable
    expands_info = True


class OverloadedErrorMessage(ErrorMessageSub):
    summary = 'Coordinator node overloaded'
    error_code = 0x1001
    exception_class = Overloaded


class IsBootstrappingErrorMessage(ErrorMessageSub):
    summary = 'Coordinator node is bootstrapping'
    error_code = 0x1002
    exception_class = IsBootstrapping


class TruncateErrorMessage(ErrorMessageSub):
    summary = 'Error during truncate'
    error_code = 0x1003
    exception_class = TruncateError


class WriteTimeoutErrorMessage(ErrorMessageSub):
    summary = "Coordinator node timed out waiting for replica nodes' responses"
    error_code = 0x1100
    exception_class = WriteTimeout
    expands_info = True


class ReadTimeoutErrorMessage(ErrorMessageSub):
    summary = "Coordinator node timed out waiting for replica nodes' responses"
    error_code = 0x1200
    exception_class = ReadTimeout
    expands_info = True


class ReadFailureMessage(ErrorMessageSub):
    summary = "Replica(s) failed to execute read"
    error_code = 0x1300
    exception_class = ReadFailure
    expands_info = True


class FunctionFailureMessage(ErrorMessageSub):
    summary = "User Defined Function failure"
    error_code = 0x1400
    exception_class = FunctionFailure
    expands_info = True


class WriteFailureMessage(ErrorMessageSub):
    summary = "Replica(s) failed to execute write"
    error_code = 0x1500
    exception_class = WriteFailure
    expands_info = True


class SyntaxErrorMessage(ErrorMessageSub):
    summary = 'Syntax error in CQL query'
    error_code = 0x2000
    exception_class = CQLSyntaxError


class UnauthorizedErrorMessage(ErrorMessageSub):
    summary = 'Unauthorized'
    error_code = 0x2100
    exception_class = Unauthorized


class InvalidRequestErrorMessage(ErrorMessageSub):
    summary = 'Invalid query'
    error_code = 0x2200
    exception_class = InvalidRequest


class ConfigurationErrorMessage(ErrorMessageSub):
    summary = 'Query invalid because of configuration issue'
    error_code = 0x2300
    exception_class = ConfigurationException


class AlreadyExistsErrorMessage(ConfigurationErrorMessage):
    summary = 'Item already exists'
    error_code = 0x2400
    exception_class = AlreadyExists
    expands_info = True


class PreparedQueryNotFoundMessage(ErrorMessageSub):
    summary = 'Matching prepared statement not found on this node'
    error_code = 0x2500
    exception_class = PreparedQueryNotFound


class ReadyMessage(_MessageType):
    opcode = ResponseKind.READY
    name = 'READY'


class AuthenticateMessage(_MessageType):
    opcode = ResponseKind.AUTHENTICATE
    name = 'AUTHENTICATE'

    def __init__(self, authenticator):
        self.authenticator = authenticator


class SupportedMessage(_MessageType):
    opcode = ResponseKind.SUPPORTED
    name = 'SUPPORTED'

    def __init__(self, cql_versions, options):
        self.cql_versions = cql_versions
        self.options = options


class AuthChallengeMessage(_MessageType):
    opcode = ResponseKind.AUTH_CHALLENGE
    name = 'AUTH_CHALLENGE'

    def __init__(self, challenge):
        self.challenge = challenge


class AuthSuccessMessage(_MessageType):
    opcode = ResponseKind.AUTH_SUCCESS
    name = 'AUTH_SUCCESS'

    def __init__(self, token):
        self.token = token


class EventMessage(_MessageType):
    opcode = ResponseKind.EVENT
    name = 'EVENT'

    def __init__(self, event_type, event_args):
        self.event_type = event_type
        self.event_args = event_args


class PagingStateResponse(object):
    """
    What the server said about further pages: either an opaque token to
    resume from, or that the result is complete.

    Use :meth:`has_more_pages` and :meth:`no_more_pages` to build one. The
    token is kept as the server sent it, including a zero-length one.
    """

    __slots__ = ('_paging_state',)

    def __init__(self, paging_state=None):
        self._paging_state = paging_state

    @classmethod
    def has_more_pages(cls, paging_state):
        if paging_state is None:
            raise ValueError("A paging state token is required when more pages remain")
        return cls(paging_state)

    @classmethod
    def no_more_pages(cls):
        return cls()

    @property
    def paging_state(self):
        """
        The opaque token to resume from, or :const:`None` when finished.
        """
        return self._paging_state

    @property
    def finished(self):
        return self._paging_state is None

    def __eq__(self, other):
        if isinstance(other, PagingStateResponse):
            return self._paging_state == other._paging_state
        return NotImplemented

    def __ne__(self, other):
        result = self.__eq__(other)
        return result if result is NotImplemented else not result

    def __hash__(self):
        return hash(self._paging_state)

    def __repr__(self):
        if self.finished:
            return "<%s: no more pages>" % (self.__class__.__name__,)
        return "<%s: has more pages, paging_state=%r>" % (self.__class__.__name__, self._paging_state)


class RawRows(object):
    """
    Rows of a RESULT/ROWS frame together with their column metadata. Cell
    values are left as the serialized ``bytes`` (or :const:`None` for null);
    turning them into application values happens elsewhere.
    """

    column_metadata = None
    """ A list of :class:`ColumnMetadata`, one per column """

    rows = None
    """ A list of rows, each a list of serialized cell values """

    def __init__(self, column_metadata, rows):
        self.column_metadata = column_metadata
        self.rows = rows

    @property
    def column_names(self):
        return [c.name for c in self.column_metadata]

    def __len__(self):
        return len(self.rows)

    def __repr__(self):
        return "<%s: %d columns, %d rows>" % (self.__class__.__name__, len(self.column_metadata), len(self.rows))


SetKeyspace = namedtuple('SetKeyspace', ['keyspace_name'])

Prepared = namedtuple('Prepared', ['query_id', 'result_metadata_id', 'bind_metadata',
                                   'pk_indexes', 'result_metadata'])


class SchemaChange(namedtuple('SchemaChange', ['change_type', 'target_type', 'keyspace',
                                               'target_name', 'argument_types'])):
    """
    A schema change reported in reply to a DDL statement.

    `target_name` is :const:`None` for keyspace changes; `argument_types` is
    only set for functions and aggregates.
    """

    __slots__ = ()

    def __new__(cls, change_type, target_type, keyspace, target_name=None, argument_types=None):
        return super(SchemaChange, cls).__new__(cls, change_type, target_type, keyspace,
                                                target_name, argument_types)

    @classmethod
    def from_event(cls, event):
        """
        Builds a :class:`SchemaChange` from the event mapping used by schema
        change push events (``target_type``, ``change_type``, ``keyspace`` and
        a key named after the target). Functions and aggregates are keyed by
        a ``(name, argument_types)`` pair.
        """
        target_type = event['target_type']
        if target_type == SchemaTargetType.KEYSPACE:
            return cls(event['change_type'], target_type, event['keyspace'])
        if target_type in (SchemaTargetType.FUNCTION, SchemaTargetType.AGGREGATE):
            name, argument_types = event[target_type.lower()]
            return cls(event['change_type'], target_type, event['keyspace'], name, list(argument_types))
        return cls(event['change_type'], target_type, event['keyspace'], event[target_type.lower()])


RESULT_KIND_VOID = 0x0001
RESULT_KIND_ROWS = 0x0002
RESULT_KIND_SET_KEYSPACE = 0x0003
RESULT_KIND_PREPARED = 0x0004
RESULT_KIND_SCHEMA_CHANGE = 0x0005


class ResultMessage(_MessageType):
    opcode = ResponseKind.RESULT
    name = 'RESULT'

    kind = None


class VoidResultMessage(ResultMessage):
    kind = RESULT_KIND_VOID


class RowsResultMessage(ResultMessage):
    kind = RESULT_KIND_ROWS

    def __init__(self, raw_rows, paging_state_response=None):
        if paging_state_response is None:
            paging_state_response = PagingStateResponse.no_more_pages()
        self.raw_rows = raw_rows
        self.paging_state_response = paging_state_response


class SetKeyspaceResultMessage(ResultMessage):
    kind = RESULT_KIND_SET_KEYSPACE

    def __init__(self, set_keyspace):
        self.set_keyspace = set_keyspace


class PreparedResultMessage(ResultMessage):
    kind = RESULT_KIND_PREPARED

    def __init__(self, prepared):
        self.prepared = prepared


class SchemaChangeResultMessage(ResultMessage):
    kind = RESULT_KIND_SCHEMA_CHANGE

    def __init__(self, schema_change):
        self.schema_change = schema_change

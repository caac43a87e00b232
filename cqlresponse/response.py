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
Turning a decoded response into what the request orchestrator hands out.

A :class:`QueryResponse` is classified into a :class:`NonErrorQueryResponse`
(or raises the server's error), which is then turned into a
:class:`~cqlresponse.query.QueryResult`. Each step consumes its input: the
object it was called on cannot be used again.
"""

import logging

from cqlresponse import ResponseConsumed, UnexpectedResponse, NonfinishedPagingState
from cqlresponse.protocol import (ErrorMessage, ResultMessage, RowsResultMessage,
                                  SetKeyspaceResultMessage, SchemaChangeResultMessage,
                                  ReadyMessage, AuthenticateMessage,
                                  AuthChallengeMessage, AuthSuccessMessage,
                                  PagingStateResponse)
from cqlresponse.query import QueryResult

log = logging.getLogger(__name__)


class _ConsumableResponse(object):

    _response = None

    @property
    def response(self):
        if self._response is None:
            raise ResponseConsumed("%s was already consumed" % (self.__class__.__name__,))
        return self._response

    @property
    def consumed(self):
        return self._response is None

    def _take(self):
        response = self.response
        self._response = None
        return response


class QueryResponse(_ConsumableResponse):
    """
    A decoded response to a request, along with the request-scoped metadata
    that arrived in the same frame.
    """

    tracing_id = None
    """ :class:`uuid.UUID` of the tracing session, if tracing was requested """

    warnings = None
    """ A list of warnings the server attached to the response """

    custom_payload = None
    """ A dict of ``str`` to ``bytes`` sent by the server, or :const:`None` """

    def __init__(self, response, tracing_id=None, warnings=None, custom_payload=None):
        if response is None:
            raise ValueError("A response message is required")
        self._response = response
        self.tracing_id = tracing_id
        self.warnings = list(warnings) if warnings else []
        self.custom_payload = custom_payload

    @classmethod
    def from_message(cls, message):
        """
        Wraps a message as the frame codec left it, with ``trace_id``,
        ``warnings`` and ``custom_payload`` set from the frame header flags.
        """
        if message.warnings:
            for w in message.warnings:
                log.warning("Server warning: %s", w)
        return cls(message, tracing_id=message.trace_id, warnings=message.warnings,
                   custom_payload=message.custom_payload)

    def into_non_error_query_response(self):
        """
        Splits off the error case: raises the exception for an error frame,
        otherwise returns a :class:`NonErrorQueryResponse`. This response is
        consumed either way.
        """
        response = self._take()
        if isinstance(response, ErrorMessage):
            log.debug("Server returned an error: %s", response.summary_msg())
            raise response.to_exception()
        return NonErrorQueryResponse(response, self.tracing_id, self.warnings)


class NonErrorQueryResponse(_ConsumableResponse):
    """
    A :class:`QueryResponse` whose message is anything but an error.
    """

    def __init__(self, response, tracing_id=None, warnings=None):
        if response is None:
            raise ValueError("A response message is required")
        if isinstance(response, ErrorMessage):
            raise TypeError("%r is an error response" % (response,))
        self._response = response
        self.tracing_id = tracing_id
        self.warnings = list(warnings) if warnings else []

    def as_set_keyspace(self):
        response = self.response
        if isinstance(response, SetKeyspaceResultMessage):
            return response.set_keyspace
        return None

    def as_schema_change(self):
        response = self.response
        if isinstance(response, SchemaChangeResultMessage):
            return response.schema_change
        return None

    def _into_query_result_and_paging_state(self, request_coordinator):
        response = self._take()
        if isinstance(response, RowsResultMessage):
            raw_rows, paging_state_response = response.raw_rows, response.paging_state_response
        elif isinstance(response, ResultMessage):
            raw_rows, paging_state_response = None, PagingStateResponse.no_more_pages()
        else:
            raise UnexpectedResponse(response.response_kind)

        if request_coordinator is None:
            result = QueryResult.with_unknown_coordinator(raw_rows, self.tracing_id, self.warnings)
        else:
            result = QueryResult(request_coordinator, raw_rows, self.tracing_id, self.warnings)
        return result, paging_state_response

    def into_query_result_and_paging_state(self, request_coordinator):
        """
        Converts this response into a :class:`~cqlresponse.query.QueryResult`
        and the :class:`~cqlresponse.protocol.PagingStateResponse` the server
        sent with it. Results other than rows never have more pages.

        Raises :exc:`~cqlresponse.UnexpectedResponse` if the message is not a
        RESULT at all.
        """
        _require_coordinator(request_coordinator)
        return self._into_query_result_and_paging_state(request_coordinator)

    def _into_query_result(self, request_coordinator):
        result, paging_state_response = self._into_query_result_and_paging_state(request_coordinator)
        return ensure_paging_finished(result, paging_state_response)

    def into_query_result(self, request_coordinator):
        """
        Converts this response into a :class:`~cqlresponse.query.QueryResult`
        for a request that asked for all rows at once. If the server says more
        pages remain, :exc:`~cqlresponse.NonfinishedPagingState` is raised
        instead of returning the partial rows.
        """
        _require_coordinator(request_coordinator)
        return self._into_query_result(request_coordinator)

    def into_query_result_with_unknown_coordinator(self):
        """
        The same as :meth:`into_query_result`, for results that were not served
        by one particular node. The result's coordinator is :const:`None`.
        """
        return self._into_query_result(None)


def _require_coordinator(request_coordinator):
    if request_coordinator is None:
        raise ValueError("A request coordinator is required; use "
                         "into_query_result_with_unknown_coordinator() for results without one")


def ensure_paging_finished(query_result, paging_state_response):
    """
    Returns `query_result` if `paging_state_response` says no pages remain.
    Otherwise the result would silently lose rows, so this logs the contract
    violation and raises :exc:`~cqlresponse.NonfinishedPagingState`.
    """
    if not paging_state_response.finished:
        log.error("Internal driver API misuse or a server bug: nonfinished paging state "
                  "would be discarded by NonErrorQueryResponse.into_query_result (%r)",
                  paging_state_response)
        raise NonfinishedPagingState()
    return query_result


class _HandshakeResponse(object):

    message_class = None
    _variants = ()

    def __init__(self, message):
        if not isinstance(message, self.message_class):
            raise TypeError("%s requires a %s, got %r" % (
                self.__class__.__name__, self.message_class.__name__, message))
        self.message = message

    @property
    def kind(self):
        return self.message_class.opcode

    @classmethod
    def from_response(cls, message):
        """
        Picks the variant matching `message`. Error frames raise their
        exception; any other message raises :exc:`~cqlresponse.UnexpectedResponse`.
        """
        if isinstance(message, ErrorMessage):
            raise message.to_exception()
        for variant in cls._variants:
            if isinstance(message, variant.message_class):
                return variant(message)
        raise UnexpectedResponse(message.response_kind)

    def __eq__(self, other):
        if isinstance(other, _HandshakeResponse):
            return type(self) is type(other) and self.message == other.message
        return NotImplemented

    def __ne__(self, other):
        result = self.__eq__(other)
        return result if result is NotImplemented else not result

    __hash__ = None

    def __repr__(self):
        return "<%s(%r)>" % (self.__class__.__name__, self.message)


class NonErrorStartupResponse(_HandshakeResponse):
    """
    Replies that end a STARTUP exchange: :class:`Ready` or :class:`Authenticate`.
    """


class Ready(NonErrorStartupResponse):
    message_class = ReadyMessage

    def __init__(self, message=None):
        NonErrorStartupResponse.__init__(self, message if message is not None else ReadyMessage())

    def __eq__(self, other):
        # READY carries no body, so any two are alike
        if isinstance(other, _HandshakeResponse):
            return type(self) is type(other)
        return NotImplemented


class Authenticate(NonErrorStartupResponse):
    message_class = AuthenticateMessage

    @property
    def authenticator(self):
        return self.message.authenticator


NonErrorStartupResponse._variants = (Ready, Authenticate)


class NonErrorAuthResponse(_HandshakeResponse):
    """
    Replies to an AUTH_RESPONSE: :class:`AuthChallenge` or :class:`AuthSuccess`.
    """


class AuthChallenge(NonErrorAuthResponse):
    message_class = AuthChallengeMessage

    @property
    def challenge(self):
        return self.message.challenge


class AuthSuccess(NonErrorAuthResponse):
    message_class = AuthSuccessMessage

    @property
    def token(self):
        return self.message.token


NonErrorAuthResponse._variants = (AuthChallenge, AuthSuccess)

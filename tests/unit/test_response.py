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

import unittest
from uuid import uuid4

import pytest
from mock import patch

from cqlresponse import (ResponseKind, ServerError, InvalidRequest, AuthenticationFailed,
                         Unavailable, ConsistencyLevel, SchemaChangeType, SchemaTargetType,
                         ResponseConsumed, UnexpectedResponse, NonfinishedPagingState)
from cqlresponse.hosts import Coordinator, DefaultEndPoint
from cqlresponse.protocol import (ColumnMetadata, RawRows, PagingStateResponse, SetKeyspace,
                                  SchemaChange, Prepared, error_message_for, ReadyMessage,
                                  AuthenticateMessage, SupportedMessage, EventMessage,
                                  AuthChallengeMessage, AuthSuccessMessage,
                                  VoidResultMessage, RowsResultMessage,
                                  SetKeyspaceResultMessage, PreparedResultMessage,
                                  SchemaChangeResultMessage)
from cqlresponse.response import (QueryResponse, NonErrorQueryResponse, ensure_paging_finished,
                                  NonErrorStartupResponse, NonErrorAuthResponse, Ready,
                                  Authenticate, AuthChallenge, AuthSuccess)
from cqlresponse.query import QueryResult


def make_raw_rows():
    return RawRows([ColumnMetadata('ks', 'users', 'id', 'int')],
                   [[b'\x00\x00\x00\x01'], [b'\x00\x00\x00\x02']])


def make_coordinator():
    return Coordinator(DefaultEndPoint('127.0.0.1'), shard=3)


def non_row_results():
    return [
        VoidResultMessage(),
        SetKeyspaceResultMessage(SetKeyspace('ks')),
        PreparedResultMessage(Prepared(b'\x01\x02', None, [], [0], [])),
        SchemaChangeResultMessage(SchemaChange(SchemaChangeType.CREATED, SchemaTargetType.TABLE, 'ks', 'users')),
    ]


def non_result_messages():
    return [
        ReadyMessage(),
        AuthenticateMessage('org.apache.cassandra.auth.PasswordAuthenticator'),
        SupportedMessage(cql_versions=['3.4.5'], options={'COMPRESSION': ['lz4']}),
        EventMessage('STATUS_CHANGE', {'change_type': 'UP', 'address': ('127.0.0.1', 9042)}),
        AuthChallengeMessage(b'challenge'),
        AuthSuccessMessage(b'token'),
    ]


class QueryResponseTest(unittest.TestCase):

    def test_error_response_raises_server_error(self):
        response = QueryResponse(error_message_for(0x2200, 'unconfigured table users'))

        with pytest.raises(InvalidRequest) as exc:
            response.into_non_error_query_response()

        assert isinstance(exc.value, ServerError)
        assert exc.value.code == 0x2200
        assert exc.value.message == 'unconfigured table users'
        assert 'unconfigured table users' in str(exc.value)
        assert response.consumed

    def test_unknown_error_code_raises_base_server_error(self):
        response = QueryResponse(error_message_for(0x7777, 'something new'))

        with pytest.raises(ServerError) as exc:
            response.into_non_error_query_response()

        assert type(exc.value) is ServerError
        assert exc.value.code == 0x7777
        assert exc.value.message == 'something new'

    def test_error_info_is_kept(self):
        info = {'consistency': ConsistencyLevel.QUORUM, 'required_replicas': 2, 'alive_replicas': 1}
        response = QueryResponse(error_message_for(0x1000, 'Cannot achieve consistency level QUORUM', info))

        with pytest.raises(Unavailable) as exc:
            response.into_non_error_query_response()

        assert exc.value.info == info
        assert exc.value.required_replicas == 2
        assert exc.value.alive_replicas == 1

    def test_non_error_response_keeps_metadata(self):
        tracing_id = uuid4()
        message = VoidResultMessage()
        response = QueryResponse(message, tracing_id=tracing_id, warnings=['Aggregation query used without partition key'],
                                 custom_payload={'key': b'value'})

        non_error = response.into_non_error_query_response()

        assert isinstance(non_error, NonErrorQueryResponse)
        assert non_error.response is message
        assert non_error.tracing_id == tracing_id
        assert non_error.warnings == ['Aggregation query used without partition key']
        assert not hasattr(non_error, 'custom_payload')

    def test_classification_consumes_response(self):
        response = QueryResponse(VoidResultMessage())
        response.into_non_error_query_response()

        assert response.consumed
        with pytest.raises(ResponseConsumed):
            response.into_non_error_query_response()
        with pytest.raises(ResponseConsumed):
            response.response

    def test_response_is_required(self):
        with pytest.raises(ValueError):
            QueryResponse(None)

    def test_from_message(self):
        tracing_id = uuid4()
        message = RowsResultMessage(make_raw_rows())
        message.trace_id = tracing_id
        message.warnings = ['Read 10000 live rows', 'Batch too large']
        message.custom_payload = {'tablets-routing-v1': b'\x00'}

        with patch('cqlresponse.response.log') as patched_log:
            response = QueryResponse.from_message(message)

        assert response.response is message
        assert response.tracing_id == tracing_id
        assert response.warnings == ['Read 10000 live rows', 'Batch too large']
        assert response.custom_payload == {'tablets-routing-v1': b'\x00'}
        self.assertEqual(patched_log.warning.call_count, 2)
        patched_log.warning.assert_any_call("Server warning: %s", 'Batch too large')

    def test_from_message_without_metadata(self):
        with patch('cqlresponse.response.log') as patched_log:
            response = QueryResponse.from_message(ReadyMessage())

        assert response.tracing_id is None
        assert response.warnings == []
        assert response.custom_payload is None
        patched_log.warning.assert_not_called()


class NonErrorQueryResponseTest(unittest.TestCase):

    def test_error_message_is_rejected(self):
        with pytest.raises(TypeError):
            NonErrorQueryResponse(error_message_for(0x0000, 'boom'))

    def test_as_set_keyspace(self):
        set_keyspace = SetKeyspace('ks')
        response = NonErrorQueryResponse(SetKeyspaceResultMessage(set_keyspace))

        assert response.as_set_keyspace() is set_keyspace
        assert response.as_schema_change() is None
        # extraction does not consume
        assert response.as_set_keyspace() is set_keyspace
        assert not response.consumed

    def test_as_schema_change(self):
        schema_change = SchemaChange(SchemaChangeType.DROPPED, SchemaTargetType.KEYSPACE, 'ks')
        response = NonErrorQueryResponse(SchemaChangeResultMessage(schema_change))

        assert response.as_schema_change() is schema_change
        assert response.as_set_keyspace() is None

    def test_extraction_of_other_kinds_is_absent(self):
        others = [RowsResultMessage(make_raw_rows()), VoidResultMessage(),
                  PreparedResultMessage(Prepared(b'\x01', None, [], [], []))] + non_result_messages()
        for message in others:
            response = NonErrorQueryResponse(message)
            assert response.as_set_keyspace() is None, message
            assert response.as_schema_change() is None, message

    def test_rows_keep_paging_state(self):
        raw_rows = make_raw_rows()
        paging_state_response = PagingStateResponse.has_more_pages(b'\x00\x04next')
        coordinator = make_coordinator()
        response = NonErrorQueryResponse(RowsResultMessage(raw_rows, paging_state_response))

        result, returned_paging_state = response.into_query_result_and_paging_state(coordinator)

        assert result.raw_rows is raw_rows
        assert returned_paging_state == paging_state_response
        assert returned_paging_state.paging_state == b'\x00\x04next'
        assert result.coordinator == coordinator

    def test_rows_without_more_pages(self):
        raw_rows = make_raw_rows()
        response = NonErrorQueryResponse(RowsResultMessage(raw_rows))

        result, paging_state_response = response.into_query_result_and_paging_state(make_coordinator())

        assert result.raw_rows is raw_rows
        assert paging_state_response.finished

    def test_non_row_results_have_no_more_pages(self):
        for message in non_row_results():
            response = NonErrorQueryResponse(message)
            result, paging_state_response = response.into_query_result_and_paging_state(make_coordinator())
            assert result.raw_rows is None, message
            assert paging_state_response == PagingStateResponse.no_more_pages(), message

    def test_non_result_messages_are_unexpected(self):
        for message in non_result_messages():
            response = NonErrorQueryResponse(message)
            with pytest.raises(UnexpectedResponse) as exc:
                response.into_query_result_and_paging_state(make_coordinator())
            assert exc.value.kind == message.opcode
            assert ResponseKind.name_of(message.opcode) in str(exc.value)

    def test_tracing_id_and_warnings_pass_through(self):
        tracing_id = uuid4()
        warnings = ['first', 'second']
        response = NonErrorQueryResponse(VoidResultMessage(), tracing_id, warnings)

        result = response.into_query_result(make_coordinator())

        assert result.tracing_id == tracing_id
        assert result.warnings == ['first', 'second']

    def test_result_warnings_are_not_shared(self):
        envelope = QueryResponse(VoidResultMessage(), warnings=['w1'])
        non_error = envelope.into_non_error_query_response()
        result = non_error.into_query_result(make_coordinator())

        envelope.warnings.append('from envelope')
        non_error.warnings.append('from non error response')
        result.warnings.append('from result')

        assert result.warnings == ['w1']

    def test_assembly_consumes_response(self):
        response = NonErrorQueryResponse(SetKeyspaceResultMessage(SetKeyspace('ks')))
        response.into_query_result_and_paging_state(make_coordinator())

        assert response.consumed
        with pytest.raises(ResponseConsumed):
            response.into_query_result(make_coordinator())
        with pytest.raises(ResponseConsumed):
            response.as_set_keyspace()

    def test_known_coordinator_is_required(self):
        response = NonErrorQueryResponse(VoidResultMessage())

        with pytest.raises(ValueError):
            response.into_query_result_and_paging_state(None)
        with pytest.raises(ValueError):
            response.into_query_result(None)
        # nothing was consumed by the rejected calls
        assert not response.consumed


class UnpagedQueryResultTest(unittest.TestCase):

    def setUp(self):
        self.log_patcher = patch('cqlresponse.response.log')
        self.addCleanup(self.log_patcher.stop)
        self.patched_log = self.log_patcher.start()

    def test_finished_rows(self):
        raw_rows = make_raw_rows()
        coordinator = make_coordinator()
        response = NonErrorQueryResponse(RowsResultMessage(raw_rows, PagingStateResponse.no_more_pages()))

        result = response.into_query_result(coordinator)

        assert result.raw_rows is raw_rows
        assert result.coordinator == coordinator
        self.patched_log.error.assert_not_called()

    def test_nonfinished_paging_state(self):
        response = NonErrorQueryResponse(
            RowsResultMessage(make_raw_rows(), PagingStateResponse.has_more_pages(b'token')))

        with pytest.raises(NonfinishedPagingState):
            response.into_query_result(make_coordinator())

        self.patched_log.error.assert_called_once()
        assert 'nonfinished paging state' in self.patched_log.error.call_args[0][0]

    def test_non_row_results(self):
        for message in non_row_results():
            result = NonErrorQueryResponse(message).into_query_result(make_coordinator())
            assert result.raw_rows is None
            assert not result.is_rows
        self.patched_log.error.assert_not_called()

    def test_unknown_coordinator(self):
        raw_rows = make_raw_rows()
        response = NonErrorQueryResponse(RowsResultMessage(raw_rows))

        result = response.into_query_result_with_unknown_coordinator()

        assert result.coordinator is None
        assert result.raw_rows is raw_rows

    def test_unknown_coordinator_nonfinished_paging_state(self):
        response = NonErrorQueryResponse(
            RowsResultMessage(make_raw_rows(), PagingStateResponse.has_more_pages(b'token')))

        with pytest.raises(NonfinishedPagingState):
            response.into_query_result_with_unknown_coordinator()
        self.patched_log.error.assert_called_once()

    def test_unknown_coordinator_unexpected_response(self):
        with pytest.raises(UnexpectedResponse) as exc:
            NonErrorQueryResponse(ReadyMessage()).into_query_result_with_unknown_coordinator()
        assert exc.value.kind == ResponseKind.READY

    def test_ensure_paging_finished(self):
        result = QueryResult(make_coordinator())

        assert ensure_paging_finished(result, PagingStateResponse.no_more_pages()) is result
        with pytest.raises(NonfinishedPagingState):
            ensure_paging_finished(result, PagingStateResponse.has_more_pages(b'token'))
        self.patched_log.error.assert_called_once()


class HandshakeResponseTest(unittest.TestCase):

    def test_startup_ready(self):
        response = NonErrorStartupResponse.from_response(ReadyMessage())

        assert isinstance(response, Ready)
        assert response == Ready()
        assert response.kind == ResponseKind.READY

    def test_startup_authenticate(self):
        message = AuthenticateMessage('org.apache.cassandra.auth.PasswordAuthenticator')

        response = NonErrorStartupResponse.from_response(message)

        assert isinstance(response, Authenticate)
        assert response == Authenticate(message)
        assert response != Ready()
        assert response.authenticator == 'org.apache.cassandra.auth.PasswordAuthenticator'

    def test_auth_challenge(self):
        response = NonErrorAuthResponse.from_response(AuthChallengeMessage(b'nonce'))

        assert isinstance(response, AuthChallenge)
        assert response.challenge == b'nonce'
        assert response.kind == ResponseKind.AUTH_CHALLENGE

    def test_auth_success(self):
        response = NonErrorAuthResponse.from_response(AuthSuccessMessage(b'token'))

        assert isinstance(response, AuthSuccess)
        assert response.token == b'token'

    def test_shapes_do_not_overlap(self):
        with pytest.raises(UnexpectedResponse) as exc:
            NonErrorStartupResponse.from_response(AuthSuccessMessage(b'token'))
        assert exc.value.kind == ResponseKind.AUTH_SUCCESS

        with pytest.raises(UnexpectedResponse) as exc:
            NonErrorAuthResponse.from_response(ReadyMessage())
        assert exc.value.kind == ResponseKind.READY

    def test_variant_requires_its_message(self):
        with pytest.raises(TypeError):
            Authenticate(ReadyMessage())
        with pytest.raises(TypeError):
            Ready(AuthSuccessMessage(b'token'))
        with pytest.raises(TypeError):
            AuthChallenge(AuthSuccessMessage(b'token'))
        with pytest.raises(TypeError):
            AuthSuccess(AuthChallengeMessage(b'nonce'))

    def test_result_is_unexpected(self):
        with pytest.raises(UnexpectedResponse) as exc:
            NonErrorStartupResponse.from_response(VoidResultMessage())
        assert exc.value.kind == ResponseKind.RESULT

    def test_error_is_raised(self):
        with pytest.raises(AuthenticationFailed) as exc:
            NonErrorAuthResponse.from_response(error_message_for(0x0100, 'Provided username and/or password are incorrect'))
        assert exc.value.code == 0x0100

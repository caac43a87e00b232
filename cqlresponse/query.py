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

from cqlresponse import ResultNotRows, UnexpectedRowsResult


class QueryResult(object):
    """
    The outcome of one successfully executed request: the raw rows, if the
    statement produced any, plus the request-scoped metadata the server sent
    along with them.

    Instances are built by :class:`~cqlresponse.response.NonErrorQueryResponse`
    and are read-only afterwards.
    """

    def __init__(self, coordinator, raw_rows=None, tracing_id=None, warnings=None):
        if coordinator is None:
            raise ValueError("QueryResult requires a known coordinator; "
                             "use QueryResult.with_unknown_coordinator() otherwise")
        self._init(coordinator, raw_rows, tracing_id, warnings)

    @classmethod
    def with_unknown_coordinator(cls, raw_rows=None, tracing_id=None, warnings=None):
        """
        Builds a result that did not come from a single node, e.g. one made up
        for internal bookkeeping. Its :attr:`coordinator` is :const:`None`.
        """
        result = cls.__new__(cls)
        result._init(None, raw_rows, tracing_id, warnings)
        return result

    def _init(self, coordinator, raw_rows, tracing_id, warnings):
        self._coordinator = coordinator
        self._raw_rows = raw_rows
        self._tracing_id = tracing_id
        self._warnings = tuple(warnings) if warnings else ()

    @property
    def coordinator(self):
        """
        The :class:`~cqlresponse.hosts.Coordinator` that served the request,
        or :const:`None` for results built with an unknown coordinator.
        """
        return self._coordinator

    @property
    def raw_rows(self):
        """
        The :class:`~cqlresponse.protocol.RawRows`, or :const:`None` if the
        statement did not return rows.
        """
        return self._raw_rows

    @property
    def tracing_id(self):
        return self._tracing_id

    @property
    def warnings(self):
        return list(self._warnings)

    @property
    def is_rows(self):
        return self._raw_rows is not None

    @property
    def rows_num(self):
        return len(self._raw_rows) if self._raw_rows is not None else None

    @property
    def column_specs(self):
        return self._raw_rows.column_metadata if self._raw_rows is not None else None

    def rows_result(self):
        if self._raw_rows is None:
            raise ResultNotRows("The statement did not return rows")
        return self._raw_rows

    def result_not_rows(self):
        """
        Raises :exc:`~cqlresponse.UnexpectedRowsResult` if this result carries
        rows. Meant for statements that must not return any, such as DDL.
        """
        if self._raw_rows is not None:
            raise UnexpectedRowsResult("The statement returned %d rows where none were expected"
                                       % (len(self._raw_rows),))

    def __repr__(self):
        return "<%s: coordinator=%r, rows=%s, tracing_id=%s, warnings=%r>" % (
            self.__class__.__name__, self._coordinator, self.rows_num, self._tracing_id, list(self._warnings))

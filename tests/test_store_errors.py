"""
Tests for mapping store exceptions onto the error taxonomy.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError, ProgrammingError

from database.errors import SCHEMA_NOT_READY, is_schema_missing, is_store_unavailable, store_errors
from utils.errors import ConflictError, ServiceUnavailableError


def _session():
    session = MagicMock()
    session.rollback = AsyncMock()
    return session


class _Orig(Exception):
    pass


class TestClassification:
    def test_refused_connection(self):
        assert is_store_unavailable(ConnectionRefusedError())

    def test_operational_error(self):
        assert is_store_unavailable(OperationalError("SELECT 1", {}, _Orig("server closed the connection")))

    def test_integrity_error_is_not_unavailability(self):
        assert not is_store_unavailable(IntegrityError("INSERT", {}, _Orig("UNIQUE constraint failed")))

    @pytest.mark.parametrize(
        "message",
        ['relation "users" does not exist', "no such table: users", "UndefinedTableError"],
    )
    def test_schema_missing(self, message):
        assert is_schema_missing(ProgrammingError("SELECT", {}, _Orig(message)))

    def test_other_programming_errors(self):
        assert not is_schema_missing(ProgrammingError("SELECT", {}, _Orig("syntax error at or near")))


class TestStoreErrors:
    @pytest.mark.asyncio
    async def test_integrity_maps_to_supplied_error(self):
        session = _session()
        with pytest.raises(ConflictError):
            async with store_errors(session, on_integrity=ConflictError("taken")):
                raise IntegrityError("INSERT", {}, _Orig("duplicate key"))
        session.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_integrity_without_mapping_propagates(self):
        with pytest.raises(IntegrityError):
            async with store_errors(_session()):
                raise IntegrityError("INSERT", {}, _Orig("duplicate key"))

    @pytest.mark.asyncio
    async def test_schema_not_ready(self):
        with pytest.raises(ServiceUnavailableError) as exc_info:
            async with store_errors(_session()):
                raise OperationalError("SELECT", {}, _Orig("no such table: tasks"))
        assert exc_info.value.message == SCHEMA_NOT_READY

    @pytest.mark.asyncio
    async def test_unreachable(self):
        with pytest.raises(ServiceUnavailableError) as exc_info:
            async with store_errors(_session()):
                raise OSError("Connect call failed")
        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_unrelated_errors_pass_through(self):
        with pytest.raises(KeyError):
            async with store_errors(_session()):
                raise KeyError("boom")

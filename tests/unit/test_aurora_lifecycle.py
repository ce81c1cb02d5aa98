"""Unit tests for the AuroraClient connection lifecycle."""

import pytest
from sqlalchemy import create_engine, text

from core.config import get_config
from core.db import AuroraClient
from core.errors import InternalError


def _client():
    return AuroraClient(get_config(), engine=create_engine("sqlite://"))


def test_session_scope_requires_connection():
    client = AuroraClient(get_config())

    with pytest.raises(InternalError, match="not connected"):
        with client.session_scope():
            pass
    assert client.health_check() is False


def test_session_scope_rolls_back_on_error():
    client = _client()
    client.connect()
    with client.session_scope() as session:
        session.execute(text("CREATE TABLE notes (body TEXT)"))

    with pytest.raises(ValueError):
        with client.session_scope() as session:
            session.execute(text("INSERT INTO notes VALUES ('draft')"))
            raise ValueError("boom")

    with client.session_scope() as session:
        assert session.scalar(text("SELECT count(*) FROM notes")) == 0


def test_disconnect_releases_engine():
    client = _client()
    client.connect()
    assert client.health_check() is True

    client.disconnect()

    assert client.health_check() is False

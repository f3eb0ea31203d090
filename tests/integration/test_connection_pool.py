"""
Integration tests for the database connection pool

Tests the PostgreSQL connection pool functionality using testcontainers.
"""
import pytest
from psycopg import OperationalError

from shipcomply.store.connection import DatabaseConnectionPool


def make_pool(postgres_container, **kwargs) -> DatabaseConnectionPool:
    return DatabaseConnectionPool(
        host=postgres_container.get_container_host_ip(),
        port=int(postgres_container.get_exposed_port(5432)),
        database="test_compliance",
        user="test_compliance",
        password=kwargs.pop("password", "test_password"),
        **kwargs,
    )


@pytest.mark.integration
def test_connection_pool_initialization(postgres_container):
    """Test that connection pool initializes correctly"""
    pool = make_pool(postgres_container, min_size=2, max_size=5)

    pool.open()

    assert pool.is_open
    assert pool._pool.min_size == 2
    assert pool._pool.max_size == 5

    pool.close()
    assert not pool.is_open


@pytest.mark.integration
def test_get_connection(postgres_container):
    """Test getting a connection from the pool"""
    with make_pool(postgres_container) as pool:
        with pool.get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1 as test")
                result = cur.fetchone()
                assert result["test"] == 1

    # Pool should be closed after context
    with pytest.raises(RuntimeError):
        with pool.get_connection():
            pass


@pytest.mark.integration
def test_statement_timeout(postgres_container):
    """Statements running past the timeout are cancelled"""
    with make_pool(postgres_container, timeout=1.0) as pool:
        with pool.get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute("SHOW statement_timeout")
                assert cur.fetchone()["statement_timeout"] == "1s"
            conn.rollback()


@pytest.mark.integration
def test_open_retries_then_fails(postgres_container):
    """Test that a wrong password fails after all retries"""
    pool = make_pool(postgres_container, password="wrong", timeout=2.0)

    with pytest.raises(OperationalError, match="after 2 attempts"):
        pool.open(max_retries=2, retry_delay=0.1)

    assert not pool.is_open


def test_password_required(monkeypatch):
    """Test that a missing password is rejected before connecting"""
    monkeypatch.delenv("DB_PASSWORD", raising=False)

    with pytest.raises(ValueError, match="password"):
        DatabaseConnectionPool(host="localhost")

"""Aurora PostgreSQL client: engine construction and per-request transactions."""

import json
import logging
from collections.abc import Iterator
from contextlib import contextmanager

import boto3
from sqlalchemy import Engine, create_engine, text
from sqlalchemy.engine import URL
from sqlalchemy.orm import Session, sessionmaker

from core.config import Config
from core.errors import InternalError

logger = logging.getLogger(__name__)


class AuroraClient:
    def __init__(self, config: Config, engine: Engine | None = None) -> None:
        self._config = config
        self._engine = engine
        self._sessions: sessionmaker[Session] | None = None
        self._secret_cache: dict[str, str] | None = None
        if engine is not None:
            self._sessions = sessionmaker(bind=engine, expire_on_commit=False)

    def _get_credentials(self) -> dict[str, str]:
        if self._config.aurora_secret_arn:
            if self._secret_cache is None:
                client = boto3.client("secretsmanager", region_name=self._config.aws_region)
                secret = client.get_secret_value(SecretId=self._config.aurora_secret_arn)
                self._secret_cache = json.loads(secret["SecretString"])
            return self._secret_cache
        return {
            "host": self._config.aurora_host,
            "port": str(self._config.aurora_port),
            "dbname": self._config.aurora_database,
            "user": self._config.aurora_user,
            "password": self._config.aurora_password,
        }

    def url(self) -> URL:
        creds = self._get_credentials()
        return URL.create(
            "postgresql+psycopg",
            username=creds.get("username", creds.get("user", self._config.aurora_user)),
            password=creds.get("password", self._config.aurora_password),
            host=creds.get("host", self._config.aurora_host),
            port=int(creds.get("port", self._config.aurora_port)),
            database=creds.get("dbname", self._config.aurora_database),
        )

    def connect(self) -> None:
        if self._engine is None:
            self._engine = create_engine(self.url(), pool_pre_ping=True, pool_size=2, max_overflow=2)
        self._sessions = sessionmaker(bind=self._engine, expire_on_commit=False)

    def disconnect(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
        self._engine = None
        self._sessions = None

    def _require_sessions(self) -> sessionmaker[Session]:
        """Return the session factory or raise if not connected."""
        if self._sessions is None:
            raise InternalError("AuroraClient is not connected. Call connect() first.")
        return self._sessions

    def health_check(self) -> bool:
        try:
            with self._require_sessions()() as session:
                session.execute(text("SELECT 1"))
            return True
        except Exception:
            return False

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """One transaction: commit when the block succeeds, roll back otherwise."""
        session = self._require_sessions()()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

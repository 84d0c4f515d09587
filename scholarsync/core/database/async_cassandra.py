"""Async Cassandra connection using cassandra-asyncio-driver.

The driver extends the standard cassandra-driver ``Session`` with an
``aexecute()`` coroutine. Connecting is synchronous; every query issued by
the services is awaited.
"""

import structlog
from cassandra.auth import PlainTextAuthProvider
from cassandra.policies import DCAwareRoundRobinPolicy, TokenAwarePolicy
from cassandra_asyncio.cluster import Cluster

from scholarsync.certificates.models import CERTIFICATES_TABLES_CQL
from scholarsync.chat.models import CHAT_TABLES_CQL
from scholarsync.config.settings import get_settings
from scholarsync.courses.models import COURSES_TABLES_CQL
from scholarsync.discussions.models import DISCUSSIONS_TABLES_CQL
from scholarsync.notifications.models import NOTIFICATIONS_TABLES_CQL
from scholarsync.progress.models import PROGRESS_TABLES_CQL
from scholarsync.quizzes.models import QUIZZES_TABLES_CQL


logger = structlog.get_logger(__name__)

# Creation order matters only for readability of the startup log
SCHEMA: tuple[tuple[str, list[str]], ...] = (
    ("courses", COURSES_TABLES_CQL),
    ("quizzes", QUIZZES_TABLES_CQL),
    ("progress", PROGRESS_TABLES_CQL),
    ("certificates", CERTIFICATES_TABLES_CQL),
    ("notifications", NOTIFICATIONS_TABLES_CQL),
    ("discussions", DISCUSSIONS_TABLES_CQL),
    ("chat", CHAT_TABLES_CQL),
)


class AsyncCassandraConnection:
    """Process-wide cluster and session holder."""

    _cluster: Cluster | None = None
    _session = None

    @classmethod
    def connect(cls):
        """Connect to the cluster, reusing an existing session.

        Raises:
            ConnectionError: If the cluster cannot be reached.
        """
        if cls._session is not None:
            return cls._session

        settings = get_settings()

        auth_provider = None
        if settings.cassandra_username and settings.cassandra_password:
            auth_provider = PlainTextAuthProvider(
                username=settings.cassandra_username,
                password=settings.cassandra_password,
            )

        cls._cluster = Cluster(
            contact_points=settings.cassandra_hosts,
            port=settings.cassandra_port,
            auth_provider=auth_provider,
            protocol_version=settings.cassandra_protocol_version,
            load_balancing_policy=TokenAwarePolicy(DCAwareRoundRobinPolicy()),
            connect_timeout=settings.cassandra_connect_timeout,
        )

        try:
            cls._session = cls._cluster.connect()
        except Exception as e:
            logger.error("cassandra_connection_failed", error=str(e))
            raise ConnectionError(f"Failed to connect to Cassandra: {e}") from e

        cls._session.default_timeout = settings.cassandra_request_timeout
        logger.info(
            "cassandra_connected",
            hosts=settings.cassandra_hosts,
            port=settings.cassandra_port,
        )
        return cls._session

    @classmethod
    def get_session(cls):
        """Get the active session, connecting if necessary."""
        if cls._session is None:
            return cls.connect()
        return cls._session

    @classmethod
    def disconnect(cls) -> None:
        """Close session and cluster."""
        if cls._session is not None:
            cls._session.shutdown()
            cls._session = None
        if cls._cluster is not None:
            cls._cluster.shutdown()
            cls._cluster = None
            logger.info("cassandra_disconnected")

    @classmethod
    def is_connected(cls) -> bool:
        return cls._session is not None and not cls._session.is_shutdown


def get_async_cassandra_session():
    """Get the async-capable Cassandra session."""
    return AsyncCassandraConnection.get_session()


async def init_async_keyspace(session, keyspace: str) -> None:
    """Create the keyspace if it does not exist."""
    settings = get_settings()

    if settings.is_production:
        replication = "'class': 'NetworkTopologyStrategy', 'datacenter1': 3"
    else:
        replication = "'class': 'SimpleStrategy', 'replication_factor': 1"

    await session.aexecute(
        f"""
        CREATE KEYSPACE IF NOT EXISTS {keyspace}
        WITH replication = {{{replication}}}
        AND durable_writes = true
        """
    )
    logger.info("keyspace_ready", keyspace=keyspace)


async def init_async_tables(session, keyspace: str) -> None:
    """Create every module's tables."""
    for module, statements in SCHEMA:
        for cql_template in statements:
            await session.aexecute(cql_template.format(keyspace=keyspace))
        logger.info("tables_ready", module=module, keyspace=keyspace)


async def init_async_cassandra():
    """Connect, create the schema and return the session."""
    settings = get_settings()

    session = AsyncCassandraConnection.connect()
    await init_async_keyspace(session, settings.cassandra_keyspace)
    session.set_keyspace(settings.cassandra_keyspace)
    await init_async_tables(session, settings.cassandra_keyspace)

    logger.info("cassandra_initialized", keyspace=settings.cassandra_keyspace)
    return session


async def shutdown_async_cassandra() -> None:
    """Shutdown the Cassandra connection."""
    AsyncCassandraConnection.disconnect()

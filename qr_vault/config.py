"""Configuration management for qr-vault."""

from dataclasses import dataclass, field
from typing import Any

from qr_vault.exceptions import ConfigurationError

STORE_BACKENDS = ("memory", "postgres")
AUDIT_SINKS = ("none", "console", "kafka")


@dataclass
class KafkaConfig:
    """Kafka producer configuration for audit events."""

    bootstrap_servers: str = "localhost:9092"
    topic: str = "qr-vault.identifier-events"
    acks: str = "all"
    linger_ms: int = 5
    retries: int = 3

    def to_dict(self) -> dict[str, Any]:
        """Convert to confluent-kafka config dict."""
        return {
            "bootstrap.servers": self.bootstrap_servers,
            "acks": self.acks,
            "linger.ms": self.linger_ms,
            "retries": self.retries,
        }


@dataclass
class PostgresConfig:
    """PostgreSQL connection configuration."""

    host: str = "localhost"
    port: int = 5432
    database: str = "qrvault"
    user: str = "postgres"
    password: str = "postgres"

    @property
    def connection_string(self) -> str:
        """Get connection string."""
        return f"postgresql://{self.user}:{self.password}@{self.host}:{self.port}/{self.database}"


@dataclass
class ServerConfig:
    """HTTP server configuration."""

    host: str = "0.0.0.0"
    port: int = 8000
    public_origin: str = "http://localhost:8000"

    def public_url(self, token: str) -> str:
        """Build the URL a printed QR code points at."""
        return f"{self.public_origin.rstrip('/')}/property/public/{token}"


@dataclass
class IdentifierConfig:
    """Token minting configuration."""

    token_bytes: int = 16

    def __post_init__(self) -> None:
        if self.token_bytes < 16:
            raise ConfigurationError(
                f"token_bytes must be at least 16, got {self.token_bytes}"
            )


@dataclass
class QrVaultConfig:
    """Main configuration for qr-vault."""

    postgres: PostgresConfig = field(default_factory=PostgresConfig)
    kafka: KafkaConfig = field(default_factory=KafkaConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    identifier: IdentifierConfig = field(default_factory=IdentifierConfig)
    store_backend: str = "memory"
    audit_sink: str = "none"
    log_level: str = "INFO"
    log_format: str = "standard"

    def __post_init__(self) -> None:
        if self.store_backend not in STORE_BACKENDS:
            raise ConfigurationError(
                f"Unknown store backend {self.store_backend!r}, expected one of {STORE_BACKENDS}"
            )
        if self.audit_sink not in AUDIT_SINKS:
            raise ConfigurationError(
                f"Unknown audit sink {self.audit_sink!r}, expected one of {AUDIT_SINKS}"
            )

    @classmethod
    def from_env(cls) -> "QrVaultConfig":
        """Create config from environment variables."""
        import os

        try:
            postgres = PostgresConfig(
                host=os.getenv("POSTGRES_HOST", "localhost"),
                port=int(os.getenv("POSTGRES_PORT", "5432")),
                database=os.getenv("POSTGRES_DB", "qrvault"),
                user=os.getenv("POSTGRES_USER", "postgres"),
                password=os.getenv("POSTGRES_PASSWORD", "postgres"),
            )
            server = ServerConfig(
                host=os.getenv("HOST", "0.0.0.0"),
                port=int(os.getenv("PORT", "8000")),
                public_origin=os.getenv("PUBLIC_ORIGIN", "http://localhost:8000"),
            )
            identifier = IdentifierConfig(
                token_bytes=int(os.getenv("TOKEN_BYTES", "16")),
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid numeric setting: {e}") from e

        kafka = KafkaConfig(
            bootstrap_servers=os.getenv("KAFKA_BOOTSTRAP_SERVERS", "localhost:9092"),
            topic=os.getenv("KAFKA_TOPIC", "qr-vault.identifier-events"),
            acks=os.getenv("KAFKA_ACKS", "all"),
        )

        return cls(
            postgres=postgres,
            kafka=kafka,
            server=server,
            identifier=identifier,
            store_backend=os.getenv("STORE_BACKEND", "memory"),
            audit_sink=os.getenv("AUDIT_SINK", "none"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "standard"),
        )

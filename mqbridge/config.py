"""Configuration structures for the bridge server and its connectors.

Each field carries its configuration-file key in its metadata under "key".
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

DEFAULT_DISCOVER_PREFIX = "_STAN.discover"
DEFAULT_MAX_PUB_ACKS_INFLIGHT = 16384


def _opt(key: str, default: Any = None, factory: Any = None) -> Any:
    metadata = {"key": key}
    if factory is not None:
        return field(default_factory=factory, metadata=metadata)
    return field(default=default, metadata=metadata)


class ConnectorType(str, Enum):
    """The kinds of connector the bridge can run."""

    QUEUE2NATS = "Queue2NATS"
    QUEUE2STAN = "Queue2Stan"
    STAN2QUEUE = "Stan2Queue"
    NATS2QUEUE = "NATS2Queue"
    TOPIC2NATS = "Topic2NATS"
    TOPIC2STAN = "Topic2Stan"
    STAN2TOPIC = "Stan2Topic"
    NATS2TOPIC = "NATS2Topic"


@dataclass
class LoggingConfig:
    """Logger output options."""

    colors: bool = _opt("Colors", False)
    time: bool = _opt("Time", False)
    debug: bool = _opt("Debug", False)
    trace: bool = _opt("Trace", False)


@dataclass
class TLSConf:
    """Key, certificate and root CA files for a TLS connection or server."""

    key: str = _opt("Key", "")
    cert: str = _opt("Cert", "")
    root: str = _opt("Root", "")


@dataclass
class MonitoringConfig:
    """Host and ports for the monitoring server.

    Both ports at 0 disable monitoring; -1 selects an ephemeral port. A
    non-zero HTTPS port enables TLS. An empty host means all interfaces.
    """

    http_host: str = _opt("HTTPHost", "")
    http_port: int = _opt("HTTPPort", 0)
    https_port: int = _opt("HTTPSPort", 0)
    tls: TLSConf = _opt("TLS", factory=TLSConf)


@dataclass
class MQConfig:
    """Connection settings for an MQ queue manager."""

    connection_name: str = _opt("ConnectionName", "")
    channel_name: str = _opt("ChannelName", "")
    queue_manager: str = _opt("QueueManager", "")
    user_name: str = _opt("UserName", "")
    password: str = _opt("Password", "")
    key_repository: str = _opt("KeyRepository", "")
    certificate_label: str = _opt("CertificateLabel", "")
    ssl_peer_name: str = _opt("SSLPeerName", "")


@dataclass
class NATSConfig:
    """Connection settings for NATS; times are in milliseconds."""

    servers: list[str] = _opt("Servers", factory=list)
    connect_timeout: int = _opt("ConnectTimeout", 0)
    reconnect_wait: int = _opt("ReconnectWait", 0)
    max_reconnects: int = _opt("MaxReconnects", 0)
    tls: TLSConf = _opt("TLS", factory=TLSConf)
    username: str = _opt("Username", "")
    password: str = _opt("Password", "")
    creds_file: str = _opt("CredsFile", "")


@dataclass
class NATSStreamingConfig:
    """Connection settings for NATS streaming; times are in milliseconds."""

    cluster_id: str = _opt("ClusterID", "")
    client_id: str = _opt("ClientID", "")
    pub_ack_wait: int = _opt("PubAckWait", 0)
    discover_prefix: str = _opt("DiscoverPrefix", "")
    max_pub_acks_inflight: int = _opt("MaxPubAcksInflight", 0)
    connect_wait: int = _opt("ConnectWait", 0)


@dataclass
class ConnectorConfig:
    """Settings for one bridge connector of any type.

    start_at_sequence of -1 starts with the last received message and 0
    delivers all available; start_at_time, a Unix time, takes precedence.
    An empty id is replaced by a generated one.
    """

    id: str = _opt("ID", "")
    type: str = _opt("Type", "")
    channel: str = _opt("Channel", "")
    durable_name: str = _opt("DurableName", "")
    start_at_sequence: int = _opt("StartAtSequence", 0)
    start_at_time: int = _opt("StartAtTime", 0)
    subject: str = _opt("Subject", "")
    nats_queue: str = _opt("NatsQueue", "")
    mq: MQConfig = _opt("MQ", factory=MQConfig)
    topic: str = _opt("Topic", "")
    queue: str = _opt("Queue", "")
    use_polling: bool = _opt("UsePolling", False)
    incoming_buffer_size: int = _opt("IncomingBufferSize", 0)
    incoming_message_wait: int = _opt("IncomingMessageWait", 0)
    exclude_headers: bool = _opt("ExcludeHeaders", False)


@dataclass
class BridgeConfig:
    """Top-level server configuration; reconnect_interval is in milliseconds."""

    reconnect_interval: int = _opt("ReconnectInterval", 0)
    nats: NATSConfig = _opt("NATS", factory=NATSConfig)
    stan: NATSStreamingConfig = _opt("STAN", factory=NATSStreamingConfig)
    logging: LoggingConfig = _opt("Logging", factory=LoggingConfig)
    monitoring: MonitoringConfig = _opt("Monitoring", factory=MonitoringConfig)
    connect: list[ConnectorConfig] = _opt("Connect", factory=list)


def default_bridge_config() -> BridgeConfig:
    """Return the default configuration.

    Logging uses colours and timestamps without debug or trace output, and
    the reconnect interval is 5 seconds.
    """
    return BridgeConfig(
        reconnect_interval=5000,
        logging=LoggingConfig(colors=True, time=True, debug=False, trace=False),
        stan=NATSStreamingConfig(
            pub_ack_wait=5000,
            discover_prefix=DEFAULT_DISCOVER_PREFIX,
            max_pub_acks_inflight=DEFAULT_MAX_PUB_ACKS_INFLIGHT,
            connect_wait=2000,
        ),
    )
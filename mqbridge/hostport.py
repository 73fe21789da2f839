"""A host and port pair as used in configuration files."""

from dataclasses import dataclass


@dataclass
class HostPort:
    """A host name or address together with a port number."""

    host: str = ""
    port: int = 0

    def __str__(self) -> str:
        host = f"[{self.host}]" if ":" in self.host else self.host
        return f"{host}:{self.port}"
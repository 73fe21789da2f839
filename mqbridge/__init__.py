"""Message envelope, configuration loading and streaming histograms for an MQ to NATS bridge."""

__version__ = "0.5.0"
"""Replica placement planning for topic partitions across brokers and racks."""

__version__ = "0.1.0"
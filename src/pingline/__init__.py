"""Continuous ICMP echo prober emitting one record per probe."""

__version__ = "0.1.0"

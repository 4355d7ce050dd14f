"""Threat-intelligence feed collection and STIX 2.1 normalisation services."""

__version__ = "0.1.0"
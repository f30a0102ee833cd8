"""Nagios probe checking the DIRAC workload management workflow."""

__version__ = "0.5.0"

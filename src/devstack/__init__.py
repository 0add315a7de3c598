"""devstack — discover and provision local backing services for an app."""

__version__ = "0.3.0"

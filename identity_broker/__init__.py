"""Identity broker: OpenID-Connect login and registration with a local user mirror."""

__version__ = "0.1.0"

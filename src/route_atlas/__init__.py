"""Static extraction of HTTP route metadata from compiled JVM controllers."""

__version__ = "0.1.0"

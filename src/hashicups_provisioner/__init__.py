"""Resource synchronization for the HashiCups coffee-ordering API."""

__version__ = "0.1.0"

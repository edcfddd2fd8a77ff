"""Development stack provisioning for the Laravel + React application."""

__version__ = "1.0.0"

"""PT Studio - session scheduling and trainer-fee settlement."""

__version__ = "1.0.0"

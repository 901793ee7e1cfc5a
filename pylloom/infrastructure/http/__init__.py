"""HTTP infrastructure package."""

from .retry import RetryConfig, RetryPolicy
from .transport import HttpTransport

__all__ = ['HttpTransport', 'RetryConfig', 'RetryPolicy']

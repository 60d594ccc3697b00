"""
Exception hierarchy for the excavation task executive.

Ports raise these; the executive components catch them at their loop
boundaries and convert them into retries or terminal cycle outcomes.
"""


class ExecutiveError(Exception):
    """Base class for all executive errors"""


class ConfigurationError(ExecutiveError):
    """Invalid or missing startup configuration"""


class ServiceCallError(ExecutiveError):
    """A blocking remote call could not be completed"""

    def __init__(self, service: str, reason: str = "unavailable"):
        super().__init__(f"Service '{service}' call failed: {reason}")
        self.service = service
        self.reason = reason


class SubordinateTaskError(ExecutiveError):
    """A subordinate task was rejected or did not finish successfully"""


class TransformError(ExecutiveError):
    """A pose could not be transformed into the requested frame"""


class UnsupportedLocationError(ExecutiveError, ValueError):
    """No navigation goal is defined for the requested location"""


class ExecutiveBusyError(ExecutiveError):
    """A new command arrived while another cycle is still in flight"""

"""Label-based access to Apptivo records.

Resolve human-readable field labels against each app's configuration
document to read, build and update record values.
"""

from apptivolink.apps import AppDescriptor, AppRegistry, resolve_app
from apptivolink.client import ApptivoClient
from apptivolink.result import ErrorKind, Failure, ResolutionError, ResolutionResult

__version__ = "0.1.0"

__all__ = [
    "AppDescriptor",
    "AppRegistry",
    "ApptivoClient",
    "ErrorKind",
    "Failure",
    "ResolutionError",
    "ResolutionResult",
    "resolve_app",
]

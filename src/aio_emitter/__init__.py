"""
aio-emitter: an in-process event emitter that awaits its listeners one at a time.
"""

__version__ = "0.1.0"
__license__ = "MIT"

from .emitter import EventEmitter, CapacityPolicy
from .listener import Listener, ListenerMode
from .errors import (
    EmitterError,
    MaxListenersExceededError,
    InvalidMaxListenersError,
    InvalidCapacityPolicyError,
    ListenerBindError,
    MaxListenersExceededWarning,
)
from .decorators import listens_to, bind_listeners
from .logging import LoggerManager, get_emitter_logger
from .config import ConfigManager
from .settings import EmitterSettings

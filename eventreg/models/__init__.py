# Import all models for easier access
from .event import Event, EventAttendee  # noqa: F401
from .revoked_token import RevokedToken  # noqa: F401
from .user import User, UserRole  # noqa: F401

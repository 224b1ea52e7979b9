"""Pydantic schemas for request/response validation."""

from .admin import *  # noqa: F403
from .approval import *  # noqa: F403
from .booking import *  # noqa: F403
from .common import *  # noqa: F403
from .notification import *  # noqa: F403

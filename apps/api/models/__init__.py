"""Models package."""

from .user import User
from .search import Search
from .summary import Summary
from .download import Download
from .session_content import SessionContent

from .file_session_repository import FileSessionRepository as FileSessionRepository
from .session_repository import SessionRepository as SessionRepository

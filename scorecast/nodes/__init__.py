from .session_node import SessionNode as SessionNode

"""会话层：系统指令编译与单会话流式管理。"""

from receptionist_core.session.compiler import build_system_instruction, strip_timestamp
from receptionist_core.session.manager import ConversationSessionManager, SessionBinding, SessionState

__all__ = [
    "ConversationSessionManager",
    "SessionBinding",
    "SessionState",
    "build_system_instruction",
    "strip_timestamp",
]

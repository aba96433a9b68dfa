from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Text

from nutribot.database import Base
from nutribot.services.timeutils import utcnow


class ConversationLog(Base):
    __tablename__ = "conversation_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), ForeignKey("users.user_id"), nullable=False, index=True)
    direction = Column(String(10), nullable=False)  # incoming, outgoing
    message_type = Column(String(20), nullable=False)  # text, image, command, response, reminder, error
    content = Column(Text, nullable=False)
    extra = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)


class WindowWarning(Base):
    """Last time a user was warned that the messaging window is about to close."""
    __tablename__ = "window_warnings"

    user_id = Column(String(64), ForeignKey("users.user_id", ondelete="CASCADE"), primary_key=True)
    last_warned_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)

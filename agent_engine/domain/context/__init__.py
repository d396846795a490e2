 # This module holds the conversation an agent instance accumulates

# +---------------------------+
# |    Conversation Store     |   (Owned by one Agent, append-only)
# |---------------------------|
# | Prior messages (caller)   |
# | User turn / schedule turn |
# | Model + tool messages     |
# +---------------------------+
#              |
#              v
# +---------------------------+
# |      Per-step context     |   (Rebuilt before every model step)
# |---------------------------|
# | System prompt (time,      |
# |   skills, identity)       |
# | Snapshot of the store     |
# | Tool set for the call     |
# +---------------------------+
#              |
#              v
#      [Chat model / tools]

from .conversation_store import ConversationStore

__all__ = ["ConversationStore"]

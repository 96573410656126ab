"""core/session — durable editing session with version history.

types.py:  SongVersion / ChatMessage / SongSession / SessionState value
           objects and their JSON-compatible dict encoding.
store.py:  SessionStore — mutation protocol, persistence strategy,
           subscriber notification.
"""

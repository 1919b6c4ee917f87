"""
Namespaced Redis pub/sub channel names.

Every event is scoped to a logical chat server:
  server:{server_id}:channel:{channel_id}   message events for one channel
  server:{server_id}:events                 structural events for the whole server

Relay listeners subscribe to SERVER_PATTERN and recover the scope from the
published envelope rather than by parsing the key.
"""

SERVER_PATTERN = "server:*"


def channel_pubsub_key(server_id: str, channel_id: str) -> str:
    return f"server:{server_id}:channel:{channel_id}"


def server_pubsub_key(server_id: str) -> str:
    return f"server:{server_id}:events"

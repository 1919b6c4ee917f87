# WebSocket event type definitions

# Client -> server
AUTH = "auth"
SUBSCRIBE = "subscribe"
UNSUBSCRIBE = "unsubscribe"
PING = "ping"

# Server -> client
PONG = "pong"
ERROR = "error"
SUBSCRIBED = "subscribed"
UNSUBSCRIBED = "unsubscribed"
SUBSCRIPTION_REPLACED = "subscription.replaced"

MESSAGE_NEW = "message.new"

CHANNEL_CREATED = "channel.created"
CHANNEL_DELETED = "channel.deleted"

MEMBER_JOINED = "member.joined"
MEMBER_ROLE_CHANGED = "member.role_changed"

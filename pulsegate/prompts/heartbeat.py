"""Heartbeat prompt and control token."""

# Reply token meaning "nothing needs attention"; stripped before delivery.
HEARTBEAT_TOKEN = "HEARTBEAT_OK"

HEARTBEAT_PROMPT = f"""[HEARTBEAT CHECK]

This is a scheduled check-in, not a message from the user.

Review anything time-sensitive you are tracking: reminders that are due,
status checks you promised, or follow-ups the user asked for. If something
needs the user's attention, write the message you want delivered to them.

If nothing requires attention right now, respond exactly: {HEARTBEAT_TOKEN}
"""

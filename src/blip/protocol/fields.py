"""Wire field names.

Keep these in one place to avoid stringly-typed message handling. The names
are case-sensitive and appear on the wire exactly as written here.
"""

TARGET = "Target"
CALL = "Call"
ARGUMENTS = "Arguments"

SUCCESS = "Success"
RESULT = "Result"

TOPIC = "Topic"

# Keys of the failure Result object.
MESSAGE = "Message"
STACKTRACE = "Stacktrace"

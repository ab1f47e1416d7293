"""Constants for link polling."""

# Component names for logging
COMPONENT_POLLER = "poller"
COMPONENT_COORDINATOR = "coordinator"
COMPONENT_HOLDER = "holder"

# Human-readable error messages
MSG_LINK_NOT_READY = "Server link not ready"
MSG_LINK_UNREACHABLE = "Server link unreachable"
MSG_LINK_INVALID = "Server link invalid"
MSG_LINK_ERROR = "Server link error"
MSG_LINKS_NOT_READY = "Server links not ready"
MSG_INVALID_STATUS = "Invalid server status"

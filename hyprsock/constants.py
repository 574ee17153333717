"""Shared constants for hyprsock."""

__all__ = [
    "COMMAND_PREFIX",
    "COMMAND_TERMINATOR",
    "CONTROL_SOCKET_NAME",
    "EVENT_BUFFER_RETAIN",
    "EVENT_DELIMITER",
    "EVENT_SOCKET_NAME",
    "INSTANCE_SIGNATURE_VAR",
    "READ_CHUNK_SIZE",
    "RECORD_SEPARATOR",
    "RUNTIME_DIR_VAR",
    "SOCKET_SUBDIR",
    "WORD_SEPARATOR",
]

# Socket addressing: {XDG_RUNTIME_DIR}/hypr/{HYPRLAND_INSTANCE_SIGNATURE}/<name>
INSTANCE_SIGNATURE_VAR = "HYPRLAND_INSTANCE_SIGNATURE"
RUNTIME_DIR_VAR = "XDG_RUNTIME_DIR"
SOCKET_SUBDIR = "hypr"
CONTROL_SOCKET_NAME = ".socket.sock"
EVENT_SOCKET_NAME = ".socket2.sock"

# Control protocol
COMMAND_PREFIX = b"/"
COMMAND_TERMINATOR = b"\n"
WORD_SEPARATOR = b" "

# Event protocol
RECORD_SEPARATOR = b"\n"
EVENT_DELIMITER = b">>"

# Buffering
READ_CHUNK_SIZE = 4096
EVENT_BUFFER_RETAIN = 64 * 1024  # record buffers grown past this are dropped, not reused

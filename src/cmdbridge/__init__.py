"""cmdbridge -- drive a command-line program over a WebSocket.

Each accepted WebSocket connection gets its own child process. Text
frames from the peer are written to the child's stdin one line at a
time, and every line the child prints on stdout or stderr comes back
as a text frame.
"""

__version__ = "0.1.0"

"""hostlink -- local control plane for a long-running host process.

A short-lived command-line client sends one request over a Unix domain
socket; the host routes it to the subsystem that performs the action
(notifications, shell execution, the canvas surface, camera capture,
connected nodes) and replies with a single response.
"""

__version__ = "0.1.0"

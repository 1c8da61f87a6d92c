"""Module entrypoint.

Allows:
    python -m ocean_log_monitor
"""

from __future__ import annotations

from ocean_log_monitor.server.monitor_server import main

if __name__ == "__main__":
    main()

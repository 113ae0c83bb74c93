import os
from typing import Any

# Subprocess coverage for tests that launch `python -m carrion.carrion_cli`
if os.getenv("COVERAGE_PROCESS_START"):
    import coverage

    coverage.process_startup()

    # Collector.stop asserts on teardown ordering when runs are containerized
    import coverage.collector

    def safe_stop(self: Any) -> None:
        if self in getattr(self, "_collectors", []):
            self._collectors.remove(self)

    coverage.collector.Collector.stop = safe_stop

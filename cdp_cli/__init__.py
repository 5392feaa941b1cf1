"""Chrome DevTools Protocol client engine and CLI.

This package provides:
- CDPSession: one target connection with command correlation and event routing
- TargetDirectory: page discovery, creation and closing over Chrome's HTTP endpoints
- Console and network aggregators assembled from CDP notifications
- CLI: NDJSON command-line interface for debugging workflows
"""

__version__ = "0.1.0"

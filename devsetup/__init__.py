"""Developer workstation setup (Python-first, idempotent).

Core design goals:
- Safe to re-run: every resource is guarded before it is touched
- Never overwrite user data
- Warnings are collected; fatal errors stop the run immediately
- Every run ends with a summary or an incomplete-run notice
- Centralized logging
"""

__all__ = []

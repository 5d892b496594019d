"""Alert policy package."""

from .alert import AlertBehavior, AlertConfig, resolve_behavior

__all__ = ["AlertBehavior", "AlertConfig", "resolve_behavior"]

"""Application bootstrap helpers for the Remembra project."""

from .runtime import run_sweep
from .settings import AppSettings

__all__ = ["run_sweep", "AppSettings"]

from . import process, reports

__all__ = ["process", "reports"]

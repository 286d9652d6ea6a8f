"""ClawCheck: diagnose and validate DashClaw integrations."""

from clawcheck.application.diagnose import DiagnosticEngine
from clawcheck.application.validate import ValidationEngine

__all__ = ["DiagnosticEngine", "ValidationEngine"]

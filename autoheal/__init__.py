"""
autoheal - autonomous monitoring and self-healing agent.

Periodically collects telemetry, turns threshold breaches into issues,
runs rule-based remediation and delivers webhook alerts.
"""

__version__ = "1.0.0"

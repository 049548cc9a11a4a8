"""
docsentinel - watchdog for mobile-agent document pipelines.

Observes the agent pool, detects agents stuck in a processing place and
triggers the configured remediation.
"""

__version__ = "0.3.0"

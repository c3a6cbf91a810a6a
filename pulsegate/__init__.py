"""PulseGate: proactive heartbeat scheduling and delivery for agent gateways."""

__version__ = "0.1.0"

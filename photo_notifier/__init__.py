"""Photo match notifier: queue-driven email and WhatsApp delivery of face-search matches."""

__version__ = "1.0.0"

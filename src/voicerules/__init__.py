"""voicerules - keyword-triggered actions for voice assistants."""

__version__ = "1.0.0"

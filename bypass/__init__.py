"""bypass: bulk-create Shortcut objectives, epics and stories from a manifest."""

__version__ = "0.3.0"

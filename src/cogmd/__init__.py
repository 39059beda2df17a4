"""CogMD: a tabbed Markdown editor with live preview and diff-against-saved."""

__version__ = "0.4.0"

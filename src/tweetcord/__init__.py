"""tweetcord: forward Twitter filtered-stream posts into Discord channels."""

__version__ = "0.1.0"

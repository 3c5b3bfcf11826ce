"""Adapters binding the core ports to tweepy and discord.py."""

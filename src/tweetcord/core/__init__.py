"""Core domain package for tweetcord.

Core contains rule reconciliation, the stream session state machine and the
notification fan-out without any tweepy or discord.py code, keeping the
business logic portable.
"""

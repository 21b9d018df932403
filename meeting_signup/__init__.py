"""
Slack → Teams meeting sign-up bot.

Tracks Teams meeting links posted in Slack and adds people who react with
the opt-in emoji as attendees through Microsoft Graph.
"""

__version__ = "1.0.0"

"""Meeting-time polls: slot planning, availability voting, button routing and message text."""

__version__ = "0.1.0"
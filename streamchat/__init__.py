"""
streamchat: an interactive terminal client that streams chat completions
from a remote inference endpoint while keeping a bounded conversation history.
"""

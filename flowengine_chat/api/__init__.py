"""
HTTP API exposing the chat model node
"""

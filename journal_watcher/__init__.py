"""
Journal Watcher

Tails a live service log stream, recognizes notable events via configurable
regex patterns, stores them in a time-indexed event store and serves
time-range queries over them through a small HTTP API.
"""

__version__ = "0.1.0"
__author__ = "Journal Watcher Team"

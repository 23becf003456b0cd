"""
Speakeval - batch evaluation of recorded spoken answers.

Takes the video responses of one test session and scores them on a
CEFR-like scale through a sequential pipeline: media acquisition →
audio extraction → transcription → LLM evaluation → result write-back.
"""

__version__ = "0.1.0"

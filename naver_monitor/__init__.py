"""
Naver News Keyword Monitor

Periodically fetches the Naver news listing, evaluates every post against
user-defined boolean keyword conditions loaded from a spreadsheet, and
raises a notification carrying the condition's tag on the first match.
"""

__version__ = "0.1.0"
__author__ = "Naver Monitor Team"

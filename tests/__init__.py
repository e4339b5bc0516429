"""Unit tests for Text2MP3.

This package contains test modules for all components of the Text2MP3 application.
Tests use pytest with asyncio support; the speech service is replaced by in-process fakes.
"""

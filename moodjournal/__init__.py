"""Mood Journal API - journaling backend with sentiment stats and AI weekly recaps."""

"""Advisor commission engine: sale recording and commission reporting."""

"""Feeds store.

Persistence for feeds managers and the job proposals they submit.
"""

"""Threat database shipped with lockguard."""

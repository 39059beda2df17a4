"""Persistence services: settings and session stores."""

# src/ai/__init__.py — v1

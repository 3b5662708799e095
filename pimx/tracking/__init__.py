"""
Tracking domain: scheduling, scoring, plan reconciliation, purge and the
per-collection managers that read and write through the local cache
"""

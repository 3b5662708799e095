"""Core infrastructure: logging, paths, storage, sync and the key-value database"""

"""Client runtime wiring"""

"""
Database Package
Schema, Verbindung und Services für den Match Narrator
"""

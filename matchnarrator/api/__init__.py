"""Match Narrator HTTP API"""

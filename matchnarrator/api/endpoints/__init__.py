"""Versioned API endpoint routers"""

"""Command-line applications"""

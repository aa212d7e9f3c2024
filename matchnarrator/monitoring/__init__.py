"""Monitoring: Prometheus-Metriken"""

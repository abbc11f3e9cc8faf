"""
Configuration management for programs run under the supervisord process control daemon.
"""

"""
WatchCC CLI Package.

Use: from cli.main import main
"""

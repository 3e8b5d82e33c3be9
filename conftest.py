"""
Pytest configuration shared by the whole suite.
Switches settings to testing mode before any application module is imported.
"""
import os

# Set testing environment before importing app
os.environ["TESTING"] = "True"
os.environ["DEBUG"] = "False"
os.environ.setdefault("SMTP_PASSWORD", "")
os.environ.setdefault("AI_GATEWAY_API_KEY", "test-key")

"""
Serverless Sample Tester

Builds and deploys a serverless sample by running the commands its README
documents.
"""

__version__ = "0.1.0"

"""
Bedrock Proxy: passerelle HTTP vers AWS Bedrock.
"""

__version__ = "1.0.0"

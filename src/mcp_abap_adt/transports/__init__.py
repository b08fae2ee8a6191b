# ABAP ADT MCP Server
# File: transports/__init__.py
# Version: v1

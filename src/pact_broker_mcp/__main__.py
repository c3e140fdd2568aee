"""Enables running the server via: python -m pact_broker_mcp"""

from pact_broker_mcp.server import main

if __name__ == "__main__":
    main()
